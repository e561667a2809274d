from __future__ import annotations

import logging
import shutil
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional

from boxstock.domain.errors import PersistenceError
from boxstock.domain.models import IncomingStockRecord, Product, ValidatedImportEntry
from boxstock.timeutil import parse_timestamp, to_iso, utc_now

log = logging.getLogger("boxstock.store")

_PRODUCT_COLS = "id, sku, name, price, box_contents, category, description, created_at, updated_at"
_STOCK_COLS = (
    "id, incoming_date, product_id, sku, boxes_received, supplier_name, total_units, "
    "description, creator_id, created_at, updated_at"
)


def _ts(value: Optional[str]) -> Optional[datetime]:
    return parse_timestamp(value) if value else None


def _product_from_row(r) -> Product:
    return Product(
        id=str(r[0]),
        sku=str(r[1]),
        name=str(r[2]),
        price=float(r[3]),
        box_contents=int(r[4]),
        category=str(r[5]),
        description=r[6],
        created_at=_ts(r[7]),
        updated_at=_ts(r[8]),
    )


def _record_from_row(r) -> IncomingStockRecord:
    return IncomingStockRecord(
        id=str(r[0]),
        incoming_date=parse_timestamp(r[1]),
        product_id=str(r[2]),
        sku=str(r[3]),
        boxes_received=int(r[4]),
        supplier_name=str(r[5]),
        total_units=int(r[6]),
        description=r[7],
        creator_id=r[8],
        created_at=_ts(r[9]),
        updated_at=_ts(r[10]),
    )


class SqliteRepository:
    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def init_db(self) -> None:
        self.run_migrations()

    def run_migrations(self) -> None:
        conn = self._conn()
        backup_path = self._create_pre_migration_backup()
        try:
            cur = conn.cursor()
            cur.execute("BEGIN")
            cur.execute("CREATE TABLE IF NOT EXISTS schema_migrations (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)")
            cur.execute("SELECT COALESCE(MAX(version), 0) FROM schema_migrations")
            current_version = int(cur.fetchone()[0])

            migrations = [
                (1, self._migration_v1_base),
                (2, self._migration_v2_creator_and_indexes),
            ]

            for version, migration in migrations:
                if version <= current_version:
                    continue
                migration(cur)
                cur.execute(
                    "INSERT INTO schema_migrations (version, applied_at) VALUES (?, datetime('now'))",
                    (version,),
                )
            conn.commit()
        except Exception as exc:
            conn.rollback()
            self._restore_pre_migration_backup(backup_path)
            raise PersistenceError(
                "Database migration failed. Original database restored from automatic backup."
            ) from exc
        finally:
            conn.close()

    def _create_pre_migration_backup(self) -> Path | None:
        db_file = Path(self.db_path)
        if not db_file.exists() or db_file.stat().st_size == 0:
            return None
        backup_file = db_file.with_name(f"{db_file.stem}.pre_migration_{datetime.now().strftime('%Y%m%d%H%M%S')}.bak")
        shutil.copy2(db_file, backup_file)
        return backup_file

    def _restore_pre_migration_backup(self, backup_path: Path | None) -> None:
        if backup_path is None or not backup_path.exists():
            return
        shutil.copy2(backup_path, self.db_path)

    def _migration_v1_base(self, cur: sqlite3.Cursor) -> None:
        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS products (
            id TEXT PRIMARY KEY,
            sku TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            price REAL NOT NULL CHECK(price >= 0),
            box_contents INTEGER NOT NULL,
            category TEXT NOT NULL,
            description TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
        )

        cur.execute(
            """
        CREATE TABLE IF NOT EXISTS incoming_box_stock (
            id TEXT PRIMARY KEY,
            incoming_date TEXT NOT NULL,
            product_id TEXT NOT NULL,
            sku TEXT NOT NULL,
            boxes_received INTEGER NOT NULL CHECK(boxes_received > 0),
            supplier_name TEXT NOT NULL,
            total_units INTEGER NOT NULL,
            description TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY(product_id) REFERENCES products(id)
        )
        """
        )

    def _migration_v2_creator_and_indexes(self, cur: sqlite3.Cursor) -> None:
        self._add_column_if_missing(cur, "incoming_box_stock", "creator_id", "TEXT")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_incoming_box_stock_sku ON incoming_box_stock(sku)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_incoming_box_stock_created ON incoming_box_stock(created_at)")

    def _add_column_if_missing(self, cur: sqlite3.Cursor, table: str, column: str, definition: str) -> None:
        cur.execute(f"PRAGMA table_info({table})")
        cols = {str(r[1]) for r in cur.fetchall()}
        if column in cols:
            return
        cur.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")

    def integrity_check(self) -> str:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("PRAGMA integrity_check")
        row = cur.fetchone()
        conn.close()
        return str(row[0]) if row else "unknown"

    # ---------- Products ----------
    def add_product(
        self,
        sku: str,
        name: str,
        price: float,
        box_contents: int,
        category: str,
        description: Optional[str] = None,
    ) -> Product:
        pid = str(uuid.uuid4())
        now = to_iso(utc_now())
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute(
                f"""
                INSERT INTO products ({_PRODUCT_COLS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (pid, sku, name, float(price), int(box_contents), category, description, now, now),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            log.error("product_create_failed sku=%s error=%s", sku, e)
            raise PersistenceError(f"Failed to create product {sku}") from e
        finally:
            conn.close()
        product = self.get_product_by_id(pid)
        assert product is not None
        return product

    def update_product_box_contents(self, product_id: str, box_contents: int) -> bool:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "UPDATE products SET box_contents=?, updated_at=? WHERE id=?",
                (int(box_contents), to_iso(utc_now()), product_id),
            )
            changed = cur.rowcount > 0
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            log.error("product_update_failed id=%s error=%s", product_id, e)
            raise PersistenceError(f"Failed to update product {product_id}") from e
        finally:
            conn.close()
        return bool(changed)

    def list_products(self) -> list[Product]:
        try:
            conn = self._conn()
            try:
                cur = conn.cursor()
                cur.execute(f"SELECT {_PRODUCT_COLS} FROM products ORDER BY created_at DESC, rowid DESC")
                rows = cur.fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            log.error("products_fetch_failed error=%s", e)
            raise PersistenceError("Failed to fetch products") from e
        return [_product_from_row(r) for r in rows]

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(f"SELECT {_PRODUCT_COLS} FROM products WHERE id=?", (product_id,))
        r = cur.fetchone()
        conn.close()
        if not r:
            return None
        return _product_from_row(r)

    # ---------- Incoming box stock ----------
    def list_incoming_stock(self) -> list[IncomingStockRecord]:
        try:
            conn = self._conn()
            try:
                cur = conn.cursor()
                cur.execute(f"SELECT {_STOCK_COLS} FROM incoming_box_stock ORDER BY created_at DESC, rowid DESC")
                rows = cur.fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            log.error("box_stock_fetch_failed error=%s", e)
            raise PersistenceError("Failed to fetch incoming box stocks") from e
        return [_record_from_row(r) for r in rows]

    def get_incoming_stock_by_id(self, record_id: str) -> Optional[IncomingStockRecord]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(f"SELECT {_STOCK_COLS} FROM incoming_box_stock WHERE id=?", (record_id,))
        r = cur.fetchone()
        conn.close()
        if not r:
            return None
        return _record_from_row(r)

    def create_incoming_stock(
        self,
        entry: ValidatedImportEntry,
        creator_id: Optional[str] = None,
        incoming_date: Optional[datetime] = None,
    ) -> IncomingStockRecord:
        rid = str(uuid.uuid4())
        now = to_iso(utc_now())
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute(
                f"""
                INSERT INTO incoming_box_stock ({_STOCK_COLS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    rid,
                    to_iso(incoming_date) if incoming_date else now,
                    entry.product_id,
                    entry.sku,
                    int(entry.boxes_received),
                    entry.supplier_name,
                    int(entry.total_units),
                    entry.description or None,
                    creator_id,
                    now,
                    now,
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            log.error("box_stock_create_failed sku=%s error=%s", entry.sku, e)
            raise PersistenceError("Failed to create box stock") from e
        finally:
            conn.close()
        record = self.get_incoming_stock_by_id(rid)
        assert record is not None
        return record

    def delete_incoming_stock(self, record_id: str) -> None:
        conn = self._conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM incoming_box_stock WHERE id=?", (record_id,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            log.error("box_stock_delete_failed id=%s error=%s", record_id, e)
            raise PersistenceError("Failed to delete box stock") from e
        finally:
            conn.close()
