from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

import requests

from boxstock.config import BackendConfig
from boxstock.domain.errors import PersistenceError
from boxstock.domain.models import IncomingStockRecord, Product, ValidatedImportEntry
from boxstock.timeutil import parse_timestamp, to_iso, utc_now

log = logging.getLogger("boxstock.store")


def _ts(value: Optional[str]) -> Optional[datetime]:
    return parse_timestamp(value) if value else None


def product_from_json(data: dict) -> Product:
    return Product(
        id=str(data["id"]),
        sku=str(data["sku"]),
        name=str(data["name"]),
        price=float(data.get("price") or 0),
        box_contents=int(data.get("box_contents") or 0),
        category=str(data.get("category") or ""),
        description=data.get("description"),
        created_at=_ts(data.get("created_at")),
        updated_at=_ts(data.get("updated_at")),
    )


def record_from_json(data: dict) -> IncomingStockRecord:
    return IncomingStockRecord(
        id=str(data["id"]),
        incoming_date=parse_timestamp(data["incoming_date"]),
        product_id=str(data["product_id"]),
        sku=str(data["sku"]),
        boxes_received=int(data["boxes_received"]),
        supplier_name=str(data.get("supplier_name") or ""),
        total_units=int(data.get("total_units") or 0),
        description=data.get("description"),
        creator_id=data.get("creator_id"),
        created_at=_ts(data.get("created_at")),
        updated_at=_ts(data.get("updated_at")),
    )


class RestRepository:
    """
    Record store behind a PostgREST-style HTTP API (``/rest/v1/<table>``).

    Every failure, transport or payload, is logged and re-raised as
    PersistenceError with a readable message; the original error is chained.
    """

    def __init__(self, config: BackendConfig, session: requests.Session | None = None):
        self.config = config
        self.session = session or requests.Session()

    def _headers(self, prefer: Optional[str] = None) -> dict[str, str]:
        headers = {
            "apikey": self.config.api_key,
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        table: str,
        failure: str,
        params: Optional[dict] = None,
        payload: Optional[dict] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        url = f"{self.config.url}/rest/v1/{table}"
        try:
            r = self.session.request(
                method,
                url,
                params=params,
                json=payload,
                headers=self._headers(prefer),
                timeout=self.config.timeout,
            )
            r.raise_for_status()
            if r.status_code == 204 or not r.content:
                return None
            return r.json()
        except (requests.RequestException, ValueError) as e:
            log.error("backend_request_failed method=%s table=%s error=%s", method, table, e)
            raise PersistenceError(failure) from e

    @staticmethod
    def _parse(convert, rows: list, failure: str) -> list:
        try:
            return [convert(d) for d in rows]
        except (KeyError, TypeError, ValueError) as e:
            log.error("backend_payload_invalid error=%s", e)
            raise PersistenceError(f"{failure}: unexpected payload") from e

    def list_products(self) -> list[Product]:
        data = self._request(
            "GET", "products", "Failed to fetch products",
            params={"select": "*", "order": "created_at.desc"},
        )
        return self._parse(product_from_json, data or [], "Failed to fetch products")

    def list_incoming_stock(self) -> list[IncomingStockRecord]:
        data = self._request(
            "GET", "incoming_box_stock", "Failed to fetch incoming box stocks",
            params={"select": "*", "order": "created_at.desc"},
        )
        return self._parse(record_from_json, data or [], "Failed to fetch incoming box stocks")

    def create_incoming_stock(
        self,
        entry: ValidatedImportEntry,
        creator_id: Optional[str] = None,
        incoming_date: Optional[datetime] = None,
    ) -> IncomingStockRecord:
        now = to_iso(utc_now())
        payload = {
            "incoming_date": to_iso(incoming_date) if incoming_date else now,
            "product_id": entry.product_id,
            "sku": entry.sku,
            "boxes_received": int(entry.boxes_received),
            "supplier_name": entry.supplier_name,
            "description": entry.description,
            "total_units": int(entry.total_units),
            "created_at": now,
            "updated_at": now,
        }
        if creator_id:
            payload["creator_id"] = creator_id

        data = self._request(
            "POST", "incoming_box_stock", "Failed to create box stock",
            payload=payload, prefer="return=representation",
        )
        rows = data if isinstance(data, list) else [data]
        if not rows or not rows[0]:
            raise PersistenceError("Failed to create box stock: backend returned no record")
        return self._parse(record_from_json, rows[:1], "Failed to create box stock")[0]

    def delete_incoming_stock(self, record_id: str) -> None:
        self._request(
            "DELETE", "incoming_box_stock", "Failed to delete box stock",
            params={"id": f"eq.{record_id}"},
        )
