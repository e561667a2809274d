from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, Optional, Sequence

from boxstock.config import LOW_STOCK_THRESHOLD, StockSettings
from boxstock.domain.models import (
    IN_STOCK,
    LOW_STOCK,
    OUT_OF_STOCK,
    BoxedInventorySummary,
    IncomingStockRecord,
    InventorySnapshot,
    Product,
)
from boxstock.services.search_service import search_records
from boxstock.timeutil import as_aware, parse_timestamp

log = logging.getLogger(__name__)


def stock_status(box_quantity: int, low_stock_threshold: int = LOW_STOCK_THRESHOLD) -> str:
    if box_quantity == 0:
        return OUT_OF_STOCK
    if box_quantity < low_stock_threshold:
        return LOW_STOCK
    return IN_STOCK


# ---------- Catalog lookups ----------
def get_product_name(products: Iterable[Product], product_id: str) -> str:
    if not product_id:
        return "Unknown Product (No ID)"
    for p in products:
        if p.id == product_id:
            return p.name
    return f"Unknown Product (ID: {product_id})"


def get_box_contents(products: Iterable[Product], product_id: str) -> int:
    for p in products:
        if p.id == product_id:
            return p.box_contents
    return 0


def get_product_category(products: Iterable[Product], product_id: str) -> str:
    for p in products:
        if p.id == product_id:
            return p.category
    return "Unknown"


def format_date(value) -> str:
    if not value:
        return "N/A"
    try:
        d = parse_timestamp(value)
    except (TypeError, ValueError):
        return "Invalid Date"
    return f"{d.day} {d.strftime('%B')} {d.year}"


def find_sku_conflicts(records: Iterable[IncomingStockRecord]) -> dict[str, list[str]]:
    """SKUs whose records point at more than one product id."""
    seen: dict[str, set[str]] = {}
    for r in records:
        seen.setdefault(r.sku, set()).add(r.product_id)
    return {sku: sorted(ids) for sku, ids in seen.items() if len(ids) > 1}


def _later(current: Optional[datetime], candidate: Optional[datetime]) -> Optional[datetime]:
    if current is None:
        return candidate
    if candidate is None:
        return current
    return candidate if as_aware(candidate) > as_aware(current) else current


def summarize(
    records: Sequence[IncomingStockRecord],
    products: Sequence[Product],
    low_stock_threshold: int = LOW_STOCK_THRESHOLD,
) -> list[BoxedInventorySummary]:
    """
    Folds receipts into one row per SKU.

    Records are grouped by ``sku``, not ``product_id``. Pairs per box come from
    the product as it is now, so ``total_pairs`` follows catalog edits while the
    stored ``total_units`` of each record does not.
    """
    by_id = {p.id: p for p in products}

    conflicts = find_sku_conflicts(records)
    for sku, ids in conflicts.items():
        log.warning("sku_shared_by_products sku=%s product_ids=%s", sku, ",".join(ids))

    groups: dict[str, dict] = {}
    for r in records:
        g = groups.get(r.sku)
        if g is None:
            product = by_id.get(r.product_id)
            pairs = product.box_contents if product else 0
            groups[r.sku] = {
                "product_id": r.product_id,
                "product_name": product.name if product else get_product_name(products, r.product_id),
                "category": product.category if product else "Unknown",
                "box_quantity": r.boxes_received,
                "pairs_per_box": pairs,
                "total_pairs": r.boxes_received * pairs,
                "last_updated": r.updated_at,
            }
            continue

        g["box_quantity"] += r.boxes_received
        g["total_pairs"] = g["box_quantity"] * g["pairs_per_box"]
        g["last_updated"] = _later(g["last_updated"], r.updated_at)

    return [
        BoxedInventorySummary(
            sku=sku,
            status=stock_status(g["box_quantity"], low_stock_threshold),
            **g,
        )
        for sku, g in groups.items()
    ]


class InventoryService:
    def __init__(self, repo, settings: StockSettings | None = None):
        self.repo = repo
        self.settings = settings or StockSettings()

    def list_products(self) -> list[Product]:
        return self.repo.list_products()

    def list_records(self) -> list[IncomingStockRecord]:
        return self.repo.list_incoming_stock()

    def load_snapshot(self) -> InventorySnapshot:
        # the two fetches are independent; aggregation waits for both
        with ThreadPoolExecutor(max_workers=2) as pool:
            products_f = pool.submit(self.repo.list_products)
            records_f = pool.submit(self.repo.list_incoming_stock)
            products = products_f.result()
            records = records_f.result()
        log.info("snapshot_loaded products=%d records=%d", len(products), len(records))
        return InventorySnapshot(products=products, records=records)

    def boxed_inventory_summary(self, snapshot: InventorySnapshot | None = None) -> list[BoxedInventorySummary]:
        snapshot = snapshot or self.load_snapshot()
        return summarize(snapshot.records, snapshot.products, self.settings.low_stock_threshold)

    def filter_records(
        self,
        records: Sequence[IncomingStockRecord],
        products: Sequence[Product],
        query: str = "",
        in_range: Optional[Callable[[datetime], bool]] = None,
    ) -> list[IncomingStockRecord]:
        matched = search_records(records, products, query)
        if in_range is None:
            return matched
        return [r for r in matched if in_range(r.incoming_date)]
