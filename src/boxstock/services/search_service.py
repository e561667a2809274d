from __future__ import annotations

from typing import Optional, Sequence

from boxstock.domain.models import IncomingStockRecord, Product


def search_records(
    records: Sequence[IncomingStockRecord],
    products: Sequence[Product],
    query: str,
) -> list[IncomingStockRecord]:
    """Case-insensitive match on the record SKU or its product's name."""
    q = (query or "").lower()
    if not q:
        return list(records)

    names = {p.id: p.name for p in products}
    return [
        r
        for r in records
        if q in r.sku.lower() or q in names.get(r.product_id, "Unknown Product").lower()
    ]


def search_products_by_sku(products: Sequence[Product], query: str) -> list[Product]:
    q = (query or "").strip().lower()
    if not q:
        return []
    return [p for p in products if q in p.sku.lower()]


def find_product_by_sku(products: Sequence[Product], sku: str) -> Optional[Product]:
    for p in products:
        if p.sku == sku:
            return p
    return None


def calculate_total_units(product: Optional[Product], boxes_received: int) -> int:
    if product is None or not boxes_received:
        return 0
    return int(boxes_received) * int(product.box_contents)
