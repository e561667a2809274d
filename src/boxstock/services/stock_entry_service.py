from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from boxstock.domain.errors import ProductNotFoundError, ValidationError
from boxstock.domain.models import IncomingStockRecord, Product, ValidatedImportEntry
from boxstock.services.validation_service import find_product, parse_box_count

log = logging.getLogger(__name__)


class StockEntryService:
    def __init__(self, repo):
        self.repo = repo

    def create_record(
        self,
        product_id: str,
        boxes_received,
        supplier_name: str,
        products: Sequence[Product],
        description: Optional[str] = None,
        creator_id: Optional[str] = None,
        incoming_date: Optional[datetime] = None,
    ) -> IncomingStockRecord:
        """Single receipt typed in by hand. Raises on the first problem."""
        product_id = (product_id or "").strip()
        supplier_name = (supplier_name or "").strip()
        if not product_id:
            raise ValidationError("Please select a product")
        if not supplier_name:
            raise ValidationError("Supplier name is required")

        boxes = parse_box_count(boxes_received)
        if boxes is None or boxes <= 0:
            raise ValidationError("Boxes received must be a positive number")

        product = find_product(products, product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        if not product.box_contents or product.box_contents <= 0:
            raise ValidationError(
                f"Product {product.name} ({product.sku}) has invalid box contents value. "
                "Please update the product in Product Master."
            )

        entry = ValidatedImportEntry(
            product_id=product.id,
            boxes_received=boxes,
            supplier_name=supplier_name,
            description=(description or "").strip(),
            product_name=product.name,
            sku=product.sku,
            box_contents=product.box_contents,
            total_units=boxes * product.box_contents,
        )
        record = self.repo.create_incoming_stock(entry, creator_id=creator_id, incoming_date=incoming_date)
        log.info("box_stock_created id=%s sku=%s boxes=%d", record.id, record.sku, record.boxes_received)
        return record

    def import_entries(
        self,
        entries: Iterable[ValidatedImportEntry],
        creator_id: Optional[str] = None,
        incoming_date: Optional[datetime] = None,
    ) -> list[IncomingStockRecord]:
        """Persists a validated batch in order; a store failure stops the batch."""
        created: list[IncomingStockRecord] = []
        for entry in entries:
            created.append(
                self.repo.create_incoming_stock(entry, creator_id=creator_id, incoming_date=incoming_date)
            )
        log.info("box_stock_imported count=%d creator=%s", len(created), creator_id)
        return created

    def delete_record(self, record_id: str) -> None:
        if not record_id:
            raise ValidationError("Record ID is required.")
        self.repo.delete_incoming_stock(record_id)
        log.info("box_stock_deleted id=%s", record_id)
