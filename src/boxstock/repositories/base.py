from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from boxstock.domain.models import IncomingStockRecord, Product, ValidatedImportEntry


class RecordStore(Protocol):
    """What the services need from the backing store. Failures raise PersistenceError."""

    def list_products(self) -> list[Product]: ...
    def list_incoming_stock(self) -> list[IncomingStockRecord]: ...
    def create_incoming_stock(
        self,
        entry: ValidatedImportEntry,
        creator_id: Optional[str] = None,
        incoming_date: Optional[datetime] = None,
    ) -> IncomingStockRecord: ...
    def delete_incoming_stock(self, record_id: str) -> None: ...
