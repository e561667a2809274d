from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


IN_STOCK = "In Stock"
LOW_STOCK = "Low Stock"
OUT_OF_STOCK = "Out of Stock"


@dataclass(frozen=True)
class Product:
    id: str
    sku: str
    name: str
    price: float
    box_contents: int
    category: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class IncomingStockRecord:
    id: str
    incoming_date: datetime
    product_id: str
    sku: str
    boxes_received: int
    supplier_name: str
    total_units: int
    description: Optional[str] = None
    creator_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class BoxedInventorySummary:
    sku: str
    product_id: str
    product_name: str
    category: str
    box_quantity: int
    pairs_per_box: int
    total_pairs: int
    last_updated: Optional[datetime]
    status: str


@dataclass(frozen=True)
class RawImportEntry:
    """One candidate receipt, as typed in or read from a spreadsheet row."""

    product_id: Optional[str]
    boxes_received: Union[int, float, str, None]
    supplier_name: Optional[str]
    description: Optional[str] = None


@dataclass(frozen=True)
class ValidatedImportEntry:
    product_id: str
    boxes_received: int
    supplier_name: str
    description: str
    product_name: str
    sku: str
    box_contents: int
    total_units: int


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    entry: Optional[ValidatedImportEntry] = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ImportPreviewItem:
    index: int
    entry: ValidatedImportEntry


@dataclass(frozen=True)
class ImportResult:
    entries: list[ValidatedImportEntry] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    preview: list[ImportPreviewItem] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class InventorySnapshot:
    products: list[Product]
    records: list[IncomingStockRecord]
