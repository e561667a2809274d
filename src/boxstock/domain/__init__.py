from .models import (
    Product,
    IncomingStockRecord,
    BoxedInventorySummary,
    RawImportEntry,
    ValidatedImportEntry,
    ValidationResult,
    ImportPreviewItem,
    ImportResult,
    InventorySnapshot,
    IN_STOCK,
    LOW_STOCK,
    OUT_OF_STOCK,
)
from .errors import (
    AppError,
    ValidationError,
    NotFoundError,
    ProductNotFoundError,
    ImportFileError,
    PersistenceError,
)

__all__ = [
    "Product",
    "IncomingStockRecord",
    "BoxedInventorySummary",
    "RawImportEntry",
    "ValidatedImportEntry",
    "ValidationResult",
    "ImportPreviewItem",
    "ImportResult",
    "InventorySnapshot",
    "IN_STOCK",
    "LOW_STOCK",
    "OUT_OF_STOCK",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ProductNotFoundError",
    "ImportFileError",
    "PersistenceError",
]
