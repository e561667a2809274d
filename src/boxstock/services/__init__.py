from .validation_service import validate_entry
from .excel_service import ExcelImportService
from .date_filter import DateRangeFilter
from .inventory_service import InventoryService, summarize
from .stock_entry_service import StockEntryService

__all__ = [
    "validate_entry",
    "ExcelImportService",
    "DateRangeFilter",
    "InventoryService",
    "summarize",
    "StockEntryService",
]
