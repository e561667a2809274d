from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from boxstock.config import StockSettings
from boxstock.domain.errors import ImportFileError
from boxstock.domain.models import (
    ImportPreviewItem,
    ImportResult,
    Product,
    RawImportEntry,
    ValidatedImportEntry,
)
from boxstock.services.validation_service import validate_entry

log = logging.getLogger("boxstock.imports")

TEMPLATE_FILE_NAME = "box_stock_import_template.xlsx"
TEMPLATE_SHEET = "Box Stock Template"
REFERENCE_SHEET = "Product Reference"

TEMPLATE_HEADERS = [
    "Product ID",
    "Product SKU",
    "Product Name",
    "Boxes Received",
    "Supplier Name",
    "Description (Optional)",
]
REFERENCE_HEADERS = ["Product ID", "SKU", "Name", "Box Contents"]
REQUIRED_HEADERS = ["Product ID", "Boxes Received", "Supplier Name"]

# header -> field name on the typed row
COLUMN_FIELDS = {
    "product id": "product_id",
    "product sku": "product_sku",
    "product name": "product_name",
    "boxes received": "boxes_received",
    "supplier name": "supplier_name",
    "description (optional)": "description",
}

TEMPLATE_WIDTHS = {"A": 36, "B": 15, "C": 30, "D": 15, "E": 20, "F": 30}
REFERENCE_WIDTHS = {"A": 36, "B": 15, "C": 30, "D": 15}


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _cell_text(value: object) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class ExcelImportService:
    def __init__(self, settings: StockSettings | None = None):
        self.settings = settings or StockSettings()

    # ---------- Template ----------
    def generate_template(self, products: Sequence[Product]) -> bytes:
        wb = Workbook()

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        ws = wb.active
        ws.title = TEMPLATE_SHEET
        ws.append(TEMPLATE_HEADERS)
        bold_row(ws, 1)

        if products:
            for p in list(products)[:3]:
                ws.append([p.id, p.sku, p.name, "5", "Supplier Name", "Optional description"])
        else:
            ws.append([
                "product-id-example",
                "SKU-123",
                "Product Name Example",
                "5",
                "Supplier Name Example",
                "Optional description",
            ])
        set_widths(ws, TEMPLATE_WIDTHS)

        ref = wb.create_sheet(REFERENCE_SHEET)
        ref.append(REFERENCE_HEADERS)
        bold_row(ref, 1)
        for p in products:
            ref.append([p.id, p.sku, p.name, str(p.box_contents)])
        ref.freeze_panes = "A2"
        set_widths(ref, REFERENCE_WIDTHS)

        buf = BytesIO()
        wb.save(buf)
        return buf.getvalue()

    def save_template(self, target: Path | str, products: Sequence[Product]) -> Path:
        path = Path(target)
        if path.is_dir():
            path = path / TEMPLATE_FILE_NAME
        path.write_bytes(self.generate_template(products))
        log.info("template_saved path=%s products=%d", path, len(products))
        return path

    # ---------- Import ----------
    def import_path(self, path: Path | str, products: Sequence[Product]) -> ImportResult:
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            log.error("import_read_failed path=%s error=%s", path, e)
            return ImportResult(error="Error reading the file. Please try again with a different file.")
        return self.process_file(data, path.name, len(data), products)

    def process_file(
        self,
        data: bytes,
        file_name: str,
        file_size: int,
        products: Sequence[Product],
    ) -> ImportResult:
        """
        Turns an uploaded workbook into validated receipts.

        Fatal problems (wrong type, too big, unreadable, missing columns, nothing
        valid) come back as ``ImportResult.error``. Rows that fail validation are
        skipped and reported as ``Row N:`` warnings.
        """
        try:
            self._check_file(file_name, file_size)
            rows = self._read_rows(data)
            columns = self._map_columns(rows[0])
            entries, warnings = self._validate_rows(rows[1:], columns, products)
        except ImportFileError as e:
            log.warning("import_rejected file=%s reason=%s", file_name, e.message)
            return ImportResult(error=e.message)

        limit = self.settings.max_displayed_warnings
        shown = warnings[:limit]
        if len(warnings) > limit:
            shown.append(f"...and {len(warnings) - limit} more warnings")

        preview = [
            ImportPreviewItem(index=i + 1, entry=entry)
            for i, entry in enumerate(entries[: self.settings.preview_limit])
        ]
        log.info(
            "import_processed file=%s valid=%d warnings=%d",
            file_name,
            len(entries),
            len(warnings),
        )
        return ImportResult(entries=entries, warnings=shown, preview=preview)

    def _check_file(self, file_name: str, file_size: int) -> None:
        ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
        if ext not in self.settings.accepted_extensions:
            raise ImportFileError("Invalid file format. Please upload an Excel workbook (.xlsx).")
        if file_size > self.settings.max_upload_bytes:
            mib = self.settings.max_upload_bytes // (1024 * 1024)
            raise ImportFileError(f"File is too large. Maximum file size is {mib}MB.")

    def _read_rows(self, data: bytes) -> list[list[object]]:
        # read-only workbooks parse sheet XML lazily, so iteration can fail too
        try:
            wb = load_workbook(BytesIO(data), read_only=True, data_only=True)
            try:
                if not wb.sheetnames:
                    raise ImportFileError("Excel file contains no sheets.")
                ws = wb[wb.sheetnames[0]]
                rows = [list(r) for r in ws.iter_rows(values_only=True)]
            finally:
                wb.close()
        except ImportFileError:
            raise
        except Exception as e:
            log.warning("import_parse_failed error=%s", e)
            raise ImportFileError(
                "Could not parse the Excel file. The file might be corrupted or in an unsupported format."
            ) from e

        rows = [r for r in rows if not all(_is_blank(v) for v in r)]
        if len(rows) < 2:
            raise ImportFileError(
                "The Excel file does not contain enough data. Please use the template format."
            )
        return rows

    def _map_columns(self, header_row: Sequence[object]) -> dict[str, int]:
        names = [h.strip().lower() if isinstance(h, str) else None for h in header_row]

        missing = [h for h in REQUIRED_HEADERS if h.lower() not in names]
        if missing:
            raise ImportFileError(
                f"Missing required columns: {', '.join(missing)}. Please use the template format."
            )

        columns: dict[str, int] = {}
        for header, field_name in COLUMN_FIELDS.items():
            if header in names:
                columns[field_name] = names.index(header)

        for required in ("product_id", "boxes_received", "supplier_name"):
            if required not in columns:
                raise ImportFileError(
                    "Required columns not found in the expected format. Please use the template format."
                )
        return columns

    def _validate_rows(
        self,
        data_rows: Sequence[Sequence[object]],
        columns: dict[str, int],
        products: Sequence[Product],
    ) -> tuple[list[ValidatedImportEntry], list[str]]:
        entries: list[ValidatedImportEntry] = []
        warnings: list[str] = []

        for i, row in enumerate(data_rows):
            row_number = i + 2
            result = validate_entry(
                self._row_to_entry(row, columns),
                products,
                large_quantity_warning=self.settings.large_quantity_warning,
            )
            if result.valid and result.entry is not None:
                entries.append(result.entry)
                for w in result.warnings:
                    warnings.append(f"Row {row_number}: {w}")
            else:
                log.warning(
                    "import_row_skipped row=%s",
                    row_number,
                    extra={"context": {"row": row_number, "errors": result.errors}},
                )
                warnings.append(f"Row {row_number}: {', '.join(result.errors)}")

        if not entries:
            raise ImportFileError(
                "No valid entries found in the Excel file. Please check the data format "
                "and ensure all required fields are filled correctly."
            )
        return entries, warnings

    @staticmethod
    def _row_to_entry(row: Sequence[object], columns: dict[str, int]) -> RawImportEntry:
        def cell(field_name: str) -> object:
            idx = columns.get(field_name)
            if idx is None or idx >= len(row):
                return None
            return row[idx]

        boxes = cell("boxes_received")
        return RawImportEntry(
            product_id=_cell_text(cell("product_id")),
            boxes_received=None if _is_blank(boxes) else boxes,
            supplier_name=_cell_text(cell("supplier_name")),
            description=_cell_text(cell("description")),
        )
