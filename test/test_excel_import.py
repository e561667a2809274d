import logging
import zipfile
from io import BytesIO
from pathlib import Path

from conftest import make_product, workbook_bytes
from openpyxl import load_workbook

from boxstock.config import StockSettings
from boxstock.services.excel_service import (
    REFERENCE_SHEET,
    TEMPLATE_FILE_NAME,
    TEMPLATE_HEADERS,
    TEMPLATE_SHEET,
    ExcelImportService,
)


def _process(rows, products, name="upload.xlsx", settings=None):
    data = workbook_bytes(rows)
    return ExcelImportService(settings).process_file(data, name, len(data), products)


def test_mixed_validity_keeps_good_rows_and_reports_bad_ones():
    products = [make_product("p1", "SKU-1", "Runner", 12)]
    result = _process(
        [
            ["Product ID", "Boxes Received", "Supplier Name"],
            ["p1", "5", "Acme"],
            ["p-missing", "3", "Acme"],
        ],
        products,
    )

    assert result.ok
    assert len(result.entries) == 1
    assert result.entries[0].boxes_received == 5
    assert result.entries[0].total_units == 60
    assert len(result.warnings) == 1
    assert "Row 3" in result.warnings[0]
    assert "not found in the database" in result.warnings[0]


def test_headers_match_case_insensitively_and_description_is_optional():
    products = [make_product("p1", "SKU-1", "Runner", 6)]
    result = _process(
        [
            ["product id", "BOXES RECEIVED", "supplier name", "Description (optional)"],
            ["p1", 2, "Acme", "  dock 4 "],
            ["p1", 3, "Zeta"],
        ],
        products,
    )

    assert result.ok
    assert [e.description for e in result.entries] == ["dock 4", ""]
    assert [e.total_units for e in result.entries] == [12, 18]


def test_blank_rows_are_skipped_and_missing_cells_become_row_warnings():
    products = [make_product("p1", "SKU-1", "Runner", 12)]
    result = _process(
        [
            ["Product ID", "Boxes Received", "Supplier Name"],
            ["p1", 1, "Acme"],
            [None, None, None],
            ["p1", None, "Acme"],
        ],
        products,
    )

    assert len(result.entries) == 1
    assert result.warnings == ["Row 3: Boxes received is required"]


def test_row_warnings_from_valid_rows_are_prefixed():
    products = [make_product("p1", "SKU-1", "Runner", 12)]
    result = _process(
        [["Product ID", "Boxes Received", "Supplier Name"], ["p1", 1500, "Acme"]],
        products,
    )

    assert result.warnings == ["Row 2: Unusually large quantity (1500 boxes). Please verify."]


def test_warnings_are_capped_with_a_remainder_line():
    products = [make_product("p1", "SKU-1", "Runner", 12)]
    rows = [["Product ID", "Boxes Received", "Supplier Name"], ["p1", 1, "Acme"]]
    rows += [[f"ghost-{i}", 1, "Acme"] for i in range(7)]

    result = _process(rows, products)

    assert len(result.entries) == 1
    assert len(result.warnings) == 6
    assert result.warnings[0].startswith("Row 3:")
    assert result.warnings[-1] == "...and 2 more warnings"


def test_preview_lists_first_ten_entries_with_one_based_index():
    products = [make_product("p1", "SKU-1", "Runner", 12)]
    rows = [["Product ID", "Boxes Received", "Supplier Name"]]
    rows += [["p1", i + 1, "Acme"] for i in range(12)]

    result = _process(rows, products)

    assert len(result.entries) == 12
    assert [p.index for p in result.preview] == list(range(1, 11))
    assert result.preview[0].entry.boxes_received == 1


def test_fatal_errors_abort_the_import():
    products = [make_product()]
    svc = ExcelImportService()

    wrong_type = svc.process_file(b"a,b", "stock.csv", 3, products)
    assert not wrong_type.ok
    assert wrong_type.error.startswith("Invalid file format")
    assert wrong_type.entries == []

    too_big = svc.process_file(b"", "stock.xlsx", 10 * 1024 * 1024 + 1, products)
    assert too_big.error.startswith("File is too large")

    garbage = svc.process_file(b"not a workbook", "stock.xlsx", 14, products)
    assert garbage.error.startswith("Could not parse the Excel file")

    header_only = _process([["Product ID", "Boxes Received", "Supplier Name"]], products)
    assert "does not contain enough data" in header_only.error

    missing = _process([["Product ID", "Supplier Name"], ["p1", "Acme"]], products)
    assert missing.error == "Missing required columns: Boxes Received. Please use the template format."

    nothing_valid = _process(
        [["Product ID", "Boxes Received", "Supplier Name"], ["p1", 0, "Acme"]], products
    )
    assert nothing_valid.error.startswith("No valid entries found")


def test_upload_limit_comes_from_settings():
    settings = StockSettings(max_upload_bytes=10)
    data = workbook_bytes([["Product ID", "Boxes Received", "Supplier Name"], ["p1", 1, "Acme"]])

    result = ExcelImportService(settings).process_file(data, "s.xlsx", len(data), [make_product()])
    assert result.error.startswith("File is too large")


def test_template_with_empty_catalog_has_one_sample_row():
    data = ExcelImportService().generate_template([])
    wb = load_workbook(BytesIO(data))

    assert wb.sheetnames == [TEMPLATE_SHEET, REFERENCE_SHEET]
    rows = list(wb[TEMPLATE_SHEET].iter_rows(values_only=True))
    assert list(rows[0]) == TEMPLATE_HEADERS
    assert len(rows) == 2
    assert rows[1][0] == "product-id-example"
    assert len(list(wb[REFERENCE_SHEET].iter_rows(values_only=True))) == 1


def test_template_samples_three_products_and_lists_all_in_reference():
    products = [make_product(f"p{i}", f"SKU-{i}", f"Model {i}", 6 + i) for i in range(5)]
    data = ExcelImportService().generate_template(products)
    wb = load_workbook(BytesIO(data))

    template_rows = list(wb[TEMPLATE_SHEET].iter_rows(values_only=True))
    assert len(template_rows) == 4
    assert [r[0] for r in template_rows[1:]] == ["p0", "p1", "p2"]

    ref_rows = list(wb[REFERENCE_SHEET].iter_rows(values_only=True))
    assert len(ref_rows) == 6
    assert ref_rows[5] == ("p4", "SKU-4", "Model 4", "10")


def test_filled_template_imports_back():
    products = [make_product("p1", "SKU-1", "Runner", 12), make_product("p2", "SKU-2", "Boot", 6)]
    svc = ExcelImportService()
    data = svc.generate_template(products)

    result = svc.process_file(data, TEMPLATE_FILE_NAME, len(data), products)

    assert result.ok
    assert [(e.sku, e.boxes_received, e.supplier_name) for e in result.entries] == [
        ("SKU-1", 5, "Supplier Name"),
        ("SKU-2", 5, "Supplier Name"),
    ]


def test_save_template_into_directory(tmp_path: Path):
    path = ExcelImportService().save_template(tmp_path, [make_product()])
    assert path.name == TEMPLATE_FILE_NAME
    assert path.stat().st_size > 0


def test_import_path_reports_unreadable_file(tmp_path: Path):
    result = ExcelImportService().import_path(tmp_path / "missing.xlsx", [make_product()])
    assert result.error == "Error reading the file. Please try again with a different file."


def test_import_path_reads_workbook_from_disk(tmp_path: Path):
    path = tmp_path / "boxes.xlsx"
    path.write_bytes(workbook_bytes([["Product ID", "Boxes Received", "Supplier Name"], ["p1", "2", "Acme"]]))

    result = ExcelImportService().import_path(path, [make_product("p1", box_contents=10)])
    assert result.ok
    assert result.entries[0].total_units == 20


def _truncate_sheet(data: bytes) -> bytes:
    src = zipfile.ZipFile(BytesIO(data))
    out = BytesIO()
    with zipfile.ZipFile(out, "w") as dst:
        for item in src.infolist():
            payload = src.read(item.filename)
            if item.filename == "xl/worksheets/sheet1.xml":
                payload = payload[: len(payload) // 2]
            dst.writestr(item, payload)
    return out.getvalue()


def test_truncated_sheet_is_a_fatal_parse_error():
    good = workbook_bytes([
        ["Product ID", "Boxes Received", "Supplier Name"],
        ["p1", "5", "Acme"],
        ["p1", "6", "Acme"],
    ])
    bad = _truncate_sheet(good)

    result = ExcelImportService().process_file(bad, "stock.xlsx", len(bad), [make_product()])

    assert not result.ok
    assert result.error.startswith("Could not parse the Excel file")
    assert result.entries == []


def test_legacy_xls_upload_is_rejected_by_format():
    data = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 64
    result = ExcelImportService().process_file(data, "stock.XLS", len(data), [make_product()])

    assert result.error == "Invalid file format. Please upload an Excel workbook (.xlsx)."


def test_skipped_rows_are_logged_with_row_context(caplog):
    products = [make_product("p1", "SKU-1", "Runner", 12)]
    with caplog.at_level(logging.WARNING, logger="boxstock.imports"):
        _process(
            [["Product ID", "Boxes Received", "Supplier Name"], ["p1", 1, "Acme"], ["p1", 1, ""]],
            products,
        )

    skipped = [r for r in caplog.records if r.getMessage() == "import_row_skipped row=3"]
    assert len(skipped) == 1
    assert skipped[0].context == {"row": 3, "errors": ["Supplier name is required and cannot be empty"]}
