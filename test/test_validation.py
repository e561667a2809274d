import pytest
from conftest import make_product

from boxstock.domain.models import RawImportEntry
from boxstock.services.validation_service import parse_box_count, validate_entry


def _catalog():
    return [make_product("p1", "SKU-1", "Runner", 12), make_product("p2", "SKU-2", "Broken Box", 0)]


def test_valid_entry_is_normalized():
    result = validate_entry(RawImportEntry("p1", "4", "  Acme  ", "  first load "), _catalog())

    assert result.valid
    assert result.errors == []
    assert result.warnings == []
    e = result.entry
    assert e.boxes_received == 4
    assert e.supplier_name == "Acme"
    assert e.description == "first load"
    assert e.product_name == "Runner"
    assert e.sku == "SKU-1"
    assert e.box_contents == 12
    assert e.total_units == 48


def test_structural_errors_are_collected_together():
    result = validate_entry(RawImportEntry("  ", None, ""), _catalog())

    assert not result.valid
    assert result.entry is None
    assert result.errors == [
        "Product ID is required and must be a valid string",
        "Boxes received is required",
        "Supplier name is required and cannot be empty",
    ]


def test_structural_errors_win_over_unknown_product():
    result = validate_entry(RawImportEntry("nope", 3, None), _catalog())
    assert result.errors == ["Supplier name is required and cannot be empty"]


def test_unknown_product_is_reported_with_its_id():
    result = validate_entry(RawImportEntry("p-missing", "abc", "Acme"), _catalog())

    assert not result.valid
    assert result.errors == ["Product with ID p-missing not found in the database"]


def test_non_numeric_boxes_rejected():
    result = validate_entry(RawImportEntry("p1", "lots", "Acme"), _catalog())
    assert result.errors == ["Boxes received must be a valid number"]


@pytest.mark.parametrize("boxes", [0, -1, "0", "-7", -3.5])
def test_non_positive_boxes_rejected(boxes):
    result = validate_entry(RawImportEntry("p1", boxes, "Acme"), _catalog())

    assert not result.valid
    assert result.entry is None
    assert result.errors == ["Boxes received must be a positive number"]


def test_large_quantity_and_bad_box_contents_are_warnings_only():
    big = validate_entry(RawImportEntry("p1", 1001, "Acme"), _catalog())
    assert big.valid
    assert big.warnings == ["Unusually large quantity (1001 boxes). Please verify."]

    limit = validate_entry(RawImportEntry("p1", 1000, "Acme"), _catalog())
    assert limit.warnings == []

    broken = validate_entry(RawImportEntry("p2", 2, "Acme"), _catalog())
    assert broken.valid
    assert broken.entry.total_units == 0
    assert broken.warnings == [
        "Product Broken Box has 0 items per box. Please verify product configuration."
    ]


def test_parse_box_count_follows_leading_integer_rules():
    assert parse_box_count("12") == 12
    assert parse_box_count(" 7 boxes") == 7
    assert parse_box_count("5.9") == 5
    assert parse_box_count(8.0) == 8
    assert parse_box_count("x5") is None
    assert parse_box_count(True) is None
    assert parse_box_count(float("nan")) is None
