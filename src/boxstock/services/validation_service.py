from __future__ import annotations

import re
from typing import Iterable, Optional

from boxstock.config import LARGE_QUANTITY_WARNING
from boxstock.domain.models import Product, RawImportEntry, ValidatedImportEntry, ValidationResult

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_box_count(value: object) -> Optional[int]:
    """Numbers pass through (truncated), strings parse their leading integer. None means NaN."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return int(value)
    if isinstance(value, str):
        m = _LEADING_INT.match(value)
        return int(m.group(1)) if m else None
    return None


def find_product(products: Iterable[Product], product_id: str) -> Optional[Product]:
    for p in products:
        if p.id == product_id:
            return p
    return None


def validate_entry(
    entry: RawImportEntry,
    products: Iterable[Product],
    large_quantity_warning: int = LARGE_QUANTITY_WARNING,
) -> ValidationResult:
    """
    Checks one candidate receipt against the catalog snapshot.

    Structural problems are collected together; the product lookup and the
    numeric checks stop at the first failure. Warnings never make an entry
    invalid.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(entry.product_id, str) or not entry.product_id.strip():
        errors.append("Product ID is required and must be a valid string")

    if entry.boxes_received is None:
        errors.append("Boxes received is required")

    if not isinstance(entry.supplier_name, str) or not entry.supplier_name.strip():
        errors.append("Supplier name is required and cannot be empty")

    if errors:
        return ValidationResult(valid=False, errors=errors)

    product = find_product(products, entry.product_id)
    if product is None:
        return ValidationResult(
            valid=False,
            errors=[f"Product with ID {entry.product_id} not found in the database"],
        )

    box_count = parse_box_count(entry.boxes_received)
    if box_count is None:
        return ValidationResult(valid=False, errors=["Boxes received must be a valid number"])

    if box_count <= 0:
        return ValidationResult(valid=False, errors=["Boxes received must be a positive number"])

    if box_count > large_quantity_warning:
        warnings.append(f"Unusually large quantity ({box_count} boxes). Please verify.")

    if product.box_contents <= 0:
        warnings.append(
            f"Product {product.name} has {product.box_contents} items per box. "
            "Please verify product configuration."
        )

    box_contents = product.box_contents or 0
    validated = ValidatedImportEntry(
        product_id=entry.product_id,
        boxes_received=box_count,
        supplier_name=entry.supplier_name.strip(),
        description=entry.description.strip() if entry.description else "",
        product_name=product.name,
        sku=product.sku,
        box_contents=box_contents,
        total_units=box_count * box_contents,
    )
    return ValidationResult(valid=True, entry=validated, warnings=warnings)
