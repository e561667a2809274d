import sys
from datetime import datetime
from io import BytesIO
from pathlib import Path

from openpyxl import Workbook

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def make_product(pid="p1", sku="SKU-1", name="Runner", box_contents=12, category="Sneakers", price=49.9):
    from boxstock.domain.models import Product

    return Product(id=pid, sku=sku, name=name, price=price, box_contents=box_contents, category=category)


def make_record(
    rid="r1",
    product_id="p1",
    sku="SKU-1",
    boxes=1,
    updated_at=datetime(2024, 1, 1, 9, 0),
    box_contents=12,
    supplier="Acme",
):
    from boxstock.domain.models import IncomingStockRecord

    return IncomingStockRecord(
        id=rid,
        incoming_date=updated_at,
        product_id=product_id,
        sku=sku,
        boxes_received=boxes,
        supplier_name=supplier,
        total_units=boxes * box_contents,
        created_at=updated_at,
        updated_at=updated_at,
    )


def workbook_bytes(rows) -> bytes:
    wb = Workbook()
    ws = wb.active
    for r in rows:
        ws.append(list(r))
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()
