import logging
from datetime import datetime
from io import BytesIO
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from sqlalchemy import func
from sqlalchemy.orm import Session

from . import clock, models
from .errors import NotFound
from .orders import list_order_items

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    ("Bill ID", 10),
    ("Order ID", 12),
    ("Table", 18),
    ("Payment method", 16),
    ("Discount", 14),
    ("Total", 14),
    ("Completed at", 22),
]
MONEY_FORMAT = "#,##0"


def _in_range(query, start: Optional[str], end: Optional[str]):
    if start is not None:
        query = query.filter(models.Bill.created_at >= start)
    if end is not None:
        query = query.filter(models.Bill.created_at < end)
    return query


def daily_revenue(db: Session, day_start: datetime) -> int:
    start, end = clock.day_range(day_start)
    query = _in_range(db.query(func.coalesce(func.sum(models.Bill.total_amount), 0)), start, end)
    revenue = int(query.scalar() or 0)
    logger.debug("Revenue for [%s, %s): %s", start, end, revenue)
    return revenue


def revenue_by_table(db: Session, day_start: datetime):
    start, end = clock.day_range(day_start)
    query = db.query(
        models.Bill.table_name,
        func.count(models.Bill.order_id),
        func.coalesce(func.sum(models.Bill.total_amount), 0),
    )
    rows = (
        _in_range(query, start, end)
        .group_by(models.Bill.table_name)
        .order_by(models.Bill.table_name)
        .all()
    )
    return [
        {"table_name": name, "order_count": int(count), "revenue": int(revenue)}
        for name, count, revenue in rows
    ]


def list_bills(db: Session, start: Optional[datetime] = None, end: Optional[datetime] = None):
    query = _in_range(
        db.query(models.Bill),
        clock.to_iso(start) if start else None,
        clock.to_iso(end) if end else None,
    )
    return query.order_by(models.Bill.created_at, models.Bill.id).all()


def get_bill(db: Session, bill_id: int):
    bill = db.query(models.Bill).filter(models.Bill.id == bill_id).first()
    if not bill:
        raise NotFound(f"Bill {bill_id} not found")
    return bill


def bill_items(db: Session, bill_id: int):
    bill = get_bill(db, bill_id)
    return list_order_items(db, bill.order_id)


def export_bills_workbook(bills) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Revenue report"
    sheet.append([header for header, _ in EXPORT_COLUMNS])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for index, (_, width) in enumerate(EXPORT_COLUMNS, start=1):
        sheet.column_dimensions[sheet.cell(row=1, column=index).column_letter].width = width

    for bill in bills:
        sheet.append(
            [
                bill.id,
                bill.order_id,
                bill.table_name,
                bill.payment_method,
                bill.discount_amount,
                bill.total_amount,
                clock.format_display(bill.created_at),
            ]
        )
        row = sheet.max_row
        sheet.cell(row=row, column=5).number_format = MONEY_FORMAT
        sheet.cell(row=row, column=6).number_format = MONEY_FORMAT

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_filename() -> str:
    return f"RevenueReport_{clock.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
