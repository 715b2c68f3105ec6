"""Order ledger: open tabs per table and their line items.

Every mutation recomputes ``Order.total`` from the remaining lines and
stamps ``updated_at`` before committing.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import clock, crud, models
from .db import transaction
from .errors import Conflict, InvalidArgument, NotFound

logger = logging.getLogger(__name__)

_UNSET = object()


def list_orders(db: Session):
    return db.query(models.Order).order_by(models.Order.created_at.desc()).all()


def get_order(db: Session, order_id: int):
    order = db.query(models.Order).filter(models.Order.id == order_id).first()
    if not order:
        raise NotFound(f"Order {order_id} not found")
    return order


def get_active_order(db: Session, table_id: int):
    return (
        db.query(models.Order)
        .filter(models.Order.table_id == table_id, models.Order.status == "active")
        .first()
    )


def get_order_item(db: Session, item_id: int):
    item = db.query(models.OrderItem).filter(models.OrderItem.id == item_id).first()
    if not item:
        raise NotFound(f"Order item {item_id} not found")
    return item


def list_order_items(db: Session, order_id: int):
    return (
        db.query(models.OrderItem)
        .filter(models.OrderItem.order_id == order_id)
        .order_by(models.OrderItem.id)
        .all()
    )


def recalculate_total(order: models.Order, stamp: Optional[str] = None):
    order.total = sum(item.total_price for item in order.items)
    order.updated_at = stamp or clock.now_iso()
    return order.total


def _require_active(order: models.Order):
    if order.status != "active":
        raise Conflict(f"Order {order.id} is {order.status}")


def release_table(db: Session, table_id: int):
    table = db.query(models.Table).filter(models.Table.id == table_id).first()
    if table:
        table.status = "available"


def create_order(db: Session, table_id: int, table_name: Optional[str] = None):
    table = crud.get_table(db, table_id)
    if get_active_order(db, table_id):
        raise Conflict(f"Table {table_id} already has an active order")
    stamp = clock.now_iso()
    order = models.Order(
        table_id=table.id,
        table_name=(table_name or "").strip() or table.name,
        status="active",
        total=0,
        created_at=stamp,
        updated_at=stamp,
    )
    try:
        with transaction(db):
            db.add(order)
            table.status = "occupied"
    except IntegrityError:
        raise Conflict(f"Table {table_id} already has an active order")
    db.refresh(order)
    logger.info("Opened order %s for table %s", order.id, table_id)
    return order


def add_item(db: Session, order_id: int, menu_item_id: int, quantity: int = 1, note=None):
    if quantity < 1:
        raise InvalidArgument("Quantity must be at least 1")
    order = get_order(db, order_id)
    _require_active(order)
    menu_item = crud.get_menu_item(db, menu_item_id)
    note = (note or "").strip() or None
    with transaction(db):
        order.items.append(
            models.OrderItem(
                menu_item_id=menu_item.id,
                menu_item_name=menu_item.name,
                quantity=quantity,
                unit_price=menu_item.price,
                total_price=menu_item.price * quantity,
                note=note,
            )
        )
        recalculate_total(order)
    db.refresh(order)
    return order


def update_item(db: Session, item_id: int, quantity=None, note=_UNSET):
    if quantity is not None and quantity < 1:
        raise InvalidArgument("Quantity must be at least 1; remove the item instead")
    item = get_order_item(db, item_id)
    order = item.order
    _require_active(order)
    with transaction(db):
        if quantity is not None:
            item.quantity = quantity
            item.total_price = item.unit_price * quantity
        if note is not _UNSET:
            item.note = (note or "").strip() or None
        recalculate_total(order)
    db.refresh(item)
    return item


def remove_item(db: Session, item_id: int):
    item = get_order_item(db, item_id)
    order = item.order
    _require_active(order)
    with transaction(db):
        order.items.remove(item)
        recalculate_total(order)
    db.refresh(order)
    return order


def set_note(db: Session, order_id: int, note):
    if note is not None and not isinstance(note, str):
        raise InvalidArgument("Note must be a string or null")
    order = get_order(db, order_id)
    order.note = (note or "").strip() or None
    order.updated_at = clock.now_iso()
    db.commit()
    db.refresh(order)
    return order


def cancel_order(db: Session, order_id: int, table_id: Optional[int] = None):
    order = get_order(db, order_id)
    if table_id is not None and table_id != order.table_id:
        raise InvalidArgument(f"Order {order_id} does not belong to table {table_id}")
    if order.status != "active":
        logger.info("Order %s already %s; cancel ignored", order_id, order.status)
        return order
    stamp = clock.now_iso()
    with transaction(db):
        order.items.clear()
        order.status = "cancelled"
        order.total = 0
        order.completed_at = stamp
        order.updated_at = stamp
        release_table(db, order.table_id)
    db.refresh(order)
    logger.info("Cancelled order %s, table %s released", order_id, order.table_id)
    return order
