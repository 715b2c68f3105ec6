"""Billing engine.

Turns all or part of an active order into an immutable ``Bill`` row while
keeping the order total and the table status consistent. Each payment runs
as a single transaction: either the bill, the item changes, the order
status and the table status are all written, or none of them are.

Bills are not floored at zero: a discount larger than the amount being paid
produces a negative ``total_amount``, which is stored and logged.
"""

import logging
from typing import Iterable

from sqlalchemy.orm import Session

from . import clock, models
from .db import transaction
from .errors import Conflict, InvalidArgument
from .orders import get_order, recalculate_total, release_table

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("Cash", "Transfer", "Card")


def validate_payment(payment_method, discount_amount):
    if isinstance(payment_method, str):
        payment_method = payment_method.strip()
    if payment_method not in PAYMENT_METHODS:
        raise InvalidArgument(
            f"Invalid payment method {payment_method!r}; expected one of {', '.join(PAYMENT_METHODS)}"
        )
    if (
        isinstance(discount_amount, bool)
        or not isinstance(discount_amount, int)
        or discount_amount < 0
    ):
        raise InvalidArgument("Discount amount must be a non-negative integer")
    return payment_method, discount_amount


def _issue_bill(db: Session, order: models.Order, amount: int, payment_method: str,
                discount_amount: int, stamp: str):
    if amount < 0:
        logger.warning(
            "Order %s: discount %s exceeds subtotal, bill total is %s",
            order.id, discount_amount, amount,
        )
    bill = models.Bill(
        order_id=order.id,
        table_id=order.table_id,
        table_name=order.table_name,
        total_amount=amount,
        payment_method=payment_method,
        created_at=stamp,
        discount_amount=discount_amount,
    )
    db.add(bill)
    return bill


def complete_order(db: Session, order_id: int, payment_method: str, discount_amount: int = 0):
    """Settle the whole order with one bill and free its table."""
    payment_method, discount_amount = validate_payment(payment_method, discount_amount)
    order = get_order(db, order_id)
    if order.status != "active":
        raise Conflict(f"Order {order_id} is {order.status}")
    stamp = clock.now_iso()
    with transaction(db):
        order.status = "completed"
        order.completed_at = stamp
        order.updated_at = stamp
        release_table(db, order.table_id)
        bill = _issue_bill(
            db, order, order.total - discount_amount, payment_method, discount_amount, stamp
        )
    db.refresh(order)
    logger.info(
        "Completed order %s with bill %s (%s, %s)",
        order.id, bill.id, payment_method, bill.total_amount,
    )
    return order


def process_partial_payment(
    db: Session,
    order_id: int,
    items_to_pay: Iterable,
    payment_method: str,
    discount_amount: int = 0,
):
    """Pay for a subset of an order's lines.

    ``items_to_pay`` holds ``(order_item_id, quantity)`` pairs. Lines paid in
    full are removed and the rest decremented; entries with a quantity of
    zero or less are skipped. A bill is written even when nothing was
    paid for, so an empty order can still be settled here. When no lines
    remain the order is completed and its table released.
    """
    payment_method, discount_amount = validate_payment(payment_method, discount_amount)
    requests = [(int(item_id), int(quantity)) for item_id, quantity in items_to_pay]
    stamp = clock.now_iso()

    with transaction(db):
        order = get_order(db, order_id)
        if order.status != "active":
            raise Conflict(f"Order {order_id} is {order.status}")
        lines = {item.id: item for item in order.items}
        remaining = {item_id: item.quantity for item_id, item in lines.items()}

        subtotal = 0
        for item_id, quantity in requests:
            if quantity <= 0:
                continue
            if item_id not in lines:
                raise InvalidArgument(f"Order item {item_id} is not part of order {order_id}")
            if quantity > remaining[item_id]:
                raise InvalidArgument(
                    f"Invalid quantity for order item {item_id}: "
                    f"requested {quantity}, available {remaining[item_id]}"
                )
            remaining[item_id] -= quantity
            subtotal += lines[item_id].unit_price * quantity

        for item_id, item in lines.items():
            left = remaining[item_id]
            if left == 0:
                order.items.remove(item)
            elif left != item.quantity:
                item.quantity = left
                item.total_price = item.unit_price * left

        bill = _issue_bill(
            db, order, subtotal - discount_amount, payment_method, discount_amount, stamp
        )
        recalculate_total(order, stamp)
        if not order.items:
            order.status = "completed"
            order.completed_at = stamp
            release_table(db, order.table_id)

    db.refresh(order)
    logger.info(
        "Partial payment on order %s: bill %s for %s, order total now %s (%s)",
        order.id, bill.id, bill.total_amount, order.total, order.status,
    )
    return order
