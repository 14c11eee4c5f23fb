# backend/services/order_lifecycle.py
"""Order status transitions after an order exists.

Stock reserved by an order is given back exactly once, either when the order
is cancelled or when an admin deletes it. The `stock_released` flag is
claimed with a conditional UPDATE so two concurrent requests cannot both
restock the same order.
"""
import logging
from typing import Dict, FrozenSet

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from models.order import Order, OrderStatus, PaymentStatus
from services.errors import InvalidTransition, OrderNotFound
from services.inventory import release

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Customers may only withdraw orders nobody has started working on
CUSTOMER_CANCELLABLE = frozenset({OrderStatus.PENDING})


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in TRANSITIONS.get(current, frozenset())


def get_order(db: Session, order_id: int) -> Order:
    order = (
        db.query(Order)
        .options(selectinload(Order.items))
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise OrderNotFound(order_id)
    return order


def get_user_order(db: Session, order_id: int, user_id: int) -> Order:
    order = get_order(db, order_id)
    if order.user_id != user_id:
        raise OrderNotFound(order_id)
    return order


def _release_stock(db: Session, order: Order) -> bool:
    claimed = db.execute(
        update(Order)
        .where(Order.id == order.id, Order.stock_released.is_(False))
        .values(stock_released=True)
        .execution_options(synchronize_session=False)
    ).rowcount
    if claimed != 1:
        logger.info("Stock for order %s was already released", order.order_number)
        return False

    for item in order.items:
        release(db, item.product_id, item.quantity)
    return True


def _write_status(db: Session, order: Order, new_status: OrderStatus) -> None:
    current = order.status
    changed = db.execute(
        update(Order)
        .where(Order.id == order.id, Order.status == current)
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    ).rowcount
    if changed != 1:
        # Someone else moved the order in the meantime
        db.refresh(order)
        raise InvalidTransition(order.status, new_status)


def transition_order(db: Session, order: Order, new_status: OrderStatus) -> Order:
    """Move an order to `new_status` and commit; cancelling restocks its lines."""
    current = order.status
    if not can_transition(current, new_status):
        raise InvalidTransition(current, new_status)

    try:
        _write_status(db, order, new_status)
        if new_status == OrderStatus.CANCELLED:
            _release_stock(db, order)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order %s: %s -> %s", order.order_number, current.value, new_status.value)
    return order


def cancel_order(db: Session, order_id: int, user_id: int) -> Order:
    order = get_user_order(db, order_id, user_id)
    if order.status not in CUSTOMER_CANCELLABLE:
        raise InvalidTransition(order.status, OrderStatus.CANCELLED)
    return transition_order(db, order, OrderStatus.CANCELLED)


def update_payment_status(db: Session, order: Order, payment_status: PaymentStatus) -> Order:
    order.payment_status = payment_status
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(order)
    return order


def delete_order(db: Session, order_id: int) -> dict:
    """Admin removal. Restocks the lines unless a cancellation already did."""
    order = get_order(db, order_id)
    order_number = order.order_number
    try:
        released = _release_stock(db, order)
        db.delete(order)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Order %s deleted (stock released now: %s)", order_number, released)
    return {"id": order_id, "order_number": order_number, "stock_released": released}
