# backend/routes/admin_orders.py
import logging
from typing import Optional, Literal

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Query
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, joinedload

from database import get_db
from utils.tokenJWT import admin_required
from utils.audit import write_log
from utils.http_errors import http_error
from utils.notifier import Notifier, get_notifier
from models.users import User
from models.order import Order, OrderStatus
from schemas.order import AdminOrderResponse, AdminOrdersPage, OrderAdminPatch
from services.errors import StorefrontError
from services.order_lifecycle import delete_order, get_order, transition_order, update_payment_status

router = APIRouter(prefix="/admin/orders", tags=["Admin Orders"])
logger = logging.getLogger(__name__)

def _to_admin_out(order: Order) -> AdminOrderResponse:
    out = AdminOrderResponse.model_validate(order)
    out.user_email = order.user.email if order.user else None
    return out


# List all orders; filter by status, search by order number or customer
@router.get("", response_model=AdminOrdersPage)
def list_orders(
    status: Optional[str] = Query(None, description="Order status or 'all'"),
    search: Optional[str] = Query(None, description="Search by order number, customer name or email"),
    page: int = Query(1, ge=1),
    page_size: int = Query(15, ge=1, le=100),
    sort_by: Literal["created_at", "total", "order_number"] = "created_at",
    order: Literal["asc", "desc"] = "desc",
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required),
):
    query = db.query(Order).options(selectinload(Order.items), joinedload(Order.user))

    if status and status != "all":
        try:
            query = query.filter(Order.status == OrderStatus(status))
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown order status: {status}")

    if search:
        term = f"%{search.strip()}%"
        query = query.outerjoin(User, Order.user_id == User.id).filter(or_(
            Order.order_number.ilike(term),
            Order.shipping_name.ilike(term),
            Order.shipping_email.ilike(term),
            User.email.ilike(term),
            User.first_name.ilike(term),
            User.last_name.ilike(term),
        ))

    sort_map = {
        "created_at": Order.created_at,
        "total": Order.total,
        "order_number": Order.order_number,
    }
    col = sort_map[sort_by]
    query = query.order_by(col.asc() if order == "asc" else col.desc(), Order.id.desc())

    total = query.count()
    rows = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": [_to_admin_out(o) for o in rows], "total": total, "page": page, "page_size": page_size}


@router.get("/{order_id}", response_model=AdminOrderResponse)
def get_order_admin(
    order_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required),
):
    try:
        return _to_admin_out(get_order(db, order_id))
    except StorefrontError as e:
        raise http_error(e)


# Move the order through its lifecycle and/or record a payment status change
@router.patch("/{order_id}", response_model=AdminOrderResponse)
def update_order(
    order_id: int,
    payload: OrderAdminPatch,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        order = get_order(db, order_id)
        old_status, old_payment = order.status, order.payment_status

        if payload.status is not None and payload.status != order.status:
            order = transition_order(db, order, payload.status)
        if payload.payment_status is not None and payload.payment_status != order.payment_status:
            order = update_payment_status(db, order, payload.payment_status)
    except StorefrontError as e:
        write_log(db, user_id=admin.id, action="ORDER_STATUS_CHANGE", resource="orders", status="FAIL",
                  ip=request.client.host if request.client else None, order_id=order_id, meta=e.to_detail())
        raise http_error(e)
    except SQLAlchemyError:
        logger.exception("Updating order %s failed", order_id)
        raise HTTPException(status_code=500, detail="Could not update the order, please try again")

    write_log(db, user_id=admin.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=request.client.host if request.client else None, order_id=order_id,
              meta={"old": old_status.value, "new": order.status.value,
                    "old_payment": old_payment.value, "new_payment": order.payment_status.value})

    if order.status == OrderStatus.CANCELLED and old_status != OrderStatus.CANCELLED:
        background_tasks.add_task(notifier.order_cancelled, {
            "order_id": order.id,
            "order_number": order.order_number,
            "cancelled_by": "admin",
            "total": float(order.total),
        })

    return _to_admin_out(get_order(db, order_id))


# Delete an order; its stock is restored unless a cancellation already did it
@router.delete("/{order_id}")
def remove_order(
    order_id: int,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(admin_required),
):
    try:
        summary = delete_order(db, order_id)
    except StorefrontError as e:
        raise http_error(e)
    except SQLAlchemyError:
        logger.exception("Deleting order %s failed", order_id)
        raise HTTPException(status_code=500, detail="Could not delete the order, please try again")

    write_log(db, user_id=admin.id, action="ORDER_DELETE", resource="orders", status="SUCCESS",
              ip=request.client.host if request.client else None, order_id=order_id, meta=summary)
    return {"message": "Order deleted", **summary}
