# backend/routes/orders.py
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log
from utils.http_errors import http_error
from utils.notifier import Notifier, get_notifier
from models.users import User
from models.order import Order
from schemas.order import OrderCreatePayload, OrderResponse, OrdersPage
from services.checkout import place_order
from services.errors import StorefrontError
from services.order_lifecycle import cancel_order, get_user_order

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)

def _client_ip(request: Request):
    return request.client.host if request.client else None

# Payload handed to the notifier once the order is committed
def _event_payload(order: Order) -> dict:
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "customer_name": order.shipping_name,
        "customer_email": order.shipping_email,
        "total": float(order.total),
        "status": order.status.value,
    }


# Place an order from the current user's cart
@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        order = place_order(db, current_user.id, payload)
    except StorefrontError as e:
        write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="FAIL",
                  ip=_client_ip(request), meta=e.to_detail())
        raise http_error(e)
    except SQLAlchemyError:
        logger.exception("Order placement failed for user %s", current_user.id)
        raise HTTPException(status_code=500, detail="Could not place the order, please try again")

    write_log(db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
              ip=_client_ip(request), order_id=order.id,
              meta={"order_number": order.order_number, "total": float(order.total),
                    "promotion_code": order.promotion_code})

    # Side effects run after the response, outside the order transaction
    event = _event_payload(order)
    background_tasks.add_task(notifier.order_created, event)
    background_tasks.add_task(notifier.order_confirmation, event)

    return OrderResponse.model_validate(get_user_order(db, order.id, current_user.id))


# List the current user's orders, newest first
@router.get("", response_model=OrdersPage)
def list_my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(15, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    q = db.query(Order).options(selectinload(Order.items)).filter(
        Order.user_id == current_user.id
    ).order_by(Order.created_at.desc(), Order.id.desc())
    total = q.count()
    rows = q.offset((page - 1) * page_size).limit(page_size).all()
    items = [OrderResponse.model_validate(o) for o in rows]
    return {"items": items, "total": total, "page": page, "page_size": page_size}


# Get details of one of the current user's orders
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        order = get_user_order(db, order_id, current_user.id)
    except StorefrontError as e:
        raise http_error(e)
    return OrderResponse.model_validate(order)


# Cancel a pending order; reserved stock goes back to the shelf
@router.post("/{order_id}/cancel", response_model=OrderResponse)
def cancel_my_order(
    order_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        order = cancel_order(db, order_id, current_user.id)
    except StorefrontError as e:
        raise http_error(e)
    except SQLAlchemyError:
        logger.exception("Cancelling order %s failed", order_id)
        raise HTTPException(status_code=500, detail="Could not cancel the order, please try again")

    write_log(db, user_id=current_user.id, action="ORDER_CANCEL", resource="orders", status="SUCCESS",
              ip=_client_ip(request), order_id=order.id, meta={"order_number": order.order_number})
    background_tasks.add_task(notifier.order_cancelled, _event_payload(order))

    return OrderResponse.model_validate(get_user_order(db, order_id, current_user.id))
