# backend/services/checkout.py
"""Order assembly: turns a user's open cart into a committed order.

Everything from the stock check to clearing the cart happens in one
transaction. Any error before the commit rolls the session back, so the
cart, the stock levels and the promotion counter stay exactly as they were.
"""
import logging
import secrets
import string
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from config import settings
from models.cart import Cart, CartItem
from models.order import Order, OrderItem, OrderStatus, PaymentStatus
from models.product import Product, ProductStatus
from schemas.order import OrderCreatePayload
from services.cart import OPEN
from services.errors import EmptyCart, InsufficientStock, ProductNotFound, ProductUnavailable
from services.inventory import reserve
from services.promotions import consume_promotion, to_money, validate_promotion
from services.shipping import get_shipping_settings

logger = logging.getLogger(__name__)

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(6))
    return f"ORD-{now:%Y%m%d}-{suffix}"


def _unique_order_number(db: Session) -> str:
    for _ in range(settings.ORDER_NUMBER_MAX_ATTEMPTS):
        candidate = generate_order_number()
        taken = db.execute(select(exists().where(Order.order_number == candidate))).scalar()
        if not taken:
            return candidate
        logger.info("Order number %s already taken, generating another one", candidate)
    raise RuntimeError("Could not generate a unique order number")


def get_cart_lines(db: Session, user_id: int) -> List[CartItem]:
    cart = db.query(Cart).filter(Cart.user_id == user_id, Cart.status == OPEN).first()
    if not cart:
        return []
    return list(cart.items)


def _snapshot_line(db: Session, line: CartItem) -> OrderItem:
    # Lock the product row for the rest of the transaction where the store supports it
    product = db.get(Product, line.product_id, populate_existing=True, with_for_update=True)
    if product is None:
        raise ProductNotFound(line.product_id)
    if product.status == ProductStatus.DISCONTINUED:
        raise ProductUnavailable(product.id, product.name)
    if product.stock_quantity < line.qty:
        raise InsufficientStock(product.id, product.name, product.stock_quantity, line.qty)

    price = to_money(product.price)
    return OrderItem(
        product_id=product.id,
        product_name=product.name,
        product_price=price,
        product_image=product.image_url,
        quantity=line.qty,
        subtotal=to_money(price * line.qty),
    )


def place_order(db: Session, user_id: int, payload: OrderCreatePayload, now: Optional[datetime] = None) -> Order:
    """Create an order from the user's cart and commit it.

    Raises a StorefrontError for expected rejections (empty cart, stock,
    promotion problems). Store failures propagate as SQLAlchemyError.
    Nothing is left behind in either case.
    """
    try:
        lines = get_cart_lines(db, user_id)
        if not lines:
            raise EmptyCart()

        # Consistent lock order across concurrent checkouts
        lines.sort(key=lambda line: line.product_id)
        order_items = [_snapshot_line(db, line) for line in lines]
        subtotal = sum((item.subtotal for item in order_items), Decimal("0.00"))

        quote = None
        discount = Decimal("0.00")
        if payload.promotion_code:
            quote = validate_promotion(db, payload.promotion_code, subtotal, now=now)
            discount = quote.discount

        shipping_fee = to_money(get_shipping_settings(db).fee_for(subtotal))
        total = subtotal + shipping_fee - discount

        order = Order(
            order_number=_unique_order_number(db),
            user_id=user_id,
            status=OrderStatus.PENDING,
            subtotal=subtotal,
            shipping_fee=shipping_fee,
            discount=discount,
            total=total,
            promotion_code=quote.promotion.code if quote else None,
            payment_method=payload.payment_method,
            payment_status=PaymentStatus.PENDING,
            shipping_name=payload.shipping_name,
            shipping_email=payload.shipping_email,
            shipping_phone=payload.shipping_phone,
            shipping_address=payload.shipping_address,
            shipping_city=payload.shipping_city,
            shipping_district=payload.shipping_district,
            shipping_ward=payload.shipping_ward,
            notes=payload.notes,
            items=order_items,
        )
        db.add(order)
        db.flush()

        for item in order.items:
            reserve(db, item.product_id, item.quantity)

        for line in lines:
            db.delete(line)

        if quote:
            consume_promotion(db, quote.promotion, now=now)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(order)
    logger.info("Order %s placed by user %s, total %s", order.order_number, user_id, order.total)
    return order
