# backend/services/cart.py
"""Cart maintenance. Lines hold a product and a quantity only; prices are
read live and frozen when checkout turns the cart into an order."""
import logging

from sqlalchemy.orm import Session

from models.cart import Cart, CartItem
from models.product import Product
from services.errors import CartItemNotFound, InsufficientStock, ProductNotFound, ProductUnavailable

logger = logging.getLogger(__name__)

OPEN = "open"


def get_open_cart(db: Session, user_id: int) -> Cart:
    cart = db.query(Cart).filter(Cart.user_id == user_id, Cart.status == OPEN).first()
    if cart is None:
        cart = Cart(user_id=user_id, status=OPEN)
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def _check_purchasable(product: Product, qty: int) -> None:
    if not product.is_purchasable:
        raise ProductUnavailable(product.id, product.name)
    if qty > product.stock_quantity:
        raise InsufficientStock(product.id, product.name, product.stock_quantity, qty)


def _get_line(db: Session, cart: Cart, item_id: int) -> CartItem:
    line = db.query(CartItem).filter(CartItem.id == item_id, CartItem.cart_id == cart.id).first()
    if line is None:
        raise CartItemNotFound(item_id)
    return line


def add_item(db: Session, user_id: int, product_id: int, qty: int) -> Cart:
    """Add `qty` of a product, merging with an existing line for it."""
    cart = get_open_cart(db, user_id)
    product = db.get(Product, product_id)
    if product is None:
        raise ProductNotFound(product_id)

    line = db.query(CartItem).filter(CartItem.cart_id == cart.id, CartItem.product_id == product_id).first()
    _check_purchasable(product, qty + (line.qty if line else 0))

    if line:
        line.qty += qty
    else:
        db.add(CartItem(cart_id=cart.id, product_id=product_id, qty=qty))
    db.commit()
    db.refresh(cart)
    return cart


def update_item(db: Session, user_id: int, item_id: int, qty: int) -> Cart:
    cart = get_open_cart(db, user_id)
    line = _get_line(db, cart, item_id)
    product = db.get(Product, line.product_id)
    if product is None:
        raise ProductNotFound(line.product_id)
    _check_purchasable(product, qty)

    line.qty = qty
    db.commit()
    db.refresh(cart)
    return cart


def remove_item(db: Session, user_id: int, item_id: int) -> Cart:
    cart = get_open_cart(db, user_id)
    db.delete(_get_line(db, cart, item_id))
    db.commit()
    db.refresh(cart)
    return cart


def clear_cart(db: Session, user_id: int) -> Cart:
    cart = get_open_cart(db, user_id)
    removed = len(cart.items)
    cart.items.clear()
    db.commit()
    db.refresh(cart)
    logger.debug("Cleared %s lines from cart %s", removed, cart.id)
    return cart
