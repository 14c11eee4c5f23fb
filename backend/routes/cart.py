# backend/routes/cart.py
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log
from utils.http_errors import http_error
from models.users import User
from models.cart import Cart
from schemas.cart import CartAddItem, CartUpdateItem, CartOut, CartItemOut
from services import cart as cart_service
from services.errors import ProductNotFound, StorefrontError

router = APIRouter(prefix="/cart", tags=["Cart"])


def _summarize(cart: Cart) -> CartOut:
    lines = []
    subtotal = Decimal("0")
    for line in cart.items:
        product = line.product
        # Live price; a line whose product vanished shows as free and fails at checkout
        unit_price = product.price if product else Decimal("0")
        line_total = unit_price * line.qty
        subtotal += line_total
        lines.append(CartItemOut(
            id=line.id,
            product_id=line.product_id,
            name=product.name if product else "",
            qty=line.qty,
            unit_price=float(unit_price),
            line_total=float(line_total),
            stock_quantity=product.stock_quantity if product else 0,
        ))
    return CartOut(items=lines, subtotal=float(subtotal))


def _cart_error(e: StorefrontError) -> HTTPException:
    # Adding an unknown product is a lookup miss here, not a checkout failure
    if isinstance(e, ProductNotFound):
        return HTTPException(status_code=404, detail=e.to_detail())
    return http_error(e)


def _audit(db: Session, request: Request, user: User, action: str, meta: dict):
    write_log(db, user_id=user.id, action=action, resource="cart",
              ip=request.client.host if request.client else None, meta=meta)


@router.get("", response_model=CartOut)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _summarize(cart_service.get_open_cart(db, current_user.id))


# Add a product; quantities for the same product are merged into one line
@router.post("/add", response_model=CartOut)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        cart = cart_service.add_item(db, current_user.id, payload.product_id, payload.qty)
    except StorefrontError as e:
        raise _cart_error(e)

    out = _summarize(cart)
    _audit(db, request, current_user, "CART_ADD",
           {"product_id": payload.product_id, "qty": payload.qty, "cart_items": len(out.items)})
    return out


@router.put("/items/{item_id}", response_model=CartOut)
def update_cart_item(
    item_id: int,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        cart = cart_service.update_item(db, current_user.id, item_id, payload.qty)
    except StorefrontError as e:
        raise _cart_error(e)

    out = _summarize(cart)
    _audit(db, request, current_user, "CART_UPDATE", {"item_id": item_id, "qty": payload.qty})
    return out


@router.delete("/items/{item_id}", response_model=CartOut)
def delete_cart_item(
    item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        cart = cart_service.remove_item(db, current_user.id, item_id)
    except StorefrontError as e:
        raise _cart_error(e)

    out = _summarize(cart)
    _audit(db, request, current_user, "CART_DELETE", {"item_id": item_id, "cart_items": len(out.items)})
    return out


@router.delete("", response_model=CartOut)
def clear_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return _summarize(cart_service.clear_cart(db, current_user.id))
