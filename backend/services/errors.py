# backend/services/errors.py
"""Domain errors raised by the checkout and order lifecycle services.

Each error carries the HTTP status the routes answer with and a short
machine readable code; the message is safe to show to the customer.
"""
from decimal import Decimal
from typing import Optional


class StorefrontError(Exception):
    status_code = 400
    code = "storefront_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class EmptyCart(StorefrontError):
    code = "empty_cart"

    def __init__(self):
        super().__init__("Cart is empty")


class ProductNotFound(StorefrontError):
    code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product does not exist: ID {product_id}")
        self.product_id = product_id


class ProductUnavailable(StorefrontError):
    code = "product_unavailable"

    def __init__(self, product_id: int, product_name: str):
        super().__init__(f"Product '{product_name}' is not available")
        self.product_id = product_id
        self.product_name = product_name


class InsufficientStock(StorefrontError):
    code = "insufficient_stock"

    def __init__(self, product_id: int, product_name: Optional[str], available: int, requested: int):
        name = product_name or f"ID {product_id}"
        super().__init__(f"Product '{name}' does not have enough stock. Remaining: {available}")
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail.update(product_id=self.product_id, available=self.available, requested=self.requested)
        return detail


class PromotionNotFound(StorefrontError):
    status_code = 404
    code = "promotion_not_found"

    def __init__(self, code: str):
        super().__init__("Promotion code does not exist")
        self.promotion_code = code


class PromotionNotUsable(StorefrontError):
    status_code = 422
    code = "promotion_not_usable"

    def __init__(self, code: str):
        super().__init__("Promotion code cannot be used. It may have expired or reached its usage limit.")
        self.promotion_code = code


class BelowMinimumOrder(StorefrontError):
    status_code = 422
    code = "below_minimum_order"

    def __init__(self, code: str, min_order_amount: Decimal):
        super().__init__(f"Minimum order amount for this code is {min_order_amount:,.0f}")
        self.promotion_code = code
        self.min_order_amount = min_order_amount


class CartItemNotFound(StorefrontError):
    status_code = 404
    code = "cart_item_not_found"

    def __init__(self, item_id: int):
        super().__init__("Cart item not found")
        self.item_id = item_id


class OrderNotFound(StorefrontError):
    status_code = 404
    code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__("Order not found")
        self.order_id = order_id


class InvalidTransition(StorefrontError):
    code = "invalid_transition"

    def __init__(self, current, requested):
        current_value = getattr(current, "value", current)
        requested_value = getattr(requested, "value", requested)
        super().__init__(f"Cannot change order status from {current_value} to {requested_value}")
        self.current = current
        self.requested = requested
