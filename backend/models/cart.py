# backend/models/cart.py
from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, UniqueConstraint, CheckConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# A user's basket; checkout reads the open one and deletes its lines
class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    status = Column(String, default="open", index=True)  # open / closed
    created_at = Column(DateTime, server_default=func.now())

    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id")


# One product in a cart. No price is stored: the cart is always priced live
class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), index=True, nullable=False)
    # Plain reference: the product may disappear before checkout, which then fails with ProductNotFound
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False)
    qty = Column(Integer, CheckConstraint("qty >= 1", name="ck_cart_items_qty"), nullable=False, default=1)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        # One line per product; adding it again bumps the quantity
        UniqueConstraint("cart_id", "product_id", name="uq_cartitem_cart_product"),
    )
