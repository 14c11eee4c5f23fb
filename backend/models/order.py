import enum
from sqlalchemy import (
    Column, Integer, String, Numeric, Text, Boolean, ForeignKey, DateTime, Enum, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base

# Lifecycle states of an order, see services.order_lifecycle for the transition table
class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

class PaymentMethod(str, enum.Enum):
    COD = "cod"
    BANK_TRANSFER = "bank_transfer"
    BANK = "bank"
    MOMO = "momo"
    CARD = "card"

# A committed purchase. Amounts are frozen at creation;
# only status, payment_status, stock_released and timestamps change afterwards.
class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING, index=True)

    subtotal = Column(Numeric(12, 2), CheckConstraint("subtotal >= 0", name="ck_orders_subtotal"), nullable=False)
    shipping_fee = Column(Numeric(12, 2), CheckConstraint("shipping_fee >= 0", name="ck_orders_shipping_fee"), nullable=False, default=0)
    discount = Column(Numeric(12, 2), CheckConstraint("discount >= 0", name="ck_orders_discount"), nullable=False, default=0)
    total = Column(Numeric(12, 2), CheckConstraint("total >= 0", name="ck_orders_total"), nullable=False)
    promotion_code = Column(String, nullable=True)

    # Payment details (settlement itself happens outside this service)
    payment_method = Column(Enum(PaymentMethod), nullable=False, default=PaymentMethod.COD)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)

    # Shipping address details
    shipping_name = Column(String, nullable=False)
    shipping_email = Column(String, nullable=True)
    shipping_phone = Column(String, nullable=False)
    shipping_address = Column(String, nullable=False)
    shipping_city = Column(String, nullable=True)
    shipping_district = Column(String, nullable=True)
    shipping_ward = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # Set once the reserved stock has been given back (cancel or delete)
    stock_released = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    user = relationship("User")

# Snapshot of a purchased product: name and price are copied, never joined back
class OrderItem(Base):
    __tablename__ = "order_items"
    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_name = Column(String, nullable=False)
    product_price = Column(Numeric(12, 2), nullable=False)
    product_image = Column(String, nullable=True)
    quantity = Column(Integer, CheckConstraint("quantity >= 1", name="ck_order_items_quantity"), nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")
