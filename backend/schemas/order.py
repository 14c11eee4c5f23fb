from pydantic import BaseModel, EmailStr, Field, AliasChoices, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime

from models.order import OrderStatus, PaymentMethod, PaymentStatus

PHONE_PATTERN = r"^(0|\+84)[0-9]{9,10}$"


# Output schema for an individual order line (snapshot values)
class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: Optional[int] = None
    product_name: str
    product_price: float
    product_image: Optional[str] = None
    quantity: int
    subtotal: float


# Checkout form. camelCase names sent by the storefront are accepted as well.
class OrderCreatePayload(BaseModel):
    shipping_name: str = Field(min_length=2, max_length=50, validation_alias=AliasChoices("shipping_name", "fullName"))
    shipping_email: EmailStr = Field(validation_alias=AliasChoices("shipping_email", "email"))
    shipping_phone: str = Field(pattern=PHONE_PATTERN, validation_alias=AliasChoices("shipping_phone", "phone"))
    shipping_address: str = Field(min_length=10, max_length=500, validation_alias=AliasChoices("shipping_address", "address"))
    shipping_city: str = Field(min_length=2, max_length=100, validation_alias=AliasChoices("shipping_city", "city"))
    shipping_district: str = Field(min_length=2, max_length=100, validation_alias=AliasChoices("shipping_district", "district"))
    shipping_ward: str = Field(min_length=2, max_length=100, validation_alias=AliasChoices("shipping_ward", "ward"))
    payment_method: PaymentMethod = Field(PaymentMethod.COD, validation_alias=AliasChoices("payment_method", "paymentMethod"))
    notes: Optional[str] = Field(None, max_length=1000)
    promotion_code: Optional[str] = Field(None, max_length=64, validation_alias=AliasChoices("promotion_code", "promotionCode"))

    @field_validator("shipping_name", "shipping_address", "shipping_city", "shipping_district", "shipping_ward", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("promotion_code", mode="before")
    @classmethod
    def _blank_code_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# Output schema representing the full order details
class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    status: OrderStatus
    subtotal: float
    shipping_fee: float
    discount: float
    total: float
    promotion_code: Optional[str] = None
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    shipping_name: str
    shipping_email: Optional[str] = None
    shipping_phone: str
    shipping_address: str
    shipping_city: Optional[str] = None
    shipping_district: Optional[str] = None
    shipping_ward: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut]


# Admin list entry, includes the owner
class AdminOrderResponse(OrderResponse):
    user_id: int
    user_email: Optional[str] = None


# Schema for paginated order lists
class OrdersPage(BaseModel):
    items: List[OrderResponse]
    total: int
    page: int
    page_size: int


class AdminOrdersPage(BaseModel):
    items: List[AdminOrderResponse]
    total: int
    page: int
    page_size: int


# Admin update: a status transition and/or a payment status change
class OrderAdminPatch(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
