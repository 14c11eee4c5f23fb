from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from models.promotion import PromotionType

# Largest amount a Numeric(12, 2) column holds
MAX_ORDER_AMOUNT = 9_999_999_999.99


class PromotionValidateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    order_amount: float = Field(ge=0, le=MAX_ORDER_AMOUNT)


# Public view of a promotion returned with a successful validation
class PromotionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    description: Optional[str] = None
    type: PromotionType
    value: float
    min_order_amount: Optional[float] = None
    max_discount_amount: Optional[float] = None
    start_date: datetime
    end_date: datetime


class PromotionValidateResponse(BaseModel):
    promotion: PromotionOut
    discount: float
    final_amount: float
