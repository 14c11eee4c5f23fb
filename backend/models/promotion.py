# backend/models/promotion.py
import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Enum, CheckConstraint, func
from database import Base

def utcnow() -> datetime:
    # Promotion windows are stored as naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)

class PromotionType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

class PromotionStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

# Discount code. Codes are stored upper-cased; used_count is only
# incremented by services.promotions.consume_promotion.
class Promotion(Base):
    __tablename__ = "promotions"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    type = Column(Enum(PromotionType), nullable=False)
    value = Column(Numeric(12, 2), CheckConstraint("value >= 0", name="ck_promotions_value"), nullable=False)
    min_order_amount = Column(Numeric(12, 2), nullable=True)
    max_discount_amount = Column(Numeric(12, 2), nullable=True)

    usage_limit = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    status = Column(Enum(PromotionStatus), nullable=False, default=PromotionStatus.ACTIVE)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "usage_limit IS NULL OR used_count <= usage_limit",
            name="ck_promotions_usage_cap",
        ),
    )

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        """Active, inside its date window and below its usage cap."""
        now = now or utcnow()
        if self.status != PromotionStatus.ACTIVE:
            return False
        if now < self.start_date or now > self.end_date:
            return False
        if self.usage_limit is not None and (self.used_count or 0) >= self.usage_limit:
            return False
        return True

    def calculate_discount(self, order_amount: Decimal) -> Decimal:
        """Raw discount for an amount; usability and minimum checks are the caller's job."""
        if self.type == PromotionType.PERCENTAGE:
            discount = order_amount * Decimal(self.value) / Decimal(100)
            # A zero cap counts as "no cap"
            if self.max_discount_amount and discount > self.max_discount_amount:
                discount = Decimal(self.max_discount_amount)
        else:
            discount = Decimal(self.value)
        return min(discount, order_amount)
