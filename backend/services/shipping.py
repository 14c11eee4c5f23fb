# backend/services/shipping.py
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from config import settings
from models.setting import Setting

SHIPPING_GROUP = "shipping"


@dataclass(frozen=True)
class ShippingSettings:
    shipping_fee: Decimal
    free_shipping_threshold: Decimal

    def fee_for(self, subtotal: Decimal) -> Decimal:
        # Free shipping once the subtotal reaches the threshold
        if self.free_shipping_threshold > 0 and subtotal >= self.free_shipping_threshold:
            return Decimal("0.00")
        return self.shipping_fee


def _as_amount(raw, default) -> Decimal:
    try:
        value = Decimal(str(raw))
    except (ArithmeticError, ValueError):
        return Decimal(default)
    # NaN and Infinity parse fine but are not fees
    if not value.is_finite() or value < 0:
        return Decimal(default)
    return value


def get_shipping_settings(db: Session) -> ShippingSettings:
    rows = db.query(Setting).filter(Setting.group == SHIPPING_GROUP).all()
    values = {row.key: row.value for row in rows}
    return ShippingSettings(
        shipping_fee=_as_amount(values.get("shippingFee", settings.DEFAULT_SHIPPING_FEE), settings.DEFAULT_SHIPPING_FEE),
        free_shipping_threshold=_as_amount(
            values.get("freeShippingThreshold", settings.DEFAULT_FREE_SHIPPING_THRESHOLD),
            settings.DEFAULT_FREE_SHIPPING_THRESHOLD,
        ),
    )
