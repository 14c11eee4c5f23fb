# backend/services/promotions.py
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from models.promotion import Promotion, PromotionStatus, utcnow
from services.errors import BelowMinimumOrder, PromotionNotFound, PromotionNotUsable

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


@dataclass(frozen=True)
class PromotionQuote:
    promotion: Promotion
    discount: Decimal
    final_amount: Decimal


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def get_promotion(db: Session, code: Optional[str]) -> Promotion:
    normalized = normalize_code(code)
    promotion = None
    if normalized:
        promotion = db.query(Promotion).filter(Promotion.code == normalized).first()
    if not promotion:
        raise PromotionNotFound(normalized)
    return promotion


def validate_promotion(db: Session, code: Optional[str], order_amount, now: Optional[datetime] = None) -> PromotionQuote:
    """Check a code against an order amount and price the discount.

    Read-only: calling this any number of times never changes used_count.
    """
    try:
        amount = to_money(order_amount)
    except InvalidOperation:
        raise ValueError(f"order_amount is not a usable amount: {order_amount!r}")
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"order_amount must be a non-negative amount: {order_amount!r}")

    promotion = get_promotion(db, code)
    if not promotion.is_usable(now):
        raise PromotionNotUsable(promotion.code)

    # A zero minimum counts as "no minimum"
    if promotion.min_order_amount and amount < promotion.min_order_amount:
        raise BelowMinimumOrder(promotion.code, Decimal(promotion.min_order_amount))

    discount = to_money(promotion.calculate_discount(amount))
    final_amount = max(amount - discount, Decimal("0.00"))
    return PromotionQuote(promotion=promotion, discount=discount, final_amount=final_amount)


def consume_promotion(db: Session, promotion: Promotion, now: Optional[datetime] = None) -> Promotion:
    """Count one use of a promotion inside the caller's transaction.

    Usability is re-checked by the UPDATE itself, so the usage cap holds even
    when several checkouts race for the last use.
    """
    now = now or utcnow()
    result = db.execute(
        update(Promotion)
        .where(
            Promotion.id == promotion.id,
            Promotion.status == PromotionStatus.ACTIVE,
            Promotion.start_date <= now,
            Promotion.end_date >= now,
            or_(Promotion.usage_limit.is_(None), Promotion.used_count < Promotion.usage_limit),
        )
        .values(used_count=Promotion.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise PromotionNotUsable(promotion.code)

    promotion = db.get(Promotion, promotion.id, populate_existing=True)
    logger.debug("Promotion %s used %s/%s", promotion.code, promotion.used_count, promotion.usage_limit)
    return promotion
