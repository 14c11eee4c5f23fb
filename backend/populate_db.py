"""Seed a development database with users, products, promotions and shipping settings.

Run from the backend directory: `python populate_db.py`.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from database import SessionLocal, init_db
from models.users import User
from models.product import Product, ProductStatus
from models.promotion import Promotion, PromotionType, PromotionStatus, utcnow
from models.setting import Setting
from utils.tokenJWT import create_access_token

logger = logging.getLogger(__name__)

# Configuration
DEMO_USERS = [
    {"email": "admin@example.com", "role": "admin", "first_name": "Store", "last_name": "Admin"},
    {"email": "customer@example.com", "role": "customer", "first_name": "Demo", "last_name": "Customer"},
]

DEMO_PRODUCTS = [
    ("Hydrating Serum 30ml", "450000", 25),
    ("Vitamin C Cleanser", "210000", 40),
    ("Sunscreen SPF50", "320000", 3),
    ("Night Repair Cream", "680000", 12),
    ("Clay Mask", "150000", 0),
]

DEMO_SETTINGS = [
    ("shippingFee", "30000", "shipping", "number"),
    ("freeShippingThreshold", "500000", "shipping", "number"),
]
# End Configuration


def seed():
    init_db()
    session = SessionLocal()
    try:
        for data in DEMO_USERS:
            if not session.query(User).filter(User.email == data["email"]).first():
                session.add(User(**data))

        if session.query(Product).count() == 0:
            for name, price, stock in DEMO_PRODUCTS:
                session.add(Product(
                    name=name,
                    slug=name.lower().replace(" ", "-"),
                    price=Decimal(price),
                    stock_quantity=stock,
                    status=ProductStatus.AVAILABLE if stock > 0 else ProductStatus.OUT_OF_STOCK,
                ))

        now = utcnow()
        promotions = [
            Promotion(code="SALE10", name="10% off everything", type=PromotionType.PERCENTAGE,
                      value=Decimal("10"), start_date=now - timedelta(days=1), end_date=now + timedelta(days=30)),
            Promotion(code="WELCOME50K", name="50k off first order", type=PromotionType.FIXED,
                      value=Decimal("50000"), min_order_amount=Decimal("300000"), usage_limit=100,
                      start_date=now - timedelta(days=1), end_date=now + timedelta(days=90)),
            Promotion(code="BIGSALE", name="20% off, capped", type=PromotionType.PERCENTAGE,
                      value=Decimal("20"), max_discount_amount=Decimal("100000"),
                      start_date=now - timedelta(days=1), end_date=now + timedelta(days=7),
                      status=PromotionStatus.ACTIVE),
        ]
        for promotion in promotions:
            if not session.query(Promotion).filter(Promotion.code == promotion.code).first():
                session.add(promotion)

        for key, value, group, type_ in DEMO_SETTINGS:
            if not session.query(Setting).filter(Setting.key == key).first():
                session.add(Setting(key=key, value=value, group=group, type=type_))

        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    for data in DEMO_USERS:
        token = create_access_token({"sub": data["email"], "role": data["role"]})
        logger.info("Bearer token for %s: %s", data["email"], token)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed()
