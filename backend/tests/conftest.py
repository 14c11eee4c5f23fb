"""Pytest fixtures for the storefront order tests."""
import os

# The app module creates its tables on import; keep that away from real files
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SOCKET_URL"] = ""
os.environ["SMTP_HOST"] = ""

from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from database import Base, get_db
from models.users import User
from models.product import Product, ProductStatus
from models.cart import Cart, CartItem
from models.promotion import Promotion, PromotionType, PromotionStatus, utcnow
from schemas.order import OrderCreatePayload
from utils.notifier import get_notifier
from utils.tokenJWT import create_access_token

import models.order  # noqa: F401
import models.setting  # noqa: F401
import models.notification  # noqa: F401
import models.log  # noqa: F401


CHECKOUT_FORM = {
    "fullName": "Nguyen Van A",
    "email": "buyer@example.com",
    "phone": "0901234567",
    "address": "12 Nguyen Hue Street",
    "city": "Ho Chi Minh",
    "district": "District 1",
    "ward": "Ben Nghe",
    "paymentMethod": "cod",
}


class RecordingNotifier:
    """Stands in for utils.notifier.Notifier and keeps what it was told."""

    def __init__(self):
        self.events = []
        self.confirmations = []

    def order_created(self, payload):
        self.events.append(("order_created", payload))

    def order_cancelled(self, payload):
        self.events.append(("order_cancelled", payload))

    def order_confirmation(self, payload):
        self.confirmations.append(payload)


@pytest.fixture
def session_factory(tmp_path):
    # File based so that separate sessions see each other's commits
    engine = create_engine(
        f"sqlite:///{tmp_path / 'storefront.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role="customer", email=None):
        counter["n"] += 1
        user = User(email=email or f"user{counter['n']}@example.com", role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_product(db):
    def _make(name, price, stock, status=ProductStatus.AVAILABLE, image_url=None):
        product = Product(
            name=name,
            slug=name.lower().replace(" ", "-"),
            price=Decimal(price),
            stock_quantity=stock,
            status=status,
            image_url=image_url,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def add_to_cart(db):
    def _add(user, product, qty):
        cart = db.query(Cart).filter(Cart.user_id == user.id, Cart.status == "open").first()
        if not cart:
            cart = Cart(user_id=user.id, status="open")
            db.add(cart)
            db.flush()
        db.add(CartItem(cart_id=cart.id, product_id=product.id, qty=qty))
        db.commit()
        return cart

    return _add


@pytest.fixture
def make_promotion(db):
    def _make(code, type=PromotionType.PERCENTAGE, value="10", **fields):
        now = utcnow()
        fields.setdefault("start_date", now - timedelta(days=1))
        fields.setdefault("end_date", now + timedelta(days=30))
        fields.setdefault("status", PromotionStatus.ACTIVE)
        promotion = Promotion(code=code, name=f"Promotion {code}", type=type, value=Decimal(value), **fields)
        db.add(promotion)
        db.commit()
        db.refresh(promotion)
        return promotion

    return _make


@pytest.fixture
def checkout_payload():
    def _payload(**overrides):
        data = dict(CHECKOUT_FORM)
        data.update(overrides)
        return OrderCreatePayload.model_validate(data)

    return _payload


@pytest.fixture
def recording_notifier():
    return RecordingNotifier()


@pytest.fixture
def notifier(recording_notifier):
    # Tests needing the real Notifier override this fixture
    return recording_notifier


@pytest.fixture
def client(session_factory, notifier):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": user.email, "role": user.role})
        return {"Authorization": f"Bearer {token}"}

    return _headers
