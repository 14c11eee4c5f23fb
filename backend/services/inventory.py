# backend/services/inventory.py
"""Inventory ledger: the only code allowed to change Product.stock_quantity.

Both operations run inside the caller's transaction and never commit.
The stock check and the decrement are a single conditional UPDATE, so two
concurrent checkouts can never both take the last unit.
"""
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from config import settings
from models.product import Product, ProductStatus
from services.errors import InsufficientStock, ProductNotFound

logger = logging.getLogger(__name__)


def _check_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValueError(f"quantity must be a positive integer, got {quantity!r}")


def _status_for_level(stock: int) -> ProductStatus:
    if stock <= 0:
        return ProductStatus.OUT_OF_STOCK
    if stock <= settings.LOW_STOCK_THRESHOLD:
        return ProductStatus.LOW_STOCK
    return ProductStatus.AVAILABLE


def _reload(db: Session, product_id: int) -> Optional[Product]:
    # The UPDATE bypassed the identity map, pull the fresh row back in
    return db.get(Product, product_id, populate_existing=True)


def reserve(db: Session, product_id: int, quantity: int) -> Product:
    """Take `quantity` units of a product out of available stock."""
    _check_quantity(quantity)

    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity >= quantity)
        .values(stock_quantity=Product.stock_quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    product = _reload(db, product_id)

    if result.rowcount != 1:
        if product is None:
            raise ProductNotFound(product_id)
        raise InsufficientStock(product.id, product.name, product.stock_quantity, quantity)

    # Only ever move toward out_of_stock here; discontinued stays discontinued
    if product.stock_quantity == 0 and product.status != ProductStatus.DISCONTINUED:
        product.status = ProductStatus.OUT_OF_STOCK
    elif product.status == ProductStatus.AVAILABLE:
        product.status = _status_for_level(product.stock_quantity)
    db.flush()

    logger.debug("Reserved %s x product %s, %s left", quantity, product_id, product.stock_quantity)
    return product


def release(db: Session, product_id: Optional[int], quantity: int) -> Optional[Product]:
    """Put `quantity` units back. The quantity must come from a stored order line."""
    _check_quantity(quantity)
    if product_id is None:
        logger.warning("Order line without product, %s units not restocked", quantity)
        return None

    result = db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock_quantity=Product.stock_quantity + quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning("Product %s no longer exists, %s units not restocked", product_id, quantity)
        return None

    product = _reload(db, product_id)
    if product.status in (ProductStatus.OUT_OF_STOCK, ProductStatus.LOW_STOCK):
        product.status = _status_for_level(product.stock_quantity)
    db.flush()

    logger.debug("Released %s x product %s, %s available", quantity, product_id, product.stock_quantity)
    return product
