# backend/models/product.py
import enum
from sqlalchemy import Column, Integer, String, Numeric, Enum, DateTime, CheckConstraint, func
from database import Base

# Availability flag shown in the storefront
class ProductStatus(str, enum.Enum):
    AVAILABLE = "available"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"

# Model Product
# Catalog data consumed by checkout: the live price and the available stock.
# stock_quantity is mutated only through services.inventory.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    slug = Column(String, nullable=True, index=True)

    price = Column(Numeric(12, 2), CheckConstraint("price >= 0", name="ck_products_price"), nullable=False)
    stock_quantity = Column(
        Integer,
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        nullable=False,
        default=0,
    )
    status = Column(Enum(ProductStatus), nullable=False, default=ProductStatus.AVAILABLE, index=True)

    # Optional URL of the main product image.
    image_url = Column(String, nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_purchasable(self) -> bool:
        return self.status not in (ProductStatus.OUT_OF_STOCK, ProductStatus.DISCONTINUED)
