from pydantic import BaseModel, Field, ConfigDict
from typing import List

# Request schema for adding a product to the cart
class CartAddItem(BaseModel):
    product_id: int
    qty: int = Field(default=1, ge=1)

# Request schema for changing a cart line quantity
class CartUpdateItem(BaseModel):
    qty: int = Field(ge=1)

# Response schema for a single cart line, priced with the live product price
class CartItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    name: str
    qty: int
    unit_price: float
    line_total: float
    stock_quantity: int

# Response schema for the entire cart summary
class CartOut(BaseModel):
    items: List[CartItemOut]
    subtotal: float
