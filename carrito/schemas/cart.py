from pydantic import BaseModel, Field
from typing import List


class LineItem(BaseModel):
    """One product row of the cart, stored as {producto, precio, cantidad}."""

    product_name: str = Field(alias="producto")
    unit_price: int = Field(alias="precio", ge=0)
    quantity: int = Field(alias="cantidad", ge=1)

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity

    class Config:
        populate_by_name = True


class CartItemResponse(BaseModel):
    index: int
    product_name: str
    unit_price: int
    quantity: int
    subtotal: int


class CartResponse(BaseModel):
    items: List[CartItemResponse]
    total: int
    item_count: int
