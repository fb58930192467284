import json
from pydantic import BaseModel, Field
from typing import Any, List, Optional

from carrito.schemas.cart import LineItem


def serialize_items(items: List[LineItem]) -> str:
    """Compact JSON array of {producto, precio, cantidad}, as stored and sent."""
    return json.dumps(
        [item.model_dump(by_alias=True) for item in items],
        ensure_ascii=False,
        separators=(",", ":"),
    )


class OrderCreate(BaseModel):
    """Customer supplied fields of the order form."""

    customer_name: str = Field(default="", alias="nombreCliente")
    phone: str = Field(default="", alias="telefono")
    address: str = Field(default="", alias="direccion")

    class Config:
        populate_by_name = True


class OrderRequest(BaseModel):
    """
    Body of POST /pedidos.

    Built from a snapshot of the cart at submission time; `items` keeps that
    snapshot for the caller and is not part of the wire format.
    """

    customer_name: str = Field(alias="nombreCliente")
    phone: str = Field(alias="telefono")
    address: str = Field(alias="direccion")
    items_json: str = Field(alias="itemsJson")
    total: int
    items: List[LineItem] = Field(default_factory=list, exclude=True)

    class Config:
        populate_by_name = True

    @classmethod
    def from_snapshot(cls, form: OrderCreate, items: List[LineItem]) -> "OrderRequest":
        return cls(
            customer_name=form.customer_name,
            phone=form.phone,
            address=form.address,
            items_json=serialize_items(items),
            total=sum(item.subtotal for item in items),
            items=items,
        )

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class OrderConfirmation(BaseModel):
    order_id: Optional[int] = None
    status: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "OrderConfirmation":
        """Accept the {success, message, data} envelope, a bare order or nothing."""
        if not isinstance(payload, dict):
            return cls()

        message = payload.get("message")
        data = payload.get("data") if "data" in payload else payload
        if not isinstance(data, dict):
            data = {}

        order_id = data.get("id")
        status = data.get("estado")
        return cls(
            order_id=order_id if isinstance(order_id, int) else None,
            status=status if isinstance(status, str) else None,
            message=message if isinstance(message, str) else None,
        )
