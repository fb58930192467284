"""
Cart rendering.

Each render builds fresh rows whose controls are bound to the row position in
the cart at that moment. Nothing is kept from a previous render, so rendering
twice never stacks handlers.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from carrito.schemas.cart import CartItemResponse, CartResponse
from carrito.services.cart import CartModel
from carrito.web.templating import templates

logger = logging.getLogger(__name__)


@dataclass
class CartRow:
    index: int
    product_name: str
    unit_price: int
    quantity: int
    line_total: int
    increment: Callable[[], bool] = field(compare=False, repr=False)
    decrement: Callable[[], bool] = field(compare=False, repr=False)
    set_quantity: Callable[[Any], bool] = field(compare=False, repr=False)
    remove: Callable[[], bool] = field(compare=False, repr=False)


@dataclass
class RenderedCart:
    rows: List[CartRow]
    total: int
    item_count: int

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def to_response(self) -> CartResponse:
        return CartResponse(
            items=[
                CartItemResponse(
                    index=row.index,
                    product_name=row.product_name,
                    unit_price=row.unit_price,
                    quantity=row.quantity,
                    subtotal=row.line_total
                )
                for row in self.rows
            ],
            total=self.total,
            item_count=self.item_count
        )


class CartView:
    def __init__(self, cart: CartModel, on_change: Optional[Callable[[RenderedCart], None]] = None):
        self.cart = cart
        self.on_change = on_change
        self.current: Optional[RenderedCart] = None

    def render(self) -> RenderedCart:
        rows = [
            CartRow(
                index=index,
                product_name=item.product_name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                line_total=item.subtotal,
                increment=self._bind(self.cart.increment, index),
                decrement=self._bind(self.cart.decrement, index),
                set_quantity=self._bind(self.cart.set_quantity, index),
                remove=self._bind(self.cart.remove, index),
            )
            for index, item in enumerate(self.cart.items)
        ]
        self.current = RenderedCart(rows=rows, total=self.cart.total(), item_count=self.cart.count())
        return self.current

    def refresh(self) -> RenderedCart:
        rendered = self.render()
        if self.on_change is not None:
            self.on_change(rendered)
        return rendered

    def _bind(self, operation: Callable[..., bool], index: int) -> Callable[..., bool]:
        def handler(*args) -> bool:
            changed = operation(index, *args)
            self.refresh()
            return changed

        return handler

    def render_html(self) -> str:
        """Render the cart rows and total as an HTML fragment."""
        template = templates.get_template("partials/cart_items.html")
        return template.render(cart=self.render())
