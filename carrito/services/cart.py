"""
Cart state.

CartModel owns the ordered list of line items for one session. Every mutation
is written through to the PersistentStore before it returns; out-of-range
indexes are ignored so a stale control can never break the rendered page.
"""
import logging
import re
import uuid
from typing import Any, Iterator, List, Optional, Tuple

from carrito.core.exceptions import InvalidQuantityInput
from carrito.core.storage import PersistentStore
from carrito.schemas.cart import LineItem
from carrito.schemas.product import CatalogProduct

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_quantity(value: Any) -> int:
    """
    Parse a quantity typed by the user.

    Reads a leading integer the way the browser's parseInt does ("3 uds" is 3)
    and raises InvalidQuantityInput for missing, non-numeric or sub-1 input.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidQuantityInput(f"Invalid quantity: {value!r}")

    if isinstance(value, (int, float)):
        try:
            quantity = int(value)
        except (ValueError, OverflowError) as e:
            raise InvalidQuantityInput(f"Invalid quantity: {value!r}") from e
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            raise InvalidQuantityInput(f"Invalid quantity: {value!r}")
        quantity = int(match.group(1))

    if quantity < 1:
        raise InvalidQuantityInput(f"Quantity must be at least 1, got {quantity}")
    return quantity


class CartModel:
    def __init__(self, store: PersistentStore, session_id: Optional[str] = None):
        self.store = store
        self.session_id = session_id or uuid.uuid4().hex
        self._items: List[LineItem] = store.load()

    @property
    def items(self) -> Tuple[LineItem, ...]:
        return tuple(self.snapshot())

    def snapshot(self) -> List[LineItem]:
        """Independent copy of the current line items."""
        return [item.model_copy() for item in self._items]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[LineItem]:
        return iter(self.items)

    def _get(self, index: int) -> Optional[LineItem]:
        if not isinstance(index, int) or isinstance(index, bool):
            return None
        if 0 <= index < len(self._items):
            return self._items[index]
        logger.debug(f"Ignoring cart index out of range: {index}")
        return None

    def _persist(self):
        self.store.save(self._items)

    def add_or_increment(self, product_name: str, unit_price: int) -> LineItem:
        """Add one unit of a product. A product already in the cart keeps its first price."""
        existing = next((item for item in self._items if item.product_name == product_name), None)

        if existing:
            existing.quantity += 1
            item = existing
        else:
            item = LineItem(product_name=product_name, unit_price=unit_price, quantity=1)
            self._items.append(item)

        self._persist()
        logger.info(f"Added to cart: product={product_name}, quantity={item.quantity}")
        return item.model_copy()

    def add_product(self, product: CatalogProduct) -> LineItem:
        return self.add_or_increment(product.nombre, product.precio)

    def increment(self, index: int) -> bool:
        item = self._get(index)
        if item is None:
            return False

        item.quantity += 1
        self._persist()
        logger.info(f"Incremented cart item: product={item.product_name}, quantity={item.quantity}")
        return True

    def decrement(self, index: int) -> bool:
        """Take one unit away, removing the row when it reaches zero."""
        item = self._get(index)
        if item is None:
            return False

        if item.quantity > 1:
            item.quantity -= 1
            logger.info(f"Decremented cart item: product={item.product_name}, quantity={item.quantity}")
        else:
            del self._items[index]
            logger.info(f"Removed from cart: product={item.product_name}")

        self._persist()
        return True

    def set_quantity(self, index: int, value: Any) -> bool:
        item = self._get(index)
        if item is None:
            return False

        try:
            quantity = parse_quantity(value)
        except InvalidQuantityInput as e:
            logger.info(f"{e}; using 1")
            quantity = 1

        item.quantity = quantity
        self._persist()
        logger.info(f"Updated cart item: product={item.product_name}, quantity={quantity}")
        return True

    def remove(self, index: int) -> bool:
        item = self._get(index)
        if item is None:
            return False

        del self._items[index]
        self._persist()
        logger.info(f"Removed from cart: product={item.product_name}")
        return True

    def clear(self):
        self._items = []
        self._persist()
        logger.info("Cart cleared")

    def total(self) -> int:
        return sum(item.subtotal for item in self._items)

    def count(self) -> int:
        return sum(item.quantity for item in self._items)
