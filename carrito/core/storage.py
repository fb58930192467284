"""
Durable cart snapshot.

The cart lives under one key of a string key-value backend (the browser
session in the web app) as a JSON array of {producto, precio, cantidad}.
Reads and writes fail soft: the in-memory cart stays the source of truth.
"""
import json
import logging
from typing import List, MutableMapping, Optional

from pydantic import ValidationError

from carrito.core.config import settings
from carrito.core.exceptions import StorageCorrupt
from carrito.schemas.cart import LineItem
from carrito.schemas.order import serialize_items

logger = logging.getLogger(__name__)


def parse_snapshot(raw: str) -> List[LineItem]:
    """Parse a stored snapshot, raising StorageCorrupt on anything malformed."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise StorageCorrupt(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise StorageCorrupt(f"Expected a JSON array, got {type(data).__name__}")

    items = []
    seen = set()
    for entry in data:
        try:
            item = LineItem.model_validate(entry)
        except ValidationError as e:
            raise StorageCorrupt(f"Invalid line item {entry!r}: {e}") from e
        if item.product_name in seen:
            raise StorageCorrupt(f"Duplicate product '{item.product_name}'")
        seen.add(item.product_name)
        items.append(item)

    return items


class PersistentStore:
    def __init__(self, backend: MutableMapping[str, str], key: Optional[str] = None):
        self.backend = backend
        self.key = key or settings.CART_STORAGE_KEY

    def load(self) -> List[LineItem]:
        """Load the cart, or an empty one if the key is missing or corrupt."""
        raw = self.backend.get(self.key)
        if raw is None:
            return []

        try:
            items = parse_snapshot(raw)
        except StorageCorrupt as e:
            logger.warning(f"Discarding corrupt cart snapshot under '{self.key}': {e}")
            return []

        logger.debug(f"Loaded cart with {len(items)} items from '{self.key}'")
        return items

    def save(self, items: List[LineItem]) -> bool:
        try:
            self.backend[self.key] = serialize_items(items)
        except Exception as e:
            logger.error(f"Failed to persist cart under '{self.key}': {e}")
            return False
        return True

