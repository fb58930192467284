import uuid
from typing import Optional

from fastapi import Request

from carrito.core.backend_client import BackendClient, backend_client
from carrito.core.config import settings
from carrito.core.storage import PersistentStore
from carrito.services.cart import CartModel
from carrito.services.order import OrderSubmitter, order_submitter

CART_SESSION_KEY = "cart_session"


def get_cart(request: Request) -> CartModel:
    """Cart of the current browser session, loaded from the session store."""
    session_id = request.session.get(CART_SESSION_KEY)
    if not session_id:
        session_id = uuid.uuid4().hex
        request.session[CART_SESSION_KEY] = session_id
    return CartModel(PersistentStore(request.session), session_id=session_id)


def get_credential(request: Request) -> Optional[str]:
    """Opaque bearer token stored by the login page, if any."""
    return request.session.get(settings.TOKEN_SESSION_KEY)


def get_backend_client() -> BackendClient:
    return backend_client


def get_order_submitter() -> OrderSubmitter:
    return order_submitter
