import json
import os

import httpx
import pytest

# Settings are read at import time
os.environ.setdefault("API_BASE_URL", "http://backend.test/api")
os.environ.setdefault("SESSION_SECRET_KEY", "test_session_secret")

from carrito.core.backend_client import BackendClient
from carrito.core.storage import PersistentStore
from carrito.services.cart import CartModel


@pytest.fixture
def session_backend():
    return {}


@pytest.fixture
def store(session_backend):
    return PersistentStore(session_backend, key="carrito")


@pytest.fixture
def cart(store):
    return CartModel(store, session_id="session-1")


@pytest.fixture
def make_backend():
    """Build a BackendClient whose requests are answered by `handler`."""
    def factory(handler):
        return BackendClient(
            base_url="http://backend.test/api",
            transport=httpx.MockTransport(handler)
        )
    return factory


@pytest.fixture
def recorded_requests():
    return []


@pytest.fixture
def order_backend(make_backend, recorded_requests):
    """Backend answering POST /pedidos with the given status."""
    def factory(status_code=201, body=None):
        def handler(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            payload = body if body is not None else {
                "success": True,
                "message": "Pedido creado exitosamente",
                "data": {"id": 7, "estado": "PENDIENTE"}
            }
            return httpx.Response(status_code, content=json.dumps(payload))
        return make_backend(handler)
    return factory
