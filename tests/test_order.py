import asyncio
import json

import httpx
import pytest

from carrito.core.exceptions import SubmitFailed, Unauthenticated
from carrito.schemas.order import OrderConfirmation, OrderCreate
from carrito.services.order import OrderSubmitter, SubmitPolicy
from carrito.web.view import CartView


FORM = OrderCreate(nombreCliente="Ana Gómez", telefono="3001234567", direccion="Calle 10 # 5-20")


def pizza_cart(cart):
    cart.add_or_increment("Pizza", 20000)
    cart.add_or_increment("Pizza", 20000)
    cart.set_quantity(0, "abc")
    return cart


@pytest.mark.asyncio
async def test_submit_without_credential(cart, order_backend, recorded_requests):
    pizza_cart(cart)
    submitter = OrderSubmitter(order_backend())

    with pytest.raises(Unauthenticated):
        await submitter.submit(cart, FORM, None)
    with pytest.raises(Unauthenticated):
        await submitter.submit(cart, FORM, "")

    assert recorded_requests == []
    assert [(i.product_name, i.quantity) for i in cart.items] == [("Pizza", 1)]


@pytest.mark.asyncio
async def test_submit_server_error_keeps_cart(cart, store, order_backend):
    pizza_cart(cart)
    submitter = OrderSubmitter(order_backend(status_code=500, body={"error": "boom"}))

    with pytest.raises(SubmitFailed) as exc_info:
        await submitter.submit(cart, FORM, "token-123")

    assert exc_info.value.status_code == 500
    assert [(i.product_name, i.unit_price, i.quantity) for i in cart.items] == [("Pizza", 20000, 1)]
    assert store.load() == list(cart.items)
    assert not submitter.in_flight(cart)


@pytest.mark.asyncio
async def test_submit_transport_error_keeps_cart(cart, make_backend):
    pizza_cart(cart)

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    submitter = OrderSubmitter(make_backend(handler))

    with pytest.raises(SubmitFailed) as exc_info:
        await submitter.submit(cart, FORM, "token-123")

    assert exc_info.value.status_code is None
    assert len(cart) == 1


@pytest.mark.asyncio
async def test_submit_success_clears_cart(cart, store, session_backend, order_backend, recorded_requests):
    pizza_cart(cart)
    cart.add_or_increment("Soda", 4000)
    submitter = OrderSubmitter(order_backend())

    confirmation = await submitter.submit(cart, FORM, "token-123")

    assert confirmation.order_id == 7
    assert confirmation.status == "PENDIENTE"
    assert len(cart) == 0
    assert store.load() == []
    assert session_backend["carrito"] == "[]"

    request = recorded_requests[0]
    assert request.method == "POST"
    assert str(request.url) == "http://backend.test/api/pedidos"
    assert request.headers["Authorization"] == "Bearer token-123"
    body = json.loads(request.content)
    assert body == {
        "nombreCliente": "Ana Gómez",
        "telefono": "3001234567",
        "direccion": "Calle 10 # 5-20",
        "itemsJson": '[{"producto":"Pizza","precio":20000,"cantidad":1},'
                     '{"producto":"Soda","precio":4000,"cantidad":1}]',
        "total": 24000,
    }


@pytest.mark.asyncio
async def test_submit_success_refreshes_view(cart, order_backend):
    pizza_cart(cart)
    renders = []
    view = CartView(cart, on_change=renders.append)

    await OrderSubmitter(order_backend(status_code=200)).submit(cart, FORM, "token-123", view=view)

    assert renders[-1].is_empty
    assert renders[-1].total == 0


@pytest.mark.asyncio
async def test_submit_accepts_empty_body(cart, make_backend):
    pizza_cart(cart)
    submitter = OrderSubmitter(make_backend(lambda request: httpx.Response(204)))

    confirmation = await submitter.submit(cart, FORM, "token-123")

    assert confirmation.order_id is None
    assert len(cart) == 0


@pytest.mark.asyncio
async def test_cart_can_be_resubmitted_after_failure(cart, make_backend):
    pizza_cart(cart)
    statuses = iter([503, 201])

    def handler(request):
        return httpx.Response(next(statuses), json={"data": {"id": 3, "estado": "PENDIENTE"}})

    submitter = OrderSubmitter(make_backend(handler))

    with pytest.raises(SubmitFailed):
        await submitter.submit(cart, FORM, "token-123")
    assert len(cart) == 1

    confirmation = await submitter.submit(cart, FORM, "token-123")
    assert confirmation.order_id == 3
    assert len(cart) == 0


class GatedBackend:
    """Backend whose create_order waits until released."""

    def __init__(self):
        self.release = asyncio.Event()
        self.orders = []

    async def create_order(self, order, credential):
        self.orders.append(order)
        await self.release.wait()
        return OrderConfirmation(order_id=len(self.orders))


@pytest.mark.asyncio
async def test_lock_policy_rejects_second_submission(cart):
    pizza_cart(cart)
    backend = GatedBackend()
    submitter = OrderSubmitter(backend, SubmitPolicy.LOCK)

    first = asyncio.create_task(submitter.submit(cart, FORM, "token-123"))
    await asyncio.sleep(0)
    assert submitter.in_flight(cart)

    with pytest.raises(SubmitFailed):
        await submitter.submit(cart, FORM, "token-123")
    assert len(backend.orders) == 1
    assert len(cart) == 1

    backend.release.set()
    await first
    assert not submitter.in_flight(cart)
    assert len(cart) == 0


@pytest.mark.asyncio
async def test_allow_policy_lets_submissions_race(cart):
    pizza_cart(cart)
    backend = GatedBackend()
    submitter = OrderSubmitter(backend, SubmitPolicy.ALLOW)

    first = asyncio.create_task(submitter.submit(cart, FORM, "token-123"))
    await asyncio.sleep(0)
    cart.add_or_increment("Soda", 4000)
    second = asyncio.create_task(submitter.submit(cart, FORM, "token-123"))
    await asyncio.sleep(0)

    assert len(backend.orders) == 2
    assert backend.orders[0].total == 20000
    assert backend.orders[1].total == 24000

    backend.release.set()
    await asyncio.gather(first, second)
    assert len(cart) == 0
    assert not submitter.in_flight(cart)


def test_policy_accepts_configured_strings(order_backend):
    assert OrderSubmitter(order_backend(), "allow").policy == SubmitPolicy.ALLOW
    assert OrderSubmitter(order_backend(), "lock").policy == SubmitPolicy.LOCK


@pytest.mark.asyncio
async def test_success_with_unexpected_body_still_clears_cart(cart, store, order_backend):
    pizza_cart(cart)
    submitter = OrderSubmitter(order_backend(body={"data": {"id": 1, "estado": 2}}))

    confirmation = await submitter.submit(cart, FORM, "token-123")

    assert confirmation.order_id == 1
    assert confirmation.status is None
    assert len(cart) == 0
    assert store.load() == []
