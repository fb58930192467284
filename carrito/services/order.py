"""
Order submission.

The cart is snapshotted before the network call and is only cleared after the
backend confirms the order; any failure leaves it exactly as it was.
"""
import enum
import logging
from collections import Counter
from typing import Optional

from carrito.core.backend_client import BackendClient, backend_client
from carrito.core.config import settings
from carrito.core.exceptions import SubmitFailed, Unauthenticated
from carrito.schemas.order import OrderConfirmation, OrderCreate, OrderRequest
from carrito.services.cart import CartModel

logger = logging.getLogger(__name__)


class SubmitPolicy(str, enum.Enum):
    ALLOW = "allow"  # concurrent submissions of the same cart may race
    LOCK = "lock"  # reject a new submission while one is in flight


class OrderSubmitter:
    def __init__(self, client: BackendClient, policy: SubmitPolicy = SubmitPolicy.LOCK):
        self.client = client
        self.policy = SubmitPolicy(policy)
        self._in_flight = Counter()

    def in_flight(self, cart: CartModel) -> bool:
        return self._in_flight[cart.session_id] > 0

    def build_request(self, cart: CartModel, form: OrderCreate) -> OrderRequest:
        return OrderRequest.from_snapshot(form, cart.snapshot())

    async def submit(
        self,
        cart: CartModel,
        form: OrderCreate,
        credential: Optional[str],
        view=None
    ) -> OrderConfirmation:
        """
        Send the current cart as an order.

        Raises Unauthenticated without touching the network when there is no
        credential, and SubmitFailed on transport errors, non-2xx responses or
        (under the lock policy) a submission already in flight. On success the
        cart is cleared and `view`, if given, is refreshed.
        """
        if not credential:
            logger.warning("Order submission without credential")
            raise Unauthenticated("No credential available")

        if self.policy == SubmitPolicy.LOCK and self.in_flight(cart):
            logger.warning(f"Order submission already in progress for cart {cart.session_id}")
            raise SubmitFailed("Submission already in progress")

        order = self.build_request(cart, form)

        self._in_flight[cart.session_id] += 1
        try:
            confirmation = await self.client.create_order(order, credential)
        finally:
            self._in_flight[cart.session_id] -= 1
            if self._in_flight[cart.session_id] <= 0:
                del self._in_flight[cart.session_id]

        cart.clear()
        if view is not None:
            view.refresh()

        logger.info(f"Order submitted: id={confirmation.order_id}, total={order.total}")
        return confirmation


order_submitter = OrderSubmitter(backend_client, SubmitPolicy(settings.SUBMIT_POLICY))
