from fastapi import APIRouter, Depends, HTTPException, Request
import logging

from carrito.api.dependencies import get_cart, get_credential, get_order_submitter
from carrito.core.exceptions import SubmitFailed, Unauthenticated
from carrito.schemas.cart import CartResponse
from carrito.schemas.order import OrderConfirmation, OrderCreate
from carrito.services.cart import CartModel
from carrito.services.order import OrderSubmitter
from carrito.web.view import CartView

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartResponse)
async def get_cart_contents(cart: CartModel = Depends(get_cart)):
    """Get current shopping cart."""
    return CartView(cart).render().to_response()


@router.post("/checkout", response_model=OrderConfirmation, status_code=201)
async def checkout(
    request: Request,
    order_data: OrderCreate,
    cart: CartModel = Depends(get_cart),
    submitter: OrderSubmitter = Depends(get_order_submitter)
):
    """Submit the cart as an order and clear it on success."""
    try:
        return await submitter.submit(cart, order_data, get_credential(request))
    except Unauthenticated as e:
        raise HTTPException(status_code=401, detail=e.message)
    except SubmitFailed as e:
        logger.error(f"Checkout failed: {e.detail}")
        raise HTTPException(status_code=502, detail=e.message)
