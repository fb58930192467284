from urllib.parse import urlencode

from fastapi import APIRouter, Request, Depends, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError
import logging

from carrito.api.dependencies import (
    get_backend_client,
    get_cart,
    get_credential,
    get_order_submitter,
)
from carrito.core.backend_client import BackendClient
from carrito.core.config import settings
from carrito.core.exceptions import CatalogLoadFailed, SubmitFailed, Unauthenticated
from carrito.schemas.order import OrderCreate
from carrito.services.cart import CartModel
from carrito.services.order import OrderSubmitter
from carrito.web.templating import templates
from carrito.web.view import CartView

logger = logging.getLogger(__name__)
router = APIRouter(tags=["web"])


def get_base_context(request: Request, cart: CartModel) -> dict:
    return {
        "cart_count": cart.count(),
        "logged_in": bool(get_credential(request)),
        "message": request.query_params.get("message"),
        "error": request.query_params.get("error"),
    }


def render_cart_page(
    request: Request,
    cart: CartModel,
    status_code: int = 200,
    **extra
) -> HTMLResponse:
    view = CartView(cart)
    context = {
        **get_base_context(request, cart),
        "cart": view.render(),
        "cart_html": view.render_html(),
        **extra
    }
    return templates.TemplateResponse(request, "cart.html", context, status_code=status_code)


def redirect_to_cart() -> RedirectResponse:
    return RedirectResponse(url="/cart", status_code=303)


def safe_next_url(next: str) -> str:
    """Only same-site paths; "//host" and "/\\host" are treated as external."""
    if not next or not next.startswith("/") or next[1:2] in ("/", "\\"):
        return "/cart"
    return next


@router.get("/", response_class=HTMLResponse)
@router.get("/menu", response_class=HTMLResponse)
async def menu(
    request: Request,
    cart: CartModel = Depends(get_cart),
    client: BackendClient = Depends(get_backend_client)
):
    try:
        products = await client.list_products()
    except CatalogLoadFailed as e:
        logger.error(f"Error loading products: {str(e)}")
        products = []

    return templates.TemplateResponse(request, "menu.html", {
        **get_base_context(request, cart),
        "products": products
    })


@router.post("/cart/add")
async def add_to_cart(
    producto: str = Form(...),
    precio: int = Form(...),
    cart: CartModel = Depends(get_cart)
):
    try:
        item = cart.add_or_increment(producto, precio)
    except ValidationError as e:
        logger.warning(f"Rejected product {producto!r} with price {precio}: {e}")
        return RedirectResponse(url="/menu?" + urlencode({"error": "Producto inválido"}), status_code=303)

    return RedirectResponse(url="/menu?" + urlencode({"message": f"{item.product_name} añadido al carrito"}), status_code=303)


@router.get("/cart", response_class=HTMLResponse)
async def view_cart(request: Request, cart: CartModel = Depends(get_cart)):
    return render_cart_page(request, cart)


@router.post("/cart/{index}/increment")
async def increment_item(index: int, cart: CartModel = Depends(get_cart)):
    cart.increment(index)
    return redirect_to_cart()


@router.post("/cart/{index}/decrement")
async def decrement_item(index: int, cart: CartModel = Depends(get_cart)):
    cart.decrement(index)
    return redirect_to_cart()


@router.post("/cart/{index}/quantity")
async def set_item_quantity(
    index: int,
    cantidad: str = Form(None),
    cart: CartModel = Depends(get_cart)
):
    cart.set_quantity(index, cantidad)
    return redirect_to_cart()


@router.post("/cart/clear")
async def clear_cart(cart: CartModel = Depends(get_cart)):
    cart.clear()
    return redirect_to_cart()


@router.post("/checkout", response_class=HTMLResponse)
async def checkout_post(
    request: Request,
    nombre_cliente: str = Form("", alias="nombreCliente"),
    telefono: str = Form(""),
    direccion: str = Form(""),
    cart: CartModel = Depends(get_cart),
    submitter: OrderSubmitter = Depends(get_order_submitter)
):
    order_data = OrderCreate(customer_name=nombre_cliente, phone=telefono, address=direccion)

    try:
        await submitter.submit(cart, order_data, get_credential(request))
    except Unauthenticated as e:
        return render_cart_page(request, cart, status_code=401, error=e.message, form_data=order_data)
    except SubmitFailed as e:
        logger.error(f"Checkout error: {e.detail}")
        return render_cart_page(request, cart, status_code=502, error=e.message, form_data=order_data)

    return render_cart_page(request, cart, message="Pedido enviado correctamente")


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, next: str = "/cart", cart: CartModel = Depends(get_cart)):
    return templates.TemplateResponse(request, "login.html", {
        **get_base_context(request, cart),
        "next": next
    })


@router.post("/login", response_class=HTMLResponse)
async def login_post(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    next: str = "/cart",
    cart: CartModel = Depends(get_cart),
    client: BackendClient = Depends(get_backend_client)
):
    token = await client.login(username, password)

    if not token:
        return templates.TemplateResponse(request, "login.html", {
            **get_base_context(request, cart),
            "error": "Usuario o contraseña inválidos",
            "username": username,
            "next": next
        }, status_code=401)

    request.session[settings.TOKEN_SESSION_KEY] = token
    return RedirectResponse(url=safe_next_url(next), status_code=303)


@router.get("/logout")
async def logout(request: Request):
    request.session.pop(settings.TOKEN_SESSION_KEY, None)
    return RedirectResponse(url="/menu", status_code=303)
