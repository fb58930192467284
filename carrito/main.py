import logging
from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from carrito.core.config import settings
from carrito.api import cart, web

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=f"{settings.SHOP_NAME} - Carrito",
    description="Shopping cart and order submission for the food menu",
    version="1.0.0",
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# Session holds the cart snapshot and the bearer token
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET_KEY,
    max_age=3600 * 24 * 7  # 7 days
)

app.include_router(cart.router)
app.include_router(web.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "shop_name": settings.SHOP_NAME,
        "submit_policy": settings.SUBMIT_POLICY
    }


@app.on_event("startup")
async def startup_event():
    logger.info(f"Starting {settings.SHOP_NAME} cart against {settings.API_BASE_URL}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down cart application")
    from carrito.core.backend_client import backend_client
    await backend_client.close()
