import logging
import httpx
from typing import List, Optional

from pydantic import ValidationError

from carrito.core.config import settings
from carrito.core.exceptions import CatalogLoadFailed, SubmitFailed
from carrito.schemas.order import OrderConfirmation, OrderRequest
from carrito.schemas.product import CatalogProduct

logger = logging.getLogger(__name__)


class BackendClient:
    """HTTP client for the remote products/orders API."""

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self.transport = transport
        self.client = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        return self.client

    async def list_products(self) -> List[CatalogProduct]:
        """
        Fetch the catalog.

        GET /productos
        Returns either a bare array of {nombre, precio, imagenUrl, descripcion}
        or the {success, message, data: [...]} envelope.
        """
        try:
            client = await self._get_client()
            response = await client.get(f"{self.base_url}/productos")
            response.raise_for_status()
            payload = response.json()

            if isinstance(payload, dict):
                payload = payload.get("data")
            if not isinstance(payload, list):
                raise CatalogLoadFailed(f"Unexpected catalog payload: {type(payload).__name__}")

            products = [CatalogProduct.model_validate(p) for p in payload]
            logger.info(f"Catalog loaded: {len(products)} products")
            return products

        except CatalogLoadFailed:
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"Catalog load failed with status {e.response.status_code}: {e.response.text}")
            raise CatalogLoadFailed(f"Failed to load products: {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.error(f"Catalog load failed: {str(e)}")
            raise CatalogLoadFailed(f"Failed to load products: {str(e)}") from e

    async def create_order(self, order: OrderRequest, credential: str) -> OrderConfirmation:
        """
        Create order on backend.

        POST /pedidos
        {
          "nombreCliente": "Ana",
          "telefono": "3001234567",
          "direccion": "Calle 1 # 2-3",
          "itemsJson": "[{\"producto\":\"Pizza\",\"precio\":20000,\"cantidad\":2}]",
          "total": 40000
        }

        Returns: {"success": true, "message": "...", "data": {"id": 1, "estado": "PENDIENTE", ...}}
        """
        try:
            client = await self._get_client()
            headers = {"Authorization": f"Bearer {credential}"}

            logger.info(f"Creating order on backend for {order.customer_name}, total {order.total}")
            logger.debug(f"Order payload: {order.to_payload()}")

            response = await client.post(
                f"{self.base_url}/pedidos",
                json=order.to_payload(),
                headers=headers
            )
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            logger.error(f"Backend order creation failed with status {e.response.status_code}: {e.response.text}")
            raise SubmitFailed(
                f"Failed to create order on backend: {e.response.status_code}",
                status_code=e.response.status_code,
                body=e.response.text
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Backend order creation failed: {str(e)}")
            raise SubmitFailed(f"Failed to create order on backend: {str(e)}") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        confirmation = OrderConfirmation.from_payload(payload)
        logger.info(f"Backend order created successfully: {confirmation.order_id}")
        return confirmation

    async def login(self, username: str, password: str) -> Optional[str]:
        """Exchange credentials for the opaque bearer token, or None if refused."""
        try:
            client = await self._get_client()
            response = await client.post(
                f"{self.base_url}/auth/login",
                json={"username": username, "password": password}
            )
            if response.status_code != 200:
                logger.warning(f"Login refused for {username}: {response.status_code}")
                return None
            token = response.json().get("token")
            return token if isinstance(token, str) and token else None
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.error(f"Login request failed: {str(e)}")
            return None

    async def close(self):
        """Close HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None


# Global instance
backend_client = BackendClient()
