"""
Cart errors.

Storage and input errors are recovered where they happen and only logged.
Submission errors reach the user because they answer an explicit action.
"""
from typing import Optional


class CartError(Exception):
    """Base class for every cart related error."""


class StorageCorrupt(CartError):
    """The persisted cart snapshot could not be parsed."""


class InvalidQuantityInput(CartError):
    """A quantity input was missing, non-numeric or below 1."""


class SubmitError(CartError):
    """Base class for order submission failures."""

    message = "Error enviando el pedido"


class Unauthenticated(SubmitError):
    message = "Debes iniciar sesión para hacer un pedido"


class SubmitFailed(SubmitError):
    def __init__(self, detail: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.body = body


class CatalogLoadFailed(CartError):
    """The remote product catalog could not be fetched."""
