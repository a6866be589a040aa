"""
Catalog Backend — Custom Exception Hierarchy
============================================

What:  Application-specific exceptions raised at the HTTP boundary.
Why:   Global exception handlers (registered in main.py) map them to
       plain-text responses with the right status code, so no route has to
       build error responses for these cases itself.

Exception Hierarchy:
    CatalogError (base)         → 500 Internal Server Error
    └── InvalidIdentifierError  → 400 Bad Request (path id is not an integer)

Store outcomes (not found, validation failure, conflict, store failure) are
NOT exceptions: ProductStore returns them as StoreResult values and the
routes pick the status code. Exceptions are kept for the cases where the
request never reaches the store.
"""

from typing import Any, Dict, Optional

INVALID_ID_MESSAGE = "Invalid product ID"


class CatalogError(Exception):
    """
    Base exception for all catalog application errors.

    Attributes:
        message:  Client-facing text (safe to return in the response body)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class InvalidIdentifierError(CatalogError):
    """
    Raised when the `{id}` path segment is not an integer.

    HTTP: 400 Bad Request. Raised before any store call is made.
    """

    status_code = 400

    def __init__(self, raw_id: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["raw_id"] = raw_id
        super().__init__(message=INVALID_ID_MESSAGE, context=ctx)
        self.raw_id = raw_id
