"""
Catalog Backend — Product Route Handlers
========================================

What:  The six product operations under /products.
Why:   This is where HTTP meets the store: parse the id, make exactly one
       store call, pick the status code.
How:   The `{id}` segment is parsed by the path_product_id dependency before the
       handler body runs, so a malformed id costs no database round trip.
       Store outcomes come back as StoreResult values and are mapped here.

Status mapping:
    ┌───────────┬──────────┬─────────────┬─────────────┬─────────────┐
    │ operation │ success  │ bad id      │ not found   │ other error │
    ├───────────┼──────────┼─────────────┼─────────────┼─────────────┤
    │ list      │ 200      │ -           │ -           │ 500         │
    │ get       │ 200      │ 400         │ 404         │ 500         │
    │ create    │ 201      │ -           │ -           │ 400         │
    │ replace   │ 200      │ 400         │ 404         │ 400         │
    │ patch     │ 200      │ 400         │ 404         │ 400         │
    │ delete    │ 204      │ 400         │ 404         │ 400         │
    └───────────┴──────────┴─────────────┴─────────────┴─────────────┘

Error bodies are short plain-text messages. The StoreResult detail (driver
message, constraint name) is logged and never returned.
"""

import logging
import re
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Path, Response, status
from fastapi.responses import PlainTextResponse

from catalog.exceptions import INVALID_ID_MESSAGE, InvalidIdentifierError
from catalog.middleware.request_id import request_id_var
from catalog.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from catalog.services.product_store import (
    ProductStore,
    StoreOutcome,
    StoreResult,
    get_product_store,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])

NOT_FOUND_MESSAGE = "Product not found"

# Client-facing failure text per operation; also used by the request
# validation handler in main.py so a bad body reads the same as a store
# rejection.
FAILURE_MESSAGES: Dict[str, str] = {
    "list": "Error retrieving products",
    "get": "Error retrieving product",
    "create": "Error creating product",
    "replace": "Error updating product",
    "update": "Error modifying product",
    "delete": "Error deleting product",
}

_INTEGER = re.compile(r"^[+-]?\d+$")


def _plain(description: str) -> Dict[str, Any]:
    """OpenAPI response entry for a plain-text error body."""
    return {
        "description": description,
        "content": {"text/plain": {"schema": {"type": "string", "example": description}}},
    }


def parse_product_id(raw: str) -> int:
    """
    Parse the `{id}` path segment.

    Accepts an optionally signed run of digits ("12", "+12", "-3"),
    surrounding whitespace ignored. Anything else ("abc", "1.5", "1e3",
    "") raises InvalidIdentifierError, which main.py maps to 400.

    Any size of integer is accepted here. One beyond the column range is a
    well-formed id that matches nothing, and the store answers NOT_FOUND
    for it without querying.
    """
    candidate = raw.strip()
    if not _INTEGER.match(candidate):
        raise InvalidIdentifierError(raw)
    return int(candidate)


async def path_product_id(
    id: str = Path(
        description="The product ID",
        json_schema_extra={"type": "integer"},
    ),
) -> int:
    return parse_product_id(id)


def _failure(result: StoreResult, operation: str, status_code: int) -> PlainTextResponse:
    """Map a non-OK StoreResult to its plain-text response."""
    if result.outcome is StoreOutcome.NOT_FOUND:
        return PlainTextResponse(NOT_FOUND_MESSAGE, status_code=status.HTTP_404_NOT_FOUND)

    message = FAILURE_MESSAGES[operation]
    logger.warning(
        "[%s] %s -> %d (%s): %s",
        request_id_var.get(""),
        operation,
        status_code,
        result.outcome.value,
        result.detail,
    )
    return PlainTextResponse(message, status_code=status_code)


# ══════════════════════════════════════════════════════════════════════════
# Collection
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "",
    response_model=List[ProductResponse],
    responses={500: _plain(FAILURE_MESSAGES["list"])},
    summary="Get all products",
    description="Returns every product in the catalog, ordered by id. An empty catalog returns [].",
)
async def list_products(store: ProductStore = Depends(get_product_store)):
    result = await store.list_all()
    if not result.ok:
        return _failure(result, "list", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return result.value


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ProductResponse,
    responses={400: _plain(FAILURE_MESSAGES["create"])},
    summary="Create a new product",
    description=(
        "Creates a product from a full representation. When `id` is omitted the "
        "next free id is assigned; a duplicate `id` is rejected with 400."
    ),
)
async def create_product(
    payload: ProductCreate,
    store: ProductStore = Depends(get_product_store),
):
    result = await store.create(payload)
    if not result.ok:
        return _failure(result, "create", status.HTTP_400_BAD_REQUEST)
    return result.value


# ══════════════════════════════════════════════════════════════════════════
# Single product
# ══════════════════════════════════════════════════════════════════════════


@router.get(
    "/{id}",
    response_model=ProductResponse,
    responses={
        400: _plain(INVALID_ID_MESSAGE),
        404: _plain(NOT_FOUND_MESSAGE),
        500: _plain(FAILURE_MESSAGES["get"]),
    },
    summary="Get a product by ID",
)
async def get_product(
    product_id: int = Depends(path_product_id),
    store: ProductStore = Depends(get_product_store),
):
    result = await store.find(product_id)
    if not result.ok:
        return _failure(result, "get", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return result.value


@router.put(
    "/{id}",
    response_model=ProductResponse,
    responses={
        400: _plain(FAILURE_MESSAGES["replace"]),
        404: _plain(NOT_FOUND_MESSAGE),
    },
    summary="Update an existing product",
    description=(
        "Replaces every field of the product. The path id is kept unless the "
        "body supplies a different `id`."
    ),
)
async def replace_product(
    payload: ProductCreate,
    product_id: int = Depends(path_product_id),
    store: ProductStore = Depends(get_product_store),
):
    result = await store.replace(product_id, payload)
    if not result.ok:
        return _failure(result, "replace", status.HTTP_400_BAD_REQUEST)
    return result.value


@router.patch(
    "/{id}",
    response_model=ProductResponse,
    responses={
        400: _plain(FAILURE_MESSAGES["update"]),
        404: _plain(NOT_FOUND_MESSAGE),
    },
    summary="Modify some fields of a product",
    description="Applies only the supplied fields; the result is re-validated as a whole.",
)
async def update_product(
    changes: ProductUpdate,
    product_id: int = Depends(path_product_id),
    store: ProductStore = Depends(get_product_store),
):
    result = await store.update(product_id, changes)
    if not result.ok:
        return _failure(result, "update", status.HTTP_400_BAD_REQUEST)
    return result.value


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={
        400: _plain(FAILURE_MESSAGES["delete"]),
        404: _plain(NOT_FOUND_MESSAGE),
    },
    summary="Delete a product by ID",
)
async def delete_product(
    product_id: int = Depends(path_product_id),
    store: ProductStore = Depends(get_product_store),
) -> Response:
    result = await store.delete(product_id)
    if not result.ok:
        return _failure(result, "delete", status.HTTP_400_BAD_REQUEST)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
