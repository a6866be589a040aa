"""
Catalog Backend — Pydantic Request/Response Schemas
===================================================

What:  Pydantic models defining the API contract for the product resource.
Why:   Strict input validation, automatic serialization, and OpenAPI doc generation.
How:   FastAPI validates request bodies against these models and derives the
       component schemas in /docs/spec from them.

Payload shapes:
    ProductCreate    → POST /products, PUT /products/{id}
                       all five fields required, `id` optional
    ProductUpdate    → PATCH /products/{id}
                       every field optional, but an explicit null is rejected
    ProductResponse  → every successful product response

Schemas are separate from the SQLAlchemy model so the internal `pk`
column can never leak into a response.

Ids are limited to the range of the 32-bit INTEGER column. A body id
outside it fails validation like any other bad field.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_validator


# Range of the 32-bit INTEGER column behind products.id
PRODUCT_ID_MIN = -(2**31)
PRODUCT_ID_MAX = 2**31 - 1

Price = Union[int, float]

PRODUCT_EXAMPLE = {
    "id": 1,
    "title": "Leather Jacket",
    "price": 150,
    "description": "High quality leather jacket",
    "category": "fashion",
    "image": "http://example.com/jacket.png",
}


class ProductFields(BaseModel):
    """The five required product fields, shared by create/replace and responses."""

    title: str = Field(min_length=1, description="The name of the product")
    price: Price = Field(description="The price of the product")
    description: str = Field(min_length=1, description="Product description")
    category: str = Field(min_length=1, description="Product category")
    image: str = Field(min_length=1, description="Product image URL")

    @field_validator("price")
    @classmethod
    def integral_price_as_int(cls, v: Price) -> Price:
        # The column stores floats; 150.0 read back is echoed as 150
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v


class ProductCreate(ProductFields):
    """
    Full product representation sent by clients.

    `id` is optional; when present it is coerced to an integer
    ("7" → 7) and a value that is not integral fails validation.
    When absent, the store assigns the next free id.
    """

    id: Optional[int] = Field(
        default=None,
        ge=PRODUCT_ID_MIN,
        le=PRODUCT_ID_MAX,
        description="Application-level product ID (assigned when omitted)",
    )

    model_config = {"json_schema_extra": {"example": PRODUCT_EXAMPLE}}


class ProductUpdate(BaseModel):
    """
    Partial product representation for PATCH.

    Only the fields the client sends are applied. Sending a field as null is
    an error: every stored product must keep all required fields.
    """

    id: Optional[int] = Field(
        default=None,
        ge=PRODUCT_ID_MIN,
        le=PRODUCT_ID_MAX,
        description="New application-level product ID",
    )
    title: Optional[str] = Field(default=None, min_length=1)
    price: Optional[Price] = None
    description: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = Field(default=None, min_length=1)
    image: Optional[str] = Field(default=None, min_length=1)

    model_config = {"json_schema_extra": {"example": {"price": 99}}}

    @field_validator("*")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        # Defaults are not validated, so this only fires for an explicit null
        if v is None:
            raise ValueError("field may be omitted but not set to null")
        return v


class ProductResponse(ProductFields):
    """What the API returns for a stored product."""

    id: int = Field(description="Application-level product ID")

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {"example": PRODUCT_EXAMPLE},
    }


class HealthResponse(BaseModel):
    """Health check response showing service and store status."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Store connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
