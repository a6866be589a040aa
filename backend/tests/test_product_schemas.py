"""
Catalog Backend — Schema & Identifier Parsing Tests
===================================================

What:  Validation rules that run before any route or store code.
"""

import pytest
from pydantic import ValidationError

from catalog.exceptions import InvalidIdentifierError
from catalog.routes.products import parse_product_id
from catalog.schemas.product import (
    PRODUCT_ID_MAX,
    PRODUCT_ID_MIN,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)


class TestParseProductId:

    @pytest.mark.parametrize("raw, expected", [("1", 1), ("42", 42), (" 7 ", 7), ("+3", 3), ("007", 7)])
    def test_accepts_integers(self, raw, expected):
        assert parse_product_id(raw) == expected

    @pytest.mark.parametrize("raw", ["", "abc", "1.5", "1e3", "12abc", "0x10", " "])
    def test_rejects_everything_else(self, raw):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            parse_product_id(raw)

        assert exc_info.value.status_code == 400
        assert exc_info.value.raw_id == raw


class TestProductCreate:

    def test_id_optional(self, product_payload):
        assert ProductCreate(**product_payload).id is None

    def test_numeric_string_id_coerced(self, product_payload):
        assert ProductCreate(**product_payload, id="12").id == 12

    def test_fractional_id_rejected(self, product_payload):
        with pytest.raises(ValidationError):
            ProductCreate(**product_payload, id=1.5)

    def test_unknown_fields_ignored(self, product_payload):
        product = ProductCreate(**product_payload, rating=5)

        assert "rating" not in product.model_dump()


class TestProductUpdate:

    def test_tracks_only_sent_fields(self):
        changes = ProductUpdate(price=99)

        assert changes.model_dump(exclude_unset=True) == {"price": 99}

    @pytest.mark.parametrize("field", ["id", "title", "price", "description", "category", "image"])
    def test_explicit_null_rejected(self, field):
        with pytest.raises(ValidationError):
            ProductUpdate(**{field: None})

    def test_empty_string_rejected(self):
        with pytest.raises(ValidationError):
            ProductUpdate(category="")


class TestIdBounds:

    @pytest.mark.parametrize("product_id", [PRODUCT_ID_MAX + 1, PRODUCT_ID_MIN - 1, 10**20])
    def test_create_rejects_ids_beyond_the_column(self, product_payload, product_id):
        with pytest.raises(ValidationError):
            ProductCreate(**product_payload, id=product_id)

    def test_update_rejects_ids_beyond_the_column(self):
        with pytest.raises(ValidationError):
            ProductUpdate(id=PRODUCT_ID_MAX + 1)

    def test_bounds_are_inclusive(self, product_payload):
        assert ProductCreate(**product_payload, id=PRODUCT_ID_MAX).id == PRODUCT_ID_MAX
        assert ProductCreate(**product_payload, id=PRODUCT_ID_MIN).id == PRODUCT_ID_MIN


class TestPrice:

    @pytest.mark.parametrize("raw, expected", [(150, 150), (150.0, 150), (19.99, 19.99)])
    def test_integral_values_become_int(self, product_payload, raw, expected):
        price = ProductResponse(**{**product_payload, "price": raw}, id=1).price

        assert price == expected
        assert isinstance(price, int) == float(expected).is_integer()
