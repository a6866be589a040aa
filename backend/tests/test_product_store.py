"""
Catalog Backend — Product Store Tests
=====================================

What:  Tests for ProductStore against a real (in-memory SQLite) database.
Why:   The store decides every outcome the routes map: id assignment,
       uniqueness, merge semantics, and how database errors are reported.
How:   The `store` fixture gives each test a fresh empty database; the
       broken-store tests point an engine at a path SQLite cannot open.

What we test:
    ✅ id assignment when omitted, explicit ids honoured
    ✅ Duplicate id → CONFLICT, nothing written
    ✅ replace/update semantics, including re-keying
    ✅ Merged updates are re-validated → INVALID
    ✅ delete returns the deleted product, second delete → NOT_FOUND
    ✅ Unreachable database → FAILURE results and a failed ping
    ✅ Concurrent id-less creates never collide
    ✅ Ids outside the column range → NOT_FOUND, never a driver error
"""

import asyncio

import pytest

from catalog.schemas.product import (
    PRODUCT_ID_MAX,
    PRODUCT_ID_MIN,
    ProductCreate,
    ProductUpdate,
)
from catalog.services.product_store import ProductStore, StoreOutcome


def _create(payload, **overrides):
    return ProductCreate(**{**payload, **overrides})


class TestCreateAndFind:

    @pytest.mark.asyncio
    async def test_empty_store_lists_nothing(self, store):
        result = await store.list_all()

        assert result.ok
        assert result.value == []

    @pytest.mark.asyncio
    async def test_ids_assigned_sequentially(self, store, product_payload):
        first = await store.create(_create(product_payload))
        second = await store.create(_create(product_payload, title="Wool Coat"))

        assert first.value.id == 1
        assert second.value.id == 2

    @pytest.mark.asyncio
    async def test_assigned_id_follows_highest_existing(self, store, product_payload):
        await store.create(_create(product_payload, id=10))

        result = await store.create(_create(product_payload))

        assert result.value.id == 11

    @pytest.mark.asyncio
    async def test_find_returns_created_fields(self, store, product_payload):
        await store.create(_create(product_payload, id=5))

        result = await store.find(5)

        assert result.ok
        assert result.value.model_dump() == {**product_payload, "id": 5}

    @pytest.mark.asyncio
    async def test_find_absent(self, store):
        result = await store.find(999)

        assert result.outcome is StoreOutcome.NOT_FOUND
        assert result.value is None

    @pytest.mark.asyncio
    async def test_duplicate_id_is_conflict(self, store, product_payload):
        await store.create(_create(product_payload, id=1))

        result = await store.create(_create(product_payload, id=1, title="Other"))

        assert result.outcome is StoreOutcome.CONFLICT
        listed = await store.list_all()
        assert [p.title for p in listed.value] == ["Leather Jacket"]

    @pytest.mark.asyncio
    async def test_list_ordered_by_id(self, store, product_payload):
        for product_id in (3, 1, 2):
            await store.create(_create(product_payload, id=product_id))

        result = await store.list_all()

        assert [p.id for p in result.value] == [1, 2, 3]


class TestReplace:

    @pytest.mark.asyncio
    async def test_overwrites_every_field_and_keeps_id(self, store, product_payload):
        await store.create(_create(product_payload, id=1))
        replacement = {
            "title": "Denim Jacket",
            "price": 80,
            "description": "Washed denim",
            "category": "fashion",
            "image": "http://example.com/denim.png",
        }

        result = await store.replace(1, ProductCreate(**replacement))

        assert result.ok
        assert result.value.model_dump() == {**replacement, "id": 1}

    @pytest.mark.asyncio
    async def test_body_id_rekeys_product(self, store, product_payload):
        await store.create(_create(product_payload, id=1))

        result = await store.replace(1, _create(product_payload, id=42))

        assert result.value.id == 42
        assert (await store.find(1)).outcome is StoreOutcome.NOT_FOUND
        assert (await store.find(42)).ok

    @pytest.mark.asyncio
    async def test_rekey_onto_existing_id_is_conflict(self, store, product_payload):
        await store.create(_create(product_payload, id=1))
        await store.create(_create(product_payload, id=2, title="Second"))

        result = await store.replace(1, _create(product_payload, id=2, title="Clash"))

        assert result.outcome is StoreOutcome.CONFLICT
        # Rolled back: both products unchanged
        assert (await store.find(1)).value.title == "Leather Jacket"
        assert (await store.find(2)).value.title == "Second"

    @pytest.mark.asyncio
    async def test_absent(self, store, product_payload):
        result = await store.replace(7, _create(product_payload))

        assert result.outcome is StoreOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_repeating_is_idempotent(self, store, product_payload):
        await store.create(_create(product_payload, id=1))
        replacement = _create(product_payload, price=120)

        first = await store.replace(1, replacement)
        second = await store.replace(1, replacement)

        assert first.value == second.value
        assert (await store.find(1)).value == second.value


class TestUpdate:

    @pytest.mark.asyncio
    async def test_merges_only_sent_fields(self, store, product_payload):
        await store.create(_create(product_payload, id=1))

        result = await store.update(1, ProductUpdate(price=99))

        assert result.ok
        assert result.value.model_dump() == {**product_payload, "id": 1, "price": 99}

    @pytest.mark.asyncio
    async def test_empty_update_leaves_product_unchanged(self, store, product_payload):
        await store.create(_create(product_payload, id=1))

        result = await store.update(1, ProductUpdate())

        assert result.ok
        assert result.value.model_dump() == {**product_payload, "id": 1}

    @pytest.mark.asyncio
    async def test_absent(self, store):
        result = await store.update(1, ProductUpdate(price=99))

        assert result.outcome is StoreOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_merged_record_is_revalidated(self, store, product_payload):
        await store.create(_create(product_payload, id=1))
        # model_construct skips field validation, so only the merge check can catch it
        changes = ProductUpdate.model_construct(title="")

        result = await store.update(1, changes)

        assert result.outcome is StoreOutcome.INVALID
        assert (await store.find(1)).value.title == "Leather Jacket"

    @pytest.mark.asyncio
    async def test_rekey_onto_existing_id_is_conflict(self, store, product_payload):
        await store.create(_create(product_payload, id=1))
        await store.create(_create(product_payload, id=2))

        result = await store.update(1, ProductUpdate(id=2))

        assert result.outcome is StoreOutcome.CONFLICT


class TestDelete:

    @pytest.mark.asyncio
    async def test_returns_deleted_product(self, store, product_payload):
        await store.create(_create(product_payload, id=1))

        result = await store.delete(1)

        assert result.ok
        assert result.value.id == 1
        assert (await store.find(1)).outcome is StoreOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_second_delete_is_not_found(self, store, product_payload):
        await store.create(_create(product_payload, id=1))
        await store.delete(1)

        result = await store.delete(1)

        assert result.outcome is StoreOutcome.NOT_FOUND


class TestUnreachableStore:
    """A database file SQLite cannot open stands in for a dead server."""

    @pytest.fixture
    def broken_store(self, tmp_path):
        return ProductStore.from_url(f"sqlite+aiosqlite:///{tmp_path}/missing-dir/catalog.db")

    @pytest.mark.asyncio
    async def test_ping_fails(self, broken_store):
        assert await broken_store.ping() is False

    @pytest.mark.asyncio
    async def test_reads_report_failure(self, broken_store):
        result = await broken_store.list_all()

        assert result.outcome is StoreOutcome.FAILURE
        assert result.detail

    @pytest.mark.asyncio
    async def test_writes_report_failure(self, broken_store, product_payload):
        result = await broken_store.create(_create(product_payload))

        assert result.outcome is StoreOutcome.FAILURE

    @pytest.mark.asyncio
    async def test_ping_succeeds_on_working_store(self, store):
        assert await store.ping() is True


class TestAssignedIds:

    @pytest.mark.asyncio
    async def test_concurrent_idless_creates_get_distinct_ids(self, store, product_payload):
        results = await asyncio.gather(
            *(store.create(_create(product_payload)) for _ in range(10))
        )

        assert all(r.ok for r in results)
        assert sorted(r.value.id for r in results) == list(range(1, 11))

    @pytest.mark.asyncio
    async def test_concurrent_idless_creates_on_file_database(self, tmp_path, product_payload):
        file_store = ProductStore.from_url(f"sqlite+aiosqlite:///{tmp_path}/catalog.db")
        await file_store.create_schema()
        try:
            results = await asyncio.gather(
                *(file_store.create(_create(product_payload)) for _ in range(10))
            )
        finally:
            await file_store.dispose()

        assert [r.outcome for r in results] == [StoreOutcome.OK] * 10
        assert len({r.value.id for r in results}) == 10

    @pytest.mark.asyncio
    async def test_exhausted_id_range_is_failure_and_writes_nothing(self, store, product_payload):
        await store.create(_create(product_payload, id=PRODUCT_ID_MAX))

        result = await store.create(_create(product_payload))

        assert result.outcome is StoreOutcome.FAILURE
        assert [p.id for p in (await store.list_all()).value] == [PRODUCT_ID_MAX]


class TestIdRange:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("product_id", [PRODUCT_ID_MAX + 1, PRODUCT_ID_MIN - 1, 10**20])
    async def test_out_of_range_ids_are_not_found(self, store, product_payload, product_id):
        assert (await store.find(product_id)).outcome is StoreOutcome.NOT_FOUND
        assert (await store.replace(product_id, _create(product_payload))).outcome is StoreOutcome.NOT_FOUND
        assert (await store.update(product_id, ProductUpdate(price=1))).outcome is StoreOutcome.NOT_FOUND
        assert (await store.delete(product_id)).outcome is StoreOutcome.NOT_FOUND

    @pytest.mark.asyncio
    async def test_boundary_id_is_usable(self, store, product_payload):
        created = await store.create(_create(product_payload, id=PRODUCT_ID_MAX))

        assert created.ok
        assert (await store.find(PRODUCT_ID_MAX)).ok


class TestPrice:

    @pytest.mark.asyncio
    async def test_integral_price_read_back_as_int(self, store, product_payload):
        await store.create(_create(product_payload, id=1))

        price = (await store.find(1)).value.price

        assert price == 150
        assert isinstance(price, int)
