"""
Catalog Backend — Product Store
===============================

What:  The only component that reads or writes Product rows.
Why:   Keeps persistence (sessions, transactions, driver errors) out of the
       route handlers.
How:   Every public operation opens its own session, runs one unit of work,
       commits or rolls back, and returns a StoreResult.
Who:   Built once at startup (ProductStore.from_url) and stored on
       `app.state.product_store`; routes receive it through get_product_store().

Result values instead of exceptions:
    Routes need to tell apart "not found", "bad data", "duplicate id" and
    "the database is unreachable". Rather than letting driver exceptions
    travel up the stack, the store catches them at its boundary and returns:

        StoreResult(outcome=OK,        value=...)
        StoreResult(outcome=NOT_FOUND, detail=...)
        StoreResult(outcome=INVALID,   detail=...)   re-validation failed
        StoreResult(outcome=CONFLICT,  detail=...)   unique id violated
        StoreResult(outcome=FAILURE,   detail=...)   anything else

    `detail` is for logs only and must never be sent to a client.

Concurrency:
    The store holds no per-request state. Atomicity of a single update and
    id uniqueness come from the database (one transaction per call, UNIQUE
    index on products.id). An assigned id is computed by the INSERT itself;
    id-less creates also queue on a per-store asyncio.Lock, and on
    PostgreSQL on a table lock, so concurrent ones never race for the same
    id. Nothing is retried.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import (
    AsyncGenerator,
    Awaitable,
    Callable,
    Generic,
    List,
    Optional,
    TypeVar,
)

from fastapi import Request
from pydantic import ValidationError
from sqlalchemy import func, insert, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from catalog.database import Base, build_session_factory, create_engine_for_url
from catalog.models.product import Product
from catalog.schemas.product import (
    PRODUCT_ID_MAX,
    PRODUCT_ID_MIN,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StoreOutcome(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    CONFLICT = "conflict"
    FAILURE = "failure"


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    """Outcome of one store operation, inspected by the routes."""

    outcome: StoreOutcome
    value: Optional[T] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is StoreOutcome.OK

    @classmethod
    def success(cls, value: T) -> "StoreResult[T]":
        return cls(StoreOutcome.OK, value=value)

    @classmethod
    def not_found(cls, product_id: int) -> "StoreResult[T]":
        return cls(StoreOutcome.NOT_FOUND, detail=f"no product with id {product_id}")

    @classmethod
    def invalid(cls, detail: str) -> "StoreResult[T]":
        return cls(StoreOutcome.INVALID, detail=detail)

    @classmethod
    def conflict(cls, detail: str) -> "StoreResult[T]":
        return cls(StoreOutcome.CONFLICT, detail=detail)

    @classmethod
    def failure(cls, detail: str) -> "StoreResult[T]":
        return cls(StoreOutcome.FAILURE, detail=detail)


class ProductStore:
    """
    Async CRUD over the `products` table, keyed by the application-level id.

    Operations:
        list_all()               → OK([...]) ordered by id
        find(id)                 → OK | NOT_FOUND
        create(payload)          → OK | CONFLICT | INVALID
        replace(id, payload)     → OK | NOT_FOUND | CONFLICT | INVALID
        update(id, changes)      → OK | NOT_FOUND | CONFLICT | INVALID
        delete(id)               → OK(deleted product) | NOT_FOUND
    Any of them may return FAILURE when the database misbehaves.
    """

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_factory = build_session_factory(engine)
        # Serializes id-less creates issued through this store
        self._id_lock = asyncio.Lock()

    @classmethod
    def from_url(cls, database_url: str) -> "ProductStore":
        """Build a store with its own engine for `database_url`."""
        return cls(create_engine_for_url(database_url))

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def create_schema(self) -> None:
        """Create the products table if it does not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close every pooled connection. Called on application shutdown."""
        await self._engine.dispose()

    async def ping(self) -> bool:
        """Lightweight connectivity probe for the health endpoint."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Store ping failed: %s", str(e))
            return False

    # ── Operations ────────────────────────────────────────────────────────

    async def list_all(self) -> StoreResult[List[ProductResponse]]:
        async def work(session: AsyncSession) -> StoreResult[List[ProductResponse]]:
            rows = await session.execute(select(Product).order_by(Product.id))
            products = [ProductResponse.model_validate(p) for p in rows.scalars().all()]
            return StoreResult.success(products)

        return await self._run("list products", work)

    async def find(self, product_id: int) -> StoreResult[ProductResponse]:
        async def work(session: AsyncSession) -> StoreResult[ProductResponse]:
            product = await self._get(session, product_id)
            if product is None:
                return StoreResult.not_found(product_id)
            return StoreResult.success(ProductResponse.model_validate(product))

        return await self._run("find product", work)

    async def create(self, payload: ProductCreate) -> StoreResult[ProductResponse]:
        """
        Insert a product, assigning max(id) + 1 when the payload has no id.

        The assigned id is computed inside the INSERT itself, so two
        id-less creates can never both pick the same value. Only a
        client-chosen id can collide (CONFLICT).
        """

        async def work(session: AsyncSession) -> StoreResult[ProductResponse]:
            if payload.id is None:
                product = await self._insert_with_next_id(session, payload)
            else:
                product = Product(**payload.model_dump())
                session.add(product)
                # Flush so a duplicate id surfaces as IntegrityError here
                await session.flush()
            logger.info("Product %d created", product.id)
            return StoreResult.success(ProductResponse.model_validate(product))

        if payload.id is not None:
            return await self._run("create product", work)
        async with self._id_lock:
            return await self._run("create product", work)

    async def replace(
        self, product_id: int, payload: ProductCreate
    ) -> StoreResult[ProductResponse]:
        """Overwrite every field; the path id is kept when the body has none."""

        async def work(session: AsyncSession) -> StoreResult[ProductResponse]:
            product = await self._get(session, product_id)
            if product is None:
                return StoreResult.not_found(product_id)
            self._apply(product, payload, fallback_id=product_id)
            await session.flush()
            logger.info("Product %d replaced", product_id)
            return StoreResult.success(ProductResponse.model_validate(product))

        return await self._run("replace product", work)

    async def update(
        self, product_id: int, changes: ProductUpdate
    ) -> StoreResult[ProductResponse]:
        """
        Merge the fields the client sent onto the stored product.

        The merged record is validated against the full create schema
        before anything is written, so a partial update can never leave a
        product that a full replace would have rejected.
        """

        async def work(session: AsyncSession) -> StoreResult[ProductResponse]:
            product = await self._get(session, product_id)
            if product is None:
                return StoreResult.not_found(product_id)
            merged = ProductResponse.model_validate(product).model_dump()
            merged.update(changes.model_dump(exclude_unset=True))
            self._apply(product, ProductCreate.model_validate(merged), fallback_id=product_id)
            await session.flush()
            logger.info(
                "Product %d updated (%s)",
                product_id,
                ", ".join(sorted(changes.model_fields_set)) or "no fields",
            )
            return StoreResult.success(ProductResponse.model_validate(product))

        return await self._run("update product", work)

    async def delete(self, product_id: int) -> StoreResult[ProductResponse]:
        async def work(session: AsyncSession) -> StoreResult[ProductResponse]:
            product = await self._get(session, product_id)
            if product is None:
                return StoreResult.not_found(product_id)
            deleted = ProductResponse.model_validate(product)
            await session.delete(product)
            await session.flush()
            logger.info("Product %d deleted", product_id)
            return StoreResult.success(deleted)

        return await self._run("delete product", work)

    # ── Internals ─────────────────────────────────────────────────────────

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        One session per operation: commit on success, roll back on error.

        Same contract as a per-request session dependency, scoped to a
        single store call instead of a whole request.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _run(
        self,
        action: str,
        work: Callable[[AsyncSession], Awaitable[StoreResult[T]]],
    ) -> StoreResult[T]:
        """Run `work` in a transaction and turn store errors into results."""
        try:
            async with self._session() as session:
                return await work(session)
        except IntegrityError as e:
            logger.warning("Could not %s: constraint violated: %s", action, e.orig)
            return StoreResult.conflict(f"{action}: {e.orig}")
        except ValidationError as e:
            logger.warning("Could not %s: %d validation error(s)", action, e.error_count())
            return StoreResult.invalid(f"{action}: {e}")
        except (SQLAlchemyError, OSError, OverflowError) as e:
            logger.error("Could not %s: %s", action, str(e), exc_info=True)
            return StoreResult.failure(f"{action}: {type(e).__name__}: {e}")

    @staticmethod
    async def _get(session: AsyncSession, product_id: int) -> Optional[Product]:
        # No stored row can carry an id the column cannot hold
        if not PRODUCT_ID_MIN <= product_id <= PRODUCT_ID_MAX:
            return None
        result = await session.execute(select(Product).where(Product.id == product_id))
        return result.scalar_one_or_none()

    async def _insert_with_next_id(
        self, session: AsyncSession, payload: ProductCreate
    ) -> Product:
        """INSERT ... VALUES ((SELECT coalesce(max(id), 0) + 1 ...), ...)."""
        if self._engine.dialect.name == "postgresql":
            # Other workers' id-less creates wait until this transaction ends
            await session.execute(text("LOCK TABLE products IN SHARE ROW EXCLUSIVE MODE"))

        table = Product.__table__
        next_id = select(func.coalesce(func.max(table.c.id), 0) + 1).scalar_subquery()
        result = await session.execute(
            insert(table)
            .values(id=next_id, **payload.model_dump(exclude={"id"}))
            .returning(table.c.id)
        )
        product_id = result.scalar_one()
        if product_id > PRODUCT_ID_MAX:
            raise OverflowError(f"next product id {product_id} exceeds {PRODUCT_ID_MAX}")
        return await self._get(session, product_id)

    @staticmethod
    def _apply(product: Product, payload: ProductCreate, fallback_id: int) -> None:
        product.id = payload.id if payload.id is not None else fallback_id
        product.title = payload.title
        product.price = payload.price
        product.description = payload.description
        product.category = payload.category
        product.image = payload.image


# ── Dependency ────────────────────────────────────────────────────────────
def get_product_store(request: Request) -> ProductStore:
    """
    FastAPI dependency returning the store the app was built with.

    Usage in a route:
        @router.get("")
        async def list_products(store: ProductStore = Depends(get_product_store)):
            ...
    """
    return request.app.state.product_store
