"""
Catalog Backend — Database Engine & Session Factory
===================================================

What:  Async SQLAlchemy engine construction, session factory and ORM base.
Why:   Centralizes all connection logic in one place.
How:   `create_engine_for_url()` picks pool options that suit the backend
       (QueuePool sizing for PostgreSQL, StaticPool for in-memory SQLite),
       `build_session_factory()` wraps the engine in an async_sessionmaker.
Who:   Called by ProductStore.from_url() at application startup and by the
       test fixtures.

Unlike a module-level engine, nothing here runs on import: the engine is
built explicitly and owned by the ProductStore that the app is handed.
"""

from typing import Any, Dict

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from catalog.config import settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object so `Base.metadata.create_all` can build
    the whole schema at startup.
    """
    pass


def _is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def create_engine_for_url(url: str, **overrides: Any) -> AsyncEngine:
    """
    Create an async engine with pool options appropriate for the URL.

    PostgreSQL (asyncpg):
        pool_size / max_overflow from settings, pool_recycle=3600 so
        long-lived connections are refreshed, pool_pre_ping to catch
        connections dropped by a database restart.

    SQLite (aiosqlite):
        No pool sizing (the dialect rejects it). An in-memory database uses
        StaticPool so every session sees the same connection, otherwise each
        connection would get its own empty database.
    """
    options: Dict[str, Any] = {"echo": settings.db_echo}

    if make_url(url).get_backend_name() == "sqlite":
        if _is_memory_sqlite(url):
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )

    options.update(overrides)
    return create_async_engine(url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory bound to `engine`.

    expire_on_commit=False keeps attribute values readable after commit, so
    a store operation can build its response from the ORM object without a
    second round trip.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
