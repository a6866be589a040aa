"""
Catalog Backend — Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (stores, API clients, payloads).

Fixture Hierarchy (all function-scoped, fresh for each test):
    ├── product_payload: the Leather Jacket create body
    ├── mock_store:      AsyncMock standing in for ProductStore (no database)
    ├── store:           real ProductStore on an in-memory SQLite database
    ├── mock_client:     HTTPX client for an app serving mock_store
    └── api_client:      HTTPX client for an app serving store
"""

import os

# Override settings for testing BEFORE any catalog imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from catalog.main import create_app
from catalog.services.product_store import ProductStore


@pytest.fixture
def product_payload():
    """Body of a valid create request (no id, the store assigns one)."""
    return {
        "title": "Leather Jacket",
        "price": 150,
        "description": "High quality leather jacket",
        "category": "fashion",
        "image": "http://example.com/jacket.png",
    }


@pytest.fixture
def mock_store():
    """
    A ProductStore double.

    AsyncMock(spec=...) turns every async method into an AsyncMock, so a
    test sets e.g. `mock_store.find.return_value = StoreResult.success(...)`
    and can assert the store was never awaited for a malformed id.
    """
    return AsyncMock(spec=ProductStore)


@pytest_asyncio.fixture
async def store():
    """
    A real ProductStore backed by a private in-memory SQLite database.

    The engine uses StaticPool, so every session shares the single
    connection that holds the database.
    """
    product_store = ProductStore.from_url("sqlite+aiosqlite:///:memory:")
    await product_store.create_schema()
    yield product_store
    await product_store.dispose()


def _client_for(product_store) -> AsyncClient:
    app = create_app(store=product_store)
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest_asyncio.fixture
async def mock_client(mock_store):
    """HTTP client for an app whose store is mock_store."""
    client = _client_for(mock_store)
    async with client:
        yield client


@pytest_asyncio.fixture
async def api_client(store):
    """HTTP client for an app backed by the in-memory store."""
    client = _client_for(store)
    async with client:
        yield client
