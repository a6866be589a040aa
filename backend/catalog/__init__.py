"""
Catalog Backend — Application Package Initializer
=================================================

What: Marks the `catalog` directory as a Python package.
Why:  Enables module imports like `from catalog.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The service follows the same layered split as every route we ship:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← parse id, pick status code
    ├─────────────────────────────────────┤
    │        Services (Product Store)     │  ← returns StoreResult values
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async engine + sessions
    └─────────────────────────────────────┘

    Routes never touch a session directly. They receive a ProductStore that
    was built once at startup and stored on `app.state`.
"""

__version__ = "1.0.0"
