"""
Catalog Backend — FastAPI Application Factory
=============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes the store wiring, middleware, exception handlers, docs
       and route mounting in one place.
How:   create_app(store) returns a configured FastAPI instance. The store is
       built here (or handed in by tests) and kept on app.state; routes get
       it through the get_product_store dependency.
Who:   uvicorn (uvicorn catalog.main:app) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware: RequestID → Logging → GZip → CORS      │
    │  (+ RateLimit first when rate_limit_enabled)        │
    │                                                     │
    │  Routes:                                            │
    │    /products, /products/{id}    (Products)          │
    │    /health                      (Health)            │
    │    /docs (ReDoc), /docs/spec (OpenAPI JSON),        │
    │    /docs/swagger (Swagger UI)                       │
    │                                                     │
    │  Exception Handlers (plain-text bodies):            │
    │    InvalidIdentifierError → 400                     │
    │    RequestValidationError → 400                     │
    │    CatalogError / Exception → 500                   │
    │                                                     │
    │  app.state.product_store → ProductStore             │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, create the products table, log registered routes
    Shutdown: dispose the store's engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from catalog import __version__
from catalog.config import settings
from catalog.exceptions import CatalogError, InvalidIdentifierError
from catalog.middleware.logging import RequestLoggingMiddleware
from catalog.middleware.rate_limit import RateLimitMiddleware
from catalog.middleware.request_id import RequestIDMiddleware, request_id_var
from catalog.routes import health, products
from catalog.routes.products import FAILURE_MESSAGES
from catalog.services.product_store import ProductStore

logger = logging.getLogger(__name__)

API_TITLE = "Product API Documentation"
API_DESCRIPTION = "API for managing products in a catalog"

# A body that fails schema validation answers like the store rejecting it
VALIDATION_MESSAGES = {
    "POST": FAILURE_MESSAGES["create"],
    "PUT": FAILURE_MESSAGES["replace"],
    "PATCH": FAILURE_MESSAGES["update"],
}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s on stdout.
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def describe_routes(app: FastAPI) -> List[str]:
    """
    Registered routes as "METHODS path" lines, e.g. "GET,HEAD /docs".

    Logged at startup so a missing docs or products mount shows up
    immediately instead of as a 404 later.
    """
    lines = []
    for route in app.routes:
        methods = ",".join(sorted(getattr(route, "methods", None) or []))
        lines.append(f"{methods} {route.path}".strip())
    return lines


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Catalog backend %s starting up...", __version__)

    store: ProductStore = app.state.product_store

    if settings.create_tables_on_startup:
        try:
            await store.create_schema()
            logger.info("Products table ready")
        except (SQLAlchemyError, OSError) as e:
            # Keep serving: /health reports the store as disconnected and
            # product routes answer with their failure status
            logger.error("Could not create products table: %s", str(e))

    logger.info("Registered routes:")
    for line in describe_routes(app):
        logger.info("  %s", line)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Catalog backend shutting down...")
    await store.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions that never reached the store to plain-text responses.

        InvalidIdentifierError → 400 "Invalid product ID"
        RequestValidationError → 400 with the operation's failure message
        CatalogError (base)    → 500
        Exception (fallback)   → 500

    Handlers NEVER put internal details in the body; those are logged.
    """

    @app.exception_handler(InvalidIdentifierError)
    async def handle_invalid_identifier(request: Request, exc: InvalidIdentifierError):
        rid = request_id_var.get("")
        logger.info("[%s] Rejected product id %r", rid, exc.raw_id)
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Body failed schema validation (or was not JSON): 400, not 422."""
        rid = request_id_var.get("")
        logger.warning(
            "[%s] %s %s payload rejected: %s",
            rid,
            request.method,
            request.url.path,
            exc.errors(),
        )
        message = VALIDATION_MESSAGES.get(request.method, "Invalid request")
        return PlainTextResponse(message, status_code=400)

    @app.exception_handler(CatalogError)
    async def handle_catalog_error(request: Request, exc: CatalogError):
        rid = request_id_var.get("")
        logger.error("[%s] %s | Context: %s", rid, exc.message, exc.context)
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return PlainTextResponse("Internal server error", status_code=500)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(store: Optional[ProductStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: The product store to serve. When omitted one is built from
               settings.database_url. Tests pass a store bound to an
               in-memory database or a mock.
    """
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=__version__,
        servers=[{"url": settings.public_url, "description": "Development server"}],
        openapi_url="/docs/spec",     # machine-readable schema
        redoc_url="/docs",            # rendered view of /docs/spec
        docs_url="/docs/swagger",     # interactive view
        lifespan=lifespan,
    )

    app.state.product_store = (
        store if store is not None else ProductStore.from_url(settings.database_url)
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in REVERSE order of addition:
    # RateLimit (when enabled) → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    if settings.rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(products.router)
    app.include_router(health.router)

    return app


# uvicorn expects `catalog.main:app` to be importable
app = create_app()
