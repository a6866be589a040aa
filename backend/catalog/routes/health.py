"""
Catalog Backend — Health Check Route
====================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings the product store with SELECT 1 and reports uptime.

Status levels:
    - healthy:   store reachable
    - unhealthy: store unreachable (still HTTP 200 so probes can read the body)
"""

import logging
import time

from fastapi import APIRouter, Depends

from catalog import __version__
from catalog.schemas.product import HealthResponse
from catalog.services.product_store import ProductStore, get_product_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Reports whether the product store is reachable, plus version and uptime.",
)
async def health_check(store: ProductStore = Depends(get_product_store)) -> HealthResponse:
    reachable = await store.ping()
    if not reachable:
        logger.warning("Health check: product store unreachable")

    return HealthResponse(
        status="healthy" if reachable else "unhealthy",
        version=__version__,
        database="connected" if reachable else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
