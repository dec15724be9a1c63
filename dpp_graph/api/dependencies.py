"""
Shared FastAPI dependencies.
"""

from collections.abc import AsyncGenerator
from functools import lru_cache

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dpp_graph.core.config import settings
from dpp_graph.core.rate_limiter import OriginThrottle
from dpp_graph.db import DocumentStore, get_db
from dpp_graph.services.resolution import ContentNegotiator, create_client


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """One outbound client per request."""
    async with create_client() as client:
        yield client


@lru_cache
def get_throttle() -> OriginThrottle:
    """Process-wide per-origin throttle shared by all requests."""
    return OriginThrottle(
        max_per_origin=settings.per_origin_concurrency,
        min_interval=settings.per_origin_min_interval,
    )


def get_negotiator(
    client: httpx.AsyncClient = Depends(get_http_client),
    throttle: OriginThrottle = Depends(get_throttle),
) -> ContentNegotiator:
    return ContentNegotiator.from_settings(client, throttle=throttle)


def get_store(db: AsyncSession = Depends(get_db)) -> DocumentStore:
    return DocumentStore(db)
