"""
Liveness and readiness probes.

Readiness reports the database dialect and the expansion defaults the
service would apply to a request without explicit budgets.
"""

from fastapi import APIRouter

from dpp_graph.core.config import settings
from dpp_graph.db import check_database_health, engine

router = APIRouter()


@router.get("/api/health")
async def health_check() -> dict:
    return {"status": "healthy", "version": settings.app_version}


@router.get("/api/ready")
async def readiness_check() -> dict:
    database_ok = await check_database_health()
    return {
        "status": "ready" if database_ok else "degraded",
        "database": "connected" if database_ok else "unavailable",
        "dialect": engine.dialect.name,
        "expansion_defaults": {
            "max_depth": settings.expand_max_depth,
            "max_links": settings.expand_max_links,
            "concurrency": settings.expand_concurrency,
        },
    }
