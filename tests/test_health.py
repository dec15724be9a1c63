"""
Smoke tests for health endpoints.
"""

import pytest
from httpx import AsyncClient

from dpp_graph.core.config import settings

pytestmark = pytest.mark.asyncio


class TestHealthEndpoints:
    async def test_health_check_returns_healthy(self, client: AsyncClient) -> None:
        response = await client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == settings.app_version

    async def test_readiness_check_structure(self, client: AsyncClient) -> None:
        response = await client.get("/api/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["database"] == "connected"
        assert data["dialect"] == "sqlite"
        assert data["expansion_defaults"]["max_depth"] == settings.expand_max_depth

    async def test_health_probes_skip_request_id(self, client: AsyncClient) -> None:
        response = await client.get("/api/health")
        assert "x-request-id" not in response.headers

    async def test_request_id_echoed(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/documents", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"
