"""
Pytest configuration and fixtures for DPP Graph Resolver tests.

Outbound HTTP is served by an in-memory ``FakeWeb`` through
``httpx.MockTransport``; the database is a throwaway SQLite file.
"""

import json
import os
import tempfile
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any

# Must be set before dpp_graph settings are first loaded
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{tempfile.gettempdir()}/dpp_graph_test.db"
os.environ["PER_ORIGIN_MIN_INTERVAL"] = "0"

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
import structlog  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from dpp_graph.api.dependencies import get_http_client, get_throttle  # noqa: E402
from dpp_graph.api.main import app  # noqa: E402
from dpp_graph.core.rate_limiter import OriginThrottle  # noqa: E402
from dpp_graph.db import Base, DocumentStore, async_session_maker, engine  # noqa: E402
from dpp_graph.services.resolution import ContentNegotiator  # noqa: E402

Handler = Callable[[httpx.Request], httpx.Response]


class FakeWeb:
    """In-memory web: exact URL -> handler. Unknown URLs answer 404."""

    def __init__(self) -> None:
        self.routes: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, handler: Handler) -> None:
        self.routes[url] = handler

    def add_json(
        self,
        url: str,
        data: Any,
        content_type: str = "application/ld+json",
        status: int = 200,
    ) -> None:
        body = json.dumps(data).encode()
        self.add(url, lambda request: httpx.Response(status, content=body, headers={"content-type": content_type}))

    def add_text(self, url: str, text: str, content_type: str, status: int = 200) -> None:
        self.add(url, lambda request: httpx.Response(status, text=text, headers={"content-type": content_type}))

    def add_html(self, url: str, html: str) -> None:
        self.add_text(url, html, "text/html; charset=utf-8")

    def requested(self, url: str) -> int:
        """Number of requests made for ``url``."""
        return sum(1 for r in self.requests if str(r.url) == url)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(str(request.url))
        if handler is None:
            return httpx.Response(404)
        return handler(request)


@pytest.fixture(autouse=True)
def restore_logging_config() -> Generator[None, None, None]:
    """Undo per-test structlog reconfiguration (the CLI binds output to capsys streams)."""
    saved = structlog.get_config()
    yield
    structlog.configure(**saved)


@pytest.fixture
def web() -> FakeWeb:
    return FakeWeb()


@pytest_asyncio.fixture
async def http_client(web: FakeWeb) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(web), follow_redirects=True) as client:
        yield client


@pytest.fixture
def negotiator(http_client: httpx.AsyncClient) -> ContentNegotiator:
    return ContentNegotiator(http_client, timeout=2.0, probe_timeout=1.0)


# =============================================================================
# Database
# =============================================================================


async def _create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def _drop_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    await _create_tables()

    async with async_session_maker() as session:
        yield session
        await session.rollback()

    await _drop_tables()


@pytest.fixture
def store(db_session: AsyncSession) -> DocumentStore:
    return DocumentStore(db_session)


# =============================================================================
# API
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def client(web: FakeWeb) -> AsyncGenerator[AsyncClient, None]:
    """ASGI client with a fresh database and outbound HTTP served by ``web``."""
    await _create_tables()

    async def _mock_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
        async with httpx.AsyncClient(transport=httpx.MockTransport(web), follow_redirects=True) as mock:
            yield mock

    app.dependency_overrides[get_http_client] = _mock_http_client
    app.dependency_overrides[get_throttle] = lambda: OriginThrottle(max_per_origin=4, min_interval=0)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    await _drop_tables()
