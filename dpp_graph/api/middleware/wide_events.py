"""
Wide Events Middleware for FastAPI.

One canonical log line per request. The event is opened when the request
arrives, handlers attach resolution or expansion summaries to it, the
negotiator counts its outbound fetches on it, and it is emitted once the
response is ready. The request id is echoed back in ``X-Request-ID`` so a
caller can find its line in the logs.

Handlers use the helpers at the bottom of this module:

    graph = await expand_document(...)
    add_graph_to_wide_event(graph.stats.to_dict(), cancelled=graph.cancelled)
"""

from collections.abc import Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from dpp_graph.core.logging import (
    emit_wide_event,
    enrich_event,
    finalize_request_event,
    init_request_event,
)

REQUEST_ID_HEADER = "x-request-id"

# Probes would drown out real traffic
SKIP_PATHS = frozenset({"/api/health", "/api/ready", "/favicon.ico"})


def client_ip(request: Request) -> str:
    """Client address, preferring proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


class WideEventMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        event = init_request_event(
            request_id=request.headers.get(REQUEST_ID_HEADER),
            method=request.method,
            path=request.url.path,
            client_ip=client_ip(request),
            user_agent=request.headers.get("user-agent", ""),
        )
        if request.query_params:
            enrich_event(**{"http.query_params": dict(request.query_params)})

        error: Exception | None = None
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = event["request_id"]
            return response
        except Exception as e:
            error = e
            status_code = getattr(e, "status_code", 500)
            raise
        finally:
            emit_wide_event(finalize_request_event(status_code, error))


def add_resolution_to_wide_event(
    identifier: str,
    success: bool,
    strategy: str | None = None,
    attempts: int = 0,
    format: str | None = None,
) -> None:
    """Attach a single-document resolution summary."""
    enrich_event(
        resolution={
            "identifier": identifier,
            "success": success,
            "strategy": strategy,
            "attempts": attempts,
            "format": format,
        }
    )


def add_graph_to_wide_event(stats: dict[str, Any], cancelled: bool = False) -> None:
    enrich_event(graph={**stats, "cancelled": cancelled})
