"""
Logging configuration with Wide Events / Canonical Log Lines pattern.

- One comprehensive event per API request with all context attached
- Build the event throughout the request lifecycle, emit once at the end
- Outbound document fetches are counted on the event as they happen
- Tail sampling keeps quiet local reads out of the log stream

Service code logs through ``structlog.get_logger()`` and binds a
``component`` name; resolver and expansion runs add their own summary
fields to the current request event via ``enrich_event``.
"""

import logging
import random
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any
from urllib.parse import urlparse

import structlog
from structlog.types import Processor

from dpp_graph.core.config import settings

# Request-scoped wide event. Tasks spawned during a request share the dict.
_request_event: ContextVar[dict[str, Any] | None] = ContextVar("request_event", default=None)
_request_start: ContextVar[float] = ContextVar("request_start", default=0.0)

SLOW_REQUEST_MS = 2000
SAMPLE_RATE = 0.10


def _set_dotted(event: dict[str, Any], key: str, value: Any) -> None:
    *parents, leaf = key.split(".")
    target = event
    for part in parents:
        target = target.setdefault(part, {})
    target[leaf] = value


def enrich_event(**kwargs: Any) -> None:
    """
    Add fields to the current request's wide event.

    Dotted keys build nested objects:

        enrich_event(**{"graph.resolved": 12, "graph.failed": 3})

    Outside a request (CLI runs, tests) this is a no-op.
    """
    event = _request_event.get()
    if event is None:
        return
    for key, value in kwargs.items():
        _set_dotted(event, key, value)


def record_fetch(url: str, status_code: int | None) -> None:
    """Count one outbound document fetch; ``status_code`` is None on network failure."""
    event = _request_event.get()
    if event is None:
        return
    outbound = event.setdefault("outbound", {"requests": 0, "failed": 0, "origins": {}})
    outbound["requests"] += 1
    if status_code is None or status_code >= 400:
        outbound["failed"] += 1
    origin = urlparse(url).netloc or url
    outbound["origins"][origin] = outbound["origins"].get(origin, 0) + 1


def init_request_event(
    request_id: str | None = None,
    method: str = "",
    path: str = "",
    client_ip: str = "",
    user_agent: str = "",
) -> dict[str, Any]:
    """Start a new wide event for the request and make it current."""
    event = {
        "request_id": request_id or uuid.uuid4().hex[:8],
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "http": {
            "method": method,
            "path": path,
            "client_ip": client_ip,
            "user_agent": user_agent[:200] or None,
        },
        "service": {
            "name": "dpp-graph-api",
            "version": settings.app_version,
            "environment": settings.environment,
        },
    }
    _request_event.set(event)
    _request_start.set(time.monotonic())
    return event


def finalize_request_event(status_code: int, error: Exception | None = None) -> dict[str, Any]:
    event = _request_event.get() or {}

    event.setdefault("http", {})["status_code"] = status_code
    event["duration_ms"] = int((time.monotonic() - _request_start.get()) * 1000)
    event["outcome"] = "success" if status_code < 400 else "error"

    if error is not None:
        event["error"] = {
            "type": type(error).__name__,
            "message": str(error)[:500],
        }
        details = getattr(error, "details", None)
        if details:
            event["error"]["details"] = details

    return event


def should_sample(event: dict[str, Any]) -> bool:
    """
    Tail sampling decision for wide events.

    Errors, slow requests and any request that went out to the network
    are always kept; the rest is sampled at ``SAMPLE_RATE``.
    """
    if event.get("http", {}).get("status_code", 200) >= 400:
        return True
    if event.get("duration_ms", 0) > SLOW_REQUEST_MS:
        return True
    if event.get("outbound", {}).get("requests", 0) > 0:
        return True
    return random.random() < SAMPLE_RATE


def add_request_id(logger: Any, method_name: str, event_dict: dict) -> dict:
    """Processor stamping the current request_id onto every log entry."""
    current = _request_event.get()
    if current and "request_id" in current:
        event_dict.setdefault("request_id", current["request_id"])
    return event_dict


def configure_logging(json_logs: bool = True, log_level: str = "INFO", cache_loggers: bool = True) -> None:
    """
    Configure structlog.

    Args:
        json_logs: JSON output (production) or colored console output (development/CLI).
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        cache_loggers: Bind loggers to the current stream on first use. Callers that
            reconfigure within one process (the CLI) turn this off.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_request_id,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=cache_loggers,
    )

    # httpx logs every request at INFO; the wide event already counts them
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def emit_wide_event(event: dict[str, Any]) -> None:
    """Emit the canonical log line for a request."""
    if not should_sample(event):
        return

    logger = structlog.get_logger("wide_event")
    status_code = event.get("http", {}).get("status_code", 200)

    if status_code >= 500:
        logger.error("request_completed", **event)
    elif status_code >= 400:
        logger.warning("request_completed", **event)
    else:
        logger.info("request_completed", **event)
