"""
Retry Utilities for the DPP Graph Resolver.

Provides exponential backoff retry logic for HTTP requests. The resolver
defaults to a single attempt per request; raising
``RESOLVER_MAX_ATTEMPTS`` turns on retries for transient failures.
"""

import asyncio
import contextlib
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
import structlog

logger = structlog.get_logger()

T = TypeVar("T")

# Exceptions that should trigger a retry
RETRYABLE_EXCEPTIONS = (
    httpx.TimeoutException,
    httpx.NetworkError,
)

STATUS_REQUEST_TIMEOUT = 408
STATUS_TOO_MANY_REQUESTS = 429

RETRYABLE_STATUS_CODES = {
    STATUS_REQUEST_TIMEOUT,
    STATUS_TOO_MANY_REQUESTS,
    500,
    502,
    503,
    504,
}


def _backoff_delay(attempt: int, backoff_base: float, backoff_max: float, jitter: float) -> float:
    delay = min(backoff_base * (2 ** (attempt - 1)), backoff_max)
    return delay * (1 + random.uniform(-jitter, jitter))


def _retry_after(response: httpx.Response) -> float | None:
    if response.status_code != STATUS_TOO_MANY_REQUESTS:
        return None
    header = response.headers.get("retry-after")
    if not header:
        return None
    with contextlib.suppress(ValueError):
        return float(header)
    return None


async def with_retries(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    backoff_base: float = 1.0,
    backoff_max: float = 30.0,
    jitter: float = 0.1,
    retry_on: tuple = RETRYABLE_EXCEPTIONS,
    **kwargs: Any,
) -> T:
    """
    Execute an async function with exponential backoff retries.

    Args:
        func: Async function to call
        max_attempts: Maximum number of attempts
        backoff_base: Base delay in seconds
        backoff_max: Maximum delay in seconds
        jitter: Random jitter factor (0.1 = ±10%)
        retry_on: Tuple of exception types to retry on

    Returns:
        Result from the last call. A response with a retryable status is
        returned as-is once attempts are exhausted.

    Raises:
        Last exception if all attempts fail
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    log = logger.bind(func=getattr(func, "__name__", "call"), max_attempts=max_attempts)

    for attempt in range(1, max_attempts + 1):
        try:
            result = await func(*args, **kwargs)
        except retry_on as e:
            if attempt >= max_attempts:
                if max_attempts > 1:
                    log.warning("All retry attempts failed", error=str(e), attempts=max_attempts)
                raise
            delay = _backoff_delay(attempt, backoff_base, backoff_max, jitter)
            log.debug("Retry after exception", error=str(e), attempt=attempt, delay=round(delay, 2))
            await asyncio.sleep(delay)
            continue

        if (
            isinstance(result, httpx.Response)
            and result.status_code in RETRYABLE_STATUS_CODES
            and attempt < max_attempts
        ):
            delay = _retry_after(result) or _backoff_delay(attempt, backoff_base, backoff_max, jitter)
            log.debug(
                "Retrying due to HTTP status",
                status=result.status_code,
                attempt=attempt,
                delay=round(delay, 2),
            )
            await asyncio.sleep(delay)
            continue

        return result

    raise RuntimeError("Unexpected retry loop exit")


async def fetch_with_retries(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    max_attempts: int = 3,
    backoff_base: float = 1.0,
    **kwargs: Any,
) -> httpx.Response:
    """
    Convenience wrapper for HTTP requests with retries.

    Args:
        client: httpx AsyncClient
        method: HTTP method
        url: URL to fetch
        max_attempts: Maximum retry attempts
        **kwargs: Additional arguments for client.request()
    """

    async def _do_request() -> httpx.Response:
        return await client.request(method, url, **kwargs)

    return await with_retries(_do_request, max_attempts=max_attempts, backoff_base=backoff_base)
