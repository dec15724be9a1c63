"""
Per-origin request throttle for outbound fetches.

Two limits per origin (scheme://host:port):
- concurrency cap: at most N requests in flight to one origin
- minimum spacing: consecutive request starts are at least
  ``min_interval`` seconds apart

State is per event loop; one throttle instance is shared by every
resolver attached to an expansion run. An origin is forgotten once no
request holds or awaits its slot and its spacing window has passed.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from dpp_graph.services.url_utils import extract_origin

logger = structlog.get_logger()


class OriginThrottle:
    """
    Politeness limiter keyed by origin.

    Usage:
        throttle = OriginThrottle(max_per_origin=2, min_interval=0.25)
        async with throttle.slot(url):
            response = await client.get(url)
    """

    def __init__(self, max_per_origin: int = 2, min_interval: float = 0.25):
        """
        Initialize throttle.

        Args:
            max_per_origin: Max concurrent requests per origin
            min_interval: Minimum seconds between request starts per origin
        """
        if max_per_origin < 1:
            raise ValueError("max_per_origin must be at least 1")
        if min_interval < 0:
            raise ValueError("min_interval must not be negative")
        self.max_per_origin = max_per_origin
        self.min_interval = min_interval
        self._semaphores: dict[str, asyncio.Semaphore] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_start: dict[str, float] = {}
        self._active: dict[str, int] = {}
        self._users: dict[str, int] = {}  # holding or waiting for a slot
        self.log = logger.bind(component="OriginThrottle")

    @asynccontextmanager
    async def slot(self, url: str) -> AsyncIterator[None]:
        """Hold one request slot for the origin of ``url``."""
        origin = extract_origin(url) or url
        self._users[origin] = self._users.get(origin, 0) + 1
        semaphore = self._semaphores.setdefault(origin, asyncio.Semaphore(self.max_per_origin))
        try:
            async with semaphore:
                await self._wait_for_spacing(origin)
                self._active[origin] = self._active.get(origin, 0) + 1
                try:
                    yield
                finally:
                    self._active[origin] -= 1
        finally:
            self._users[origin] -= 1
            self._evict_idle()

    def _evict_idle(self) -> None:
        now = time.monotonic()
        idle = [origin for origin, users in self._users.items() if users == 0]
        for origin in idle:
            last = self._last_start.get(origin)
            if last is not None and now - last < self.min_interval:
                continue
            for table in (self._users, self._semaphores, self._locks, self._last_start, self._active):
                table.pop(origin, None)

    async def _wait_for_spacing(self, origin: str) -> None:
        if self.min_interval <= 0:
            return
        lock = self._locks.setdefault(origin, asyncio.Lock())
        async with lock:
            last = self._last_start.get(origin)
            if last is not None:
                delay = last + self.min_interval - time.monotonic()
                if delay > 0:
                    self.log.debug("Spacing request", origin=origin, delay=round(delay, 3))
                    await asyncio.sleep(delay)
            self._last_start[origin] = time.monotonic()

    def in_flight(self, url: str) -> int:
        """Number of requests currently holding a slot for the origin of ``url``."""
        origin = extract_origin(url) or url
        return self._active.get(origin, 0)

    @property
    def tracked_origins(self) -> int:
        return len(self._users)
