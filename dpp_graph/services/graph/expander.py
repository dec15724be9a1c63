"""
Graph Expansion Engine.

Breadth-first expansion of a linked document: every ``@id`` reachable from
the root is resolved, up to a depth budget and a link budget.

Scheduling:
- A bounded pool of worker tasks resolves links concurrently and posts
  outcomes on an asyncio.Queue.
- The coordinator (the ``expand`` coroutine) is the only writer of the
  frontier, the seen-set and the link map.
- Dispatch is level-synchronous: a node at depth d+1 starts only after no
  depth-d resolution is in flight, so every link is recorded at the depth
  of its first discovery regardless of the order results arrive in.
- Cancellation or the global deadline aborts in-flight work and marks all
  pending links cancelled; the partial graph is returned.
"""

import asyncio
from collections import deque
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx
import structlog

from dpp_graph.core.config import get_settings
from dpp_graph.core.exceptions import (
    BudgetExceeded,
    DPPGraphError,
    ErrorKind,
    InvalidInputError,
    TraversalCancelled,
)
from dpp_graph.core.models import LinkStatus
from dpp_graph.core.rate_limiter import OriginThrottle
from dpp_graph.services.graph.base import DocumentReference, ExpansionOptions, ResolvedGraph
from dpp_graph.services.graph.links import extract_links, root_id
from dpp_graph.services.resolution.base import ResolutionResult
from dpp_graph.services.resolution.negotiator import ContentNegotiator, create_client

logger = structlog.get_logger()

ProgressCallback = Callable[[int, int, str], None]

DEPTH_EXCEEDED = "depth budget exceeded"
CANCELLED = "expansion cancelled"
DEADLINE_EXCEEDED = "global timeout exceeded"


def _mark(ref: DocumentReference, status: LinkStatus, error: DPPGraphError) -> None:
    ref.status = status
    ref.error = error.message
    ref.error_kind = error.kind


class Resolver(Protocol):
    async def resolve(
        self,
        identifier: str,
        *,
        convert_did: bool | None = None,
        timeout: float | None = None,
    ) -> ResolutionResult: ...


class GraphExpander:
    """
    Bounded BFS over ``@id`` references.

    Usage:
        expander = GraphExpander(ContentNegotiator(client))
        graph = await expander.expand(root, ExpansionOptions(max_depth=2))
        print(graph.stats.to_dict())
    """

    def __init__(self, resolver: Resolver):
        self.resolver = resolver
        self.log = logger.bind(component="GraphExpander")

    async def expand(
        self,
        root: Any,
        options: ExpansionOptions | None = None,
        *,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ResolvedGraph:
        """
        Expand all references reachable from ``root``.

        Args:
            root: Parsed root document
            options: Budgets; defaults to ExpansionOptions()
            on_progress: Called as (processed, known_total, current_id)
                after each link reaches a terminal state
            cancel_event: Setting it aborts the run

        Returns:
            ResolvedGraph, partial when cancelled or out of budget

        Raises:
            InvalidInputError: options out of range
        """
        options = options or ExpansionOptions()
        options.validate()

        graph = ResolvedGraph(root=root)
        frontier: deque[DocumentReference] = deque()
        seen: set[str] = set()
        discarded: set[str] = set()
        own_id = root_id(root)
        if own_id:
            seen.add(own_id)

        def enqueue(identifier: str, depth: int) -> None:
            if identifier in seen or identifier in discarded:
                return
            if len(graph.links) >= options.max_links:
                discarded.add(identifier)
                return
            seen.add(identifier)
            ref = DocumentReference(id=identifier, depth=depth)
            graph.links[identifier] = ref
            frontier.append(ref)

        for link in extract_links(root):
            enqueue(link, 1)

        log = self.log.bind(root_id=own_id, max_depth=options.max_depth, max_links=options.max_links)
        log.info("Expansion started", seeds=len(frontier), concurrency=options.concurrency)

        if options.max_depth == 0:
            graph.recompute_stats(discarded=len(discarded))
            log.info("Discovery only, nothing dequeued", pending=graph.stats.pending)
            return graph

        loop = asyncio.get_running_loop()
        deadline = loop.time() + options.global_timeout if options.global_timeout else None
        results: asyncio.Queue[tuple[DocumentReference, ResolutionResult | Exception]] = asyncio.Queue()
        in_flight: dict[str, asyncio.Task] = {}
        processed = 0
        level = 0

        def notify(current_id: str) -> None:
            if on_progress is None:
                return
            try:
                on_progress(processed, len(graph.links), current_id)
            except Exception as e:
                log.warning("Progress callback failed", error=str(e))

        try:
            while True:
                # Dispatch from the frontier head while slots and budget allow
                while (
                    frontier
                    and len(in_flight) < options.concurrency
                    and processed + len(in_flight) < options.max_links
                ):
                    ref = frontier[0]
                    if in_flight and ref.depth != level:
                        break
                    frontier.popleft()
                    if ref.depth > options.max_depth:
                        _mark(ref, LinkStatus.FAILED, BudgetExceeded(DEPTH_EXCEEDED))
                        processed += 1
                        notify(ref.id)
                        continue
                    level = ref.depth
                    in_flight[ref.id] = asyncio.create_task(
                        self._work(ref, options, results), name=f"resolve:{ref.id}",
                    )

                if not in_flight:
                    break

                item, reason = await self._next_result(results, cancel_event, deadline)
                if item is None:
                    graph.cancelled = True
                    graph.cancel_reason = reason
                    log.warning("Expansion aborted", reason=reason, in_flight=len(in_flight))
                    break

                ref, resolution = item
                in_flight.pop(ref.id, None)
                processed += 1
                self._apply(ref, resolution, enqueue)
                notify(ref.id)
        finally:
            for task in in_flight.values():
                task.cancel()
            if in_flight:
                await asyncio.gather(*in_flight.values(), return_exceptions=True)

        if graph.cancelled:
            for ref in graph.by_status(LinkStatus.PENDING):
                _mark(ref, LinkStatus.CANCELLED, TraversalCancelled(graph.cancel_reason))

        stats = graph.recompute_stats(discarded=len(discarded))
        log.info("Expansion finished", stats=stats.to_dict(), cancel_reason=graph.cancel_reason)
        return graph

    # =========================================================================
    # Internals
    # =========================================================================

    async def _work(
        self,
        ref: DocumentReference,
        options: ExpansionOptions,
        results: asyncio.Queue,
    ) -> None:
        try:
            resolution: ResolutionResult | Exception = await self.resolver.resolve(
                ref.id,
                convert_did=options.convert_did,
                timeout=options.per_request_timeout,
            )
        except Exception as e:
            # One bad link must not sink the traversal
            self.log.warning("Resolver raised", link=ref.id, error=str(e), exc_info=True)
            resolution = e
        await results.put((ref, resolution))

    async def _next_result(
        self,
        results: asyncio.Queue,
        cancel_event: asyncio.Event | None,
        deadline: float | None,
    ) -> tuple[Any, str | None]:
        """Wait for the next outcome, the cancel signal or the deadline."""
        if cancel_event is not None and cancel_event.is_set():
            return None, CANCELLED

        getter = asyncio.ensure_future(results.get())
        waiters = {getter}
        if cancel_event is not None:
            waiters.add(asyncio.ensure_future(cancel_event.wait()))

        timeout = None
        if deadline is not None:
            timeout = max(0.0, deadline - asyncio.get_running_loop().time())

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()

        if getter in done:
            return getter.result(), None
        if done:
            return None, CANCELLED
        return None, DEADLINE_EXCEEDED

    def _apply(
        self,
        ref: DocumentReference,
        resolution: ResolutionResult | Exception,
        enqueue: Callable[[str, int], None],
    ) -> None:
        ref.fetched_at = datetime.now(timezone.utc).isoformat()

        if isinstance(resolution, Exception):
            ref.status = LinkStatus.FAILED
            ref.error = f"{type(resolution).__name__}: {resolution}"
            if isinstance(resolution, InvalidInputError):
                ref.error_kind = ErrorKind.SCHEME
            else:
                ref.error_kind = getattr(resolution, "kind", None) or ErrorKind.NETWORK
            return

        ref.url = resolution.url
        if not resolution.ok:
            ref.status = LinkStatus.FAILED
            ref.error = resolution.error
            ref.error_kind = resolution.error_kind
            self.log.debug("Link failed", link=ref.id, error_kind=ref.error_kind)
            return

        ref.status = LinkStatus.RESOLVED
        ref.data = resolution.data
        ref.size_bytes = resolution.size_bytes
        ref.strategy = resolution.strategy_used.value if resolution.strategy_used else None

        children = extract_links(resolution.data)
        ref.has_outbound_links = bool(children)
        for child in children:
            if child != ref.id:
                enqueue(child, ref.depth + 1)


async def expand_document(
    root: Any,
    options: ExpansionOptions | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    throttle: OriginThrottle | None = None,
    on_progress: ProgressCallback | None = None,
    cancel_event: asyncio.Event | None = None,
) -> ResolvedGraph:
    """
    Expand ``root`` with a settings-configured resolver.

    Opens (and closes) its own HTTP client when none is given.
    """
    settings = get_settings()
    options = options or ExpansionOptions.from_settings()
    if throttle is None:
        throttle = OriginThrottle(
            max_per_origin=settings.per_origin_concurrency,
            min_interval=settings.per_origin_min_interval,
        )

    async def _run(http: httpx.AsyncClient) -> ResolvedGraph:
        expander = GraphExpander(ContentNegotiator.from_settings(http, throttle=throttle))
        return await expander.expand(root, options, on_progress=on_progress, cancel_event=cancel_event)

    if client is not None:
        return await _run(client)
    async with create_client(timeout=options.per_request_timeout) as owned:
        return await _run(owned)
