"""
Graph Module - Base Data Classes.

Types produced by the expansion engine. Everything here is plain data and
serialises with ``to_dict()``.
"""

from dataclasses import dataclass, field
from typing import Any

from dpp_graph.core.config import get_settings
from dpp_graph.core.exceptions import ErrorKind, InvalidInputError
from dpp_graph.core.models import LinkStatus


@dataclass
class ExpansionOptions:
    """Budgets and knobs for one expansion run."""
    max_depth: int = 3
    max_links: int = 50
    per_request_timeout: float = 10.0
    convert_did: bool = True
    concurrency: int = 4
    global_timeout: float | None = None

    def validate(self) -> None:
        """Raise InvalidInputError on out-of-range values."""
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int) or self.max_depth < 0:
            raise InvalidInputError("max_depth must be a non-negative integer", {"max_depth": self.max_depth})
        if isinstance(self.max_links, bool) or not isinstance(self.max_links, int) or self.max_links < 0:
            raise InvalidInputError("max_links must be a non-negative integer", {"max_links": self.max_links})
        if self.per_request_timeout <= 0:
            raise InvalidInputError(
                "per_request_timeout must be positive",
                {"per_request_timeout": self.per_request_timeout},
            )
        if self.concurrency < 1:
            raise InvalidInputError("concurrency must be at least 1", {"concurrency": self.concurrency})
        if self.global_timeout is not None and self.global_timeout <= 0:
            raise InvalidInputError("global_timeout must be positive", {"global_timeout": self.global_timeout})

    @classmethod
    def from_settings(cls, **overrides: Any) -> "ExpansionOptions":
        """Defaults from Settings, with non-None overrides applied."""
        settings = get_settings()
        values = {
            "max_depth": settings.expand_max_depth,
            "max_links": settings.expand_max_links,
            "per_request_timeout": settings.resolver_timeout,
            "convert_did": settings.convert_did,
            "concurrency": settings.expand_concurrency,
            "global_timeout": settings.expand_global_timeout,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class DocumentReference:
    """One discovered identifier and the outcome of resolving it."""
    id: str
    depth: int
    status: LinkStatus = LinkStatus.PENDING
    data: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    size_bytes: int | None = None
    has_outbound_links: bool | None = None
    fetched_at: str | None = None
    strategy: str | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "depth": self.depth,
            "data": self.data,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "size_bytes": self.size_bytes,
            "has_outbound_links": self.has_outbound_links,
            "fetched_at": self.fetched_at,
            "strategy": self.strategy,
            "url": self.url,
        }


@dataclass
class GraphStats:
    total: int = 0
    resolved: int = 0
    failed: int = 0
    cancelled: int = 0
    pending: int = 0
    max_depth_reached: int = 0
    total_bytes: int = 0
    discarded: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "resolved": self.resolved,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "pending": self.pending,
            "max_depth_reached": self.max_depth_reached,
            "total_bytes": self.total_bytes,
            "discarded": self.discarded,
        }


@dataclass
class ResolvedGraph:
    """
    Result of one expansion.

    ``links`` preserves discovery order. The graph is owned by the caller;
    the engine keeps no reference after returning it.
    """
    root: Any
    links: dict[str, DocumentReference] = field(default_factory=dict)
    stats: GraphStats = field(default_factory=GraphStats)
    cancelled: bool = False
    cancel_reason: str | None = None

    def by_status(self, status: LinkStatus) -> list[DocumentReference]:
        return [ref for ref in self.links.values() if ref.status == status]

    def recompute_stats(self, discarded: int = 0) -> GraphStats:
        stats = GraphStats(total=len(self.links), discarded=discarded)
        for ref in self.links.values():
            if ref.status == LinkStatus.RESOLVED:
                stats.resolved += 1
                stats.total_bytes += ref.size_bytes or 0
            elif ref.status == LinkStatus.FAILED:
                stats.failed += 1
            elif ref.status == LinkStatus.CANCELLED:
                stats.cancelled += 1
            else:
                stats.pending += 1
            if ref.status in (LinkStatus.RESOLVED, LinkStatus.FAILED):
                stats.max_depth_reached = max(stats.max_depth_reached, ref.depth)
        self.stats = stats
        return stats

    def to_dict(self, include_data: bool = True) -> dict[str, Any]:
        links = {}
        for link_id, ref in self.links.items():
            entry = ref.to_dict()
            if not include_data:
                entry.pop("data")
            links[link_id] = entry
        return {
            "root": self.root,
            "links": links,
            "stats": self.stats.to_dict(),
            "cancelled": self.cancelled,
            "cancel_reason": self.cancel_reason,
        }
