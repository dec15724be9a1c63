"""
Resolution Module - Base Data Classes.

Shared types used by the content negotiator and its callers.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from dpp_graph.core.exceptions import DPPGraphError, ErrorKind


class Strategy(str, Enum):
    """Content negotiation strategies, in the order they are tried."""
    SCHEME_CHECK = "scheme_check"      # Pre-flight, no network
    ACCEPT_LD_JSON = "accept_ld_json"  # Accept: application/ld+json
    ACCEPT_JSON = "accept_json"        # Accept: application/json
    WELL_KNOWN = "well_known"          # Discovery paths on the same origin
    JSON_SUFFIX = "json_suffix"        # <url>.json
    HTML_EMBEDDED = "html_embedded"    # Structured data embedded in markup


@dataclass
class FetchAttempt:
    """Outcome of one strategy request, kept only for diagnostics."""
    strategy: Strategy
    url: str
    status_code: int | None = None
    content_type: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def fail(self, error: DPPGraphError) -> None:
        """Record a typed failure on this attempt."""
        self.error = error.message
        self.error_kind = error.kind

    def describe(self) -> str:
        """One-line summary, e.g. ``accept_json https://x/a -> HTTP 404 Not Found``."""
        outcome = self.error or f"HTTP {self.status_code}"
        return f"{self.strategy.value} {self.url} -> {outcome}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "url": self.url,
            "status_code": self.status_code,
            "content_type": self.content_type,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
        }


@dataclass
class ResolutionResult:
    """
    Result of resolving one identifier.

    ``data`` is set when a strategy produced non-empty structured data;
    otherwise ``attempts`` enumerates every strategy that was tried.
    """
    identifier: str
    url: str
    data: Any = None
    strategy_used: Strategy | None = None
    extraction_method: str | None = None
    content_type: str | None = None
    size_bytes: int | None = None
    attempts: list[FetchAttempt] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.data is not None

    @property
    def error_kind(self) -> ErrorKind | None:
        """Kind of the most informative failure (HTTP status beats later parse errors)."""
        if self.ok:
            return None
        kinds = [a.error_kind for a in self.attempts if a.error_kind]
        for preferred in (ErrorKind.SCHEME, ErrorKind.HTTP, ErrorKind.NETWORK, ErrorKind.PARSE):
            if preferred in kinds:
                return preferred
        return ErrorKind.PARSE

    @property
    def error(self) -> str | None:
        """Aggregate diagnostic covering every failed attempt."""
        if self.ok:
            return None
        if not self.attempts:
            return "No strategy produced structured data"
        details = "; ".join(a.describe() for a in self.attempts)
        return f"All {len(self.attempts)} attempt(s) failed: {details}"

    def to_dict(self, include_data: bool = True) -> dict[str, Any]:
        result: dict[str, Any] = {
            "identifier": self.identifier,
            "url": self.url,
            "success": self.ok,
            "strategy_used": self.strategy_used.value if self.strategy_used else None,
            "extraction_method": self.extraction_method,
            "content_type": self.content_type,
            "size_bytes": self.size_bytes,
            "error": self.error,
            "attempts": [a.to_dict() for a in self.attempts],
        }
        if include_data:
            result["data"] = self.data
        return result


def payload_size(data: Any) -> int:
    """Size in bytes of the compact JSON serialisation of ``data``; 0 when it nests too deep to encode."""
    try:
        encoded = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    except RecursionError:
        return 0
    return len(encoded.encode("utf-8"))


def is_meaningful(data: Any) -> bool:
    """Non-empty object or array; scalars do not count as documents."""
    return isinstance(data, (dict, list)) and len(data) > 0
