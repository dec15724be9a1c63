"""
Well-known endpoint discovery.

Probes every discovery location on an origin and reports what answered,
unlike the resolver's well_known strategy which stops at the first hit.
"""

import json
from dataclasses import asdict, dataclass, field
from typing import Any

import httpx
import structlog

from dpp_graph.core.constants import ACCEPT_ANY_STRUCTURED, PREVIEW_CHARS, WELL_KNOWN_PATHS
from dpp_graph.core.exceptions import InvalidInputError
from dpp_graph.services.url_utils import extract_origin, is_fetchable_url

logger = structlog.get_logger()

NO_ENDPOINT_RECOMMENDATION = (
    "No .well-known endpoints found. The site may need browser automation "
    "or the data must be requested from the site owner."
)


@dataclass
class ProbeResult:
    """Outcome of one discovery location."""
    pattern: str
    url: str
    status: int
    found: bool
    content_type: str | None = None
    size: int = 0
    preview: str | None = None
    data: Any = None
    error: str | None = None


@dataclass
class DiscoveryReport:
    base_url: str
    results: list[ProbeResult] = field(default_factory=list)

    @property
    def found(self) -> list[ProbeResult]:
        return [r for r in self.results if r.found]

    @property
    def recommendation(self) -> str:
        found = self.found
        if not found:
            return NO_ENDPOINT_RECOMMENDATION
        return f"Found {len(found)} endpoint(s). Try: {found[0].url}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_url": self.base_url,
            "patterns_checked": len(self.results),
            "endpoints_found": len(self.found),
            "results": [asdict(r) for r in self.results],
            "recommendation": self.recommendation,
        }


async def discover_well_known(
    client: httpx.AsyncClient,
    base_url: str,
    timeout: float = 5.0,
    patterns: tuple[str, ...] = WELL_KNOWN_PATHS,
) -> DiscoveryReport:
    """
    Probe all well-known patterns on the origin of ``base_url``.

    Raises:
        InvalidInputError: base_url is not an HTTP(S) URL
    """
    if not is_fetchable_url(base_url):
        raise InvalidInputError(f"Not an HTTP(S) URL: {base_url}", {"base_url": base_url})

    origin = extract_origin(base_url)
    report = DiscoveryReport(base_url=origin)
    log = logger.bind(origin=origin)

    for pattern in patterns:
        url = f"{origin}{pattern}"
        try:
            response = await client.get(url, headers={"Accept": ACCEPT_ANY_STRUCTURED}, timeout=timeout)
        except httpx.HTTPError as e:
            report.results.append(ProbeResult(
                pattern=pattern, url=url, status=0, found=False, error=f"{type(e).__name__}: {e}",
            ))
            continue

        probe = ProbeResult(
            pattern=pattern,
            url=url,
            status=response.status_code,
            found=response.is_success,
            content_type=response.headers.get("content-type"),
        )
        if response.is_success:
            body = response.text
            probe.size = len(body)
            probe.preview = body[:PREVIEW_CHARS]
            try:
                probe.data = json.loads(body)
            except (json.JSONDecodeError, RecursionError):
                pass  # Non-JSON or over-nested payloads are reported by preview only
        report.results.append(probe)

    log.info("Well-known discovery finished", checked=len(report.results), found=len(report.found))
    return report
