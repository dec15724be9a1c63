"""
Content Negotiation Resolver.

Fetches one identifier using an ordered list of strategies and returns the
first non-empty structured payload:

1. accept_ld_json - GET with ``Accept: application/ld+json``
2. accept_json    - GET with ``Accept: application/json``
3. well_known     - probe discovery locations on the same origin
4. json_suffix    - GET ``<url>.json``
5. html_embedded  - parse markup and extract embedded structured data

Network and parse failures never raise; they are recorded as FetchAttempts
so the caller can see exactly which strategies failed and why.
"""

import json
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from dpp_graph.core.config import get_settings
from dpp_graph.core.constants import (
    ACCEPT_ANY_STRUCTURED,
    ACCEPT_HTML,
    ACCEPT_JSON,
    ACCEPT_LD_JSON,
    PREVIEW_CHARS,
    WELL_KNOWN_PATHS,
)
from dpp_graph.core.exceptions import (
    HttpError,
    InvalidInputError,
    NetworkError,
    ParseError,
    SchemeError,
)
from dpp_graph.core.logging import record_fetch
from dpp_graph.core.rate_limiter import OriginThrottle
from dpp_graph.services.identifiers import did_document_url, is_web_did, to_http_url
from dpp_graph.services.resolution.base import (
    FetchAttempt,
    ResolutionResult,
    Strategy,
    is_meaningful,
    payload_size,
)
from dpp_graph.services.resolution.html_extractor import extract_embedded_data, is_markup
from dpp_graph.services.retry_utils import fetch_with_retries
from dpp_graph.services.url_utils import (
    extract_origin,
    is_fetchable_url,
    join_origin,
    looks_like_json_url,
    resolves_to_public_ip,
    with_json_suffix,
)
from dpp_graph.services.user_agent import build_user_agent

logger = structlog.get_logger()


def create_client(timeout: float | None = None) -> httpx.AsyncClient:
    """HTTP client configured for resolver requests."""
    settings = get_settings()
    return httpx.AsyncClient(
        timeout=timeout or settings.resolver_timeout,
        follow_redirects=True,
        headers={"User-Agent": build_user_agent()},
    )


def _content_type(response: httpx.Response) -> str:
    return response.headers.get("content-type", "").split(";")[0].strip().lower()


def _is_json_type(content_type: str) -> bool:
    return "json" in content_type


@dataclass
class _Outcome:
    """Internal result of a single GET + parse."""
    data: Any = None
    content_type: str | None = None
    markup: str | None = None
    final_url: str | None = None
    attempt: FetchAttempt | None = None


class ContentNegotiator:
    """
    Multi-strategy resolver for linked documents.

    Usage:
        async with create_client() as client:
            negotiator = ContentNegotiator(client)
            result = await negotiator.resolve("did:web:example.com:product:123")
            if result.ok:
                print(result.data)
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        timeout: float = 10.0,
        probe_timeout: float = 5.0,
        convert_did: bool = True,
        throttle: OriginThrottle | None = None,
        max_attempts: int = 1,
        probe_well_known: bool = True,
        block_private_networks: bool = False,
    ):
        """
        Initialize resolver.

        Args:
            client: httpx AsyncClient for requests
            timeout: Per-strategy request timeout in seconds
            probe_timeout: Timeout for each well-known probe
            convert_did: Map did:web identifiers to HTTPS before fetching
            throttle: Optional per-origin throttle shared with other resolvers
            max_attempts: Attempts per request (retries transient failures)
            probe_well_known: Enable the well_known strategy
            block_private_networks: Refuse hosts resolving to non-global IPs
        """
        if timeout <= 0 or probe_timeout <= 0:
            raise InvalidInputError("timeouts must be positive")
        self.client = client
        self.timeout = timeout
        self.probe_timeout = probe_timeout
        self.convert_did = convert_did
        self.throttle = throttle
        self.max_attempts = max_attempts
        self.probe_well_known = probe_well_known
        self.block_private_networks = block_private_networks
        self.log = logger.bind(component="ContentNegotiator")

    @classmethod
    def from_settings(
        cls,
        client: httpx.AsyncClient,
        throttle: OriginThrottle | None = None,
    ) -> "ContentNegotiator":
        settings = get_settings()
        return cls(
            client,
            timeout=settings.resolver_timeout,
            probe_timeout=settings.resolver_probe_timeout,
            convert_did=settings.convert_did,
            throttle=throttle,
            max_attempts=settings.resolver_max_attempts,
            probe_well_known=settings.resolver_probe_well_known,
            block_private_networks=settings.block_private_networks,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    async def resolve(
        self,
        identifier: str,
        *,
        convert_did: bool | None = None,
        timeout: float | None = None,
    ) -> ResolutionResult:
        """
        Resolve an identifier to structured data.

        Args:
            identifier: URL or DID
            convert_did: Override the instance did:web conversion setting
            timeout: Override the per-strategy timeout

        Returns:
            ResolutionResult with data on success, attempts always populated

        Raises:
            InvalidInputError: identifier is empty
        """
        if not isinstance(identifier, str) or not identifier.strip():
            raise InvalidInputError("identifier must be a non-empty string")

        identifier = identifier.strip()
        convert = self.convert_did if convert_did is None else convert_did
        timeout = timeout or self.timeout
        url = to_http_url(identifier) if convert else identifier
        result = ResolutionResult(identifier=identifier, url=url)
        log = self.log.bind(identifier=identifier, url=url)

        if not is_fetchable_url(url):
            attempt = FetchAttempt(strategy=Strategy.SCHEME_CHECK, url=url)
            attempt.fail(SchemeError(f"Unsupported identifier scheme: {url}"))
            result.attempts.append(attempt)
            log.debug("Unsupported scheme, skipping network")
            return result

        if self.block_private_networks:
            host = httpx.URL(url).host
            if not await resolves_to_public_ip(host):
                attempt = FetchAttempt(strategy=Strategy.SCHEME_CHECK, url=url)
                attempt.fail(SchemeError(f"Host {host} does not resolve to a public address"))
                result.attempts.append(attempt)
                return result

        markup: tuple[str, str, str] | None = None  # (body, url, content_type)

        # Strategies 1-2: direct content negotiation
        for strategy, accept in (
            (Strategy.ACCEPT_LD_JSON, ACCEPT_LD_JSON),
            (Strategy.ACCEPT_JSON, ACCEPT_JSON),
        ):
            outcome = await self._fetch(strategy, url, accept, timeout)
            result.attempts.append(outcome.attempt)
            if outcome.data is not None:
                return self._success(result, strategy, outcome, "direct")
            if outcome.markup is not None and markup is None:
                markup = (outcome.markup, outcome.final_url or url, outcome.content_type or "")

        # Strategy 3: well-known discovery
        if self.probe_well_known:
            for probe_url in self._well_known_candidates(identifier, url):
                outcome = await self._fetch(
                    Strategy.WELL_KNOWN, probe_url, ACCEPT_ANY_STRUCTURED, self.probe_timeout,
                )
                result.attempts.append(outcome.attempt)
                if outcome.data is not None:
                    return self._success(result, Strategy.WELL_KNOWN, outcome, "well_known")

        # Strategy 4: .json suffix
        suffixed = with_json_suffix(url)
        if suffixed:
            outcome = await self._fetch(Strategy.JSON_SUFFIX, suffixed, ACCEPT_JSON, timeout)
            result.attempts.append(outcome.attempt)
            if outcome.data is not None:
                return self._success(result, Strategy.JSON_SUFFIX, outcome, "direct")

        # Strategy 5: embedded data in markup
        if markup is None:
            outcome = await self._fetch(Strategy.HTML_EMBEDDED, url, ACCEPT_HTML, timeout)
            if outcome.data is not None:
                # Server ignored the HTML accept header and returned JSON
                result.attempts.append(outcome.attempt)
                return self._success(result, Strategy.HTML_EMBEDDED, outcome, "direct")
            if outcome.markup is None:
                result.attempts.append(outcome.attempt)
                log.debug("All strategies failed", attempts=len(result.attempts))
                return result
            markup = (outcome.markup, outcome.final_url or url, outcome.content_type or "")

        body, markup_url, markup_type = markup
        embedded = extract_embedded_data(body)
        if embedded is not None:
            result.attempts.append(FetchAttempt(
                strategy=Strategy.HTML_EMBEDDED,
                url=markup_url,
                status_code=200,
                content_type=markup_type,
            ))
            outcome = _Outcome(data=embedded.data, content_type=markup_type, final_url=markup_url)
            return self._success(result, Strategy.HTML_EMBEDDED, outcome, embedded.method)

        attempt = FetchAttempt(
            strategy=Strategy.HTML_EMBEDDED,
            url=markup_url,
            status_code=200,
            content_type=markup_type,
        )
        attempt.fail(ParseError("No embedded structured data found in markup"))
        result.attempts.append(attempt)
        log.debug("All strategies failed", attempts=len(result.attempts))
        return result

    # =========================================================================
    # Internals
    # =========================================================================

    def _well_known_candidates(self, identifier: str, url: str) -> list[str]:
        candidates: list[str] = []
        if is_web_did(identifier):
            did_doc = did_document_url(identifier)
            if did_doc:
                candidates.append(did_doc)
        if extract_origin(url) is None:
            return candidates
        for path in WELL_KNOWN_PATHS:
            probe = join_origin(url, path)
            if probe and probe not in candidates and probe != url:
                candidates.append(probe)
        return candidates

    def _success(
        self,
        result: ResolutionResult,
        strategy: Strategy,
        outcome: _Outcome,
        method: str,
    ) -> ResolutionResult:
        result.data = outcome.data
        result.strategy_used = strategy
        result.extraction_method = method
        result.content_type = outcome.content_type
        result.size_bytes = payload_size(outcome.data)
        if outcome.final_url:
            result.url = outcome.final_url
        self.log.debug(
            "Resolved",
            identifier=result.identifier,
            strategy=strategy.value,
            method=method,
            size_bytes=result.size_bytes,
        )
        return result

    async def _get(self, url: str, accept: str, timeout: float) -> httpx.Response:
        kwargs = {"headers": {"Accept": accept}, "timeout": timeout}
        if self.throttle is None:
            return await fetch_with_retries(
                self.client, "GET", url, max_attempts=self.max_attempts, **kwargs,
            )
        async with self.throttle.slot(url):
            return await fetch_with_retries(
                self.client, "GET", url, max_attempts=self.max_attempts, **kwargs,
            )

    async def _fetch(self, strategy: Strategy, url: str, accept: str, timeout: float) -> _Outcome:
        """GET ``url`` and parse the body. Never raises for network or parse errors."""
        attempt = FetchAttempt(strategy=strategy, url=url)
        outcome = _Outcome(attempt=attempt)

        try:
            response = await self._get(url, accept, timeout)
        except httpx.TimeoutException:
            record_fetch(url, None)
            attempt.fail(NetworkError(f"Timed out after {timeout:g}s"))
            self.log.debug("Strategy timed out", strategy=strategy.value, url=url)
            return outcome
        except httpx.HTTPError as e:
            record_fetch(url, None)
            attempt.fail(NetworkError(f"Request failed: {type(e).__name__}: {e}"))
            self.log.debug("Strategy request failed", strategy=strategy.value, url=url, error=str(e))
            return outcome

        record_fetch(url, response.status_code)
        content_type = _content_type(response)
        attempt.status_code = response.status_code
        attempt.content_type = content_type or None
        outcome.content_type = content_type or None
        outcome.final_url = str(response.url)

        if not response.is_success:
            attempt.fail(HttpError(response.status_code, response.reason_phrase))
            self.log.debug("Strategy got non-2xx", strategy=strategy.value, url=url, status=response.status_code)
            return outcome

        body = response.text
        if not body.strip():
            attempt.fail(ParseError("Empty response body"))
            return outcome

        if is_markup(content_type) and not looks_like_json_url(url):
            outcome.markup = body
            attempt.fail(ParseError("Markup response, deferred to embedded extraction"))
            return outcome

        known_json = _is_json_type(content_type) or looks_like_json_url(url)
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            if known_json:
                attempt.fail(ParseError(f"Invalid JSON: {e.msg} at position {e.pos}"))
            else:
                attempt.fail(ParseError(f"Unsupported content-type: {content_type or 'none'}"))
            return outcome
        except RecursionError:
            attempt.fail(ParseError("JSON nesting too deep"))
            return outcome

        if not is_meaningful(data):
            attempt.fail(ParseError("Empty structured payload"))
            return outcome

        outcome.data = data
        return outcome


# =============================================================================
# Endpoint inspection
# =============================================================================


INSPECTED_HEADERS = ("content-type", "content-length", "server", "link", "cache-control", "last-modified")


async def inspect_endpoint(client: httpx.AsyncClient, url: str, timeout: float = 10.0) -> dict[str, Any]:
    """
    Single broad-accept GET against an endpoint, for troubleshooting.

    Returns status, selected headers, the parsed payload (or a preview of
    the raw body) and whether structured data was found.
    """
    if not is_fetchable_url(url):
        raise InvalidInputError(f"Not an HTTP(S) URL: {url}", {"url": url})

    report: dict[str, Any] = {"url": url, "success": False}
    try:
        response = await client.get(url, headers={"Accept": ACCEPT_ANY_STRUCTURED}, timeout=timeout)
    except httpx.HTTPError as e:
        report["error"] = f"{type(e).__name__}: {e}"
        return report

    content_type = _content_type(response)
    report.update({
        "final_url": str(response.url),
        "status_code": response.status_code,
        "headers": {k: response.headers[k] for k in INSPECTED_HEADERS if k in response.headers},
        "content_type": content_type or None,
        "size_bytes": len(response.content),
    })

    body = response.text
    data = None
    method = None
    if is_markup(content_type):
        embedded = extract_embedded_data(body)
        if embedded is not None:
            data, method = embedded.data, embedded.method
    else:
        try:
            data = json.loads(body) if body.strip() else None
            method = "direct"
        except (json.JSONDecodeError, RecursionError):
            data = None

    report["success"] = response.is_success and is_meaningful(data)
    report["extraction_method"] = method if data is not None else None
    if data is not None:
        report["data"] = data
    else:
        report["preview"] = body[:PREVIEW_CHARS]
    return report
