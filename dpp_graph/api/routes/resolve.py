"""
Resolution endpoints.

- POST /resolve: multi-strategy fetch of one identifier (diagnostics included)
- POST /scrape: resolve + classify + score, stored in the history
- POST /expand: bounded BFS over ``@id`` references
- POST /discover-well-known: probe every well-known location of an origin
- POST /inspect: single broad-accept GET for troubleshooting
"""

import httpx
import structlog
from fastapi import APIRouter, Depends

from dpp_graph.api.dependencies import get_http_client, get_negotiator, get_store
from dpp_graph.api.middleware import add_graph_to_wide_event, add_resolution_to_wide_event
from dpp_graph.api.schemas import (
    DiscoverRequest,
    ExpandRequest,
    InspectRequest,
    ResolveRequest,
    ScrapeRequest,
)
from dpp_graph.core.exceptions import ExternalServiceError
from dpp_graph.core.models import APIResponse
from dpp_graph.db import DocumentStore
from dpp_graph.services.classification import analyze
from dpp_graph.services.graph import (
    ExpansionOptions,
    GraphExpander,
    build_graph_structure,
    merge_resolved_data,
)
from dpp_graph.services.resolution import (
    ContentNegotiator,
    discover_well_known,
    inspect_endpoint,
)
from dpp_graph.services.scraper import scrape

logger = structlog.get_logger()
router = APIRouter()


@router.post("/resolve")
async def resolve_identifier(
    request: ResolveRequest,
    negotiator: ContentNegotiator = Depends(get_negotiator),
) -> APIResponse:
    """Resolve a URL or DID to structured data."""
    result = await negotiator.resolve(
        request.identifier,
        convert_did=request.convert_did,
        timeout=request.timeout,
    )
    payload = result.to_dict()
    if result.ok:
        payload["analysis"] = analyze(result.data, result.content_type).to_dict()

    add_resolution_to_wide_event(
        identifier=result.identifier,
        success=result.ok,
        strategy=result.strategy_used.value if result.strategy_used else None,
        attempts=len(result.attempts),
    )
    return APIResponse(
        success=result.ok,
        message=None if result.ok else "No strategy produced structured data",
        data=payload,
    )


@router.post("/scrape")
async def scrape_document(
    request: ScrapeRequest,
    negotiator: ContentNegotiator = Depends(get_negotiator),
    store: DocumentStore = Depends(get_store),
) -> APIResponse:
    """Scrape one passport and record the outcome (failures included)."""
    result = await scrape(negotiator, request.url)

    saved_id = None
    if request.save:
        saved_id = await store.save(request.url, result)

    add_resolution_to_wide_event(
        identifier=request.url,
        success=result.success,
        strategy=result.strategy,
        attempts=len(result.attempts),
        format=result.format,
    )
    return APIResponse(
        success=result.success,
        message="Document scraped and saved" if result.success else "Failed to scrape document",
        data={**result.to_dict(), "saved_id": saved_id},
    )


@router.post("/expand")
async def expand_graph(
    request: ExpandRequest,
    negotiator: ContentNegotiator = Depends(get_negotiator),
) -> APIResponse:
    """Expand a root document into its resolved link graph."""
    options = ExpansionOptions.from_settings(
        max_depth=request.max_depth,
        max_links=request.max_links,
        per_request_timeout=request.timeout,
        convert_did=request.convert_did,
        concurrency=request.concurrency,
        global_timeout=request.global_timeout,
    )

    root = request.root
    if root is None:
        fetched = await negotiator.resolve(request.identifier, convert_did=request.convert_did)
        if not fetched.ok or not isinstance(fetched.data, dict):
            raise ExternalServiceError(
                "Root document could not be resolved",
                {"identifier": request.identifier, "error": fetched.error},
            )
        root = fetched.data

    graph = await GraphExpander(negotiator).expand(root, options)

    data = graph.to_dict(include_data=request.include_data)
    if request.include_structure:
        data["structure"] = build_graph_structure(root, graph.links)
    if request.merge:
        data["merged"] = merge_resolved_data(root, graph.links)

    add_graph_to_wide_event(graph.stats.to_dict(), cancelled=graph.cancelled)
    return APIResponse(success=True, data=data)


@router.post("/discover-well-known")
async def discover(
    request: DiscoverRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
) -> APIResponse:
    """Probe all well-known discovery locations of an origin."""
    report = await discover_well_known(client, request.base_url)
    return APIResponse(success=True, message=report.recommendation, data=report.to_dict())


@router.post("/inspect")
async def inspect(
    request: InspectRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
) -> APIResponse:
    """Single broad-accept GET against an endpoint."""
    report = await inspect_endpoint(client, request.url)
    return APIResponse(success=report["success"], data=report)
