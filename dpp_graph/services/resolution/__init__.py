"""
Resolution module - fetch one identifier as structured data.

Components:
- negotiator: ContentNegotiator with ordered fallback strategies
- html_extractor: Embedded JSON-LD / framework state / page metadata
- well_known: Full discovery-location report for an origin
"""

from dpp_graph.services.resolution.base import (
    FetchAttempt,
    ResolutionResult,
    Strategy,
    payload_size,
)
from dpp_graph.services.resolution.html_extractor import EmbeddedData, extract_embedded_data
from dpp_graph.services.resolution.negotiator import (
    ContentNegotiator,
    create_client,
    inspect_endpoint,
)
from dpp_graph.services.resolution.well_known import DiscoveryReport, ProbeResult, discover_well_known

__all__ = [
    "ContentNegotiator",
    "DiscoveryReport",
    "EmbeddedData",
    "FetchAttempt",
    "ProbeResult",
    "ResolutionResult",
    "Strategy",
    "create_client",
    "discover_well_known",
    "extract_embedded_data",
    "inspect_endpoint",
    "payload_size",
]
