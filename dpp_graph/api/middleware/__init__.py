"""
API Middleware package.

Contains middleware components for request processing:
- Wide Events: Canonical log line pattern for comprehensive request logging
"""

from dpp_graph.api.middleware.wide_events import (
    WideEventMiddleware,
    add_graph_to_wide_event,
    add_resolution_to_wide_event,
)

__all__ = [
    "WideEventMiddleware",
    "add_graph_to_wide_event",
    "add_resolution_to_wide_event",
]
