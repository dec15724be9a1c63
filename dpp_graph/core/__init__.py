"""
Core package initialization.
"""

from dpp_graph.core.config import Settings, get_settings, settings
from dpp_graph.core.models import (
    APIResponse,
    FetchStatus,
    LinkStatus,
    TargetStatus,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "settings",
    # Enums
    "LinkStatus",
    "FetchStatus",
    "TargetStatus",
    # Models
    "APIResponse",
]
