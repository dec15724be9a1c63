"""
Core enums and shared API models for the DPP Graph Resolver.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


# =============================================================================
# Enums
# =============================================================================


class LinkStatus(str, Enum):
    """Lifecycle of a graph entry."""
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"
    CANCELLED = "cancelled"


class FetchStatus(str, Enum):
    """Outcome stored for a scraped document."""
    PENDING = "pending"
    FETCHING = "fetching"
    COMPLETED = "completed"
    FAILED = "failed"


class TargetStatus(str, Enum):
    """Crawl target state."""
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


# =============================================================================
# Base Models
# =============================================================================


class BaseSchema(BaseModel):
    """Base schema with common configuration."""
    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# API Response Models
# =============================================================================


class APIResponse(BaseSchema):
    success: bool = True
    message: str | None = None
    data: Any = None
    meta: dict[str, Any] | None = None
