"""
Request models for the HTTP API.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class ResolveRequest(BaseModel):
    """Resolve one identifier."""
    identifier: str = Field(..., min_length=1, max_length=2000, description="URL or did:web identifier")
    convert_did: bool | None = Field(None, description="Override did:web to HTTPS conversion")
    timeout: float | None = Field(None, gt=0, le=60, description="Per-strategy timeout in seconds")


class ScrapeRequest(BaseModel):
    """Resolve, analyze and (optionally) store one identifier."""
    url: str = Field(..., min_length=1, max_length=2000)
    save: bool = True


class ExpandRequest(BaseModel):
    """Expand a root document, given inline or by identifier."""
    root: dict[str, Any] | None = None
    identifier: str | None = Field(None, min_length=1, max_length=2000)
    max_depth: int | None = Field(None, ge=0, le=10)
    max_links: int | None = Field(None, ge=0, le=500)
    concurrency: int | None = Field(None, ge=1, le=32)
    timeout: float | None = Field(None, gt=0, le=60)
    global_timeout: float | None = Field(None, gt=0, le=600)
    convert_did: bool | None = None
    include_data: bool = True
    include_structure: bool = False
    merge: bool = False

    @model_validator(mode="after")
    def check_root_or_identifier(self) -> "ExpandRequest":
        if (self.root is None) == (self.identifier is None):
            raise ValueError("Provide exactly one of 'root' or 'identifier'")
        return self


class DiscoverRequest(BaseModel):
    base_url: str = Field(..., min_length=1, max_length=2000)


class InspectRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2000)


class TargetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    base_url: str = Field(..., min_length=1, max_length=1000)
    notes: str | None = Field(None, max_length=2000)
