"""
Scrape service: resolve -> analyze -> persist.

Resolves one URL or DID with the content negotiator, classifies and scores
the payload, and optionally stores the outcome in the document history.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog

from dpp_graph.services.classification import analyze
from dpp_graph.services.resolution import ContentNegotiator, ResolutionResult

logger = structlog.get_logger()


@dataclass
class ScrapeResult:
    """Outcome of scraping one identifier."""
    success: bool
    url: str
    identifier: str
    data: Any = None
    format: str | None = None
    content_type: str | None = None
    extraction_method: str | None = None
    strategy: str | None = None
    size_bytes: int | None = None
    trust_score: int | None = None
    completeness_score: int | None = None
    product: dict[str, Any] = field(default_factory=dict)
    certifications: list[str] = field(default_factory=list)
    error: str | None = None
    attempts: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_resolution(cls, resolution: ResolutionResult) -> "ScrapeResult":
        result = cls(
            success=resolution.ok,
            url=resolution.url,
            identifier=resolution.identifier,
            data=resolution.data,
            content_type=resolution.content_type,
            extraction_method=resolution.extraction_method,
            strategy=resolution.strategy_used.value if resolution.strategy_used else None,
            size_bytes=resolution.size_bytes,
            error=resolution.error,
            attempts=[a.to_dict() for a in resolution.attempts],
        )
        if resolution.ok:
            analysis = analyze(resolution.data, resolution.content_type)
            result.format = analysis.classification.label.value
            result.trust_score = analysis.scores.trust_score
            result.completeness_score = analysis.scores.completeness_score
            result.product = analysis.product
            result.certifications = analysis.certifications
        return result

    def metadata(self) -> dict[str, Any]:
        """Summary stored alongside the payload."""
        return {
            "format": self.format,
            "content_type": self.content_type,
            "extraction_method": self.extraction_method,
            "strategy": self.strategy,
            "size": self.size_bytes,
            "trust_score": self.trust_score,
            "completeness_score": self.completeness_score,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "url": self.url,
            "identifier": self.identifier,
            "data": self.data,
            "format": self.format,
            "content_type": self.content_type,
            "extraction_method": self.extraction_method,
            "strategy": self.strategy,
            "size_bytes": self.size_bytes,
            "trust_score": self.trust_score,
            "completeness_score": self.completeness_score,
            "product": self.product,
            "certifications": self.certifications,
            "error": self.error,
            "attempts": self.attempts,
        }


async def scrape(negotiator: ContentNegotiator, identifier: str) -> ScrapeResult:
    """Resolve and analyze one identifier."""
    resolution = await negotiator.resolve(identifier)
    result = ScrapeResult.from_resolution(resolution)
    logger.info(
        "Scrape finished",
        identifier=identifier,
        success=result.success,
        format=result.format,
        strategy=result.strategy,
    )
    return result
