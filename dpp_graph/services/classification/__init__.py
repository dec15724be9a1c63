"""
Classification module - format detection and quality heuristics.

Components:
- rules: Ordered format rules (first match wins)
- scorer: Trust/completeness scores and one-pass analyze()
- extractors: Product info, certifications, DID service endpoints
"""

from dpp_graph.services.classification.base import (
    DocumentAnalysis,
    FormatClassification,
    FormatLabel,
    ScoreResult,
)
from dpp_graph.services.classification.extractors import (
    extract_certifications,
    extract_product_info,
    extract_service_endpoints,
)
from dpp_graph.services.classification.rules import classify, has_json_ld, is_verifiable_credential
from dpp_graph.services.classification.scorer import analyze, count_fields, score

__all__ = [
    "DocumentAnalysis",
    "FormatClassification",
    "FormatLabel",
    "ScoreResult",
    "analyze",
    "classify",
    "count_fields",
    "extract_certifications",
    "extract_product_info",
    "extract_service_endpoints",
    "has_json_ld",
    "is_verifiable_credential",
    "score",
]
