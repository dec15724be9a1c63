"""
Classification Module - Scoring.

Trust and completeness heuristics for a classified document:

    trust        = clip(base(label) + min(2 * fields, 40) + min(10 * certs, 30), 0, 100)
    completeness = round(100 * present / required)

``fields`` counts values recursively down to depth 5. Required-field
checklists use dotted paths; a path counts only if every segment is
non-null.
"""

from typing import Any

from dpp_graph.services.classification.base import (
    DocumentAnalysis,
    FormatLabel,
    ScoreResult,
)
from dpp_graph.services.classification.extractors import (
    extract_certifications,
    extract_product_info,
    extract_service_endpoints,
)
from dpp_graph.services.classification.rules import classify, primary_object


# Base score per format family
FORMAT_SCORES = {
    FormatLabel.VERIFIABLE_CREDENTIAL: 30,
    FormatLabel.BATTERY_PASS: 30,
    FormatLabel.UNTP_DPP: 28,
    FormatLabel.SCHEMA_ORG: 25,
    FormatLabel.GS1_DIGITAL_LINK: 25,
    FormatLabel.JSON: 15,
    FormatLabel.HTML: 10,
    FormatLabel.UNKNOWN: 0,
}

FIELD_POINTS = 2
FIELD_POINTS_MAX = 40
CERT_POINTS = 10
CERT_POINTS_MAX = 30

REQUIRED_FIELDS = {
    FormatLabel.VERIFIABLE_CREDENTIAL: ("@context", "type", "credentialSubject", "issuer", "issuanceDate"),
    FormatLabel.BATTERY_PASS: ("batteryPass", "identification", "manufacturer", "sustainability"),
    FormatLabel.SCHEMA_ORG: ("@context", "@type", "name", "identifier", "manufacturer"),
    FormatLabel.GS1_DIGITAL_LINK: ("@context", "@type", "name", "identifier", "manufacturer"),
    FormatLabel.UNTP_DPP: (
        "type",
        "credentialSubject.product.name",
        "credentialSubject.product.identifier",
        "issuer",
    ),
}
DEFAULT_REQUIRED_FIELDS = ("name", "manufacturer", "identifier")


def count_fields(value: Any, max_depth: int = 5, _depth: int = 0) -> int:
    """Number of values in ``value``, counting nested containers down to ``max_depth``."""
    if not isinstance(value, (dict, list)) or not value or _depth > max_depth:
        return 0
    children = value.values() if isinstance(value, dict) else value
    count = 0
    for child in children:
        count += 1
        if isinstance(child, (dict, list)):
            count += count_fields(child, max_depth, _depth + 1)
    return count


def has_path(document: Any, path: str) -> bool:
    value = document
    for key in path.split("."):
        if not isinstance(value, dict):
            return False
        value = value.get(key)
        if value is None:
            return False
    return True


def trust_score(document: Any, label: FormatLabel) -> int:
    score = FORMAT_SCORES.get(label, 0)
    score += min(FIELD_POINTS * count_fields(document), FIELD_POINTS_MAX)
    score += min(CERT_POINTS * len(extract_certifications(document)), CERT_POINTS_MAX)
    return max(0, min(score, 100))


def completeness_score(document: Any, label: FormatLabel) -> int:
    if document is None:
        return 0
    required = REQUIRED_FIELDS.get(label, DEFAULT_REQUIRED_FIELDS)
    target = primary_object(document)
    present = sum(1 for path in required if has_path(target, path))
    return round(100 * present / len(required))


def score(document: Any, label: FormatLabel) -> ScoreResult:
    """Trust and completeness for ``document`` classified as ``label``."""
    return ScoreResult(
        trust_score=trust_score(document, label),
        completeness_score=completeness_score(document, label),
    )


def analyze(document: Any, content_type: str | None = None) -> DocumentAnalysis:
    """Classify, score and summarise a document in one pass."""
    classification = classify(document, content_type)
    return DocumentAnalysis(
        classification=classification,
        scores=score(document, classification.label),
        product=extract_product_info(document, classification.label),
        certifications=extract_certifications(document),
        service_endpoints=extract_service_endpoints(document),
    )
