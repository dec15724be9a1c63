"""
Classification Module - Base Data Classes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FormatLabel(str, Enum):
    """Heuristic document family. Not a validation result."""
    VERIFIABLE_CREDENTIAL = "Verifiable Credential"
    BATTERY_PASS = "Catena-X Battery Pass"
    UNTP_DPP = "UNTP Digital Product Passport"
    SCHEMA_ORG = "JSON-LD (Schema.org)"
    GS1_DIGITAL_LINK = "GS1 Digital Link"
    JSON = "JSON"
    HTML = "HTML (embedded data)"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class FormatClassification:
    label: FormatLabel
    rule: str  # Name of the predicate that matched


@dataclass(frozen=True)
class ScoreResult:
    trust_score: int
    completeness_score: int

    def to_dict(self) -> dict[str, int]:
        return {"trust_score": self.trust_score, "completeness_score": self.completeness_score}


@dataclass
class DocumentAnalysis:
    """Classification, scores and product summary for one document."""
    classification: FormatClassification
    scores: ScoreResult
    product: dict[str, Any]
    certifications: list[str]
    service_endpoints: list[dict[str, Any]] = field(default_factory=list)  # DID documents only

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.classification.label.value,
            "rule": self.classification.rule,
            **self.scores.to_dict(),
            "product": self.product,
            "certifications": self.certifications,
            "service_endpoints": self.service_endpoints,
        }
