"""
Format classification rules.

Predicates overlap (a Battery Pass may also carry ``@type``), so the rule
list is strictly ordered: specific schema families first, generic JSON-LD
next, plain JSON and markup last. The first matching rule wins.
"""

from collections.abc import Callable
from typing import Any

from dpp_graph.core.constants import CONTEXT_KEY, ID_KEY, TYPE_KEY
from dpp_graph.services.classification.base import FormatClassification, FormatLabel

Predicate = Callable[[dict[str, Any], str], bool]

SCHEMA_ORG_CONTEXTS = ("http://schema.org", "https://schema.org")


def primary_object(document: Any) -> dict[str, Any] | None:
    """The object to classify: the document itself, or the first object of a list."""
    if isinstance(document, dict):
        return document
    if isinstance(document, list):
        for item in document:
            if isinstance(item, dict):
                return item
    return None


def context_contains(document: dict[str, Any], needle: str) -> bool:
    """Substring match against ``@context`` given as a string or a list of strings."""
    context = document.get(CONTEXT_KEY)
    if isinstance(context, str):
        return needle in context
    if isinstance(context, list):
        return any(isinstance(item, str) and needle in item for item in context)
    return False


def type_contains(document: dict[str, Any], value: str, key: str = "type") -> bool:
    types = document.get(key)
    if isinstance(types, str):
        return types == value
    if isinstance(types, list):
        return value in types
    return False


# =============================================================================
# Predicates
# =============================================================================


def _is_verifiable_credential(doc: dict[str, Any], content_type: str) -> bool:
    return (
        context_contains(doc, "credentials")
        or type_contains(doc, "VerifiableCredential")
        or bool(doc.get("credentialSubject"))
    )


def _is_battery_pass(doc: dict[str, Any], content_type: str) -> bool:
    return bool(doc.get("batteryPass")) or bool(doc.get("version") and doc.get("identification"))


def _is_untp_dpp(doc: dict[str, Any], content_type: str) -> bool:
    return (
        type_contains(doc, "DigitalProductPassport")
        or type_contains(doc, "DigitalProductPassport", key=TYPE_KEY)
        or bool(doc.get("productPassport"))
    )


def _is_schema_org(doc: dict[str, Any], content_type: str) -> bool:
    context = doc.get(CONTEXT_KEY)
    if isinstance(context, str) and context.rstrip("/") in SCHEMA_ORG_CONTEXTS:
        return True
    if context_contains(doc, "schema.org"):
        return True
    return isinstance(doc.get(TYPE_KEY), str)


def _is_gs1(doc: dict[str, Any], content_type: str) -> bool:
    return bool(doc.get("gtin") or doc.get("gtin13") or doc.get("gtin14")) or "gs1" in content_type


def _is_json(doc: dict[str, Any], content_type: str) -> bool:
    return "json" in content_type


def _is_html(doc: dict[str, Any], content_type: str) -> bool:
    return "html" in content_type


# (label, rule name, predicate, needs an object to inspect)
RULES: tuple[tuple[FormatLabel, str, Predicate, bool], ...] = (
    (FormatLabel.VERIFIABLE_CREDENTIAL, "verifiable_credential", _is_verifiable_credential, True),
    (FormatLabel.BATTERY_PASS, "battery_pass", _is_battery_pass, True),
    (FormatLabel.UNTP_DPP, "untp_dpp", _is_untp_dpp, True),
    (FormatLabel.SCHEMA_ORG, "schema_org", _is_schema_org, True),
    (FormatLabel.GS1_DIGITAL_LINK, "gs1_digital_link", _is_gs1, False),
    (FormatLabel.JSON, "json_content_type", _is_json, False),
    (FormatLabel.HTML, "html_content_type", _is_html, False),
)


def classify(document: Any, content_type: str | None = None) -> FormatClassification:
    """
    Label a document with its most specific known format.

    Args:
        document: Parsed document (object, list of objects, or anything)
        content_type: Response content type, if known

    Returns:
        FormatClassification; ``Unknown`` for empty input
    """
    if document is None:
        return FormatClassification(FormatLabel.UNKNOWN, "empty")

    content_type = (content_type or "").lower()
    doc = primary_object(document)

    for label, rule, predicate, needs_object in RULES:
        if needs_object and doc is None:
            continue
        if predicate(doc or {}, content_type):
            return FormatClassification(label, rule)

    return FormatClassification(FormatLabel.UNKNOWN, "default")


def is_verifiable_credential(document: Any) -> bool:
    doc = primary_object(document)
    return bool(doc) and (type_contains(doc, "VerifiableCredential") or bool(doc.get("credentialSubject")))


def has_json_ld(document: Any) -> bool:
    doc = primary_object(document)
    return bool(doc) and any(key in doc for key in (CONTEXT_KEY, TYPE_KEY, ID_KEY))
