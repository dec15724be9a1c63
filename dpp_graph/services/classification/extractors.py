"""
Format-aware field extraction helpers.

Documents stay generic JSON values; these helpers know where each format
family keeps product name, manufacturer, certifications and services.
"""

from typing import Any

from dpp_graph.services.classification.base import FormatLabel
from dpp_graph.services.classification.rules import primary_object


def _get(obj: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _first(*values: Any) -> Any:
    for value in values:
        if value not in (None, "", [], {}):
            return value
    return None


def _as_text(value: Any) -> str | None:
    """Flatten a name-like value (string, or object with name/type) to text."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, dict):
        return _as_text(value.get("name")) or _as_text(value.get("@type")) or _as_text(value.get("type"))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def extract_certifications(document: Any) -> list[str]:
    """Certification names from the common certification fields, de-duplicated in order."""
    doc = primary_object(document)
    if doc is None:
        return []

    candidates = (
        doc.get("certifications"),
        doc.get("certification"),
        _get(doc, "credentialSubject", "certifications"),
        _get(doc, "sustainability", "certifications"),
        _get(doc, "batteryPass", "certifications"),
        doc.get("certificateOfCompliance"),
    )

    names: list[str] = []
    for field in candidates:
        if isinstance(field, list):
            names.extend(filter(None, (_as_text(item) for item in field)))
        elif isinstance(field, str):
            names.append(field)
        elif isinstance(field, dict):
            for key in ("name", "type"):
                text = _as_text(field.get(key))
                if text:
                    names.append(text)

    return list(dict.fromkeys(n for n in names if n))


def extract_product_info(document: Any, label: FormatLabel | None = None) -> dict[str, Any]:
    """Name, manufacturer, category and identifier, looked up per format family."""
    doc = primary_object(document)
    if doc is None:
        return {}

    subject = doc.get("credentialSubject")
    battery = doc.get("batteryPass")

    if label == FormatLabel.VERIFIABLE_CREDENTIAL and isinstance(subject, dict):
        info = {
            "name": _first(subject.get("name"), subject.get("productName")),
            "manufacturer": _first(subject.get("manufacturer"), subject.get("manufacturerName")),
            "category": _first(subject.get("category"), subject.get("productCategory")),
            "identifier": _first(subject.get("identifier"), subject.get("id")),
        }
    elif label == FormatLabel.UNTP_DPP and isinstance(_get(subject, "product"), dict):
        product = subject["product"]
        info = {
            "name": product.get("name"),
            "manufacturer": _first(product.get("producedByParty"), product.get("manufacturer")),
            "category": _first(product.get("productCategory"), product.get("category")),
            "identifier": _first(product.get("identifier"), product.get("id")),
        }
    elif label == FormatLabel.BATTERY_PASS and isinstance(battery, dict):
        info = {
            "name": battery.get("productName"),
            "manufacturer": _get(battery, "manufacturer", "name"),
            "category": "Battery",
            "identifier": _get(battery, "identification", "id"),
        }
    else:
        info = {
            "name": _first(doc.get("name"), doc.get("productName"), doc.get("title")),
            "manufacturer": _first(doc.get("manufacturer"), doc.get("brand"), doc.get("vendor")),
            "category": _first(doc.get("category"), doc.get("productCategory"), doc.get("@type")),
            "identifier": _first(doc.get("identifier"), doc.get("id"), doc.get("gtin"), doc.get("sku")),
        }

    # Manufacturer/brand are often nested organisations
    if isinstance(info["manufacturer"], dict):
        info["manufacturer"] = _as_text(info["manufacturer"])
    return info


def extract_service_endpoints(document: Any) -> list[dict[str, Any]]:
    """``service`` entries of a DID document as {id, type, endpoint}."""
    doc = primary_object(document)
    if doc is None or not isinstance(doc.get("service"), list):
        return []

    endpoints = []
    for service in doc["service"]:
        if not isinstance(service, dict):
            continue
        endpoint = service.get("serviceEndpoint")
        if endpoint is None:
            continue
        endpoints.append({
            "id": service.get("id"),
            "type": service.get("type"),
            "endpoint": endpoint,
        })
    return endpoints
