"""
Embedded structured data extraction from HTML pages.

Lookup order, first hit wins:
1. ``<script type="application/ld+json">`` blocks (one block -> object,
   several -> list)
2. Framework state blobs: Next.js ``__NEXT_DATA__`` (``props.pageProps``),
   Nuxt ``__NUXT_DATA__``, inline ``window.__INITIAL_STATE__ = {...}``
   style assignments
3. Page metadata (title, description, canonical URL, OpenGraph)
"""

import json
import re
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup

from dpp_graph.core.constants import STATE_ASSIGNMENT_NAMES
from dpp_graph.services.resolution.base import is_meaningful

_STATE_ASSIGNMENT = re.compile(
    r"window\.(?P<name>" + "|".join(re.escape(n) for n in STATE_ASSIGNMENT_NAMES) + r")\s*=\s*",
)


@dataclass
class EmbeddedData:
    """Structured payload found in a page and how it was found."""
    data: Any
    method: str  # html_script_tag, next_data, nuxt_data, state_assignment, page_metadata


def _load_json(text: str | None) -> Any:
    if not text or not text.strip():
        return None
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None


def _extract_ld_json(soup: BeautifulSoup) -> Any:
    blocks = []
    for script in soup.find_all("script", attrs={"type": re.compile(r"^\s*application/ld\+json", re.I)}):
        parsed = _load_json(script.string or script.get_text())
        if is_meaningful(parsed):
            blocks.append(parsed)
    if not blocks:
        return None
    return blocks[0] if len(blocks) == 1 else blocks


def _extract_next_data(soup: BeautifulSoup) -> Any:
    script = soup.find("script", id="__NEXT_DATA__")
    if script is None:
        return None
    parsed = _load_json(script.string or script.get_text())
    if not isinstance(parsed, dict):
        return None
    props = parsed.get("props")
    if not isinstance(props, dict):
        return None
    page_props = props.get("pageProps")
    return page_props if is_meaningful(page_props) else None


def _extract_nuxt_data(soup: BeautifulSoup) -> Any:
    script = soup.find("script", id="__NUXT_DATA__")
    if script is None:
        return None
    parsed = _load_json(script.string or script.get_text())
    return parsed if is_meaningful(parsed) else None


def _extract_state_assignment(soup: BeautifulSoup) -> Any:
    decoder = json.JSONDecoder()
    for script in soup.find_all("script"):
        text = script.string or ""
        match = _STATE_ASSIGNMENT.search(text)
        if not match:
            continue
        try:
            parsed, _ = decoder.raw_decode(text, match.end())
        except (json.JSONDecodeError, RecursionError):
            continue
        if is_meaningful(parsed):
            return parsed
    return None


def _extract_page_metadata(soup: BeautifulSoup) -> dict[str, Any] | None:
    metadata: dict[str, Any] = {}

    if soup.title and soup.title.string and soup.title.string.strip():
        metadata["title"] = soup.title.string.strip()

    description = soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)})
    if description and description.get("content"):
        metadata["description"] = description["content"].strip()

    canonical = soup.find("link", rel="canonical")
    if canonical and canonical.get("href"):
        metadata["url"] = canonical["href"].strip()

    open_graph = {}
    for tag in soup.find_all("meta", attrs={"property": re.compile(r"^og:", re.I)}):
        if tag.get("content"):
            open_graph[tag["property"][3:].lower()] = tag["content"].strip()
    if open_graph:
        metadata["openGraph"] = open_graph

    return metadata or None


def extract_embedded_data(html: str) -> EmbeddedData | None:
    """
    Find the first embedded structured payload in ``html``.

    Returns:
        EmbeddedData, or None when the page has no title, metadata or
        structured blocks at all.
    """
    if not html or not html.strip():
        return None

    soup = BeautifulSoup(html, "lxml")

    extractors = (
        ("html_script_tag", _extract_ld_json),
        ("next_data", _extract_next_data),
        ("nuxt_data", _extract_nuxt_data),
        ("state_assignment", _extract_state_assignment),
        ("page_metadata", _extract_page_metadata),
    )
    for method, extractor in extractors:
        data = extractor(soup)
        if data is not None:
            return EmbeddedData(data=data, method=method)
    return None


def is_markup(content_type: str | None) -> bool:
    """True for HTML/XHTML content types."""
    return bool(content_type) and "html" in content_type.lower()
