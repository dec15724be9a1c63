"""
Identifier normalization between did:web and HTTPS URLs.

did:web method-specific ids are colon-delimited: the first segment is the
host (a port is percent-encoded as ``%3A``), the remaining segments form
the URL path.

    did:web:example.com:product:123    <->  https://example.com/product/123
    did:web:localhost%3A8443:p:1       <->  https://localhost:8443/p/1

Both directions are best effort and never raise: on any parse problem the
input is returned unchanged, since the result only feeds the resolver.
"""

from urllib.parse import unquote, urlparse

from dpp_graph.core.constants import DID_PREFIX, DID_WEB_PREFIX

ENCODED_COLON = "%3A"


def is_did(identifier: str) -> bool:
    """True for any decentralized identifier (``did:<method>:...``)."""
    return isinstance(identifier, str) and identifier.startswith(DID_PREFIX)


def is_web_did(identifier: str) -> bool:
    """True for did:web identifiers, the only method resolved over HTTPS."""
    return isinstance(identifier, str) and identifier.startswith(DID_WEB_PREFIX)


def _did_segments(did: str) -> list[str]:
    method_specific = did[len(DID_WEB_PREFIX):]
    # DID URL fragments/queries are not part of the location
    for marker in ("#", "?"):
        method_specific = method_specific.split(marker, 1)[0]
    segments = method_specific.split(":")
    if not segments or not segments[0]:
        raise ValueError(f"did:web without host: {did}")
    return segments


def to_http_url(identifier: str) -> str:
    """
    Map a did:web identifier to its HTTPS URL.

    Any other identifier (URLs, other DID methods, URNs) is returned
    unchanged.
    """
    if not is_web_did(identifier):
        return identifier
    try:
        segments = _did_segments(identifier)
        host = unquote(segments[0])
        path = "/".join(unquote(segment) for segment in segments[1:] if segment)
        url = f"https://{host}"
        return f"{url}/{path}" if path else url
    except ValueError:
        return identifier


def to_did(url: str) -> str:
    """
    Map an HTTPS URL to did:web form.

    Exact inverse for URLs produced by ``to_http_url``; query strings and
    fragments are dropped. Non-HTTP(S) input is returned unchanged.
    """
    try:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            return url
        host = parsed.hostname.lower()
        if parsed.port:
            host = f"{host}{ENCODED_COLON}{parsed.port}"
        segments = [segment.replace(":", ENCODED_COLON) for segment in parsed.path.split("/") if segment]
        return ":".join([DID_WEB_PREFIX + host, *segments])
    except ValueError:
        return url


def did_document_url(did: str) -> str | None:
    """
    Location of the DID document for a did:web identifier.

    Bare domains publish at ``/.well-known/did.json``, path-based DIDs at
    ``<path>/did.json``. Returns None for anything else.
    """
    if not is_web_did(did):
        return None
    base = to_http_url(did)
    if base == did:
        return None
    if urlparse(base).path in ("", "/"):
        return f"{base.rstrip('/')}/.well-known/did.json"
    return f"{base}/did.json"
