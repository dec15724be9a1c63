"""
Shared constants for content negotiation and document handling.

These constants are used across multiple modules and should be
imported from here to ensure consistency.
"""

# =============================================================================
# JSON-LD reserved keys
# =============================================================================

ID_KEY = "@id"
CONTEXT_KEY = "@context"
TYPE_KEY = "@type"
BLANK_NODE_PREFIX = "_:"


# =============================================================================
# Identifier schemes
# =============================================================================

DID_PREFIX = "did:"
DID_WEB_PREFIX = "did:web:"
HTTP_SCHEMES = ("http", "https")


# =============================================================================
# Accept headers per negotiation strategy
# =============================================================================

ACCEPT_LD_JSON = "application/ld+json"
ACCEPT_JSON = "application/json"
ACCEPT_HTML = "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8"
ACCEPT_ANY_STRUCTURED = "application/ld+json, application/json, text/html, */*"


# =============================================================================
# Well-known discovery locations (probed on the identifier's origin)
# =============================================================================

WELL_KNOWN_PATHS: tuple[str, ...] = (
    "/.well-known/did.json",
    "/.well-known/did-configuration.json",
    "/.well-known/dpp-configuration",
    "/.well-known/dppdata",
    "/.well-known/gs1resolver",
    "/api/dpp",
    "/api/v1/dpp",
    "/api/passports",
    "/dpp/api",
)

# URL suffixes that mark a JSON payload regardless of content type
JSON_SUFFIXES = (".json", ".jsonld")


# =============================================================================
# Markup extraction
# =============================================================================

# Framework state blobs assigned in inline scripts
STATE_ASSIGNMENT_NAMES = ("__INITIAL_STATE__", "__PRELOADED_STATE__", "__APOLLO_STATE__")

# Size of raw payload previews in diagnostics
PREVIEW_CHARS = 200
