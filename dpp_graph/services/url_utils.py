"""
URL Utilities for the DPP Graph Resolver.

Provides:
- is_http_url / is_fetchable_url: scheme and structure checks
- extract_origin: scheme://host[:port] for throttling and probing
- with_json_suffix / looks_like_json_url: ``.json`` fallback handling
- resolves_to_public_ip: optional SSRF guard (ip.is_global)
"""

import asyncio
import ipaddress
import socket
from urllib.parse import urlparse, urlunparse

import structlog

from dpp_graph.core.constants import HTTP_SCHEMES, JSON_SUFFIXES

logger = structlog.get_logger()


def is_http_url(url: str) -> bool:
    """True when ``url`` uses http or https and names a host."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme.lower() in HTTP_SCHEMES and bool(parsed.hostname)


def is_fetchable_url(url: str) -> bool:
    """Validate URL structure (scheme, host, no userinfo)."""
    try:
        parsed = urlparse(url)
        if parsed.scheme.lower() not in HTTP_SCHEMES:
            return False
        # No credentials in URL
        if parsed.username or parsed.password:
            return False
        if not parsed.netloc or not parsed.hostname:
            return False
        # Accessing .port validates the port number
        parsed.port
        return True
    except ValueError:
        return False


def extract_origin(url: str) -> str | None:
    """Return ``scheme://host[:port]`` with a lowercase host, or None."""
    try:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.hostname:
            return None
        netloc = parsed.hostname.lower()
        if parsed.port:
            netloc = f"{netloc}:{parsed.port}"
        return f"{parsed.scheme.lower()}://{netloc}"
    except ValueError:
        return None


def looks_like_json_url(url: str) -> bool:
    """True when the URL path ends with a JSON file suffix."""
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return False
    return path.endswith(JSON_SUFFIXES)


def with_json_suffix(url: str) -> str | None:
    """
    Append ``.json`` to the URL path.

    Returns None when the path already carries a JSON suffix. A trailing
    slash is dropped first so ``/product/1/`` becomes ``/product/1.json``.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if looks_like_json_url(url):
        return None
    path = parsed.path.rstrip("/")
    if not path:
        return None
    return urlunparse(parsed._replace(path=f"{path}.json", fragment=""))


def join_origin(url: str, path: str) -> str | None:
    """Build ``origin + path`` for a probe location on the same origin."""
    origin = extract_origin(url)
    if origin is None:
        return None
    return f"{origin}{path}"


async def resolves_to_public_ip(host: str) -> bool:
    """Check if host resolves only to global (public) IPs.

    Blocks: private, loopback, link-local, multicast, reserved, unspecified.
    """
    def _check() -> bool:
        try:
            infos = socket.getaddrinfo(host, None, socket.AF_UNSPEC)
        except socket.gaierror:
            return False
        if not infos:
            return False
        for _, _, _, _, addr in infos:
            try:
                ip = ipaddress.ip_address(addr[0])
            except ValueError:
                return False
            if not ip.is_global:
                return False
        return True

    allowed = await asyncio.to_thread(_check)
    if not allowed:
        logger.warning("Blocked non-global address", host=host)
    return allowed
