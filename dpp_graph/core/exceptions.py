"""
Exception hierarchy for the DPP Graph Resolver.

Per-link failures during resolution and expansion are captured as data
(see ``ErrorKind``) and never raised across the traversal. The classes
below are raised for malformed input, and carried as typed diagnostics
inside resolver attempts.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure category recorded on attempts and graph entries."""
    NETWORK = "network"
    HTTP = "http"
    PARSE = "parse"
    SCHEME = "scheme"
    BUDGET = "budget"
    CANCELLED = "cancelled"


class DPPGraphError(Exception):
    """Base exception for all application errors."""

    kind: ErrorKind | None = None

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NetworkError(DPPGraphError):
    """Timeout or connection failure."""
    kind = ErrorKind.NETWORK


class HttpError(DPPGraphError):
    """Endpoint answered with a non-2xx status."""
    kind = ErrorKind.HTTP

    def __init__(self, status_code: int, reason: str = "", details: dict[str, Any] | None = None):
        self.status_code = status_code
        message = f"HTTP {status_code}"
        if reason:
            message = f"{message} {reason}"
        super().__init__(message, details)


class ParseError(DPPGraphError):
    """Payload was not valid structured data, or none was found."""
    kind = ErrorKind.PARSE


class SchemeError(DPPGraphError):
    """Identifier does not map to an HTTP(S) URL."""
    kind = ErrorKind.SCHEME


class BudgetExceeded(DPPGraphError):
    """Depth or link budget reached."""
    kind = ErrorKind.BUDGET


class TraversalCancelled(DPPGraphError):
    """Expansion was cancelled or hit its global deadline."""
    kind = ErrorKind.CANCELLED


class InvalidInputError(DPPGraphError, ValueError):
    """Malformed input to the resolver or the expansion engine."""


class ResourceNotFoundError(DPPGraphError):
    """Requested record does not exist."""


class ExternalServiceError(DPPGraphError):
    """Upstream endpoint could not be used."""


class DatabaseError(DPPGraphError):
    """Scrape history or crawl target storage failed."""

    def __init__(self, message: str, original_error: Exception | None = None):
        self.original_error = original_error
        super().__init__(message)
