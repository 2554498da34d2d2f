"""Error kinds, coarse categories, and API code lookup tables.

Contains the two-tier error taxonomy used throughout leavedesk.

This module provides:
- ErrorKind: The closed, fine-grained classification of a failure's cause
- ErrorCategory: The coarse five-way split used for global error formatting
- API_CODE_KINDS: Lookup from server-side error codes to ErrorKind
- NON_RETRYABLE_KINDS: Kinds that retrying cannot fix

Error Kind Taxonomy
===================

Every raw failure resolves to exactly one kind.

    | Kind | Wire code | Retried | Category |
    |------|-----------|---------|----------|
    | network | NETWORK_ERROR | Yes | network |
    | timeout | TIMEOUT_ERROR | Yes | network |
    | server | SERVER_ERROR | Yes | server |
    | service_unavailable | SERVICE_UNAVAILABLE | Yes | server |
    | client | CLIENT_ERROR | Yes | unknown |
    | unknown | UNKNOWN_ERROR | Yes | unknown |
    | authentication | AUTHENTICATION_ERROR | No | auth |
    | authorization | AUTHORIZATION_ERROR | No | auth |
    | validation | VALIDATION_ERROR | No | validation |
    | not_found | NOT_FOUND_ERROR | No | unknown |

The fine kinds drive retry decisions and user-facing templates; the coarse
categories drive ``ErrorContext.format_error``. The two tables are kept
separate on purpose: they serve different consumers.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed classification of a failure's cause."""

    NETWORK = "network"
    SERVER = "server"
    CLIENT = "client"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    TIMEOUT = "timeout"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNKNOWN = "unknown"

    @property
    def code(self) -> str:
        """Stable wire code for this kind (e.g., 'VALIDATION_ERROR')."""
        return _KIND_CODES[self]

    @property
    def category(self) -> ErrorCategory:
        """Coarse category this kind folds into."""
        return _KIND_CATEGORIES[self]

    @property
    def is_retryable(self) -> bool:
        """Whether the default policy retries this kind."""
        return self not in NON_RETRYABLE_KINDS


class ErrorCategory(str, Enum):
    """Coarse five-way split used for cross-cutting error notification."""

    AUTH = "auth"
    NETWORK = "network"
    VALIDATION = "validation"
    SERVER = "server"
    UNKNOWN = "unknown"


_KIND_CODES: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: "NETWORK_ERROR",
    ErrorKind.SERVER: "SERVER_ERROR",
    ErrorKind.CLIENT: "CLIENT_ERROR",
    ErrorKind.AUTHENTICATION: "AUTHENTICATION_ERROR",
    ErrorKind.AUTHORIZATION: "AUTHORIZATION_ERROR",
    ErrorKind.VALIDATION: "VALIDATION_ERROR",
    ErrorKind.NOT_FOUND: "NOT_FOUND_ERROR",
    ErrorKind.TIMEOUT: "TIMEOUT_ERROR",
    ErrorKind.SERVICE_UNAVAILABLE: "SERVICE_UNAVAILABLE",
    ErrorKind.UNKNOWN: "UNKNOWN_ERROR",
}

_KIND_CATEGORIES: dict[ErrorKind, ErrorCategory] = {
    ErrorKind.AUTHENTICATION: ErrorCategory.AUTH,
    ErrorKind.AUTHORIZATION: ErrorCategory.AUTH,
    ErrorKind.NETWORK: ErrorCategory.NETWORK,
    ErrorKind.TIMEOUT: ErrorCategory.NETWORK,
    ErrorKind.VALIDATION: ErrorCategory.VALIDATION,
    ErrorKind.SERVER: ErrorCategory.SERVER,
    ErrorKind.SERVICE_UNAVAILABLE: ErrorCategory.SERVER,
    ErrorKind.CLIENT: ErrorCategory.UNKNOWN,
    ErrorKind.NOT_FOUND: ErrorCategory.UNKNOWN,
    ErrorKind.UNKNOWN: ErrorCategory.UNKNOWN,
}

NON_RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset({
    ErrorKind.AUTHENTICATION,
    ErrorKind.AUTHORIZATION,
    ErrorKind.VALIDATION,
    ErrorKind.NOT_FOUND,
})

# Server-side codes as they appear in an API error body. Every kind's own
# wire code is accepted too, so an error re-serialized by this library
# classifies back to the same kind.
API_CODE_KINDS: dict[str, ErrorKind] = {
    "UNAUTHORIZED": ErrorKind.AUTHENTICATION,
    "TOKEN_EXPIRED": ErrorKind.AUTHENTICATION,
    "FORBIDDEN": ErrorKind.AUTHORIZATION,
    "VALIDATION_ERROR": ErrorKind.VALIDATION,
    "BAD_REQUEST": ErrorKind.VALIDATION,
    "NETWORK_ERROR": ErrorKind.NETWORK,
    "TIMEOUT": ErrorKind.TIMEOUT,
    "NOT_FOUND": ErrorKind.NOT_FOUND,
    "INTERNAL_ERROR": ErrorKind.SERVER,
    **{code: kind for kind, code in _KIND_CODES.items()},
}

SERVER_CODE_PREFIX = "SERVER_"

# Envelope statuses that mark a failed response
FAILED_ENVELOPE_STATUSES: frozenset[str] = frozenset({"FAILED", "ERROR"})


def kind_for_code(code: str) -> ErrorKind:
    """Map a server-side error code to an ErrorKind.

    Args:
        code: Error code string from an API error body (e.g., 'FORBIDDEN').

    Returns:
        The matching kind, SERVER for SERVER_* codes, UNKNOWN otherwise.
    """
    kind = API_CODE_KINDS.get(code)
    if kind is not None:
        return kind
    if code.startswith(SERVER_CODE_PREFIX):
        return ErrorKind.SERVER
    return ErrorKind.UNKNOWN


def kind_for_status(status_code: int) -> ErrorKind:
    """Map an HTTP status code to an ErrorKind.

    400 and 422 are request-validation failures; 503 is reported separately
    from other 5xx responses so maintenance windows get their own message.
    """
    if status_code in (400, 422):
        return ErrorKind.VALIDATION
    if status_code == 401:
        return ErrorKind.AUTHENTICATION
    if status_code == 403:
        return ErrorKind.AUTHORIZATION
    if status_code == 404:
        return ErrorKind.NOT_FOUND
    if status_code == 408:
        return ErrorKind.TIMEOUT
    if status_code == 503:
        return ErrorKind.SERVICE_UNAVAILABLE
    if 500 <= status_code < 600:
        return ErrorKind.SERVER
    if 400 <= status_code < 500:
        return ErrorKind.CLIENT
    return ErrorKind.UNKNOWN
