"""Coarse error categories for cross-cutting notification.

The fine ErrorKind drives retries and templates; the coarse ErrorCategory
drives the single-line text shown by the global error notifier.
"""

from __future__ import annotations

from .codes import ErrorCategory
from .models import ClassifiedError

_UNKNOWN_FALLBACK = "An unknown error occurred"

_CATEGORY_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.AUTH: "Authentication error: Please login again.",
    ErrorCategory.NETWORK: (
        "Unable to connect to the server. "
        "Please check your internet connection and try again."
    ),
    ErrorCategory.SERVER: "Something went wrong on our end. Please try again in a few moments.",
}


def categorize(error: ClassifiedError) -> ErrorCategory:
    """Fold a classified error into its coarse category."""
    return error.kind.category


def format_error_message(error: ClassifiedError) -> str:
    """Format a category-specific line for a classified error.

    Validation errors keep the server's explanation so the user can see which
    input to fix; unknown errors fall back to the raw text.
    """
    category = categorize(error)
    if category is ErrorCategory.VALIDATION:
        return f"Validation error: {error.raw_message}"
    if category in _CATEGORY_MESSAGES:
        return _CATEGORY_MESSAGES[category]
    return error.raw_message or _UNKNOWN_FALLBACK
