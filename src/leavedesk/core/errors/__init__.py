"""Error classification and handling.

Re-exports all public symbols.
"""

from leavedesk.core.errors.codes import (
    API_CODE_KINDS,
    NON_RETRYABLE_KINDS,
    ErrorCategory,
    ErrorKind,
    kind_for_code,
    kind_for_status,
)
from leavedesk.core.errors.messages import ERROR_MESSAGES, ErrorMessage, message_for
from leavedesk.core.errors.models import ClassifiedError, NetworkErrorDetails
from leavedesk.core.errors.categories import categorize, format_error_message
from leavedesk.core.errors.classifier import ErrorClassifier, classify, get_user_message

__all__ = [
    "API_CODE_KINDS",
    "NON_RETRYABLE_KINDS",
    "ErrorCategory",
    "ErrorKind",
    "kind_for_code",
    "kind_for_status",
    "ERROR_MESSAGES",
    "ErrorMessage",
    "message_for",
    "ClassifiedError",
    "NetworkErrorDetails",
    "categorize",
    "format_error_message",
    "ErrorClassifier",
    "classify",
    "get_user_message",
]
