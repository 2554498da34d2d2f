"""User-facing message templates keyed by error kind.

Templates are static. Raw server or exception text is never substituted
into them, so untrusted strings cannot reach titles, messages, or buttons.
"""

from __future__ import annotations

from dataclasses import dataclass

from .codes import ErrorKind


@dataclass(frozen=True)
class ErrorMessage:
    """Title/message/action-label triple shown for one error kind."""

    title: str
    message: str
    action_text: str


ERROR_MESSAGES: dict[ErrorKind, ErrorMessage] = {
    ErrorKind.NETWORK: ErrorMessage(
        title="Connection Problem",
        message=(
            "Unable to connect to the server. "
            "Please check your internet connection and try again."
        ),
        action_text="Retry",
    ),
    ErrorKind.SERVER: ErrorMessage(
        title="Server Error",
        message="Something went wrong on our end. Please try again in a few moments.",
        action_text="Try Again",
    ),
    ErrorKind.CLIENT: ErrorMessage(
        title="Request Error",
        message="There was a problem with your request. Please try again.",
        action_text="Try Again",
    ),
    ErrorKind.SERVICE_UNAVAILABLE: ErrorMessage(
        title="Service Temporarily Unavailable",
        message="The service is temporarily down for maintenance. Please try again later.",
        action_text="Retry Later",
    ),
    ErrorKind.AUTHENTICATION: ErrorMessage(
        title="Authentication Required",
        message="Your session has expired. Please log in again.",
        action_text="Log In",
    ),
    ErrorKind.AUTHORIZATION: ErrorMessage(
        title="Access Denied",
        message="You do not have permission to access this resource.",
        action_text="Go Back",
    ),
    ErrorKind.VALIDATION: ErrorMessage(
        title="Invalid Input",
        message="Please check your input and try again.",
        action_text="Fix Input",
    ),
    ErrorKind.NOT_FOUND: ErrorMessage(
        title="Not Found",
        message="The requested resource could not be found.",
        action_text="Go Back",
    ),
    ErrorKind.TIMEOUT: ErrorMessage(
        title="Request Timeout",
        message="The request took too long to complete. Please try again.",
        action_text="Try Again",
    ),
    ErrorKind.UNKNOWN: ErrorMessage(
        title="Unexpected Error",
        message="An unexpected error occurred. Please try again.",
        action_text="Retry",
    ),
}


def message_for(kind: ErrorKind) -> ErrorMessage:
    """Return the template for a kind, or the UNKNOWN template if none exists."""
    return ERROR_MESSAGES.get(kind, ERROR_MESSAGES[ErrorKind.UNKNOWN])
