"""ErrorClassifier implementation for remote-call and render failures.

Maps any raised or returned failure value to a ClassifiedError. The
classifier is total: every input resolves to exactly one ErrorKind, and no
input makes it raise.
"""

from __future__ import annotations

import asyncio
import socket
import traceback
from collections.abc import Mapping
from typing import Any

import httpx

from leavedesk.core.logging import get_logger

from .codes import (
    FAILED_ENVELOPE_STATUSES,
    ErrorKind,
    kind_for_code,
    kind_for_status,
)
from .models import ClassifiedError, NetworkErrorDetails

_logger = get_logger("errors")

# Body fields that may carry the server's own error text, in priority order
_BODY_MESSAGE_FIELDS = ("message", "error", "details")


def _safe_str(value: object) -> str:
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__}>"


def _get_field(raw: object, name: str) -> Any:
    """Read a field from a mapping key or an attribute, None when absent."""
    if isinstance(raw, Mapping):
        return raw.get(name)
    return getattr(raw, name, None)


def _has_field(raw: object, name: str) -> bool:
    if isinstance(raw, Mapping):
        return name in raw
    return hasattr(raw, name)


def _body_message(body: object) -> str | None:
    if not isinstance(body, Mapping):
        return None
    for name in _BODY_MESSAGE_FIELDS:
        value = body.get(name)
        if isinstance(value, str) and value:
            return value
    return None


def _format_stack(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class ErrorClassifier:
    """Classifies failures into the closed ErrorKind taxonomy.

    Rules are applied in priority order, first match wins:
    0. Already-classified errors are returned unchanged
    1. Structured API errors with a string ``code`` and a ``message``
    2. Failures carrying an HTTP status code
    3. Connectivity failures (timeouts, refused or dropped connections)
    4. Any other exception (a client-side fault)
    5. Everything else
    """

    def classify(self, raw: object) -> ClassifiedError:
        """Classify a raw failure.

        Args:
            raw: Anything that was raised, rejected, or returned as an error.

        Returns:
            ClassifiedError with kind, raw message and template user message.
        """
        if isinstance(raw, ClassifiedError):
            return raw

        try:
            result = self._classify(raw)
        except Exception:
            _logger.exception("error_classification_failed", raw_type=type(raw).__name__)
            result = ClassifiedError(
                kind=ErrorKind.UNKNOWN,
                raw_message="An unknown error occurred",
                details=_safe_str(raw),
            )

        _logger.debug(
            "error_classified",
            kind=result.kind.value,
            status_code=result.status_code,
            raw_type=type(raw).__name__,
            message=result.raw_message,
        )
        return result

    def _classify(self, raw: object) -> ClassifiedError:
        structured = self._classify_structured(raw)
        if structured is not None:
            return structured

        by_status = self._classify_by_status(raw)
        if by_status is not None:
            return by_status

        connectivity = self._classify_connectivity(raw)
        if connectivity is not None:
            return connectivity

        if isinstance(raw, Exception):
            return ClassifiedError(
                kind=ErrorKind.CLIENT,
                raw_message=_safe_str(raw) or type(raw).__name__,
                details={
                    "type": type(raw).__name__,
                    "message": _safe_str(raw),
                    "stack": _format_stack(raw),
                },
            )

        if raw is None:
            return ClassifiedError(
                kind=ErrorKind.UNKNOWN,
                raw_message="An unknown error occurred",
                details="None",
            )

        text = _safe_str(raw)
        return ClassifiedError(
            kind=ErrorKind.UNKNOWN,
            raw_message=text if isinstance(raw, str) else "An unknown error occurred",
            details=text,
        )

    def _classify_structured(self, raw: object) -> ClassifiedError | None:
        """Rule 1: errors already shaped as {code, message} by the API."""
        if isinstance(raw, (str, bytes)) or raw is None:
            return None

        code = _get_field(raw, "code")
        has_message = _has_field(raw, "message") or _has_field(raw, "error")
        if isinstance(code, str) and has_message:
            message = _get_field(raw, "message") or _get_field(raw, "error")
            return ClassifiedError(
                kind=kind_for_code(code),
                raw_message=_safe_str(message) if message else "API error",
                details=_get_field(raw, "details"),
            )

        # A failed response envelope without an error body
        if isinstance(raw, Mapping):
            status = raw.get("status")
            if isinstance(status, str) and status in FAILED_ENVELOPE_STATUSES and (
                "message" in raw or "error" in raw
            ):
                message = raw.get("message") or raw.get("error")
                return ClassifiedError(
                    kind=ErrorKind.SERVER,
                    raw_message=_safe_str(message) if message else "API error",
                    details=dict(raw),
                )
        return None

    def _classify_by_status(self, raw: object) -> ClassifiedError | None:
        """Rule 2: failures that carry an HTTP status code."""
        status_code: int | None = None
        body: object = None
        fallback_message: str | None = None

        if isinstance(raw, httpx.HTTPStatusError):
            response = raw.response
            status_code = response.status_code
            body = self._response_body(response)
            fallback_message = response.reason_phrase or None
        elif isinstance(raw, Mapping):
            for name in ("status", "status_code", "statusCode"):
                value = raw.get(name)
                if isinstance(value, int) and not isinstance(value, bool):
                    status_code = value
                    break
            body = raw.get("data", raw)
        elif not isinstance(raw, (str, bytes)) and raw is not None:
            value = getattr(raw, "status_code", None)
            response = getattr(raw, "response", None)
            if value is None and response is not None:
                value = getattr(response, "status_code", None)
                if isinstance(response, httpx.Response):
                    body = self._response_body(response)
            if isinstance(value, int) and not isinstance(value, bool):
                status_code = value

        if status_code is None:
            return None

        kind = kind_for_status(status_code)
        message = _body_message(body) or fallback_message
        if message is None and isinstance(raw, BaseException):
            message = _safe_str(raw)
        return ClassifiedError(
            kind=kind,
            raw_message=message or "An error occurred",
            status_code=status_code,
            details=body if isinstance(body, Mapping) else None,
        )

    def _classify_connectivity(self, raw: object) -> ClassifiedError | None:
        """Rule 3: no response was received at all."""
        if not isinstance(raw, BaseException):
            return None

        if isinstance(raw, (httpx.TimeoutException, TimeoutError, asyncio.TimeoutError)):
            return ClassifiedError(
                kind=ErrorKind.TIMEOUT,
                raw_message=_safe_str(raw) or "Request timeout",
                details=self._network_details(raw),
            )

        if isinstance(raw, (httpx.TransportError, ConnectionError, socket.gaierror)):
            return ClassifiedError(
                kind=ErrorKind.NETWORK,
                raw_message=_safe_str(raw) or "Network error",
                details=self._network_details(raw),
            )
        return None

    @staticmethod
    def _network_details(exc: BaseException) -> NetworkErrorDetails:
        url: str | None = None
        method: str | None = None
        if isinstance(exc, httpx.RequestError):
            try:
                request = exc.request
            except RuntimeError:
                # Raised by httpx when the error was created without a request
                request = None
            if request is not None:
                url = str(request.url)
                method = request.method.upper()
        return NetworkErrorDetails(
            is_online=not isinstance(exc, socket.gaierror),
            url=url,
            method=method,
        )

    @staticmethod
    def _response_body(response: httpx.Response) -> object:
        try:
            return response.json()
        except (ValueError, httpx.ResponseNotRead):
            return None

    def get_user_message(self, raw: object) -> str:
        """Classify and return only the user-facing message."""
        return self.classify(raw).user_message

    def get_error_kind(self, raw: object) -> ErrorKind:
        return self.classify(raw).kind

    def should_retry(self, raw: object) -> bool:
        """Whether the default retry policy would retry this failure's kind."""
        return self.classify(raw).kind.is_retryable

    def is_service_unavailable(self, raw: object) -> bool:
        """True for failures meaning the backend cannot be reached right now."""
        return self.classify(raw).kind in (ErrorKind.SERVICE_UNAVAILABLE, ErrorKind.NETWORK)


_default_classifier = ErrorClassifier()


def classify(raw: object) -> ClassifiedError:
    """Classify a raw failure with the default classifier."""
    return _default_classifier.classify(raw)


def get_user_message(raw: object) -> str:
    """Classify a raw failure and return its template user message."""
    return _default_classifier.get_user_message(raw)
