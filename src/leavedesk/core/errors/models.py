"""Data models for error classification.

This module provides:
- ClassifiedError: A raw failure resolved to a kind and a safe user message
- NetworkErrorDetails: Request metadata attached to connectivity failures
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .codes import ErrorCategory, ErrorKind
from .messages import message_for


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class NetworkErrorDetails:
    """Request metadata for failures where no response was received.

    Attributes:
        is_online: False when the failure indicates the client has no route
            to any network (e.g., DNS resolution failed entirely).
        url: Request URL, if known.
        method: Upper-case HTTP method, if known.
    """

    is_online: bool = True
    url: str | None = None
    method: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"is_online": self.is_online, "url": self.url, "method": self.method}


@dataclass(frozen=True)
class ClassifiedError:
    """A failure with its kind and a user-facing message.

    ClassifiedError is immutable once constructed. ``user_message`` is
    always the kind's template message; the untrusted original text is kept
    separately in ``raw_message`` for logs and the development detail panel.
    """

    kind: ErrorKind
    raw_message: str
    status_code: int | None = None
    details: Any = None
    timestamp: datetime = field(default_factory=_utcnow)
    user_message: str = field(init=False)

    def __post_init__(self) -> None:
        # Frozen dataclass: derived field set once through object.__setattr__
        object.__setattr__(self, "user_message", message_for(self.kind).message)

    @property
    def code(self) -> str:
        """Wire code of the kind (e.g., 'NOT_FOUND_ERROR')."""
        return self.kind.code

    @property
    def message(self) -> str:
        """Alias of raw_message so a ClassifiedError matches the {code, message} shape."""
        return self.raw_message

    @property
    def title(self) -> str:
        return message_for(self.kind).title

    @property
    def action_text(self) -> str:
        return message_for(self.kind).action_text

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

    @property
    def is_retryable(self) -> bool:
        return self.kind.is_retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        details = self.details
        if isinstance(details, NetworkErrorDetails):
            details = details.to_dict()
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.raw_message,
            "raw_message": self.raw_message,
            "user_message": self.user_message,
            "status_code": self.status_code,
            "details": details,
            "timestamp": self.timestamp.isoformat(),
        }
