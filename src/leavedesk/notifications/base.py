"""Notification framework base types and protocols.

Provides the error notification infrastructure:
- ErrorToast: presentation model of one failure notification
- ErrorNotifier protocol for notification sinks
- NotificationManager for fanning one failure out to several sinks
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from leavedesk.core.constants import (
    RETRYABLE_TOAST_AUTO_CLOSE_MS,
    TOAST_AUTO_CLOSE_MS,
    TOAST_DEFAULT_POSITION,
)
from leavedesk.core.errors import ClassifiedError, ErrorKind, NetworkErrorDetails
from leavedesk.core.logging import get_logger

_logger = get_logger("notifications")

RetryCallback = Callable[[], Any]


class ToastLevel(str, Enum):
    """Severity tone of a toast."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


_KIND_ICONS: dict[ErrorKind, str] = {
    ErrorKind.NETWORK: "wifi-off",
    ErrorKind.SERVICE_UNAVAILABLE: "wifi-off",
    ErrorKind.AUTHENTICATION: "shield-lock",
    ErrorKind.AUTHORIZATION: "shield-x",
    ErrorKind.VALIDATION: "exclamation-circle",
    ErrorKind.SERVER: "server",
    ErrorKind.TIMEOUT: "clock",
    ErrorKind.NOT_FOUND: "search",
}
_DEFAULT_ICON = "exclamation-triangle"

# Connectivity problems are informational; the user can usually fix them
_KIND_LEVELS: dict[ErrorKind, ToastLevel] = {
    ErrorKind.VALIDATION: ToastLevel.WARNING,
    ErrorKind.NETWORK: ToastLevel.INFO,
    ErrorKind.TIMEOUT: ToastLevel.INFO,
}

OFFLINE_HINT = "You appear to be offline"


def icon_for(kind: ErrorKind) -> str:
    """Icon name shown next to a toast for the given kind."""
    return _KIND_ICONS.get(kind, _DEFAULT_ICON)


def level_for(kind: ErrorKind) -> ToastLevel:
    return _KIND_LEVELS.get(kind, ToastLevel.ERROR)


@dataclass(frozen=True)
class ErrorToast:
    """Everything a sink needs to show one failure.

    Attributes:
        kind: Kind of the failure.
        title: Template title for the kind.
        message: Template user message; never the raw failure text.
        icon: Icon name for the kind.
        level: Tone of the toast body (warning, info, or error).
        toast_type: Container type: warning for validation, error otherwise.
        auto_close_ms: How long the toast stays visible.
        position: Screen corner the toast is anchored to.
        offline: Whether to add the offline hint.
        action_text: Label of the retry action.
        retry: Retry callback; set only when the failure is retryable.
    """

    kind: ErrorKind
    title: str
    message: str
    icon: str
    level: ToastLevel
    toast_type: ToastLevel
    auto_close_ms: int
    position: str = TOAST_DEFAULT_POSITION
    offline: bool = False
    action_text: str = ""
    retry: RetryCallback | None = None

    @classmethod
    def from_error(
        cls,
        error: ClassifiedError,
        retry: RetryCallback | None = None,
        *,
        auto_close_ms: int | None = None,
        retryable_auto_close_ms: int = RETRYABLE_TOAST_AUTO_CLOSE_MS,
        default_auto_close_ms: int = TOAST_AUTO_CLOSE_MS,
        position: str = TOAST_DEFAULT_POSITION,
    ) -> ErrorToast:
        """Build a toast for a classified error.

        Args:
            error: The failure to show.
            retry: Retry callback; dropped when the kind is not retryable.
            auto_close_ms: Explicit auto-close; overrides both defaults.
            retryable_auto_close_ms: Auto-close for retryable kinds.
            default_auto_close_ms: Auto-close for non-retryable kinds.
            position: Screen corner for the toast.

        Returns:
            ErrorToast with template text only.
        """
        retryable = error.is_retryable
        if auto_close_ms is None:
            auto_close_ms = retryable_auto_close_ms if retryable else default_auto_close_ms

        offline = (
            isinstance(error.details, NetworkErrorDetails) and not error.details.is_online
        )
        return cls(
            kind=error.kind,
            title=error.title,
            message=error.user_message,
            icon=icon_for(error.kind),
            level=level_for(error.kind),
            toast_type=(
                ToastLevel.WARNING if error.kind is ErrorKind.VALIDATION else ToastLevel.ERROR
            ),
            auto_close_ms=auto_close_ms,
            position=position,
            offline=offline,
            action_text=error.action_text,
            retry=retry if retryable else None,
        )

    @property
    def has_retry(self) -> bool:
        return self.retry is not None

    @property
    def css_class(self) -> str:
        return f"error-toast error-toast-{self.kind.code.lower()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "title": self.title,
            "message": self.message,
            "icon": self.icon,
            "level": self.level.value,
            "toast_type": self.toast_type.value,
            "auto_close_ms": self.auto_close_ms,
            "position": self.position,
            "offline": self.offline,
            "has_retry": self.has_retry,
        }


@runtime_checkable
class ErrorNotifier(Protocol):
    """Protocol for notification sinks.

    A sink is any callable taking the classified failure and an optional
    retry callback. It is invoked once per failed settlement and should not
    raise; callers log and ignore sink failures.
    """

    def __call__(self, error: ClassifiedError, retry: RetryCallback | None = None) -> Any:
        ...


class NotificationManager:
    """Fans a failure out to several notification sinks.

    Failures in one sink are logged and do not prevent delivery to the rest.

    Example usage:
        manager = NotificationManager([ToastNotifier(), audit_sink])
        call = RemoteCall.query(fetch_policies, notifier=manager)
    """

    def __init__(self, notifiers: list[ErrorNotifier] | None = None) -> None:
        self._notifiers: list[ErrorNotifier] = list(notifiers or [])

    def add_notifier(self, notifier: ErrorNotifier) -> None:
        self._notifiers.append(notifier)

    def remove_notifier(self, notifier: ErrorNotifier) -> None:
        """Remove a sink.

        Raises:
            ValueError: If the sink is not registered.
        """
        self._notifiers.remove(notifier)

    @property
    def notifier_count(self) -> int:
        return len(self._notifiers)

    def __call__(
        self,
        error: ClassifiedError,
        retry: RetryCallback | None = None,
    ) -> dict[str, bool]:
        """Deliver a failure to every registered sink.

        Returns:
            Mapping of sink name to whether delivery succeeded.
        """
        results: dict[str, bool] = {}
        for notifier in self._notifiers:
            name = getattr(notifier, "__name__", type(notifier).__name__)
            try:
                notifier(error, retry)
                results[name] = True
            except Exception:
                _logger.exception("notifier_failed", notifier=name, kind=error.kind.value)
                results[name] = False
        return results


__all__ = [
    "ErrorNotifier",
    "ErrorToast",
    "NotificationManager",
    "OFFLINE_HINT",
    "RetryCallback",
    "ToastLevel",
    "icon_for",
    "level_for",
]
