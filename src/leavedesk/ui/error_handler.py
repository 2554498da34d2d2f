"""Error handler facade for views.

ErrorHandler bundles the usual reaction to a failure that a view received
directly: classify it, run kind-specific side effects (session clear and
login redirect on authentication failures), show a toast, and log it.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from leavedesk.core.config import AppConfig
from leavedesk.core.constants import DEFAULT_LOGIN_PATH
from leavedesk.core.errors import ClassifiedError, ErrorClassifier, ErrorKind
from leavedesk.core.logging import get_logger
from leavedesk.notifications.base import ErrorNotifier, RetryCallback
from leavedesk.notifications.console import ToastNotifier

_logger = get_logger("error_handler")

_CONNECTIVITY_KINDS = frozenset({ErrorKind.NETWORK, ErrorKind.SERVICE_UNAVAILABLE})


@runtime_checkable
class SessionGate(Protocol):
    """Session side effects used after an authentication failure."""

    def clear(self) -> None:
        """Drop all stored session state."""
        ...

    def redirect(self, path: str) -> None:
        """Navigate to ``path``."""
        ...


class ErrorHandler:
    """Classifies failures and runs the standard side effects.

    Example usage:
        handler = ErrorHandler(session=browser_session, notifier=ToastNotifier())

        try:
            await save_policy(form)
        except Exception as exc:
            handler.handle_error(exc)
    """

    def __init__(
        self,
        *,
        classifier: ErrorClassifier | None = None,
        notifier: ErrorNotifier | None = None,
        session: SessionGate | None = None,
        show_toast: bool = True,
        on_retry: RetryCallback | None = None,
        on_auth_error: Callable[[ClassifiedError], Any] | None = None,
        on_network_error: Callable[[ClassifiedError], Any] | None = None,
        login_path: str = DEFAULT_LOGIN_PATH,
        dev_mode: bool = False,
    ) -> None:
        """Initialize the handler.

        Args:
            classifier: Classifier for failures. Defaults to ErrorClassifier().
            notifier: Toast sink used when ``show_toast`` is set.
            session: Session gate for the default authentication reaction.
            show_toast: Whether to pass failures to the notifier.
            on_retry: Retry callback offered with retryable toasts.
            on_auth_error: Replaces the default clear-and-redirect reaction.
            on_network_error: Called for network and service_unavailable failures.
            login_path: Redirect target of the default authentication reaction.
            dev_mode: Log every handled failure with its raw value.
        """
        self.classifier = classifier or ErrorClassifier()
        self.notifier = notifier
        self.session = session
        self.show_toast = show_toast
        self.on_retry = on_retry
        self.on_auth_error = on_auth_error
        self.on_network_error = on_network_error
        self.login_path = login_path
        self.dev_mode = dev_mode

    @classmethod
    def from_config(cls, config: AppConfig, **options: Any) -> ErrorHandler:
        """Handler wired from application configuration.

        ``dev_mode``, ``login_path`` and ``show_toast`` follow the config, and
        the default notifier is a ToastNotifier using ``config.notifications``.
        Explicit options win.
        """
        options.setdefault("dev_mode", config.dev_mode)
        options.setdefault("login_path", config.login_path)
        options.setdefault("show_toast", config.notifications.show_toasts)
        if "notifier" not in options:
            options["notifier"] = ToastNotifier(config=config.notifications)
        return cls(**options)

    def handle_error(self, raw: object) -> ClassifiedError:
        """Classify a failure and run the side effects for its kind.

        Returns:
            The ClassifiedError.
        """
        error = self.classifier.classify(raw)

        if error.kind is ErrorKind.AUTHENTICATION:
            if self.on_auth_error is not None:
                self.on_auth_error(error)
            elif self.session is not None:
                _logger.info("session_expired_redirect", login_path=self.login_path)
                self.session.clear()
                self.session.redirect(self.login_path)
            else:
                _logger.warning("auth_error_unhandled", message=error.raw_message)
        elif error.kind in _CONNECTIVITY_KINDS and self.on_network_error is not None:
            self.on_network_error(error)

        if self.show_toast and self.notifier is not None:
            try:
                self.notifier(error, self.on_retry)
            except Exception:
                _logger.exception("notifier_failed", kind=error.kind.value)

        if self.dev_mode:
            _logger.debug(
                "error_handled",
                error=error.to_dict(),
                original_error=repr(raw),
            )
        return error

    def get_user_message(self, raw: object) -> str:
        return self.classifier.get_user_message(raw)

    def should_retry(self, raw: object) -> bool:
        return self.classifier.should_retry(raw)

    def is_service_unavailable(self, raw: object) -> bool:
        return self.classifier.is_service_unavailable(raw)


__all__ = [
    "ErrorHandler",
    "SessionGate",
]
