"""Holder for the single current application-wide error.

ErrorContext replaces an ambient global: it is created by the application
shell (usually through ``error_scope()``) and passed by reference to the
call wrappers and views that report into it. Writes are last-write-wins.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from leavedesk.core.errors import ClassifiedError, ErrorClassifier, format_error_message
from leavedesk.core.logging import get_logger

_logger = get_logger("error_context")

ErrorListener = Callable[[ClassifiedError | None], Any]


class ErrorContext:
    """Stores the most recent global error and notifies subscribers."""

    def __init__(self, classifier: ErrorClassifier | None = None) -> None:
        self._classifier = classifier or ErrorClassifier()
        self._error: ClassifiedError | None = None
        self._listeners: list[ErrorListener] = []

    @property
    def global_error(self) -> ClassifiedError | None:
        return self._error

    @property
    def has_error(self) -> bool:
        return self._error is not None

    def set_error(self, raw: object) -> ClassifiedError:
        """Classify a failure and make it the current global error.

        Args:
            raw: Any failure value, or an already classified error.

        Returns:
            The stored ClassifiedError.
        """
        error = self._classifier.classify(raw)
        self._error = error
        _logger.info(
            "global_error.set",
            kind=error.kind.value,
            category=error.category.value,
            message=error.raw_message,
        )
        self._notify(error)
        return error

    def clear_error(self) -> None:
        if self._error is None:
            return
        self._error = None
        _logger.debug("global_error.cleared")
        self._notify(None)

    def format_error(self, raw: object) -> str:
        """Format a failure for display without touching the stored error."""
        return format_error_message(self._classifier.classify(raw))

    def subscribe(self, listener: ErrorListener) -> Callable[[], None]:
        """Register a listener called with the new error (or None on clear).

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Clear the stored error and drop all listeners."""
        self.clear_error()
        self._listeners.clear()

    def _notify(self, error: ClassifiedError | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(error)
            except Exception:
                _logger.exception("global_error.listener_failed")


@contextmanager
def error_scope(classifier: ErrorClassifier | None = None) -> Iterator[ErrorContext]:
    """Provide an ErrorContext for the duration of a block.

    The context starts empty and is cleared, with its listeners dropped,
    when the block exits.
    """
    context = ErrorContext(classifier)
    try:
        yield context
    finally:
        context.close()


__all__ = [
    "ErrorContext",
    "ErrorListener",
    "error_scope",
]
