"""Tests for ErrorContext and error_scope()."""

from unittest.mock import MagicMock

from leavedesk.core.errors import ClassifiedError, ErrorKind
from leavedesk.ui.error_context import ErrorContext, error_scope


class TestErrorContext:
    """Single current global error."""

    def test_starts_empty(self) -> None:
        context = ErrorContext()

        assert context.global_error is None
        assert context.has_error is False

    def test_set_error_classifies_and_stores(self) -> None:
        context = ErrorContext()

        error = context.set_error({"status": 401})

        assert isinstance(error, ClassifiedError)
        assert error.kind == ErrorKind.AUTHENTICATION
        assert context.global_error is error

    def test_last_write_wins(self) -> None:
        context = ErrorContext()

        context.set_error({"status": 500})
        latest = context.set_error(ConnectionError("offline"))

        assert context.global_error is latest
        assert context.global_error.kind == ErrorKind.NETWORK

    def test_clear_error(self) -> None:
        context = ErrorContext()
        context.set_error("boom")

        context.clear_error()

        assert context.global_error is None

    def test_format_error_is_pure(self) -> None:
        context = ErrorContext()
        stored = context.set_error({"status": 500})

        text = context.format_error({"code": "VALIDATION_ERROR", "message": "Name is required"})

        assert text == "Validation error: Name is required"
        assert context.global_error is stored

    def test_format_error_categories(self) -> None:
        context = ErrorContext()

        assert context.format_error({"status": 403}) == "Authentication error: Please login again."
        assert context.format_error("plain failure") == "plain failure"
        assert context.format_error(None) == "An unknown error occurred"


class TestSubscriptions:
    """Listeners see every change."""

    def test_listener_sees_set_and_clear(self) -> None:
        context = ErrorContext()
        listener = MagicMock()
        context.subscribe(listener)

        error = context.set_error({"status": 503})
        context.clear_error()

        assert [c.args[0] for c in listener.call_args_list] == [error, None]

    def test_clear_when_empty_does_not_notify(self) -> None:
        context = ErrorContext()
        listener = MagicMock()
        context.subscribe(listener)

        context.clear_error()

        listener.assert_not_called()

    def test_unsubscribe(self) -> None:
        context = ErrorContext()
        listener = MagicMock()
        unsubscribe = context.subscribe(listener)

        unsubscribe()
        context.set_error("x")

        listener.assert_not_called()

    def test_failing_listener_is_contained(self) -> None:
        context = ErrorContext()
        context.subscribe(MagicMock(side_effect=RuntimeError("listener bug")))
        after = MagicMock()
        context.subscribe(after)

        context.set_error("x")

        after.assert_called_once()
        assert context.has_error


class TestErrorScope:
    """init/clear lifecycle."""

    def test_scope_clears_on_exit(self) -> None:
        listener = MagicMock()

        with error_scope() as context:
            context.subscribe(listener)
            context.set_error({"status": 500})
            assert context.has_error

        assert context.global_error is None
        assert listener.call_count == 2

    def test_scope_clears_after_exception(self) -> None:
        try:
            with error_scope() as context:
                context.set_error("x")
                raise RuntimeError("view crashed")
        except RuntimeError:
            pass

        assert context.global_error is None
