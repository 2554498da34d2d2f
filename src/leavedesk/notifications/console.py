"""Toast notifications rendered to a terminal with Rich.

ToastNotifier is the bundled notification sink. It turns each failure into
an ErrorToast and prints it as a Rich panel. Shown toasts are kept so a
caller (or a test) can inspect them and trigger the retry action.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from leavedesk.core.config import NotificationConfig
from leavedesk.core.constants import INFO_TOAST_AUTO_CLOSE_MS, SUCCESS_TOAST_AUTO_CLOSE_MS
from leavedesk.core.errors import ClassifiedError
from leavedesk.core.logging import get_logger
from leavedesk.notifications.base import OFFLINE_HINT, ErrorToast, RetryCallback, ToastLevel

_logger = get_logger("notifications.console")


class ToastNotifier:
    """Notification sink that prints error toasts to a Rich console."""

    LEVEL_COLORS = {
        ToastLevel.ERROR: "red",
        ToastLevel.WARNING: "yellow",
        ToastLevel.INFO: "cyan",
        ToastLevel.SUCCESS: "green",
    }

    ICON_GLYPHS = {
        "wifi-off": "⚡",
        "shield-lock": "🔒",
        "shield-x": "⛔",
        "exclamation-circle": "!",
        "server": "✗",
        "clock": "⏱",
        "search": "?",
        "exclamation-triangle": "⚠",
    }

    def __init__(
        self,
        console: Console | None = None,
        config: NotificationConfig | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            console: Rich Console for output. Creates one on stderr if not provided.
            config: Toast timing and placement. Defaults to NotificationConfig().
        """
        self.console = console or Console(stderr=True)
        self.config = config or NotificationConfig()
        self.toasts: list[ErrorToast] = []

    @property
    def last_toast(self) -> ErrorToast | None:
        return self.toasts[-1] if self.toasts else None

    def __call__(self, error: ClassifiedError, retry: RetryCallback | None = None) -> None:
        self.show_error(error, retry)

    def show_error(
        self,
        error: ClassifiedError,
        retry: RetryCallback | None = None,
        auto_close_ms: int | None = None,
    ) -> ErrorToast | None:
        """Show a toast for a classified failure.

        Returns:
            The toast shown, or None when toasts are disabled.
        """
        if not self.config.show_toasts:
            return None

        toast = ErrorToast.from_error(
            error,
            retry,
            auto_close_ms=auto_close_ms,
            retryable_auto_close_ms=self.config.retryable_auto_close_ms,
            default_auto_close_ms=self.config.auto_close_ms,
            position=self.config.position,
        )
        self.toasts.append(toast)
        self.console.print(self.render(toast))
        _logger.debug(
            "toast_shown",
            kind=toast.kind.value,
            auto_close_ms=toast.auto_close_ms,
            has_retry=toast.has_retry,
        )
        return toast

    def show_success(self, message: str, auto_close_ms: int = SUCCESS_TOAST_AUTO_CLOSE_MS) -> None:
        self._print_plain(message, ToastLevel.SUCCESS, "✓", auto_close_ms)

    def show_info(self, message: str, auto_close_ms: int = INFO_TOAST_AUTO_CLOSE_MS) -> None:
        self._print_plain(message, ToastLevel.INFO, "i", auto_close_ms)

    def retry_last(self) -> Any:
        """Trigger the retry action of the most recent toast.

        Returns:
            Whatever the retry callback returns (an awaitable for RemoteCall).

        Raises:
            LookupError: No toast has been shown, or it has no retry action.
        """
        toast = self.last_toast
        if toast is None or toast.retry is None:
            raise LookupError("no retryable toast to act on")
        _logger.info("toast_retry", kind=toast.kind.value)
        return toast.retry()

    def render(self, toast: ErrorToast) -> Panel:
        """Build the Rich panel for a toast.

        Titles and messages are plain Text, so no markup is interpreted.
        """
        color = self.LEVEL_COLORS[toast.level]
        glyph = self.ICON_GLYPHS.get(toast.icon, "⚠")

        body = Text()
        body.append(f"{glyph} ", style=color)
        body.append(toast.title, style="bold")
        body.append("\n")
        body.append(toast.message)
        if toast.offline:
            body.append("\n")
            body.append(OFFLINE_HINT, style="dim")
        if toast.has_retry:
            body.append("\n\n")
            body.append(f"[{toast.action_text}]", style="bold cyan")

        return Panel(
            body,
            border_style=self.LEVEL_COLORS[toast.toast_type],
            subtitle=Text(f"{toast.auto_close_ms // 1000}s", style="dim"),
            subtitle_align="right",
        )

    def _print_plain(self, message: str, level: ToastLevel, glyph: str, auto_close_ms: int) -> None:
        if not self.config.show_toasts:
            return
        color = self.LEVEL_COLORS[level]
        body = Text()
        body.append(f"{glyph} ", style=color)
        body.append(message)
        self.console.print(
            Panel(
                body,
                border_style=color,
                subtitle=Text(f"{auto_close_ms // 1000}s", style="dim"),
                subtitle_align="right",
            )
        )
        _logger.debug("toast_shown", tone=level.value, auto_close_ms=auto_close_ms)
