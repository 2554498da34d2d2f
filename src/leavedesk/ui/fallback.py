"""Fallback views shown by a RecoveryBoundary after a render failure."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from leavedesk.core.errors import ERROR_MESSAGES, ClassifiedError, ErrorKind, ErrorMessage

# Render failures are programming faults; there is no dedicated template for
# CLIENT here, so they fall through to the generic unexpected-error view.
BOUNDARY_MESSAGES: dict[ErrorKind, ErrorMessage] = {
    kind: message for kind, message in ERROR_MESSAGES.items() if kind is not ErrorKind.CLIENT
}

RELOAD_ACTION_TEXT = "Refresh Page"
DETAILS_TITLE = "Technical Details (Development Mode)"


def boundary_message_for(kind: ErrorKind) -> ErrorMessage:
    return BOUNDARY_MESSAGES.get(kind, BOUNDARY_MESSAGES[ErrorKind.UNKNOWN])


@dataclass(frozen=True)
class TechnicalDetails:
    """Diagnostics for the development-mode detail section."""

    error_message: str
    stack: str | None = None
    component_stack: str | None = None


@dataclass(frozen=True)
class FallbackView:
    """Default fallback for a failed boundary.

    Attributes:
        kind: Kind the failure was classified as.
        title: Template title.
        message: Template message.
        action_text: Label of the retry action.
        reload_text: Label of the full-reload escape hatch.
        details: Diagnostics, present only in development mode.
    """

    kind: ErrorKind
    title: str
    message: str
    action_text: str
    reload_text: str = RELOAD_ACTION_TEXT
    details: TechnicalDetails | None = None

    @classmethod
    def for_error(
        cls,
        error: ClassifiedError,
        *,
        dev_mode: bool = False,
        component_stack: str | None = None,
    ) -> FallbackView:
        """Build the fallback for a classified render failure.

        Args:
            error: The classified failure.
            dev_mode: Attach the technical detail section.
            component_stack: Where in the view tree the failure happened.
        """
        template = boundary_message_for(error.kind)
        details = None
        if dev_mode:
            stack = None
            if isinstance(error.details, dict):
                stack = error.details.get("stack")
            details = TechnicalDetails(
                error_message=error.raw_message,
                stack=stack,
                component_stack=component_stack,
            )
        return cls(
            kind=error.kind,
            title=template.title,
            message=template.message,
            action_text=template.action_text,
            details=details,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "title": self.title,
            "message": self.message,
            "action_text": self.action_text,
            "reload_text": self.reload_text,
        }
        if self.details is not None:
            result["details"] = {
                "error_message": self.details.error_message,
                "stack": self.details.stack,
                "component_stack": self.details.component_stack,
            }
        return result


def render_fallback(view: FallbackView) -> Panel:
    """Render a fallback view as a Rich panel."""
    parts: list[Any] = [Text(view.message, justify="center")]

    if view.details is not None:
        lines = Text(style="dim")
        lines.append("Error: ", style="bold")
        lines.append(view.details.error_message)
        if view.details.stack:
            lines.append("\nStack: ", style="bold")
            lines.append(view.details.stack.rstrip())
        if view.details.component_stack:
            lines.append("\nComponent Stack: ", style="bold")
            lines.append(view.details.component_stack.rstrip())
        parts.append(Text(""))
        parts.append(Panel(lines, title=DETAILS_TITLE, border_style="dim"))

    actions = Text(justify="center")
    actions.append(f"[{view.action_text}]", style="bold blue")
    actions.append("  ")
    actions.append(f"[{view.reload_text}]", style="dim")
    parts.append(Text(""))
    parts.append(actions)

    return Panel(
        Group(*parts),
        title=Text(f"⚠ {view.title}", style="bold white"),
        border_style="red",
    )


__all__ = [
    "BOUNDARY_MESSAGES",
    "DETAILS_TITLE",
    "RELOAD_ACTION_TEXT",
    "FallbackView",
    "TechnicalDetails",
    "boundary_message_for",
    "render_fallback",
]
