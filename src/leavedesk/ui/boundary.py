"""Recovery boundary for render-time failures.

A RecoveryBoundary guards a render callable. While healthy, ``render()``
returns whatever the callable produces. When the callable raises, the
boundary enters the failed state, classifies the failure, reports it once,
and from then on returns a fallback until ``retry()`` is called.

Remote-call failures never reach a boundary: RemoteCall turns them into
state. Boundaries only see exceptions raised while producing a view.

Example usage:
    boundary = RecoveryBoundary(
        lambda: render_policy_table(policies.data),
        name="leave_policy_table",
        on_error=report_render_failure,
        on_reload=app.reload,
    )

    console.print(boundary.render())
"""

from __future__ import annotations

import traceback
from collections.abc import Callable
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from leavedesk.core.config import AppConfig
from leavedesk.core.errors import ClassifiedError, ErrorClassifier
from leavedesk.core.logging import get_logger, request_context_for, with_context
from leavedesk.ui.fallback import FallbackView

V = TypeVar("V")

_logger = get_logger("boundary")


class BoundaryState(str, Enum):
    HEALTHY = "healthy"
    FAILED = "failed"


@dataclass(frozen=True)
class ComponentInfo:
    """Where a render failure happened.

    Attributes:
        component: Name of the boundary that caught the failure.
        component_stack: Render frames between the boundary and the failure.
    """

    component: str
    component_stack: str


FallbackFactory = Callable[[ClassifiedError, ComponentInfo], Any]


class RecoveryBoundary(Generic[V]):
    """Contains failures raised while rendering a view.

    State machine: ``healthy -> failed`` on a render exception,
    ``failed -> healthy`` on ``retry()``. There is no limit on how often a
    boundary may fail again after a retry.
    """

    def __init__(
        self,
        render: Callable[[], V],
        *,
        fallback: Any = None,
        on_error: Callable[[BaseException, ComponentInfo], Any] | None = None,
        on_reload: Callable[[], Any] | None = None,
        classifier: ErrorClassifier | None = None,
        dev_mode: bool = False,
        name: str | None = None,
        view: str | None = None,
    ) -> None:
        """Initialize the boundary.

        Args:
            render: Callable producing the guarded view.
            fallback: Custom fallback shown instead of the default view. Either
                a value, or a callable taking (ClassifiedError, ComponentInfo).
            on_error: Reporting hook, called with the raw exception and
                ComponentInfo exactly once per failure.
            on_reload: Full-reload escape hatch used by ``reload()``.
            classifier: Classifier for failures. Defaults to ErrorClassifier().
            dev_mode: Add technical details to the default fallback.
            name: Component name for ComponentInfo and logs.
            view: View the boundary belongs to, used for log correlation when
                no RequestContext is bound.
        """
        self._render = render
        self.fallback = fallback
        self.on_error = on_error
        self.on_reload = on_reload
        self.classifier = classifier or ErrorClassifier()
        self.dev_mode = dev_mode
        self.name = name or getattr(render, "__name__", "view")
        self.view = view

        self._state = BoundaryState.HEALTHY
        self._raw_error: BaseException | None = None
        self._error: ClassifiedError | None = None
        self._component_info: ComponentInfo | None = None
        self._logger = _logger.bind(boundary=self.name)

    @classmethod
    def from_config(
        cls, render: Callable[[], V], config: AppConfig, **options: Any
    ) -> RecoveryBoundary[V]:
        """Boundary whose development details follow ``config.dev_mode``."""
        options.setdefault("dev_mode", config.dev_mode)
        return cls(render, **options)

    @property
    def state(self) -> BoundaryState:
        return self._state

    @property
    def has_error(self) -> bool:
        return self._state is BoundaryState.FAILED

    @property
    def error(self) -> ClassifiedError | None:
        return self._error

    @property
    def raw_error(self) -> BaseException | None:
        return self._raw_error

    @property
    def component_info(self) -> ComponentInfo | None:
        return self._component_info

    def render(self) -> V | Any:
        """Render the guarded view, or the fallback once failed."""
        if self._state is BoundaryState.FAILED:
            return self._render_fallback()

        ctx = request_context_for(self.view, self.name)
        with with_context(ctx) if ctx is not None else nullcontext():
            try:
                return self._render()
            except Exception as exc:
                self._capture(exc)
        return self._render_fallback()

    def retry(self) -> None:
        """Return to healthy and forget the captured failure.

        The cause is not checked; the next ``render()`` simply tries again.
        """
        if self._state is BoundaryState.FAILED:
            self._logger.info(
                "boundary.retry",
                kind=self._error.kind.value if self._error is not None else None,
            )
        self._state = BoundaryState.HEALTHY
        self._raw_error = None
        self._error = None
        self._component_info = None

    def reload(self) -> Any:
        """Invoke the full-reload hook, leaving boundary state untouched.

        Returns:
            The hook's return value, or None when no hook is configured.
        """
        self._logger.info("boundary.reload", state=self._state.value)
        if self.on_reload is None:
            self._logger.warning("boundary.reload_unavailable")
            return None
        return self.on_reload()

    def fallback_view(self) -> FallbackView | None:
        """Default fallback for the captured failure, or None while healthy."""
        if self._error is None:
            return None
        return FallbackView.for_error(
            self._error,
            dev_mode=self.dev_mode,
            component_stack=(
                self._component_info.component_stack if self._component_info else None
            ),
        )

    def _capture(self, exc: Exception) -> None:
        self._state = BoundaryState.FAILED
        self._raw_error = exc
        self._error = self.classifier.classify(exc)
        self._component_info = ComponentInfo(
            component=self.name,
            component_stack="".join(traceback.format_tb(exc.__traceback__)),
        )
        self._logger.warning(
            "boundary.failed",
            kind=self._error.kind.value,
            error_type=type(exc).__name__,
            message=self._error.raw_message,
        )

        if self.on_error is not None:
            try:
                self.on_error(exc, self._component_info)
            except Exception:
                self._logger.exception("boundary.on_error_failed")

    def _render_fallback(self) -> Any:
        assert self._error is not None and self._component_info is not None
        if self.fallback is not None:
            if callable(self.fallback):
                return self.fallback(self._error, self._component_info)
            return self.fallback
        return self.fallback_view()

    def __repr__(self) -> str:
        return f"RecoveryBoundary(name={self.name!r}, state={self._state.value})"


__all__ = [
    "BoundaryState",
    "ComponentInfo",
    "FallbackFactory",
    "RecoveryBoundary",
]
