"""View-side error handling: recovery boundaries, fallbacks, global error state."""

from leavedesk.ui.boundary import BoundaryState, ComponentInfo, RecoveryBoundary
from leavedesk.ui.error_context import ErrorContext, error_scope
from leavedesk.ui.error_handler import ErrorHandler, SessionGate
from leavedesk.ui.fallback import (
    BOUNDARY_MESSAGES,
    FallbackView,
    TechnicalDetails,
    render_fallback,
)

__all__ = [
    "BOUNDARY_MESSAGES",
    "BoundaryState",
    "ComponentInfo",
    "ErrorContext",
    "ErrorHandler",
    "FallbackView",
    "RecoveryBoundary",
    "SessionGate",
    "TechnicalDetails",
    "error_scope",
    "render_fallback",
]
