"""Structured logging infrastructure for leavedesk.

Provides structured logging using structlog with request-level context
such as the originating view and a request id. Supports console and JSON
output, with optional file output and size-based rotation.

Example usage:
    from leavedesk.core.logging import get_logger, configure_logging, with_context

    # Configure once at startup
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("call")

    # Log with auto-context
    logger.info("call.started", attempt=1)

    # Bind context for a scope
    ctx_logger = logger.bind(call="leave_policies")
    ctx_logger.debug("call.retrying")

    # Use a request context for automatic correlation
    ctx = RequestContext(view="leave_policy_management")
    with with_context(ctx):
        logger.info("call.settled")  # Automatically includes view, request_id
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from leavedesk.core.constants import LOG_BACKUP_COUNT, LOG_MAX_FILE_SIZE_MB

if TYPE_CHECKING:
    from leavedesk.core.config import LogConfig

# Sensitive field patterns that should never be logged
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
    "credential",
    "cookie",
    "bearer",
    "authorization",
})

_current_log_path: Path | None = None


def get_current_log_path() -> Path | None:
    """Get the currently configured log file path, or None without file logging."""
    return _current_log_path


@dataclass(frozen=True)
class RequestContext:
    """Immutable context for correlating log entries across one user action.

    Attributes:
        view: The view or screen that started the action (e.g., "user_management").
        request_id: Unique id for the action, generated when not supplied.
        operation: Optional operation name (e.g., "list_leave_policies").
        parent_request_id: Request id of the action that spawned this one.
    """

    view: str
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    operation: str | None = None
    parent_request_id: str | None = None

    def with_operation(self, operation: str) -> RequestContext:
        """Create a new context naming the given operation."""
        return RequestContext(
            view=self.view,
            request_id=self.request_id,
            operation=operation,
            parent_request_id=self.parent_request_id,
        )

    def as_child(self, child_request_id: str | None = None) -> RequestContext:
        """Create a child context whose parent is the current request.

        Args:
            child_request_id: Optional request id for the child context.

        Returns:
            A new RequestContext linked to this one through parent_request_id.
        """
        return RequestContext(
            view=self.view,
            request_id=child_request_id or str(uuid.uuid4()),
            operation=self.operation,
            parent_request_id=self.request_id,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging (None values excluded)."""
        result: dict[str, Any] = {
            "view": self.view,
            "request_id": self.request_id,
        }
        if self.operation is not None:
            result["operation"] = self.operation
        if self.parent_request_id is not None:
            result["parent_request_id"] = self.parent_request_id
        return result


# Task-local in async code
_current_context: ContextVar[RequestContext | None] = ContextVar(
    "leavedesk_context", default=None
)


def get_current_context() -> RequestContext | None:
    """Get the current RequestContext if set."""
    return _current_context.get()


def set_context(ctx: RequestContext) -> None:
    """Set the current RequestContext.

    Generally prefer using `with_context()` for automatic cleanup.
    """
    _current_context.set(ctx)


def clear_context() -> None:
    """Clear the current RequestContext."""
    _current_context.set(None)


@contextmanager
def with_context(ctx: RequestContext) -> Iterator[RequestContext]:
    """Set a RequestContext for the duration of a block.

    All log calls within the block include the context fields when the
    _add_context processor is active.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def request_context_for(view: str | None, operation: str) -> RequestContext | None:
    """Context for one operation.

    Returns a child of the bound context when there is one, otherwise a new
    context for ``view``. Returns None when there is neither.
    """
    current = get_current_context()
    if current is not None:
        return current.as_child().with_operation(operation)
    if view is not None:
        return RequestContext(view=view, operation=operation)
    return None


def _sanitize_value(key: str, value: Any) -> Any:
    """Return "[REDACTED]" for sensitive keys, the value otherwise."""
    key_lower = key.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in key_lower:
            return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts sensitive fields, one level deep."""
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {
                k: _sanitize_value(k, v) for k, v in value.items()
            }
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds an ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds RequestContext fields to log entries.

    Explicit bindings take precedence over context fields.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            if key not in event_dict:
                event_dict[key] = value
    return event_dict


class LeavedeskLogger:
    """Component logger wrapper around structlog.

    The logger is bound to a component name and can carry additional context
    for a scope. The underlying structlog logger is fetched on every call so
    that loggers created at import time follow a later configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> LeavedeskLogger:
        """Create a new logger with additional bound context."""
        new_logger = LeavedeskLogger.__new__(LeavedeskLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def unbind(self, *keys: str) -> LeavedeskLogger:
        """Create a new logger with the given keys removed."""
        new_logger = LeavedeskLogger.__new__(LeavedeskLogger)
        new_logger._component = self._component
        new_logger._context = {k: v for k, v in self._context.items() if k not in keys}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an exception with traceback. Call from within an exception handler."""
        self._get_logger().exception(event, **kw)


def _build_processors(
    renderer: Processor,
    include_timestamps: bool,
    include_context: bool,
) -> list[Processor]:
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
    ]

    if include_context:
        processors.append(_add_context)

    if include_timestamps:
        processors.append(_add_timestamp)

    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ])
    return processors


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console"] = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = LOG_MAX_FILE_SIZE_MB,
    backup_count: int = LOG_BACKUP_COUNT,
    include_timestamps: bool = True,
    include_context: bool = True,
) -> None:
    """Configure structured logging.

    Call once at application startup before any logging occurs.

    Args:
        level: Minimum log level to capture.
        format: "json" for structured output, "console" for human-readable.
        file_path: Optional log file; when set, output also goes to a
            rotating file handler.
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Whether to include ISO8601 timestamps.
        include_context: Whether to include RequestContext fields.
    """
    global _current_log_path

    log_level = getattr(logging, level)
    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stderr if format == "console" else sys.stdout)
    stream_handler.setLevel(log_level)
    handlers.append(stream_handler)

    if file_path is not None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        _current_log_path = file_path
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        handlers.append(file_handler)
    else:
        _current_log_path = None

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    renderer: Processor
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    # cache_logger_on_first_use=False keeps import-time loggers in line with
    # a configuration applied later.
    structlog.configure(
        processors=_build_processors(renderer, include_timestamps, include_context),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def configure_logging_from_config(config: LogConfig) -> None:
    """Configure structured logging from the ``logging`` section of AppConfig."""
    configure_logging(
        level=config.level,
        format=config.format,
        file_path=config.file_path,
        max_file_size_mb=config.max_file_size_mb,
        backup_count=config.backup_count,
        include_timestamps=config.include_timestamps,
        include_context=config.include_context,
    )


def get_logger(component: str, **initial_context: Any) -> LeavedeskLogger:
    """Get a logger for a component (e.g., "errors", "call", "boundary")."""
    return LeavedeskLogger(component, **initial_context)


__all__ = [
    "LeavedeskLogger",
    "RequestContext",
    "SENSITIVE_PATTERNS",
    "clear_context",
    "configure_logging",
    "configure_logging_from_config",
    "get_current_context",
    "get_current_log_path",
    "get_logger",
    "request_context_for",
    "set_context",
    "with_context",
]
