"""Core domain models and configuration."""

from leavedesk.core.config import AppConfig, LogConfig, NotificationConfig, RetryConfig
from leavedesk.core.errors import ClassifiedError, ErrorCategory, ErrorClassifier, ErrorKind

__all__ = [
    "AppConfig",
    "ClassifiedError",
    "ErrorCategory",
    "ErrorClassifier",
    "ErrorKind",
    "LogConfig",
    "NotificationConfig",
    "RetryConfig",
]
