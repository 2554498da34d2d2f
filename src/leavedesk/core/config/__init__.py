"""Configuration models for leavedesk.

Pydantic models loaded from YAML. All models are re-exported here.
"""

from leavedesk.core.config.retry import RetryConfig
from leavedesk.core.config.app import AppConfig, LogConfig, NotificationConfig

__all__ = [
    "AppConfig",
    "LogConfig",
    "NotificationConfig",
    "RetryConfig",
]
