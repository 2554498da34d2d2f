"""Application-level configuration: environment, logging, notifications."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from leavedesk.core.config.retry import RetryConfig
from leavedesk.core.constants import (
    DEFAULT_LOGIN_PATH,
    LOG_BACKUP_COUNT,
    LOG_MAX_FILE_SIZE_MB,
    RETRYABLE_TOAST_AUTO_CLOSE_MS,
    TOAST_AUTO_CLOSE_MS,
    TOAST_DEFAULT_POSITION,
)

ToastPosition = Literal[
    "top-right", "top-center", "top-left",
    "bottom-right", "bottom-center", "bottom-left",
]


class LogConfig(BaseModel):
    """Configuration for structured logging.

    Controls log level, output format, and file rotation settings.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level to capture",
    )
    format: Literal["json", "console"] = Field(
        default="console",
        description="Output format: json for structured, console for human-readable",
    )
    file_path: Path | None = Field(
        default=None,
        description="Optional path for rotating log file output",
    )
    max_file_size_mb: int = Field(
        default=LOG_MAX_FILE_SIZE_MB,
        gt=0,
        le=1000,
        description="Maximum log file size before rotation (MB)",
    )
    backup_count: int = Field(
        default=LOG_BACKUP_COUNT,
        ge=0,
        le=100,
        description="Number of rotated log files to keep",
    )
    include_timestamps: bool = Field(default=True)
    include_context: bool = Field(
        default=True,
        description="Include bound request context (view, request_id) in log entries",
    )


class NotificationConfig(BaseModel):
    """Configuration for error toasts."""

    show_toasts: bool = Field(default=True, description="Show a toast for settled failures")
    auto_close_ms: int = Field(
        default=TOAST_AUTO_CLOSE_MS,
        gt=0,
        description="Auto-close for toasts without a retry action",
    )
    retryable_auto_close_ms: int = Field(
        default=RETRYABLE_TOAST_AUTO_CLOSE_MS,
        gt=0,
        description="Auto-close for toasts that offer a retry action",
    )
    position: ToastPosition = Field(default=TOAST_DEFAULT_POSITION)


class AppConfig(BaseModel):
    """Top-level configuration for the remote-call layer."""

    environment: Literal["development", "production", "test"] = Field(
        default="production",
        description="Development mode enables technical detail panels in fallbacks",
    )
    login_path: str = Field(
        default=DEFAULT_LOGIN_PATH,
        description="Redirect target after an authentication failure clears the session",
    )
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LogConfig = Field(default_factory=LogConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    @property
    def dev_mode(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_yaml(cls, path: Path) -> AppConfig:
        """Load configuration from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data or {})

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> AppConfig:
        """Load configuration from a YAML string."""
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data or {})
