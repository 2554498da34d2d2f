"""Pytest fixtures for leavedesk tests."""

import json
import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

import leavedesk.core.logging as logging_module
from leavedesk.core.config import AppConfig
from leavedesk.core.errors import ErrorClassifier
from leavedesk.core.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    original_log_path = logging_module._current_log_path
    logging_module._current_log_path = None

    # Reset structlog to default state
    structlog.reset_defaults()
    logging_module.clear_context()

    # Clear all handlers from root logger
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    logging_module._current_log_path = original_log_path
    structlog.reset_defaults()
    logging_module.clear_context()

    # Restore original handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def classifier() -> ErrorClassifier:
    """Create a default ErrorClassifier instance."""
    return ErrorClassifier()


@pytest.fixture
def sample_config_dict() -> dict:
    """Return a sample application configuration dictionary."""
    return {
        "environment": "development",
        "login_path": "/signin",
        "retry": {
            "base_delay_ms": 500,
            "max_delay_ms": 8000,
            "query_max_retries": 2,
            "mutation_max_retries": 0,
        },
        "logging": {
            "level": "DEBUG",
            "format": "json",
        },
        "notifications": {
            "auto_close_ms": 4000,
            "position": "bottom-right",
        },
    }


@pytest.fixture
def sample_config_file(tmp_path: Path) -> Path:
    """Create a sample YAML configuration file."""
    config_content = """
environment: development
login_path: /signin

retry:
  base_delay_ms: 500
  max_delay_ms: 8000
  query_max_retries: 2
  non_retryable_kinds:
    - authentication
    - authorization

notifications:
  show_toasts: false
"""
    config_path = tmp_path / "leavedesk.yaml"
    config_path.write_text(config_content)
    return config_path


@pytest.fixture
def app_config(sample_config_dict: dict) -> AppConfig:
    return AppConfig.model_validate(sample_config_dict)


class CapturingHandler(logging.Handler):
    """Collects rendered JSON log lines as dicts."""

    def __init__(self) -> None:
        super().__init__()
        self.entries: list[dict] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.entries.append(json.loads(record.getMessage()))


@pytest.fixture
def log_entries() -> list[dict]:
    """Configure JSON logging at DEBUG and capture every entry."""
    configure_logging(level="DEBUG", format="json", include_timestamps=False)
    handler = CapturingHandler()
    # pytest-asyncio creates its event loop after this fixture; keep asyncio's
    # own plain-text debug records out of the JSON capture.
    handler.addFilter(lambda record: record.name != "asyncio")
    logging.getLogger().addHandler(handler)
    return handler.entries
