"""Retry and backoff configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from leavedesk.core.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_DELAY_MS,
    MUTATION_MAX_RETRIES,
    QUERY_MAX_RETRIES,
)
from leavedesk.core.errors.codes import NON_RETRYABLE_KINDS, ErrorKind


class RetryConfig(BaseModel):
    """Configuration for remote-call retries with capped exponential backoff.

    Example:
        retry:
          base_delay_ms: 1000
          max_delay_ms: 30000
          query_max_retries: 3
          mutation_max_retries: 1
          non_retryable_kinds: [authentication, authorization, validation, not_found]
    """

    base_delay_ms: int = Field(
        default=DEFAULT_BASE_DELAY_MS,
        gt=0,
        description="Delay before the first retry; doubles on each further retry",
    )
    max_delay_ms: int = Field(
        default=DEFAULT_MAX_DELAY_MS,
        gt=0,
        description="Cap applied to every backoff delay",
    )
    query_max_retries: int = Field(
        default=QUERY_MAX_RETRIES,
        ge=0,
        description="Maximum retries for read calls",
    )
    mutation_max_retries: int = Field(
        default=MUTATION_MAX_RETRIES,
        ge=0,
        description="Maximum retries for write calls",
    )
    non_retryable_kinds: frozenset[ErrorKind] = Field(
        default=NON_RETRYABLE_KINDS,
        description="Error kinds that are settled immediately without retrying",
    )

    @model_validator(mode="after")
    def _validate_delay_range(self) -> RetryConfig:
        if self.base_delay_ms > self.max_delay_ms:
            raise ValueError(
                f"base_delay_ms ({self.base_delay_ms}) must not exceed "
                f"max_delay_ms ({self.max_delay_ms})"
            )
        return self
