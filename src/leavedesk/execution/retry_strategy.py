"""Retry and backoff policy for remote calls.

Decides whether a failed attempt is retried and how long to wait first.
The policy is a pure function of ``(kind, attempt)``: it reads no clock
and keeps no state, so the same inputs always give the same decision.

- Non-retryable kinds (authentication, authorization, validation, not_found)
  are settled at once: retrying cannot fix a caller or permission problem.
- Every other kind is retried up to a ceiling chosen by the caller
  (3 for queries, 1 for mutations).
- Delays grow exponentially from ``base_delay_ms`` and are capped at
  ``max_delay_ms``.

Example usage:
    from leavedesk.execution.retry_strategy import RetryPolicy

    policy = RetryPolicy.for_queries()

    decision = policy.decide(classified.kind, attempt=1)
    if decision.should_retry:
        await asyncio.sleep(decision.delay_ms / 1000)
        # Retry the call
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from leavedesk.core.config import RetryConfig
from leavedesk.core.constants import (
    DEFAULT_BASE_DELAY_MS,
    DEFAULT_MAX_DELAY_MS,
    MUTATION_MAX_RETRIES,
    QUERY_MAX_RETRIES,
)
from leavedesk.core.errors import NON_RETRYABLE_KINDS, ErrorKind
from leavedesk.core.logging import get_logger

_logger = get_logger("retry_strategy")


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of one retry consultation.

    Attributes:
        should_retry: Whether another attempt should be made.
        delay_ms: Wait before the next attempt (0 when not retrying).
        attempt: Number of attempts made so far (1-indexed).
        reason: Short explanation for logs.
    """

    should_retry: bool
    delay_ms: int
    attempt: int = 1
    reason: str = ""

    def __post_init__(self) -> None:
        if self.delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {self.delay_ms}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "should_retry": self.should_retry,
            "delay_ms": self.delay_ms,
            "attempt": self.attempt,
            "reason": self.reason,
        }


class RetryPolicy:
    """Capped exponential backoff with a per-kind retry filter.

    Stateless after construction; one instance may be shared by any number
    of call sites.
    """

    def __init__(
        self,
        max_retries: int = QUERY_MAX_RETRIES,
        base_delay_ms: int = DEFAULT_BASE_DELAY_MS,
        max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
        non_retryable: Iterable[ErrorKind] | None = None,
    ) -> None:
        """Initialize the policy.

        Args:
            max_retries: Retries allowed after the first attempt.
            base_delay_ms: Delay before the first retry.
            max_delay_ms: Cap for any single delay.
            non_retryable: Kinds never retried. Defaults to NON_RETRYABLE_KINDS.
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if base_delay_ms <= 0:
            raise ValueError("base_delay_ms must be positive")
        if max_delay_ms < base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")

        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.non_retryable: frozenset[ErrorKind] = (
            NON_RETRYABLE_KINDS if non_retryable is None else frozenset(non_retryable)
        )

    @classmethod
    def for_queries(cls, **overrides: Any) -> RetryPolicy:
        """Policy for read calls (retry ceiling 3)."""
        overrides.setdefault("max_retries", QUERY_MAX_RETRIES)
        return cls(**overrides)

    @classmethod
    def for_mutations(cls, **overrides: Any) -> RetryPolicy:
        """Policy for write calls (at most one retry)."""
        overrides.setdefault("max_retries", MUTATION_MAX_RETRIES)
        return cls(**overrides)

    @classmethod
    def from_config(cls, config: RetryConfig, mutation: bool = False) -> RetryPolicy:
        """Build a policy from RetryConfig, using the query or mutation ceiling."""
        return cls(
            max_retries=config.mutation_max_retries if mutation else config.query_max_retries,
            base_delay_ms=config.base_delay_ms,
            max_delay_ms=config.max_delay_ms,
            non_retryable=config.non_retryable_kinds,
        )

    def should_retry(self, kind: ErrorKind) -> bool:
        """Whether failures of this kind are ever retried."""
        return kind not in self.non_retryable

    def next_delay(self, attempt_index: int) -> int:
        """Backoff before retry number ``attempt_index + 1``.

        ``min(base_delay_ms * 2**attempt_index, max_delay_ms)``. Negative
        indexes are treated as 0. Non-decreasing in ``attempt_index`` and
        never above ``max_delay_ms``.
        """
        index = max(attempt_index, 0)
        # Past this exponent the product always exceeds the cap
        if index >= self.max_delay_ms.bit_length():
            return self.max_delay_ms
        return min(self.base_delay_ms * (2 ** index), self.max_delay_ms)

    def decide(self, kind: ErrorKind, attempt: int) -> RetryDecision:
        """Decide what to do after attempt number ``attempt`` failed.

        Args:
            kind: Kind of the failure that ended the attempt.
            attempt: Attempts made so far, 1-indexed.

        Returns:
            RetryDecision; when retrying, the delay is ``next_delay(attempt - 1)``.
        """
        if not self.should_retry(kind):
            decision = RetryDecision(
                should_retry=False,
                delay_ms=0,
                attempt=attempt,
                reason=f"{kind.value} errors are not retried",
            )
        elif attempt > self.max_retries:
            decision = RetryDecision(
                should_retry=False,
                delay_ms=0,
                attempt=attempt,
                reason=f"retry ceiling reached ({self.max_retries})",
            )
        else:
            decision = RetryDecision(
                should_retry=True,
                delay_ms=self.next_delay(attempt - 1),
                attempt=attempt,
                reason=f"retry {attempt} of {self.max_retries}",
            )

        _logger.debug(
            "retry_strategy.decision",
            kind=kind.value,
            **decision.to_dict(),
        )
        return decision

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_retries={self.max_retries}, "
            f"base_delay_ms={self.base_delay_ms}, max_delay_ms={self.max_delay_ms})"
        )


__all__ = [
    "RetryDecision",
    "RetryPolicy",
]
