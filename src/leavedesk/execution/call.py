"""Stateful wrapper around one remote call.

RemoteCall owns the lifecycle of a single logical request: it moves
through ``idle -> loading -> success | error``, retries transient failures
according to a RetryPolicy, and turns every remote failure into state.
Nothing raised by the remote function escapes ``run()`` or ``execute()``.

Each ``run()`` and ``reset()`` bumps an integer generation. A settlement is
honored only when its generation is still current; a superseded run
resolves to ``Superseded`` and leaves state and callbacks untouched.

Example usage:
    policies = RemoteCall.query(api.list_leave_policies, name="leave_policies")

    result = await policies.run(page=1)
    if isinstance(result, Success):
        render(result.data)

    # Or with callback semantics
    data = await policies.execute(page=1)  # None on failure
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from leavedesk.api.envelope import ApiResponse, unwrap_response
from leavedesk.core.config import AppConfig
from leavedesk.core.errors import ClassifiedError, ErrorClassifier
from leavedesk.core.logging import get_logger, request_context_for, with_context
from leavedesk.execution.retry_strategy import RetryPolicy

if TYPE_CHECKING:
    from leavedesk.notifications.base import ErrorNotifier
    from leavedesk.ui.error_context import ErrorContext

T = TypeVar("T")

RemoteFn = Callable[..., Awaitable["ApiResponse[Any] | Mapping[str, Any]"]]
SleepFn = Callable[[float], Awaitable[Any]]

_logger = get_logger("call")


class CallPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class CallState(Generic[T]):
    """Snapshot of a RemoteCall.

    Attributes:
        phase: Current lifecycle phase.
        data: Last successful payload (or initial data).
        error: Classified failure, set only in the error phase.
        attempt: Attempts made by the current run (0 when idle).
        generation: Generation this snapshot belongs to.
    """

    phase: CallPhase = CallPhase.IDLE
    data: T | None = None
    error: ClassifiedError | None = None
    attempt: int = 0
    generation: int = 0

    @property
    def is_loading(self) -> bool:
        return self.phase is CallPhase.LOADING

    @property
    def is_success(self) -> bool:
        return self.phase is CallPhase.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.phase is CallPhase.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "has_data": self.data is not None,
            "error": self.error.to_dict() if self.error is not None else None,
            "attempt": self.attempt,
            "generation": self.generation,
        }


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Failure:
    error: ClassifiedError
    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class Superseded:
    """The run was overtaken by a later run or a reset; its outcome was discarded."""

    generation: int
    ok: ClassVar[bool] = False


CallResult = Success[T] | Failure | Superseded


class RemoteCall(Generic[T]):
    """Tracks one remote call's loading, data, and error state.

    The remote function is awaited with the arguments given to ``run()``
    and must return a response envelope (ApiResponse or an equivalent
    mapping). An envelope with status SUCCESS and data present is a
    success; anything else, and anything raised, goes through the
    classifier and the retry policy.
    """

    def __init__(
        self,
        fn: RemoteFn,
        *,
        policy: RetryPolicy | None = None,
        classifier: ErrorClassifier | None = None,
        on_success: Callable[[T], Any] | None = None,
        on_error: Callable[[ClassifiedError], Any] | None = None,
        notifier: ErrorNotifier | None = None,
        error_context: ErrorContext | None = None,
        initial_data: T | None = None,
        keep_previous_data: bool = True,
        sleep: SleepFn | None = None,
        name: str | None = None,
        view: str | None = None,
    ) -> None:
        """Initialize the call wrapper.

        Args:
            fn: Async remote-call function returning a response envelope.
            policy: Retry policy. Defaults to the query policy.
            classifier: Classifier for failures. Defaults to ErrorClassifier().
            on_success: Called with the data once per successful settlement.
            on_error: Called with the ClassifiedError once per failed settlement.
            notifier: Sink called as ``notifier(error, retry)`` on failure;
                ``retry`` is None when the kind is not retryable.
            error_context: Receives the error through ``set_error`` on failure.
            initial_data: Data exposed while idle and after ``reset()``.
            keep_previous_data: Keep the last data while loading and on error.
            sleep: Awaitable sleep taking seconds. Defaults to asyncio.sleep.
            name: Name used in log events. Defaults to the function name.
            view: View that owns the call. Each run logs under a RequestContext
                for this view, or under a child of the context already bound.
        """
        self._fn = fn
        self.policy = policy if policy is not None else RetryPolicy.for_queries()
        self.classifier = classifier if classifier is not None else ErrorClassifier()
        self.on_success = on_success
        self.on_error = on_error
        self.notifier = notifier
        self.error_context = error_context
        self.initial_data = initial_data
        self.keep_previous_data = keep_previous_data
        self._sleep = sleep
        self.name = name or getattr(fn, "__name__", "remote_call")
        self.view = view

        self._generation = 0
        self._state: CallState[T] = CallState(data=initial_data)
        self._listeners: list[Callable[[CallState[T]], Any]] = []
        self._logger = _logger.bind(call=self.name)

    @classmethod
    def from_config(
        cls,
        fn: RemoteFn,
        config: AppConfig,
        *,
        mutation: bool = False,
        **options: Any,
    ) -> RemoteCall[Any]:
        """Wrapper whose retry policy comes from ``config.retry``.

        Args:
            fn: Async remote-call function returning a response envelope.
            config: Application configuration.
            mutation: Use the mutation retry ceiling instead of the query one.
            **options: Further RemoteCall options; an explicit ``policy`` wins.
        """
        options.setdefault("policy", RetryPolicy.from_config(config.retry, mutation=mutation))
        return cls(fn, **options)

    @classmethod
    def query(cls, fn: RemoteFn, **options: Any) -> RemoteCall[Any]:
        """Wrapper for a read call (up to 3 retries)."""
        options.setdefault("policy", RetryPolicy.for_queries())
        return cls(fn, **options)

    @classmethod
    def mutation(cls, fn: RemoteFn, **options: Any) -> RemoteCall[Any]:
        """Wrapper for a write call (at most one retry)."""
        options.setdefault("policy", RetryPolicy.for_mutations())
        return cls(fn, **options)

    # -- state ---------------------------------------------------------------

    @property
    def state(self) -> CallState[T]:
        return self._state

    @property
    def data(self) -> T | None:
        return self._state.data

    @property
    def error(self) -> ClassifiedError | None:
        return self._state.error

    @property
    def phase(self) -> CallPhase:
        return self._state.phase

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, listener: Callable[[CallState[T]], Any]) -> Callable[[], None]:
        """Register a listener called with every new state.

        Returns:
            A callable that removes the listener. Calling it twice is a no-op.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_data(self, data: T | None) -> None:
        """Replace the current data without changing phase.

        Raises:
            ValueError: Clearing data while in the success phase.
        """
        if data is None and self._state.phase is CallPhase.SUCCESS:
            raise ValueError("data cannot be cleared while the call is in the success phase")
        self._set_state(replace(self._state, data=data))

    def reset(self) -> None:
        """Return to idle with initial data; any in-flight run is discarded."""
        self._generation += 1
        self._logger.debug("call.reset", generation=self._generation)
        self._set_state(CallState(data=self.initial_data, generation=self._generation))

    # -- running -------------------------------------------------------------

    def run(self, *args: Any, **kwargs: Any) -> Awaitable[CallResult[T]]:
        """Start a new run of the remote call.

        The state moves to loading (attempt 1) before this method returns,
        so observers see the transition without awaiting anything. Any
        earlier run still in flight is superseded.

        Returns:
            Awaitable resolving to Success, Failure, or Superseded.
        """
        self._generation += 1
        generation = self._generation
        self._set_state(
            CallState(
                phase=CallPhase.LOADING,
                data=self._state.data if self.keep_previous_data else None,
                attempt=1,
                generation=generation,
            )
        )
        return self._drive(generation, args, kwargs)

    def execute(self, *args: Any, **kwargs: Any) -> Awaitable[T | None]:
        """Start a new run and resolve to its data, or None if it did not succeed."""
        return self._data_of(self.run(*args, **kwargs))

    @staticmethod
    async def _data_of(pending: Awaitable[CallResult[T]]) -> T | None:
        result = await pending
        if isinstance(result, Success):
            return result.data
        return None

    async def _drive(
        self,
        generation: int,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> CallResult[T]:
        ctx = request_context_for(self.view, self.name)
        if ctx is None:
            return await self._attempts(generation, args, kwargs)
        with with_context(ctx):
            return await self._attempts(generation, args, kwargs)

    async def _attempts(
        self,
        generation: int,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> CallResult[T]:
        attempt = 1
        while True:
            try:
                response = await self._fn(*args, **kwargs)
                data: T = unwrap_response(response)
            except Exception as exc:
                raw: object = exc
            else:
                return self._settle_success(generation, data)

            if generation != self._generation:
                return self._superseded(generation)

            error = self.classifier.classify(raw)
            decision = self.policy.decide(error.kind, attempt)
            if not decision.should_retry:
                return self._settle_failure(generation, error, args, kwargs)

            self._logger.info(
                "call.retrying",
                attempt=attempt,
                kind=error.kind.value,
                delay_ms=decision.delay_ms,
            )
            sleep = self._sleep if self._sleep is not None else asyncio.sleep
            await sleep(decision.delay_ms / 1000)

            if generation != self._generation:
                return self._superseded(generation)

            attempt += 1
            self._set_state(replace(self._state, attempt=attempt))

    def _settle_success(self, generation: int, data: T) -> CallResult[T]:
        if generation != self._generation:
            return self._superseded(generation)

        attempt = self._state.attempt
        self._set_state(
            CallState(
                phase=CallPhase.SUCCESS,
                data=data,
                attempt=attempt,
                generation=generation,
            )
        )
        self._logger.debug("call.settled", outcome="success", attempt=attempt)
        if self.on_success is not None and self._is_current(generation):
            self._invoke_safely("call.on_success_failed", self.on_success, data)
        return Success(data)

    def _settle_failure(
        self,
        generation: int,
        error: ClassifiedError,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> CallResult[T]:
        attempt = self._state.attempt
        self._set_state(
            CallState(
                phase=CallPhase.ERROR,
                data=self._state.data if self.keep_previous_data else None,
                error=error,
                attempt=attempt,
                generation=generation,
            )
        )
        self._logger.warning(
            "call.settled",
            outcome="error",
            attempt=attempt,
            kind=error.kind.value,
            status_code=error.status_code,
            message=error.raw_message,
        )

        # Side effects stop once a listener or hook moves the generation on
        if self.on_error is not None and self._is_current(generation):
            self._invoke_safely("call.on_error_failed", self.on_error, error)
        if self.error_context is not None and self._is_current(generation):
            self._invoke_safely("call.error_context_failed", self.error_context.set_error, error)
        if self.notifier is not None and self._is_current(generation):
            retry: Callable[[], Awaitable[T | None]] | None = None
            if self.policy.should_retry(error.kind):
                retry = functools.partial(self.execute, *args, **kwargs)
            self._invoke_safely("call.notifier_failed", self.notifier, error, retry)
        return Failure(error)

    def _is_current(self, generation: int) -> bool:
        if generation == self._generation:
            return True
        self._logger.debug(
            "call.side_effects_skipped",
            generation=generation,
            current_generation=self._generation,
        )
        return False

    def _superseded(self, generation: int) -> Superseded:
        self._logger.debug(
            "call.superseded",
            generation=generation,
            current_generation=self._generation,
        )
        return Superseded(generation)

    def _set_state(self, state: CallState[T]) -> None:
        self._state = state
        for listener in list(self._listeners):
            self._invoke_safely("call.listener_failed", listener, state)

    def _invoke_safely(self, event: str, callback: Callable[..., Any], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:
            self._logger.exception(event)

    def __repr__(self) -> str:
        return (
            f"RemoteCall(name={self.name!r}, phase={self._state.phase.value}, "
            f"generation={self._generation})"
        )


__all__ = [
    "CallPhase",
    "CallResult",
    "CallState",
    "Failure",
    "RemoteCall",
    "Success",
    "Superseded",
]
