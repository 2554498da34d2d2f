"""Tests for the stateful RemoteCall wrapper.

Tests cover:
- Success, failure, and retry paths
- Synchronous transition to loading
- Retries stay in the loading phase
- Generation stamping (superseded runs and resets)
- Callbacks, notifier, and ErrorContext fire once per terminal transition
- Listener and callback failures do not change state
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, call, patch

import httpx
import pytest

from leavedesk.api.envelope import ApiResponse
from leavedesk.core.config import AppConfig
from leavedesk.core.errors import ERROR_MESSAGES, ClassifiedError, ErrorKind
from leavedesk.execution import (
    CallPhase,
    CallState,
    Failure,
    RemoteCall,
    RetryPolicy,
    Success,
    Superseded,
)
from leavedesk.ui.error_context import ErrorContext


def _request() -> httpx.Request:
    return httpx.Request("GET", "https://api.example.test/leave-policies")


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    request = _request()
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


def _success(data: object) -> dict:
    return {"status": "SUCCESS", "data": data, "message": "ok"}


def _failed(code: str, message: str) -> dict:
    return {"status": "FAILED", "error": {"code": code, "message": message}}


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


# =============================================================================
# Settling
# =============================================================================


class TestSuccess:
    """Successful remote calls."""

    @pytest.mark.asyncio
    async def test_policy_envelope_success(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(return_value=_success({"policyCode": "X"}))
        on_success = MagicMock()
        remote = RemoteCall(fetch, on_success=on_success, sleep=sleep)

        result = await remote.run()

        assert isinstance(result, Success)
        assert result.data["policyCode"] == "X"
        assert remote.phase is CallPhase.SUCCESS
        assert remote.data == {"policyCode": "X"}
        assert remote.error is None
        on_success.assert_called_once_with({"policyCode": "X"})
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_api_response_instance(self) -> None:
        fetch = AsyncMock(return_value=ApiResponse[list](status="SUCCESS", data=[1, 2]))
        remote = RemoteCall(fetch)

        assert await remote.execute() == [1, 2]

    @pytest.mark.asyncio
    async def test_arguments_are_forwarded(self) -> None:
        fetch = AsyncMock(return_value=_success([]))
        remote = RemoteCall(fetch)

        await remote.run(2, size=20)

        fetch.assert_awaited_once_with(2, size=20)

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(
            side_effect=[httpx.ConnectError("refused", request=_request()), _success("ok")]
        )
        remote = RemoteCall(fetch, sleep=sleep)

        result = await remote.run()

        assert result == Success("ok")
        assert remote.state.attempt == 2
        sleep.assert_awaited_once_with(1.0)


class TestFailure:
    """Failed remote calls."""

    @pytest.mark.asyncio
    async def test_service_unavailable_retries_to_ceiling(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(side_effect=_status_error(503))
        on_error = MagicMock()
        remote = RemoteCall(fetch, on_error=on_error, sleep=sleep)

        result = await remote.run()

        assert isinstance(result, Failure)
        assert result.error.kind == ErrorKind.SERVICE_UNAVAILABLE
        assert fetch.await_count == 4
        assert sleep.await_args_list == [call(1.0), call(2.0), call(4.0)]
        assert remote.phase is CallPhase.ERROR
        assert remote.state.attempt == 4
        on_error.assert_called_once_with(result.error)

    @pytest.mark.asyncio
    async def test_validation_error_is_not_retried(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(return_value=_failed("VALIDATION_ERROR", "bad"))
        remote = RemoteCall(fetch, sleep=sleep)

        result = await remote.run()

        assert isinstance(result, Failure)
        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.raw_message == "bad"
        assert fetch.await_count == 1
        sleep.assert_not_awaited()
        assert remote.state.attempt == 1

    @pytest.mark.asyncio
    async def test_network_failure_shows_template_message(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(side_effect=ConnectionRefusedError("connect ECONNREFUSED 10.0.0.5"))
        remote = RemoteCall.mutation(fetch, sleep=sleep)

        result = await remote.run()

        assert isinstance(result, Failure)
        assert result.error.kind == ErrorKind.NETWORK
        assert result.error.user_message == ERROR_MESSAGES[ErrorKind.NETWORK].message
        assert "ECONNREFUSED" not in result.error.user_message
        assert fetch.await_count == 2

    @pytest.mark.asyncio
    async def test_success_without_data_is_a_failure(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(return_value={"status": "SUCCESS", "data": None, "message": "empty"})
        remote = RemoteCall.mutation(fetch, sleep=sleep)

        result = await remote.run()

        assert isinstance(result, Failure)
        assert result.error.kind == ErrorKind.UNKNOWN
        assert result.error.raw_message == "empty"

    @pytest.mark.asyncio
    async def test_execute_resolves_none_on_failure(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(return_value=_failed("FORBIDDEN", "Admins only"))
        remote = RemoteCall(fetch, sleep=sleep)

        assert await remote.execute() is None
        assert remote.error is not None
        assert remote.error.kind == ErrorKind.AUTHORIZATION

    @pytest.mark.asyncio
    async def test_default_sleep_is_asyncio_sleep(self) -> None:
        fetch = AsyncMock(side_effect=[_status_error(502), _success(1)])
        remote = RemoteCall(fetch)

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await remote.run()

        assert result == Success(1)
        mock_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        fetch = AsyncMock(side_effect=asyncio.CancelledError())
        remote = RemoteCall(fetch)

        with pytest.raises(asyncio.CancelledError):
            await remote.run()


# =============================================================================
# Phase transitions
# =============================================================================


class TestPhases:
    """Observable state transitions."""

    @pytest.mark.asyncio
    async def test_run_enters_loading_synchronously(self) -> None:
        remote = RemoteCall(AsyncMock(return_value=_success("x")))

        pending = remote.run()

        assert remote.phase is CallPhase.LOADING
        assert remote.state.attempt == 1
        assert remote.is_loading
        await pending

    @pytest.mark.asyncio
    async def test_retries_stay_loading(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(side_effect=_status_error(500))
        remote = RemoteCall(fetch, sleep=sleep)
        states: list[CallState] = []
        remote.subscribe(states.append)

        await remote.run()

        assert [s.phase for s in states] == [CallPhase.LOADING] * 4 + [CallPhase.ERROR]
        assert [s.attempt for s in states] == [1, 2, 3, 4, 4]

    def test_idle_with_initial_data(self) -> None:
        remote = RemoteCall(AsyncMock(), initial_data=[])

        assert remote.phase is CallPhase.IDLE
        assert remote.data == []
        assert remote.state.attempt == 0

    @pytest.mark.asyncio
    async def test_keep_previous_data_on_error(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(side_effect=[_success(["a"]), _failed("NOT_FOUND", "gone")])
        remote = RemoteCall(fetch, sleep=sleep)

        await remote.run()
        pending = remote.run()
        assert remote.data == ["a"]
        await pending

        assert remote.phase is CallPhase.ERROR
        assert remote.data == ["a"]

    @pytest.mark.asyncio
    async def test_drop_previous_data(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(side_effect=[_success(["a"]), _failed("NOT_FOUND", "gone")])
        remote = RemoteCall(fetch, sleep=sleep, keep_previous_data=False)

        await remote.run()
        pending = remote.run()
        assert remote.data is None
        await pending

        assert remote.data is None

    @pytest.mark.asyncio
    async def test_set_data(self) -> None:
        remote = RemoteCall(AsyncMock(return_value=_success([1])))
        await remote.run()

        remote.set_data([1, 2])

        assert remote.data == [1, 2]
        assert remote.phase is CallPhase.SUCCESS
        with pytest.raises(ValueError):
            remote.set_data(None)


# =============================================================================
# Generations
# =============================================================================


class TestGenerations:
    """Only the latest run is authoritative."""

    @pytest.mark.asyncio
    async def test_second_run_wins(self) -> None:
        gate = asyncio.Event()

        async def fetch(tag: str) -> dict:
            if tag == "first":
                await gate.wait()
                return _success("stale")
            return _success("fresh")

        on_success = MagicMock()
        remote = RemoteCall(fetch, on_success=on_success)

        first = asyncio.ensure_future(remote.run("first"))
        await asyncio.sleep(0)
        second = await remote.run("second")
        gate.set()
        first_result = await first

        assert second == Success("fresh")
        assert isinstance(first_result, Superseded)
        assert first_result.generation == 1
        assert remote.data == "fresh"
        on_success.assert_called_once_with("fresh")

    @pytest.mark.asyncio
    async def test_stale_failure_is_ignored(self) -> None:
        gate = asyncio.Event()

        async def fetch(tag: str) -> dict:
            if tag == "first":
                await gate.wait()
                raise ConnectionError("late failure")
            return _success("fresh")

        on_error = MagicMock()
        notifier = MagicMock()
        remote = RemoteCall(fetch, on_error=on_error, notifier=notifier)

        first = asyncio.ensure_future(remote.run("first"))
        await asyncio.sleep(0)
        await remote.run("second")
        gate.set()

        assert isinstance(await first, Superseded)
        assert remote.phase is CallPhase.SUCCESS
        on_error.assert_not_called()
        notifier.assert_not_called()

    @pytest.mark.asyncio
    async def test_reset_discards_in_flight_run(self) -> None:
        gate = asyncio.Event()

        async def fetch() -> dict:
            await gate.wait()
            return _success("late")

        on_success = MagicMock()
        remote = RemoteCall(fetch, on_success=on_success, initial_data="initial")

        pending = asyncio.ensure_future(remote.run())
        await asyncio.sleep(0)
        remote.reset()
        gate.set()

        assert isinstance(await pending, Superseded)
        assert remote.phase is CallPhase.IDLE
        assert remote.data == "initial"
        on_success.assert_not_called()

    @pytest.mark.asyncio
    async def test_reset_during_backoff_stops_retries(self) -> None:
        fetch = AsyncMock(side_effect=_status_error(503))
        sleep = AsyncMock()
        remote = RemoteCall(fetch, sleep=sleep)
        sleep.side_effect = lambda _seconds: remote.reset()

        result = await remote.run()

        assert isinstance(result, Superseded)
        assert fetch.await_count == 1
        assert remote.phase is CallPhase.IDLE

    @pytest.mark.asyncio
    async def test_rerun_from_on_error_skips_remaining_side_effects(self) -> None:
        fetch = AsyncMock(side_effect=[_failed("FORBIDDEN", "no access"), _success(["annual"])])
        context = ErrorContext()
        notifier = MagicMock()
        pending: list = []
        remote = RemoteCall(
            fetch,
            on_error=lambda _error: pending.append(remote.run()),
            error_context=context,
            notifier=notifier,
        )

        first = await remote.run()

        assert isinstance(first, Failure)
        assert remote.phase is CallPhase.LOADING
        assert context.global_error is None
        notifier.assert_not_called()

        assert await pending[0] == Success(["annual"])
        assert remote.data == ["annual"]

    @pytest.mark.asyncio
    async def test_reset_from_error_context_skips_notifier(self) -> None:
        context = ErrorContext()
        notifier = MagicMock()
        remote = RemoteCall(
            AsyncMock(return_value=_failed("VALIDATION_ERROR", "Name is required")),
            error_context=context,
            notifier=notifier,
        )
        context.subscribe(lambda error: remote.reset() if error is not None else None)

        await remote.run()

        assert context.has_error
        assert remote.phase is CallPhase.IDLE
        notifier.assert_not_called()

    @pytest.mark.asyncio
    async def test_reset_from_listener_skips_on_success(self) -> None:
        on_success = MagicMock()
        remote = RemoteCall(AsyncMock(return_value=_success(1)), on_success=on_success)
        remote.subscribe(lambda state: remote.reset() if state.is_success else None)

        result = await remote.run()

        assert result == Success(1)
        assert remote.phase is CallPhase.IDLE
        on_success.assert_not_called()

    def test_generation_counter(self) -> None:
        remote = RemoteCall(AsyncMock(return_value=_success(1)))

        pending = remote.run()
        remote.reset()

        assert remote.generation == 2
        assert remote.state.generation == 2
        pending.close()


# =============================================================================
# Collaborators
# =============================================================================


class TestCollaborators:
    """Notifier, ErrorContext, listeners, and callback failures."""

    @pytest.mark.asyncio
    async def test_notifier_gets_retry_for_retryable_kind(self, sleep: AsyncMock) -> None:
        fetch = AsyncMock(side_effect=[_status_error(500), _status_error(500), _success("ok")])
        notifier = MagicMock()
        remote = RemoteCall.mutation(fetch, notifier=notifier, sleep=sleep)

        await remote.run("page-1")

        notifier.assert_called_once()
        error, retry = notifier.call_args.args
        assert isinstance(error, ClassifiedError)
        assert error.kind == ErrorKind.SERVER
        assert retry is not None

        assert await retry() == "ok"
        assert fetch.await_args == call("page-1")
        assert remote.phase is CallPhase.SUCCESS

    @pytest.mark.asyncio
    async def test_notifier_gets_no_retry_for_auth_failure(self) -> None:
        fetch = AsyncMock(return_value=_failed("TOKEN_EXPIRED", "expired"))
        notifier = MagicMock()
        remote = RemoteCall(fetch, notifier=notifier)

        await remote.run()

        error, retry = notifier.call_args.args
        assert error.kind == ErrorKind.AUTHENTICATION
        assert retry is None

    @pytest.mark.asyncio
    async def test_error_context_receives_failure(self) -> None:
        context = ErrorContext()
        fetch = AsyncMock(return_value=_failed("FORBIDDEN", "nope"))
        remote = RemoteCall(fetch, error_context=context)

        result = await remote.run()

        assert context.global_error is result.error

    @pytest.mark.asyncio
    async def test_failing_callbacks_do_not_change_state(self) -> None:
        fetch = AsyncMock(return_value=_failed("NOT_FOUND", "gone"))
        on_error = MagicMock(side_effect=RuntimeError("callback bug"))
        listener = MagicMock(side_effect=RuntimeError("listener bug"))
        notifier = MagicMock(side_effect=RuntimeError("sink bug"))
        remote = RemoteCall(fetch, on_error=on_error, notifier=notifier)
        remote.subscribe(listener)

        result = await remote.run()

        assert isinstance(result, Failure)
        assert remote.phase is CallPhase.ERROR
        on_error.assert_called_once()
        notifier.assert_called_once()

    @pytest.mark.asyncio
    async def test_unsubscribe(self) -> None:
        listener = MagicMock()
        remote = RemoteCall(AsyncMock(return_value=_success(1)))
        unsubscribe = remote.subscribe(listener)

        unsubscribe()
        unsubscribe()
        await remote.run()

        listener.assert_not_called()


class TestFactories:
    """query() and mutation() ceilings."""

    def test_query_ceiling(self) -> None:
        assert RemoteCall.query(AsyncMock()).policy.max_retries == 3

    def test_mutation_ceiling(self) -> None:
        assert RemoteCall.mutation(AsyncMock()).policy.max_retries == 1

    def test_explicit_policy_wins(self) -> None:
        policy = RetryPolicy(max_retries=7)
        assert RemoteCall.query(AsyncMock(), policy=policy).policy is policy

    def test_name_defaults_to_function_name(self) -> None:
        async def list_leave_policies() -> dict:
            return _success([])

        assert RemoteCall(list_leave_policies).name == "list_leave_policies"

    def test_from_config_policy(self, app_config: AppConfig) -> None:
        query = RemoteCall.from_config(AsyncMock(), app_config)
        mutation = RemoteCall.from_config(AsyncMock(), app_config, mutation=True)

        assert query.policy.max_retries == 2
        assert query.policy.base_delay_ms == 500
        assert mutation.policy.max_retries == 0

    @pytest.mark.asyncio
    async def test_from_config_drives_backoff(self, app_config: AppConfig, sleep: AsyncMock) -> None:
        fetch = AsyncMock(side_effect=_status_error(503))
        remote = RemoteCall.from_config(fetch, app_config, sleep=sleep)

        result = await remote.run()

        assert isinstance(result, Failure)
        assert fetch.await_count == 3
        assert sleep.await_args_list == [call(0.5), call(1.0)]
