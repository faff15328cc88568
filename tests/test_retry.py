"""
Unit Tests for the Retry/Backoff Controller

Tests error classification, the pure state transitions and the
controller's attempt/backoff behavior with a fake sleep.
"""

import pytest
from unittest.mock import AsyncMock

from google.api_core import exceptions as google_exceptions

from core.retry import (
    ErrorClass,
    RetryController,
    RetryPhase,
    RetryPolicy,
    RetryState,
    classify_error,
    is_retryable,
    next_state,
)


class TestClassifyError:
    """Test classify_error and is_retryable."""

    def test_typed_google_errors(self):
        """Test typed API errors are mapped before any message scan."""
        assert classify_error(google_exceptions.Unauthenticated("bad key")) == ErrorClass.AUTHENTICATION
        assert classify_error(google_exceptions.PermissionDenied("nope")) == ErrorClass.FORBIDDEN
        assert classify_error(google_exceptions.InvalidArgument("bad field")) == ErrorClass.BAD_REQUEST

    def test_local_input_errors_are_malformed(self):
        """Test ValueError/TypeError are never retried."""
        assert classify_error(ValueError("bad")) == ErrorClass.MALFORMED_INPUT
        assert classify_error(TypeError("bad")) == ErrorClass.MALFORMED_INPUT

    def test_status_codes_in_message(self):
        """Test wrapped errors are classified from their message."""
        assert classify_error(RuntimeError("HTTP 401 Unauthorized")) == ErrorClass.AUTHENTICATION
        assert classify_error(RuntimeError("got 403 from upstream")) == ErrorClass.FORBIDDEN
        assert classify_error(RuntimeError("400 Bad Request")) == ErrorClass.BAD_REQUEST
        assert classify_error(RuntimeError("Invalid API key")) == ErrorClass.MALFORMED_INPUT

    def test_everything_else_is_transient(self):
        """Test network and server errors are retryable."""
        assert is_retryable(ConnectionError("connection reset"))
        assert is_retryable(TimeoutError("timed out"))
        assert is_retryable(google_exceptions.ServiceUnavailable("overloaded"))
        assert is_retryable(google_exceptions.ResourceExhausted("quota"))
        assert not is_retryable(google_exceptions.Unauthenticated("bad key"))


class TestRetryPolicy:
    """Test RetryPolicy validation and delays."""

    def test_delays_double(self):
        """Test delay after attempt i is base * 2^i."""
        policy = RetryPolicy(max_retries=5, base_delay=1.0)
        assert [policy.delay_for(i) for i in range(4)] == [1.0, 2.0, 4.0, 8.0]

    def test_rejects_zero_attempts(self):
        """Test a budget below one attempt is refused."""
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=0)

    def test_rejects_negative_delay(self):
        """Test negative base delay is refused."""
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=3, base_delay=-1)


class TestNextState:
    """Test the pure transition function."""

    @pytest.fixture
    def policy(self):
        return RetryPolicy(max_retries=3, base_delay=1.0)

    def test_success(self, policy):
        """Test a successful attempt ends in SUCCEEDED."""
        state = next_state(RetryState(), policy)
        assert state.phase == RetryPhase.SUCCEEDED
        assert state.is_terminal

    def test_transient_failure_backs_off(self, policy):
        """Test a retryable failure moves to BACKOFF with the right delay."""
        error = ConnectionError("reset")
        state = next_state(RetryState(), policy, error)

        assert state.phase == RetryPhase.BACKOFF
        assert state.next_delay == 1.0
        assert state.last_error is error

    def test_backoff_starts_next_attempt(self, policy):
        """Test leaving BACKOFF increments the attempt counter."""
        state = RetryState(phase=RetryPhase.BACKOFF, attempt=0, next_delay=1.0)
        state = next_state(state, policy)

        assert state.phase == RetryPhase.ATTEMPTING
        assert state.attempt == 1

    def test_second_failure_doubles_delay(self, policy):
        """Test the delay after the second failed attempt."""
        state = next_state(RetryState(attempt=1), policy, ConnectionError("reset"))
        assert state.next_delay == 2.0

    def test_last_attempt_exhausts(self, policy):
        """Test a failure on the final attempt is terminal."""
        state = next_state(RetryState(attempt=2), policy, ConnectionError("reset"))
        assert state.phase == RetryPhase.FAILED_EXHAUSTED

    def test_non_retryable_is_fatal(self, policy):
        """Test a non-retryable failure is terminal on the first attempt."""
        state = next_state(RetryState(), policy, google_exceptions.PermissionDenied("no"))
        assert state.phase == RetryPhase.FAILED_FATAL

    def test_terminal_state_has_no_transition(self, policy):
        """Test calling next_state on a terminal state raises."""
        with pytest.raises(ValueError):
            next_state(RetryState(phase=RetryPhase.SUCCEEDED), policy)

    def test_input_state_is_not_mutated(self, policy):
        """Test transitions return new states."""
        state = RetryState()
        next_state(state, policy, ConnectionError("reset"))
        assert state.phase == RetryPhase.ATTEMPTING
        assert state.attempt == 0


class TestRetryController:
    """Test RetryController.run."""

    @pytest.mark.asyncio
    async def test_first_attempt_succeeds(self):
        """Test no sleep happens when the first attempt succeeds."""
        sleep = AsyncMock()
        request = AsyncMock(return_value="ok")
        controller = RetryController(RetryPolicy(max_retries=3), sleep=sleep)

        assert await controller.run(request) == "ok"
        assert request.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fail_fail_succeed(self):
        """Test two transient failures then success makes three attempts."""
        sleep = AsyncMock()
        request = AsyncMock(side_effect=[ConnectionError("a"), TimeoutError("b"), "ok"])
        controller = RetryController(RetryPolicy(max_retries=3, base_delay=1.0), sleep=sleep)

        assert await controller.run(request) == "ok"
        assert request.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_raises_last_error(self):
        """Test every attempt failing raises the last error after max_retries attempts."""
        sleep = AsyncMock()
        last = ConnectionError("third")
        request = AsyncMock(side_effect=[ConnectionError("first"), ConnectionError("second"), last])
        controller = RetryController(RetryPolicy(max_retries=3, base_delay=1.0), sleep=sleep)

        with pytest.raises(ConnectionError) as exc_info:
            await controller.run(request)

        assert exc_info.value is last
        assert request.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_single_attempt_budget(self):
        """Test max_retries=1 makes exactly one attempt and never sleeps."""
        sleep = AsyncMock()
        request = AsyncMock(side_effect=ConnectionError("down"))
        controller = RetryController(RetryPolicy(max_retries=1), sleep=sleep)

        with pytest.raises(ConnectionError):
            await controller.run(request)

        assert request.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_retryable_stops_immediately(self):
        """Test an authentication failure is not retried."""
        sleep = AsyncMock()
        request = AsyncMock(side_effect=google_exceptions.Unauthenticated("bad key"))
        controller = RetryController(RetryPolicy(max_retries=5), sleep=sleep)

        with pytest.raises(google_exceptions.Unauthenticated):
            await controller.run(request)

        assert request.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_longer_budget_delays(self):
        """Test the delay sequence for a five-attempt budget."""
        sleep = AsyncMock()
        request = AsyncMock(side_effect=ConnectionError("down"))
        controller = RetryController(RetryPolicy(max_retries=5, base_delay=0.5), sleep=sleep)

        with pytest.raises(ConnectionError):
            await controller.run(request)

        assert request.await_count == 5
        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0, 2.0, 4.0]
