"""
Retry/Backoff Controller

Wraps one logical provider request with bounded retries and exponential
backoff. The retry loop is an explicit state machine:

    ATTEMPTING -> SUCCEEDED
    ATTEMPTING -> BACKOFF -> ATTEMPTING ...
    ATTEMPTING -> FAILED_FATAL       (non-retryable error)
    ATTEMPTING -> FAILED_EXHAUSTED   (retry budget used up)

`next_state` is a pure function, so backoff timing can be checked without
real timers; `RetryController` only performs the I/O the states ask for.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from google.api_core import exceptions as google_exceptions

from config import MAX_RETRIES, RETRY_DELAY

logger = logging.getLogger(__name__)


# ============================================================================
# ERROR CLASSIFICATION
# ============================================================================

class ErrorClass(Enum):
    """How a provider failure should be treated."""
    AUTHENTICATION = "authentication"
    FORBIDDEN = "forbidden"
    BAD_REQUEST = "bad_request"
    MALFORMED_INPUT = "malformed_input"
    TRANSIENT = "transient"


NON_RETRYABLE = frozenset({
    ErrorClass.AUTHENTICATION,
    ErrorClass.FORBIDDEN,
    ErrorClass.BAD_REQUEST,
    ErrorClass.MALFORMED_INPUT,
})


def classify_error(error: BaseException) -> ErrorClass:
    """
    Classify a provider failure.

    Typed Google API errors are matched first; anything else falls back to
    scanning the message for HTTP status codes, as provider SDKs often wrap
    the status in a generic exception.
    """
    if isinstance(error, google_exceptions.Unauthenticated):
        return ErrorClass.AUTHENTICATION
    if isinstance(error, google_exceptions.PermissionDenied):
        return ErrorClass.FORBIDDEN
    if isinstance(error, google_exceptions.BadRequest):
        return ErrorClass.BAD_REQUEST
    if isinstance(error, (ValueError, TypeError)):
        return ErrorClass.MALFORMED_INPUT

    message = str(error).lower()
    if "401" in message:
        return ErrorClass.AUTHENTICATION
    if "403" in message:
        return ErrorClass.FORBIDDEN
    if "400" in message:
        return ErrorClass.BAD_REQUEST
    if "invalid" in message:
        return ErrorClass.MALFORMED_INPUT
    return ErrorClass.TRANSIENT


def is_retryable(error: BaseException) -> bool:
    return classify_error(error) not in NON_RETRYABLE


# ============================================================================
# STATE MACHINE
# ============================================================================

class RetryPhase(Enum):
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    SUCCEEDED = "succeeded"
    FAILED_FATAL = "failed_fatal"
    FAILED_EXHAUSTED = "failed_exhausted"


TERMINAL_PHASES = frozenset({
    RetryPhase.SUCCEEDED,
    RetryPhase.FAILED_FATAL,
    RetryPhase.FAILED_EXHAUSTED,
})


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry budget and backoff base.

    Attributes:
        max_retries: Total number of attempts (not extra retries)
        base_delay: Delay in seconds after the first failed attempt;
            doubles after each further failure
    """
    max_retries: int = MAX_RETRIES
    base_delay: float = RETRY_DELAY

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must not be negative, got {self.base_delay}")

    def delay_for(self, attempt: int) -> float:
        """Backoff after the zero-indexed `attempt` failed."""
        return self.base_delay * (2 ** attempt)


@dataclass(frozen=True)
class RetryState:
    """
    Transient state of one retried request. Never persisted.

    Attributes:
        phase: Current phase
        attempt: Zero-indexed attempt being made (or last made)
        last_error: Most recent failure, if any
        next_delay: Seconds to wait while in BACKOFF
    """
    phase: RetryPhase = RetryPhase.ATTEMPTING
    attempt: int = 0
    last_error: Optional[BaseException] = None
    next_delay: float = 0.0

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES


def next_state(
    state: RetryState,
    policy: RetryPolicy,
    error: Optional[BaseException] = None,
) -> RetryState:
    """
    Pure transition function.

    Args:
        state: Current state
        policy: Retry budget and backoff
        error: Outcome of the attempt when leaving ATTEMPTING (None = success)

    Returns:
        The following state

    Raises:
        ValueError: If called on a terminal state
    """
    if state.is_terminal:
        raise ValueError(f"No transition out of terminal phase {state.phase.value}")

    if state.phase is RetryPhase.BACKOFF:
        return replace(state, phase=RetryPhase.ATTEMPTING, attempt=state.attempt + 1, next_delay=0.0)

    if error is None:
        return replace(state, phase=RetryPhase.SUCCEEDED, next_delay=0.0)

    if not is_retryable(error):
        return replace(state, phase=RetryPhase.FAILED_FATAL, last_error=error, next_delay=0.0)

    if state.attempt + 1 >= policy.max_retries:
        return replace(state, phase=RetryPhase.FAILED_EXHAUSTED, last_error=error, next_delay=0.0)

    return replace(
        state,
        phase=RetryPhase.BACKOFF,
        last_error=error,
        next_delay=policy.delay_for(state.attempt),
    )


# ============================================================================
# CONTROLLER
# ============================================================================

class RetryController:
    """
    Drives a request through the retry state machine.

    Args:
        policy: Retry budget (defaults from config)
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    async def run(self, request_fn: Callable[[], Awaitable[Any]]) -> Any:
        """
        Perform one logical request.

        Args:
            request_fn: Zero-argument coroutine function making one attempt

        Returns:
            The raw response of the first successful attempt

        Raises:
            The last observed error once the request fails for good
        """
        state = RetryState()

        while True:
            if state.phase is RetryPhase.ATTEMPTING:
                try:
                    response = await request_fn()
                except Exception as e:
                    state = next_state(state, self.policy, e)
                    self._log_failure(state, e)
                    continue
                state = next_state(state, self.policy)
                return response

            if state.phase is RetryPhase.BACKOFF:
                await self.sleep(state.next_delay)
                state = next_state(state, self.policy)
                continue

            # FAILED_FATAL / FAILED_EXHAUSTED
            raise state.last_error

    def _log_failure(self, state: RetryState, error: Exception) -> None:
        error_type = type(error).__name__
        attempt = state.attempt + 1

        if state.phase is RetryPhase.BACKOFF:
            logger.warning(
                f"⚠️  Provider call failed (attempt {attempt}/{self.policy.max_retries}): "
                f"{error_type}. Retrying in {state.next_delay}s..."
            )
        elif state.phase is RetryPhase.FAILED_FATAL:
            logger.error(f"❌ Provider call failed with non-retryable {error_type}: {error}")
        else:
            logger.error(
                f"❌ Provider call failed after {self.policy.max_retries} attempts: "
                f"{error_type}: {error}"
            )
