"""Explicit retry policies.

A RetryPolicy is an immutable value handed to the call site that wants
retries. There is no shared default configuration: two call sites with two
policies never influence each other.
"""

import logging
from typing import Awaitable, Callable, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from crosswire.config import Settings
from crosswire.errors import is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome is not None else None
    logger.debug("Attempt %d failed, retrying: %s", state.attempt_number, error)


class RetryPolicy(BaseModel):
    """Exponential backoff retry policy.

    Delays grow as ``initial_delay * backoff_factor ** (attempt - 1)`` and are
    capped at ``max_delay`` (all in seconds).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    max_attempts: int = Field(default=3, ge=1)
    initial_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)
    backoff_factor: float = Field(default=2.0, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        """Build a policy from the retry_* fields of Settings."""
        return cls(
            max_attempts=settings.retry_attempts,
            initial_delay=settings.retry_initial_delay,
            max_delay=settings.retry_max_delay,
        )

    @classmethod
    def disabled(cls) -> "RetryPolicy":
        """A policy that runs the call exactly once."""
        return cls(enabled=False, max_attempts=1)

    def delay_for(self, attempt: int) -> float:
        """Delay in seconds applied after the given 1-indexed failed attempt."""
        return min(self.initial_delay * self.backoff_factor ** (attempt - 1), self.max_delay)

    def retrying(
        self,
        retry_on: Callable[[BaseException], bool] = is_retryable,
    ) -> AsyncRetrying:
        """Create the tenacity controller for this policy."""
        attempts = self.max_attempts if self.enabled else 1
        return AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(
                multiplier=self.initial_delay,
                max=self.max_delay,
                exp_base=self.backoff_factor,
            ),
            retry=retry_if_exception(retry_on),
            before_sleep=_log_retry,
            reraise=True,
        )

    async def call(
        self,
        fn: Callable[[], Awaitable[T]],
        *,
        retry_on: Callable[[BaseException], bool] = is_retryable,
    ) -> T:
        """Await ``fn()`` under this policy.

        Only errors accepted by ``retry_on`` are retried; the last error is
        re-raised unchanged once attempts are exhausted.
        """
        async for attempt in self.retrying(retry_on):
            with attempt:
                return await fn()
        raise AssertionError("unreachable: tenacity re-raises on exhaustion")  # pragma: no cover
