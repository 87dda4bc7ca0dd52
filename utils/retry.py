"""Retry-with-backoff wrapper around fallible async operations."""

from __future__ import annotations

import asyncio
from enum import Enum
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from .exceptions import InvalidInputError


logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


class BackoffStrategy(str, Enum):
    """Delay growth between attempts."""

    CONSTANT = "constant"
    EXPONENTIAL = "exponential"


class RetryPolicy(BaseModel):
    """How many times to try and how long to wait in between."""

    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0.0, description="seconds")
    backoff: BackoffStrategy = BackoffStrategy.EXPONENTIAL

    def delay_before(self, attempt: int) -> float:
        """Delay slept before ``attempt`` (1-based); the first attempt never waits."""
        if attempt < 2:
            return 0.0
        if self.backoff == BackoffStrategy.CONSTANT:
            return self.base_delay
        return self.base_delay * (2 ** (attempt - 2))


class RetryExecutor:
    """
    Runs an async operation until it succeeds or the attempt budget is spent.

    The last underlying error is re-raised unchanged. ``InvalidInputError``
    is raised straight through on the first attempt.
    """

    def __init__(self, sleep: Optional[SleepFn] = None, name: str = "operation") -> None:
        self._sleep = sleep or asyncio.sleep
        self.name = name

    def _wait_strategy(self, policy: RetryPolicy):
        if policy.backoff == BackoffStrategy.CONSTANT:
            return wait_fixed(policy.base_delay)
        return wait_exponential(multiplier=policy.base_delay, min=0)

    def _log_failed_attempt(self, policy: RetryPolicy) -> Callable[[RetryCallState], None]:
        def _after(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.warning(
                "[%s] attempt %s/%s failed: %s",
                self.name,
                retry_state.attempt_number,
                policy.max_attempts,
                error,
            )

        return _after

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
    ) -> T:
        policy = policy or RetryPolicy()
        retrying = AsyncRetrying(
            sleep=self._sleep,
            stop=stop_after_attempt(policy.max_attempts),
            wait=self._wait_strategy(policy),
            retry=retry_if_not_exception_type(InvalidInputError),
            after=self._log_failed_attempt(policy),
            reraise=True,
        )

        # tenacity only awaits coroutine functions; lambdas returning a coroutine are not
        async def _attempt() -> T:
            return await operation()

        return await retrying(_attempt)

