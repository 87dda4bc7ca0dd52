"""Bounded-concurrency execution with per-item failure isolation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[T], Awaitable[Any]]
Fallback = Callable[[T, BaseException], Awaitable[Any]]


@dataclass
class BatchOutcome(Generic[T]):
    """What happened to one submitted item."""

    index: int
    item: T
    ok: bool
    result: Any = None
    error: Optional[BaseException] = None
    fallback_result: Any = None
    fallback_error: Optional[BaseException] = None


class BoundedBatchRunner:
    """
    Runs ``operation(item)`` for every item with at most ``limit`` in flight.

    Items are submitted in input order; completion order is unconstrained.
    A failing item is recorded (and its fallback awaited) without affecting
    the others, so ``run`` itself never raises for an item failure.
    """

    def __init__(self, limit: int = 1, name: str = "batch") -> None:
        if int(limit) < 1:
            raise ValueError("limit must be >= 1")
        self.limit = int(limit)
        self.name = name
        self._in_flight = 0
        self.peak_in_flight = 0

    async def run(
        self,
        items: Sequence[T],
        operation: Operation,
        fallback: Optional[Fallback] = None,
    ) -> List[BatchOutcome[T]]:
        semaphore = asyncio.Semaphore(self.limit)
        self._in_flight = 0
        self.peak_in_flight = 0

        async def _run_one(index: int, item: T) -> BatchOutcome[T]:
            async with semaphore:
                self._in_flight += 1
                self.peak_in_flight = max(self.peak_in_flight, self._in_flight)
                try:
                    result = await operation(item)
                    return BatchOutcome(index=index, item=item, ok=True, result=result)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.warning("[%s] item %s failed: %s", self.name, index, exc)
                    outcome = BatchOutcome(index=index, item=item, ok=False, error=exc)
                finally:
                    self._in_flight -= 1

            if fallback is not None:
                try:
                    outcome.fallback_result = await fallback(item, outcome.error)
                except Exception as exc:
                    outcome.fallback_error = exc
                    logger.error("[%s] fallback for item %s failed: %s", self.name, index, exc)
            return outcome

        # gather keeps task creation (and semaphore acquisition) in input order
        outcomes = await asyncio.gather(*[_run_one(i, item) for i, item in enumerate(items)])
        failed = sum(1 for o in outcomes if not o.ok)
        logger.info("[%s] %s item(s) done, %s failed", self.name, len(outcomes), failed)
        return list(outcomes)
