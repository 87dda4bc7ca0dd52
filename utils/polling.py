"""Poll-until-terminal wrapper for long-running external tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from core import AsyncTask, TaskStatus

from .exceptions import TaskFailedError, TaskTimeoutError


logger = logging.getLogger(__name__)

PollFn = Callable[[str], Awaitable[AsyncTask]]
SleepFn = Callable[[float], Awaitable[None]]

DEFAULT_MAX_ATTEMPTS = 30
DEFAULT_INTERVAL = 2.0


class AsyncTaskWaiter:
    """Sequential poller: one outstanding poll, fixed sleep between polls."""

    def __init__(self, sleep: Optional[SleepFn] = None) -> None:
        self._sleep = sleep or asyncio.sleep

    async def wait_for(
        self,
        task_id: str,
        poll: PollFn,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval: float = DEFAULT_INTERVAL,
    ) -> str:
        """
        Poll ``task_id`` until it reaches a terminal state.

        Returns:
            The task result once SUCCEEDED

        Raises:
            TaskFailedError: the task reported FAILED, or succeeded without a result
            TaskTimeoutError: no terminal state after ``max_attempts`` polls
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        for attempt in range(1, max_attempts + 1):
            task = await poll(task_id)
            logger.debug("task %s poll %s/%s status=%s", task_id, attempt, max_attempts, task.status.value)

            if task.status == TaskStatus.SUCCEEDED:
                if not task.result:
                    raise TaskFailedError("task succeeded without a result", task_id=task_id)
                logger.info("task %s succeeded after %s poll(s)", task_id, attempt)
                return task.result

            if task.status == TaskStatus.FAILED:
                raise TaskFailedError(f"task {task_id} failed", task_id=task_id, reason=task.error or "")

            if attempt < max_attempts:
                await self._sleep(interval)

        raise TaskTimeoutError(
            f"task {task_id} did not finish after {max_attempts} polls",
            task_id=task_id,
        )
