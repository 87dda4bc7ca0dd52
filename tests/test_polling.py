from __future__ import annotations

from typing import List

import pytest

from core import AsyncTask, TaskStatus
from utils.exceptions import TaskFailedError, TaskTimeoutError
from utils.polling import AsyncTaskWaiter


class _ScriptedPoll:
    def __init__(self, statuses: List[AsyncTask]) -> None:
        self._statuses = list(statuses)
        self.calls = 0

    async def __call__(self, task_id: str) -> AsyncTask:
        self.calls += 1
        index = min(self.calls - 1, len(self._statuses) - 1)
        return self._statuses[index]


async def _no_sleep(_: float) -> None:
    return None


def _task(status: TaskStatus, result: str = None, error: str = None) -> AsyncTask:
    return AsyncTask(id="t1", status=status, result=result, error=error)


@pytest.mark.asyncio
async def test_returns_result_on_first_succeeded_poll() -> None:
    poll = _ScriptedPoll([
        _task(TaskStatus.PENDING),
        _task(TaskStatus.RUNNING),
        _task(TaskStatus.SUCCEEDED, result="https://img.example.com/a.png"),
        _task(TaskStatus.FAILED),
    ])
    sleeps: List[float] = []

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    result = await AsyncTaskWaiter(sleep=_sleep).wait_for("t1", poll, max_attempts=10, interval=2.0)

    assert result == "https://img.example.com/a.png"
    assert poll.calls == 3
    assert sleeps == [2.0, 2.0]


@pytest.mark.asyncio
async def test_failed_status_stops_polling_immediately() -> None:
    poll = _ScriptedPoll([
        _task(TaskStatus.RUNNING),
        _task(TaskStatus.FAILED, error="content moderation"),
        _task(TaskStatus.SUCCEEDED, result="late"),
    ])

    with pytest.raises(TaskFailedError) as exc_info:
        await AsyncTaskWaiter(sleep=_no_sleep).wait_for("t1", poll, max_attempts=10)

    assert poll.calls == 2
    assert exc_info.value.task_id == "t1"
    assert exc_info.value.details["reason"] == "content moderation"


@pytest.mark.asyncio
async def test_times_out_after_max_attempts_polls() -> None:
    poll = _ScriptedPoll([_task(TaskStatus.RUNNING)])
    sleeps: List[float] = []

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    with pytest.raises(TaskTimeoutError):
        await AsyncTaskWaiter(sleep=_sleep).wait_for("t1", poll, max_attempts=4, interval=0.5)

    assert poll.calls == 4
    assert len(sleeps) == 3


@pytest.mark.asyncio
async def test_succeeded_without_result_is_a_failure() -> None:
    poll = _ScriptedPoll([_task(TaskStatus.SUCCEEDED)])

    with pytest.raises(TaskFailedError):
        await AsyncTaskWaiter(sleep=_no_sleep).wait_for("t1", poll, max_attempts=3)

    assert poll.calls == 1


@pytest.mark.asyncio
async def test_rejects_non_positive_attempts() -> None:
    poll = _ScriptedPoll([_task(TaskStatus.RUNNING)])

    with pytest.raises(ValueError):
        await AsyncTaskWaiter(sleep=_no_sleep).wait_for("t1", poll, max_attempts=0)

    assert poll.calls == 0
