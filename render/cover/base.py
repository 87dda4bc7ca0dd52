"""Asynchronous image generation interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from core import AsyncTask


class ImageGenerator(ABC):
    """
    Two-step generation: ``submit`` starts a remote task and ``check``
    reports its status. Waiting is left to the caller.
    """

    name: str = "image"

    @abstractmethod
    async def submit(self, prompt: str, size: str) -> str:
        """Start generation and return the task id."""

    @abstractmethod
    async def check(self, task_id: str) -> AsyncTask:
        """Current status; ``result`` holds the image URL once SUCCEEDED."""

    async def aclose(self) -> None:
        return None
