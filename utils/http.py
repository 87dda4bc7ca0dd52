"""Shared httpx client handling for HTTP collaborators."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx


DEFAULT_TIMEOUT = 30.0


@asynccontextmanager
async def open_client(
    client: Optional[httpx.AsyncClient] = None,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the injected client untouched, or a short-lived one closed on exit."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout) as owned:
        yield owned


def describe_http_error(response: httpx.Response, limit: int = 200) -> str:
    return f"http {response.status_code}: {response.text[:limit]}"
