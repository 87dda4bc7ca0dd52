"""DashScope (Tongyi Wanxiang) text-to-image adapter."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from config.resolver import PrioritizedConfigResolver
from core import AsyncTask, TaskStatus
from utils.exceptions import CoverAssetError
from utils.http import describe_http_error, open_client

from .base import ImageGenerator


logger = logging.getLogger(__name__)

SYNTHESIS_PATH = "/services/aigc/text2image/image-synthesis"


class DashScopeImageGenerator(ImageGenerator):
    """Async task API: POST with ``X-DashScope-Async: enable``, then GET ``/tasks/{id}``."""

    name = "dashscope"

    def __init__(
        self,
        resolver: PrioritizedConfigResolver,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        self.resolver = resolver
        self._client = client
        self.timeout = timeout

    async def _config(self) -> Dict[str, str]:
        api_key = await self.resolver.get("DASHSCOPE_API_KEY")
        base_url = await self.resolver.get_or_default("DASHSCOPE_BASE_URL", "https://dashscope.aliyuncs.com/api/v1")
        model = await self.resolver.get_or_default("DASHSCOPE_MODEL", "wanx2.1-t2i-turbo")
        return {"api_key": str(api_key), "base_url": str(base_url).rstrip("/"), "model": str(model)}

    async def _request(self, method: str, url: str, headers: Dict[str, str], **kwargs: Any) -> Dict[str, Any]:
        try:
            async with open_client(self._client, timeout=self.timeout) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise CoverAssetError("dashscope timeout") from exc
        except httpx.RequestError as exc:
            raise CoverAssetError(f"dashscope request failed: {exc}") from exc

        if response.status_code in {401, 403}:
            raise CoverAssetError("dashscope auth failed")
        if response.status_code >= 400:
            raise CoverAssetError(f"dashscope {describe_http_error(response)}")
        return dict(response.json() or {})

    async def submit(self, prompt: str, size: str = "1024*1024") -> str:
        config = await self._config()
        headers = {
            "Authorization": f"Bearer {config['api_key']}",
            "Content-Type": "application/json",
            "X-DashScope-Async": "enable",
        }
        payload = {
            "model": config["model"],
            "input": {"prompt": prompt},
            "parameters": {"size": size, "n": 1},
        }
        data = await self._request("POST", f"{config['base_url']}{SYNTHESIS_PATH}", headers, json=payload)
        task_id = str((data.get("output") or {}).get("task_id") or "").strip()
        if not task_id:
            raise CoverAssetError("dashscope response missing task_id", {"request_id": data.get("request_id")})
        logger.info("dashscope task %s submitted", task_id)
        return task_id

    async def check(self, task_id: str) -> AsyncTask:
        config = await self._config()
        headers = {"Authorization": f"Bearer {config['api_key']}"}
        data = await self._request("GET", f"{config['base_url']}/tasks/{task_id}", headers)
        return self._to_task(task_id, data.get("output") or {})

    @staticmethod
    def _to_task(task_id: str, output: Dict[str, Any]) -> AsyncTask:
        raw_status = str(output.get("task_status") or "PENDING").upper()
        try:
            status = TaskStatus(raw_status)
        except ValueError:
            # CANCELED / UNKNOWN are terminal failures for our purposes
            status = TaskStatus.FAILED

        result = None
        if status == TaskStatus.SUCCEEDED:
            results = output.get("results") or []
            render_urls = output.get("render_urls") or []
            if results and results[0].get("url"):
                result = results[0]["url"]
            elif render_urls:
                result = render_urls[0]

        error = output.get("message") or output.get("code")
        return AsyncTask(id=task_id, status=status, result=result, error=str(error) if error else None)
