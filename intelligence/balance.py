"""Pre-flight provider balance checks."""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from typing import Any, Dict, Optional

import httpx

from config.resolver import PrioritizedConfigResolver
from utils.exceptions import LLMError
from utils.http import describe_http_error, open_client


logger = logging.getLogger(__name__)


class BalanceChecker(ABC):
    """Reports the remaining account balance of an LLM provider."""

    currency: str = ""

    @abstractmethod
    async def get_balance(self) -> float:
        """Remaining balance in ``currency``."""


class DeepSeekBalanceChecker(BalanceChecker):
    """``GET /user/balance`` on the DeepSeek API, CNY total."""

    currency = "CNY"

    def __init__(
        self,
        resolver: PrioritizedConfigResolver,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
    ) -> None:
        self.resolver = resolver
        self._client = client
        self.timeout = timeout

    async def fetch_balance_info(self) -> Dict[str, Any]:
        api_key = await self.resolver.get("DEEPSEEK_API_KEY")
        base_url = str(await self.resolver.get_or_default("DEEPSEEK_BASE_URL", "https://api.deepseek.com")).rstrip("/")
        headers = {"Accept": "application/json", "Authorization": f"Bearer {api_key}"}
        try:
            async with open_client(self._client, timeout=self.timeout) as client:
                response = await client.get(f"{base_url}/user/balance", headers=headers)
        except httpx.RequestError as exc:
            raise LLMError(f"deepseek balance request failed: {exc}", provider="deepseek") from exc
        if response.status_code >= 400:
            raise LLMError(f"deepseek balance {describe_http_error(response)}", provider="deepseek")
        return dict(response.json() or {})

    async def get_balance(self) -> float:
        payload = await self.fetch_balance_info()
        for info in payload.get("balance_infos") or []:
            if str(info.get("currency") or "").upper() == self.currency:
                return float(info.get("total_balance") or 0.0)
        raise LLMError(f"{self.currency} balance not found in response", provider="deepseek")
