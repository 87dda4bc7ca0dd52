"""
OpenAI-compatible LLM
OpenAI, DeepSeek, Qwen and any endpoint speaking the chat.completions protocol
"""
from typing import List, Optional
import logging
import inspect

from .base import BaseLLM, Message, LLMResponse


logger = logging.getLogger(__name__)


class OpenAICompatibleLLM(BaseLLM):
    """
    Chat completions over the OpenAI SDK.

    ``provider_name`` distinguishes the configured endpoint
    (openai, deepseek, qwen, custom) in logs and repr.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: float = 60.0,
        provider_name: str = "openai",
        available_models: Optional[List[str]] = None,
        **kwargs,
    ):
        super().__init__(model, temperature, max_tokens, timeout, **kwargs)
        self.api_key = api_key
        self.base_url = base_url
        self.provider_name = provider_name
        self.available_models = list(available_models or [model])
        self._async_client = None

    @property
    def provider(self) -> str:
        return self.provider_name

    def set_model(self, model: str) -> None:
        """Switch to another configured model; unknown names are ignored."""
        if model in self.available_models:
            self.model = model
        else:
            logger.warning(f"[{self.provider_name}] model {model} not in {self.available_models}, keeping {self.model}")

    def _get_async_client(self):
        """Lazily build the async client"""
        if self._async_client is None:
            from openai import AsyncOpenAI
            self._async_client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._async_client

    async def acomplete(
        self,
        messages: List[Message],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs,
    ) -> LLMResponse:
        client = self._get_async_client()

        request_params = {
            "model": kwargs.get("model") or self.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
        }
        if json_mode:
            request_params["response_format"] = {"type": "json_object"}

        response = await client.chat.completions.create(**request_params)

        choice = response.choices[0]
        content = choice.message.content or ""

        return LLMResponse(
            content=content,
            model=response.model,
            usage={
                "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
                "completion_tokens": response.usage.completion_tokens if response.usage else 0,
                "total_tokens": response.usage.total_tokens if response.usage else 0,
            },
            finish_reason=choice.finish_reason,
            raw_response=response,
        )

    async def aclose(self) -> None:
        client = self._async_client
        if client is None:
            return
        close_fn = getattr(client, "close", None)
        if callable(close_fn):
            maybe_awaitable = close_fn()
            if inspect.isawaitable(maybe_awaitable):
                await maybe_awaitable
        self._async_client = None
