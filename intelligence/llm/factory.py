"""
LLM Factory
Closed registry from provider kind to backend constructor
"""
from enum import Enum
from typing import Callable, Dict, Optional, Tuple
import logging

from config.resolver import PrioritizedConfigResolver
from utils.exceptions import UnsupportedProviderError

from .base import BaseLLM
from .openai_llm import OpenAICompatibleLLM
from .anthropic_llm import AnthropicLLM


logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """Registered LLM backends"""
    OPENAI = "OPENAI"
    DEEPSEEK = "DEEPSEEK"
    QWEN = "QWEN"
    CUSTOM = "CUSTOM"
    ANTHROPIC = "ANTHROPIC"


# configuration key prefix per provider
CONFIG_PREFIXES: Dict[ProviderKind, str] = {
    ProviderKind.OPENAI: "OPENAI_",
    ProviderKind.DEEPSEEK: "DEEPSEEK_",
    ProviderKind.QWEN: "QWEN_",
    ProviderKind.CUSTOM: "CUSTOM_LLM_",
    ProviderKind.ANTHROPIC: "ANTHROPIC_",
}


def _build_openai_compatible(kind: ProviderKind, config: dict, **kwargs) -> BaseLLM:
    models = config["models"]
    return OpenAICompatibleLLM(
        model=config.get("model") or models[0],
        api_key=config.get("api_key"),
        base_url=config.get("base_url"),
        provider_name=kind.value.lower(),
        available_models=models,
        **kwargs,
    )


def _build_anthropic(kind: ProviderKind, config: dict, **kwargs) -> BaseLLM:
    return AnthropicLLM(
        model=config.get("model") or config["models"][0],
        api_key=config.get("api_key"),
        **kwargs,
    )


PROVIDER_REGISTRY: Dict[ProviderKind, Callable[..., BaseLLM]] = {
    ProviderKind.OPENAI: _build_openai_compatible,
    ProviderKind.DEEPSEEK: _build_openai_compatible,
    ProviderKind.QWEN: _build_openai_compatible,
    ProviderKind.CUSTOM: _build_openai_compatible,
    ProviderKind.ANTHROPIC: _build_anthropic,
}


def parse_provider_spec(spec: str) -> Tuple[ProviderKind, Optional[str]]:
    """
    Split ``"DEEPSEEK:deepseek-chat"`` into kind and model.

    The model part is optional; an unknown kind raises UnsupportedProviderError.
    """
    raw_kind, _, model = (spec or "").strip().partition(":")
    try:
        kind = ProviderKind(raw_kind.strip().upper())
    except ValueError:
        raise UnsupportedProviderError(raw_kind or spec, registry="LLM provider") from None
    return kind, (model.strip() or None)


class LLMFactory:
    """
    Builds and caches one backend per ``kind[:model]`` key.

    Endpoint settings are read through the resolver as
    ``{PREFIX}BASE_URL``, ``{PREFIX}API_KEY`` and ``{PREFIX}MODEL``;
    ``MODEL`` may list alternatives separated by ``|``, the first is the default.
    """

    def __init__(
        self,
        resolver: PrioritizedConfigResolver,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout: float = 60.0,
    ):
        self.resolver = resolver
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._instances: Dict[str, BaseLLM] = {}

    async def _load_config(self, kind: ProviderKind) -> dict:
        prefix = CONFIG_PREFIXES[kind]
        base_url = await self.resolver.get_or_default(f"{prefix}BASE_URL")
        api_key = await self.resolver.get_or_default(f"{prefix}API_KEY")
        raw_models = await self.resolver.get(f"{prefix}MODEL")
        models = [m.strip() for m in str(raw_models).split("|") if m.strip()]
        if not models:
            raise UnsupportedProviderError(f"{kind.value} (no model configured)", registry="LLM provider")
        return {
            "base_url": str(base_url) if base_url is not None else None,
            "api_key": str(api_key) if api_key is not None else None,
            "models": models,
        }

    async def get_llm(self, spec: str) -> BaseLLM:
        """Return the cached backend for ``spec``, creating it on first use."""
        kind, model = parse_provider_spec(spec)
        cache_key = f"{kind.value}:{model}" if model else kind.value
        if cache_key in self._instances:
            return self._instances[cache_key]

        config = await self._load_config(kind)
        config["model"] = model
        builder = PROVIDER_REGISTRY[kind]
        llm = builder(
            kind,
            config,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout=self.timeout,
        )
        logger.info("created LLM backend %s", llm)
        self._instances[cache_key] = llm
        return llm

    def clear(self) -> None:
        self._instances = {}

    async def aclose(self) -> None:
        for llm in list(self._instances.values()):
            await llm.aclose()
        self.clear()
