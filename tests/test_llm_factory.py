from __future__ import annotations

import pytest

from config.resolver import MappingConfigSource, PrioritizedConfigResolver
from intelligence.llm import AnthropicLLM, LLMFactory, OpenAICompatibleLLM
from intelligence.llm.factory import ProviderKind, parse_provider_spec
from utils.exceptions import ConfigurationMissingError, UnsupportedProviderError


def _resolver(**values) -> PrioritizedConfigResolver:
    return PrioritizedConfigResolver([MappingConfigSource(values, priority=1)])


def test_parse_provider_spec_splits_kind_and_model() -> None:
    assert parse_provider_spec("deepseek:deepseek-reasoner") == (ProviderKind.DEEPSEEK, "deepseek-reasoner")
    assert parse_provider_spec("QWEN") == (ProviderKind.QWEN, None)


def test_parse_provider_spec_rejects_unknown_kind() -> None:
    with pytest.raises(UnsupportedProviderError) as exc_info:
        parse_provider_spec("GROK:grok-2")

    assert exc_info.value.kind == "GROK"


@pytest.mark.asyncio
async def test_openai_compatible_kinds_read_prefixed_config() -> None:
    factory = LLMFactory(_resolver(
        DEEPSEEK_BASE_URL="https://api.deepseek.com",
        DEEPSEEK_API_KEY="sk-test",
        DEEPSEEK_MODEL="deepseek-chat|deepseek-reasoner",
    ))

    llm = await factory.get_llm("DEEPSEEK")

    assert isinstance(llm, OpenAICompatibleLLM)
    assert llm.provider == "deepseek"
    assert llm.model == "deepseek-chat"
    assert llm.available_models == ["deepseek-chat", "deepseek-reasoner"]
    assert llm.base_url == "https://api.deepseek.com"


@pytest.mark.asyncio
async def test_explicit_model_overrides_default_and_is_cached_separately() -> None:
    factory = LLMFactory(_resolver(QWEN_MODEL="qwen-plus", QWEN_API_KEY="k"))

    default = await factory.get_llm("QWEN")
    explicit = await factory.get_llm("QWEN:qwen-max")

    assert default.model == "qwen-plus"
    assert explicit.model == "qwen-max"
    assert await factory.get_llm("QWEN") is default


@pytest.mark.asyncio
async def test_custom_kind_uses_custom_llm_prefix() -> None:
    factory = LLMFactory(_resolver(CUSTOM_LLM_BASE_URL="http://localhost:8000/v1", CUSTOM_LLM_MODEL="local"))

    llm = await factory.get_llm("CUSTOM")

    assert llm.provider == "custom"
    assert llm.base_url == "http://localhost:8000/v1"


@pytest.mark.asyncio
async def test_anthropic_kind_builds_anthropic_backend() -> None:
    factory = LLMFactory(_resolver(ANTHROPIC_MODEL="claude-3-5-haiku-latest", ANTHROPIC_API_KEY="k"))

    assert isinstance(await factory.get_llm("ANTHROPIC"), AnthropicLLM)


@pytest.mark.asyncio
async def test_missing_model_config_raises() -> None:
    factory = LLMFactory(_resolver(OPENAI_API_KEY="k"))

    with pytest.raises(ConfigurationMissingError):
        await factory.get_llm("OPENAI")
