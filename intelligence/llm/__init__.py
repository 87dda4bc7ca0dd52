"""
LLM Module
Interchangeable chat-completion backends
"""
from .base import BaseLLM, LLMResponse, Message, MessageRole
from .openai_llm import OpenAICompatibleLLM
from .anthropic_llm import AnthropicLLM
from .factory import LLMFactory, ProviderKind, PROVIDER_REGISTRY, parse_provider_spec

__all__ = [
    "BaseLLM",
    "LLMResponse",
    "Message",
    "MessageRole",
    "OpenAICompatibleLLM",
    "AnthropicLLM",
    "LLMFactory",
    "ProviderKind",
    "PROVIDER_REGISTRY",
    "parse_provider_spec",
]
