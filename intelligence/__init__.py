"""
Intelligence Module
LLM backends, ranking, summarization and balance checks
"""
from .llm import (
    BaseLLM,
    LLMResponse,
    Message,
    OpenAICompatibleLLM,
    AnthropicLLM,
    LLMFactory,
    ProviderKind,
    parse_provider_spec,
)
from .ranking import RANKING_FORMAT_VERSION, ContentRanker, RankingResultParser, reconcile_scores
from .summarizer import AISummarizer, parse_summary
from .balance import BalanceChecker, DeepSeekBalanceChecker

__all__ = [
    # LLM
    "BaseLLM",
    "LLMResponse",
    "Message",
    "OpenAICompatibleLLM",
    "AnthropicLLM",
    "LLMFactory",
    "ProviderKind",
    "parse_provider_spec",
    # Ranking
    "RANKING_FORMAT_VERSION",
    "ContentRanker",
    "RankingResultParser",
    "reconcile_scores",
    # Summaries
    "AISummarizer",
    "parse_summary",
    # Balance
    "BalanceChecker",
    "DeepSeekBalanceChecker",
]
