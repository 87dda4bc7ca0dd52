from __future__ import annotations

from pathlib import Path

import pytest

from config.resolver import build_default_resolver
from config.settings import BarkSettings, PipelineSettings, Settings
from core import SourceDescriptor, SourceKind
from intelligence.balance import DeepSeekBalanceChecker
from notify import BarkNotifier, CompositeNotifier, JsonlNotifier, LoggingNotifier
from orchestrator import build_notifier, build_orchestrator
from publishers import WeixinPublisher
from render import DashScopeImageGenerator, HtmlDigestRenderer


def test_build_notifier_adds_optional_channels(tmp_path: Path) -> None:
    settings = Settings(
        bark=BarkSettings(key="device-key"),
        pipeline=PipelineSettings(notifications_dir=str(tmp_path)),
    )

    notifier = build_notifier(settings)

    assert isinstance(notifier, CompositeNotifier)
    assert [type(n) for n in notifier.notifiers] == [LoggingNotifier, BarkNotifier, JsonlNotifier]


def test_build_notifier_defaults_to_log_only() -> None:
    notifier = build_notifier(Settings(bark=BarkSettings(key=None), pipeline=PipelineSettings(notifications_dir=None)))

    assert [type(n) for n in notifier.notifiers] == [LoggingNotifier]


@pytest.mark.asyncio
async def test_build_orchestrator_wires_configured_collaborators() -> None:
    settings = Settings()
    resolver = build_default_resolver(settings, overrides={
        "LLM_RANKER_PROVIDER": "DEEPSEEK",
        "LLM_SUMMARIZER_PROVIDER": "QWEN:qwen-max",
        "DEEPSEEK_MODEL": "deepseek-chat",
        "QWEN_MODEL": "qwen-plus",
    })
    sources = [SourceDescriptor(kind=SourceKind.HACKERNEWS, identifier="front_page")]

    orchestrator = await build_orchestrator(settings, resolver=resolver, sources=sources)

    assert set(orchestrator.scrapers) == {SourceKind.HACKERNEWS}
    assert orchestrator.ranker.llm.provider == "deepseek"
    assert orchestrator.summarizer.llm.model == "qwen-max"
    assert isinstance(orchestrator.balance_checker, DeepSeekBalanceChecker)
    assert isinstance(orchestrator.renderer, HtmlDigestRenderer)
    assert isinstance(orchestrator.image_generator, DashScopeImageGenerator)
    assert isinstance(orchestrator.publisher, WeixinPublisher)


@pytest.mark.asyncio
async def test_non_deepseek_ranker_skips_balance_check() -> None:
    settings = Settings()
    resolver = build_default_resolver(settings, overrides={
        "LLM_RANKER_PROVIDER": "OPENAI:gpt-4o-mini",
        "LLM_SUMMARIZER_PROVIDER": "OPENAI",
        "OPENAI_MODEL": "gpt-4o-mini",
    })

    orchestrator = await build_orchestrator(
        settings,
        resolver=resolver,
        sources=[SourceDescriptor(kind=SourceKind.TWITTER, identifier="OpenAI")],
    )

    assert orchestrator.balance_checker is None
    assert set(orchestrator.scrapers) == {SourceKind.TWITTER}
