"""Wires settings, resolver and collaborators into a ready orchestrator."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from config.resolver import PrioritizedConfigResolver, build_default_resolver
from config.settings import Settings, get_settings
from config.sources import load_sources
from core import SourceDescriptor
from intelligence.balance import DeepSeekBalanceChecker
from intelligence.llm.factory import LLMFactory, ProviderKind, parse_provider_spec
from intelligence.ranking import ContentRanker
from intelligence.summarizer import AISummarizer
from notify.bark import BarkNotifier
from notify.base import CompositeNotifier, LoggingNotifier, Notifier
from notify.jsonl import JsonlNotifier
from publishers.weixin import WeixinPublisher
from render.cover.factory import create_image_generator
from render.html import HtmlDigestRenderer
from scrapers.registry import build_scrapers
from utils.retry import RetryPolicy

from .workflow import PipelineOrchestrator


logger = logging.getLogger(__name__)


def build_notifier(settings: Settings) -> Notifier:
    notifiers: List[Notifier] = [LoggingNotifier()]
    if settings.bark.key:
        notifiers.append(BarkNotifier(key=settings.bark.key, url=settings.bark.url, group=settings.bark.group))
    if settings.pipeline.notifications_dir:
        notifiers.append(JsonlNotifier(settings.pipeline.notifications_dir))
    return CompositeNotifier(notifiers)


async def build_orchestrator(
    settings: Optional[Settings] = None,
    resolver: Optional[PrioritizedConfigResolver] = None,
    sources: Optional[Sequence[SourceDescriptor]] = None,
    config_file: Optional[Path] = None,
) -> PipelineOrchestrator:
    """Production wiring: every collaborator is constructed here and injected."""
    settings = settings or get_settings()
    resolver = resolver or build_default_resolver(settings, config_file=config_file)
    pipeline = settings.pipeline

    if sources is None:
        sources_file = await resolver.get_or_default("PIPELINE_SOURCES_FILE")
        sources = load_sources(Path(str(sources_file)) if sources_file else None)

    llm_factory = LLMFactory(
        resolver,
        temperature=settings.llm.temperature,
        max_tokens=settings.llm.max_tokens,
        timeout=settings.llm.timeout,
    )
    ranker_spec = str(await resolver.get("LLM_RANKER_PROVIDER"))
    summarizer_spec = str(await resolver.get("LLM_SUMMARIZER_PROVIDER"))
    ranking_policy = RetryPolicy(max_attempts=pipeline.ranking_max_attempts, base_delay=pipeline.ranking_base_delay)

    ranker = ContentRanker(await llm_factory.get_llm(ranker_spec), policy=ranking_policy)
    summarizer = AISummarizer(await llm_factory.get_llm(summarizer_spec))
    logger.info("ranker: %s, summarizer: %s", ranker_spec, summarizer_spec)

    balance_checker = None
    if parse_provider_spec(ranker_spec)[0] == ProviderKind.DEEPSEEK:
        balance_checker = DeepSeekBalanceChecker(resolver)

    return PipelineOrchestrator(
        sources=sources,
        scrapers=build_scrapers(settings, {s.kind for s in sources}),
        ranker=ranker,
        summarizer=summarizer,
        renderer=HtmlDigestRenderer(),
        image_generator=create_image_generator(settings.image.generator, resolver),
        publisher=WeixinPublisher(resolver, safety_margin=settings.weixin.token_safety_margin),
        notifier=build_notifier(settings),
        settings=pipeline,
        image_settings=settings.image,
        balance_checker=balance_checker,
    )
