"""Top-level stage sequencer for one digest run."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from config.settings import ImageSettings, PipelineSettings
from config.sources import group_by_kind
from core import (
    ContentItem,
    PublishResult,
    RankResult,
    RunOutcome,
    RunState,
    RunStats,
    ScraperOptions,
    SourceDescriptor,
    SourceKind,
)
from intelligence.balance import BalanceChecker
from intelligence.ranking import ContentRanker, reconcile_scores
from intelligence.summarizer import AISummarizer
from notify.base import Notifier
from publishers.base import ContentPublisher
from render.base import DocumentRenderer
from render.cover.base import ImageGenerator
from scrapers.base import ContentScraper
from utils.exceptions import (
    CoverAssetError,
    EmptyWorkingSetError,
    PipelineTimeoutError,
    PublishError,
    SourceFailureError,
)
from utils.polling import AsyncTaskWaiter

from .batch import BoundedBatchRunner


logger = logging.getLogger(__name__)

ClockFn = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _RunContext:
    """Mutable state of the run in progress."""

    stats: RunStats = field(default_factory=RunStats)
    failed_sources: List[str] = field(default_factory=list)
    title: Optional[str] = None
    selected_ids: List[str] = field(default_factory=list)
    publish_result: Optional[PublishResult] = None


class PipelineOrchestrator:
    """
    Runs scrape, rank, select, enrich, render, cover, publish and report.

    Per-source and per-item failures are isolated and notified. Cover and
    publish failures abort the run: a failure notification is sent and the
    error is re-raised to the caller.
    """

    def __init__(
        self,
        *,
        sources: Sequence[SourceDescriptor],
        scrapers: Mapping[SourceKind, ContentScraper],
        ranker: ContentRanker,
        summarizer: AISummarizer,
        renderer: DocumentRenderer,
        image_generator: ImageGenerator,
        publisher: ContentPublisher,
        notifier: Notifier,
        settings: Optional[PipelineSettings] = None,
        image_settings: Optional[ImageSettings] = None,
        waiter: Optional[AsyncTaskWaiter] = None,
        balance_checker: Optional[BalanceChecker] = None,
        scraper_options: Optional[ScraperOptions] = None,
        clock: Optional[ClockFn] = None,
    ) -> None:
        self.sources = list(sources)
        self.scrapers = dict(scrapers)
        self.ranker = ranker
        self.summarizer = summarizer
        self.renderer = renderer
        self.image_generator = image_generator
        self.publisher = publisher
        self.notifier = notifier
        self.settings = settings or PipelineSettings()
        self.image_settings = image_settings or ImageSettings()
        self.waiter = waiter or AsyncTaskWaiter()
        self.balance_checker = balance_checker
        self.scraper_options = scraper_options
        self._clock = clock or _utcnow
        self._ctx = _RunContext()

    @property
    def stats(self) -> RunStats:
        """Counters of the current (or last) run."""
        return self._ctx.stats

    async def run(self) -> RunOutcome:
        self._ctx = _RunContext()
        started_at = self._clock()
        await self.notifier.info("workflow started", f"{len(self.sources)} source(s) configured")

        try:
            if self.settings.run_timeout:
                try:
                    outcome = await asyncio.wait_for(self._run_stages(), timeout=float(self.settings.run_timeout))
                except asyncio.TimeoutError as exc:
                    raise PipelineTimeoutError(
                        f"run exceeded {self.settings.run_timeout}s",
                        {"items_collected": self._ctx.stats.items_collected},
                    ) from exc
            else:
                outcome = await self._run_stages()
        except Exception as exc:
            logger.error("workflow failed: %s", exc)
            await self.notifier.error("workflow failed", str(exc))
            raise

        outcome.started_at = started_at
        outcome.finished_at = self._clock()
        return outcome

    async def aclose(self) -> None:
        """Release sessions held by collaborators."""
        for scraper in self.scrapers.values():
            await scraper.close()
        await self.ranker.llm.aclose()
        if self.summarizer.llm is not self.ranker.llm:
            await self.summarizer.llm.aclose()
        await self.image_generator.aclose()
        await self.publisher.aclose()

    async def _run_stages(self) -> RunOutcome:
        ctx = self._ctx
        await self._check_balance()

        try:
            items = await self._scrape_all()
        except EmptyWorkingSetError as exc:
            logger.error("workflow stopped: %s", exc)
            await self.notifier.error("workflow stopped", str(exc))
            return RunOutcome(state=RunState.EMPTY, stats=ctx.stats.model_copy(), error=str(exc))

        await self._rank(items)
        selected = self._select_top(items)
        ctx.selected_ids = [item.id for item in selected]

        await self._enrich(selected)
        ctx.title = await self._digest_title(items)

        document = self.renderer.render(selected, ctx.title)
        cover_asset_id = await self._cover_asset()

        digest = ctx.title.split("|", 1)[-1].strip() or self.settings.title_prefix
        try:
            ctx.publish_result = await self.publisher.publish(document, ctx.title, digest, cover_asset_id)
        except PublishError:
            raise
        except Exception as exc:
            raise PublishError(f"publish failed: {exc}", platform=self.publisher.platform) from exc

        return await self._report()

    async def _check_balance(self) -> None:
        if self.balance_checker is None:
            return
        try:
            balance = await self.balance_checker.get_balance()
        except Exception as exc:
            logger.warning("balance check failed: %s", exc)
            await self.notifier.warning("balance check failed", str(exc))
            return
        logger.info("provider balance: %.2f %s", balance, self.balance_checker.currency)
        if balance < self.settings.balance_threshold:
            await self.notifier.warning(
                "low provider balance",
                f"balance {balance:.2f} {self.balance_checker.currency} is below {self.settings.balance_threshold}",
            )

    async def _scrape_source(self, source: SourceDescriptor) -> List[ContentItem]:
        scraper = self.scrapers.get(source.kind)
        if scraper is None:
            raise SourceFailureError(f"no scraper registered for {source.kind.value}", source=source.label())
        return await scraper.scrape(source.identifier, self.scraper_options)

    async def _scrape_all(self) -> List[ContentItem]:
        ctx = self._ctx
        grouped: Dict[SourceKind, List[SourceDescriptor]] = group_by_kind(self.sources)
        ordered = [source for sources in grouped.values() for source in sources]
        for kind, sources in grouped.items():
            logger.info("[%s] %s source(s)", kind.value, len(sources))

        ctx.stats.sources_attempted = len(ordered)
        runner = BoundedBatchRunner(self.settings.scrape_concurrency, name="scrape")
        outcomes = await runner.run(ordered, self._scrape_source)

        items: List[ContentItem] = []
        seen_ids = set()
        for outcome in outcomes:
            source = outcome.item
            if not outcome.ok:
                ctx.stats.sources_failed += 1
                ctx.failed_sources.append(source.label())
                await self.notifier.warning("source failed", f"{source.label()}: {outcome.error}")
                continue

            ctx.stats.sources_succeeded += 1
            for item in outcome.result or []:
                if item.id in seen_ids:
                    logger.debug("duplicate item id %s from %s dropped", item.id, source.label())
                    continue
                seen_ids.add(item.id)
                items.append(item)

        ctx.stats.items_collected = len(items)
        logger.info(
            "scraped %s item(s): %s/%s source(s) ok",
            len(items),
            ctx.stats.sources_succeeded,
            ctx.stats.sources_attempted,
        )
        if not items:
            raise EmptyWorkingSetError(f"no items collected from {ctx.stats.sources_attempted} source(s)")
        return items

    async def _rank(self, items: List[ContentItem]) -> None:
        results: List[RankResult] = []
        try:
            if self.settings.ranking_batch_size > 0:
                results = await self.ranker.rank_contents_batch(items, batch_size=self.settings.ranking_batch_size)
            else:
                results = await self.ranker.rank_contents(items)
        except Exception as exc:
            logger.error("ranking failed, keeping default scores: %s", exc)
            await self.notifier.error("ranking failed", str(exc))
            return
        reconcile_scores(items, results)

    def _select_top(self, items: List[ContentItem]) -> List[ContentItem]:
        # sorted() is stable, so equal scores keep scrape order
        ranked = sorted(items, key=lambda item: item.score, reverse=True)
        return ranked[: max(0, self.settings.top_n)]

    async def _enrich(self, items: List[ContentItem]) -> None:
        async def _summarize(item: ContentItem) -> None:
            summary = await self.summarizer.summarize(item)
            item.title = summary.title
            item.body = summary.content
            item.metadata["keywords"] = list(summary.keywords)

        async def _keep_original(item: ContentItem, error: BaseException) -> None:
            item.metadata["keywords"] = []
            await self.notifier.warning("enrichment failed", f"{item.id}: {error}")

        runner = BoundedBatchRunner(self.settings.enrich_concurrency, name="enrich")
        await runner.run(items, _summarize, fallback=_keep_original)

    async def _digest_title(self, items: List[ContentItem]) -> str:
        date_prefix = f"{self._clock():%Y-%m-%d} {self.settings.title_prefix}"
        titles = "\n".join(item.title for item in items if item.title)
        try:
            generated = await self.summarizer.generate_title(titles)
        except Exception as exc:
            logger.warning("title generation failed, using prefix: %s", exc)
            await self.notifier.warning("title generation failed", str(exc))
            return date_prefix[: self.settings.title_max_length]
        return f"{date_prefix} | {generated}"[: self.settings.title_max_length]

    async def _cover_asset(self) -> str:
        try:
            task_id = await self.image_generator.submit(self.settings.cover_prompt, self.settings.cover_size)
            image_url = await self.waiter.wait_for(
                task_id,
                self.image_generator.check,
                max_attempts=self.image_settings.poll_max_attempts,
                interval=self.image_settings.poll_interval,
            )
            return await self.publisher.upload_image(image_url)
        except CoverAssetError:
            raise
        except Exception as exc:
            raise CoverAssetError(f"cover asset failed: {exc}") from exc

    async def _report(self) -> RunOutcome:
        ctx = self._ctx
        stats = ctx.stats
        status = ctx.publish_result.status.value if ctx.publish_result else "unknown"
        summary = (
            f"sources: {stats.sources_attempted}, succeeded: {stats.sources_succeeded}, "
            f"failed: {stats.sources_failed}, items: {stats.items_collected}, publish: {status}"
        )

        if stats.sources_failed > 0:
            state = RunState.PARTIAL_SUCCESS
            await self.notifier.warning(
                "workflow finished (partial success)",
                f"{summary}; failed sources: {', '.join(ctx.failed_sources)}",
            )
        else:
            state = RunState.SUCCESS
            await self.notifier.success("workflow finished", summary)

        logger.info("workflow finished: %s", summary)
        return RunOutcome(
            state=state,
            stats=stats.model_copy(),
            title=ctx.title,
            selected_ids=list(ctx.selected_ids),
            publish_result=ctx.publish_result,
        )
