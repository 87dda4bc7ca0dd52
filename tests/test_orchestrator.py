from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest

from config.settings import ImageSettings, PipelineSettings
from core import (
    AsyncTask,
    ContentItem,
    PublishResult,
    PublishStatus,
    RankResult,
    RunState,
    ScraperOptions,
    SourceDescriptor,
    SourceKind,
    Summary,
    TaskStatus,
)
from intelligence.balance import BalanceChecker
from notify.base import Notifier, NotifyLevel
from orchestrator import PipelineOrchestrator
from publishers.base import ContentPublisher
from render.base import DocumentRenderer
from render.cover.base import ImageGenerator
from scrapers.base import ContentScraper
from utils.exceptions import (
    CoverAssetError,
    EnrichmentError,
    PipelineTimeoutError,
    PublishError,
    RankingError,
    SourceFailureError,
)
from utils.polling import AsyncTaskWaiter


NOW = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)

Script = Union[List[ContentItem], Exception]


class _FakeScraper(ContentScraper):
    def __init__(self, kind: SourceKind, scripts: Dict[str, Script], delay: float = 0.0) -> None:
        super().__init__()
        self._kind = kind
        self.scripts = scripts
        self.delay = delay
        self.calls: List[str] = []

    @property
    def kind(self) -> SourceKind:
        return self._kind

    @property
    def name(self) -> str:
        return f"fake-{self._kind.value}"

    async def scrape(self, identifier: str, options: Optional[ScraperOptions] = None) -> List[ContentItem]:
        self.calls.append(identifier)
        if self.delay:
            await asyncio.sleep(self.delay)
        script = self.scripts[identifier]
        if isinstance(script, Exception):
            raise script
        return [item.model_copy(deep=True) for item in script]


class _FakeRanker:
    def __init__(self, scores: Optional[Dict[str, float]] = None, error: Optional[Exception] = None) -> None:
        self.scores = scores or {}
        self.error = error
        self.calls: List[List[str]] = []

    async def rank_contents(self, items: Sequence[ContentItem]) -> List[RankResult]:
        self.calls.append([item.id for item in items])
        if self.error is not None:
            raise self.error
        return [RankResult(id=k, score=v) for k, v in self.scores.items()]

    async def rank_contents_batch(self, items: Sequence[ContentItem], batch_size: int = 5) -> List[RankResult]:
        return await self.rank_contents(items)


class _FakeSummarizer:
    def __init__(self, failing: Sequence[str] = (), title: Optional[str] = "Models everywhere") -> None:
        self.failing = set(failing)
        self.title = title
        self.calls: List[str] = []
        self.title_inputs: List[str] = []

    async def summarize(self, item: ContentItem) -> Summary:
        self.calls.append(item.id)
        if item.id in self.failing:
            raise EnrichmentError("model down", item_id=item.id)
        return Summary(title=f"rewritten {item.id}", content=f"summary of {item.id}", keywords=["ai"])

    async def generate_title(self, text: str, max_tokens: int = 100) -> str:
        self.title_inputs.append(text)
        if self.title is None:
            raise RuntimeError("title model down")
        return self.title


class _FakeRenderer(DocumentRenderer):
    def __init__(self) -> None:
        self.calls: List[Tuple[List[str], str]] = []

    def render(self, items: Sequence[ContentItem], title: str) -> str:
        self.calls.append(([item.id for item in items], title))
        return "<section>" + "".join(item.title for item in items) + "</section>"


class _FakeImageGenerator(ImageGenerator):
    def __init__(self, final: AsyncTask) -> None:
        self.final = final
        self.submitted: List[Tuple[str, str]] = []

    async def submit(self, prompt: str, size: str) -> str:
        self.submitted.append((prompt, size))
        return "task-1"

    async def check(self, task_id: str) -> AsyncTask:
        return self.final


class _FakePublisher(ContentPublisher):
    platform = "fake"

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.uploaded: List[str] = []
        self.published: List[Dict[str, Optional[str]]] = []

    async def upload_image(self, url: str) -> str:
        self.uploaded.append(url)
        return "media-1"

    async def publish(self, document: str, title: str, digest: str, cover_asset_id: Optional[str] = None) -> PublishResult:
        if self.error is not None:
            raise self.error
        self.published.append({"document": document, "title": title, "digest": digest, "cover": cover_asset_id})
        return PublishResult(id="draft-1", status=PublishStatus.DRAFT, platform=self.platform)


class _RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.sent: List[Tuple[NotifyLevel, str, str]] = []

    async def notify(self, level: NotifyLevel, title: str, body: str) -> bool:
        self.sent.append((level, title, body))
        return True

    def titles(self, level: NotifyLevel) -> List[str]:
        return [title for lvl, title, _ in self.sent if lvl == level]


class _FixedBalance(BalanceChecker):
    currency = "CNY"

    def __init__(self, balance: float) -> None:
        self.balance = balance

    async def get_balance(self) -> float:
        return self.balance


class _BrokenBalance(BalanceChecker):
    currency = "CNY"

    async def get_balance(self) -> float:
        raise RuntimeError("balance endpoint unreachable")


async def _no_sleep(_: float) -> None:
    return None


def _items(prefix: str, count: int) -> List[ContentItem]:
    return [ContentItem(id=f"{prefix}{i}", title=f"{prefix} title {i}", body=f"{prefix} body {i}") for i in range(count)]


def _build(
    *,
    sources: Optional[List[SourceDescriptor]] = None,
    scrapers: Optional[Dict[SourceKind, ContentScraper]] = None,
    ranker: Optional[_FakeRanker] = None,
    summarizer: Optional[_FakeSummarizer] = None,
    image_generator: Optional[ImageGenerator] = None,
    publisher: Optional[_FakePublisher] = None,
    settings: Optional[PipelineSettings] = None,
    balance_checker: Optional[BalanceChecker] = None,
) -> Tuple[PipelineOrchestrator, _RecordingNotifier]:
    notifier = _RecordingNotifier()
    if sources is None:
        sources = [SourceDescriptor(kind=SourceKind.HACKERNEWS, identifier="front_page")]
    if scrapers is None:
        scrapers = {SourceKind.HACKERNEWS: _FakeScraper(SourceKind.HACKERNEWS, {"front_page": _items("hn", 3)})}
    orchestrator = PipelineOrchestrator(
        sources=sources,
        scrapers=scrapers,
        ranker=ranker or _FakeRanker(),
        summarizer=summarizer or _FakeSummarizer(),
        renderer=_FakeRenderer(),
        image_generator=image_generator or _FakeImageGenerator(
            AsyncTask(id="task-1", status=TaskStatus.SUCCEEDED, result="https://img.example.com/cover.png"),
        ),
        publisher=publisher or _FakePublisher(),
        notifier=notifier,
        settings=settings or PipelineSettings(top_n=10, run_timeout=None),
        image_settings=ImageSettings(poll_max_attempts=3, poll_interval=0),
        waiter=AsyncTaskWaiter(sleep=_no_sleep),
        balance_checker=balance_checker,
        clock=lambda: NOW,
    )
    return orchestrator, notifier


@pytest.mark.asyncio
async def test_failed_source_is_isolated_and_reported() -> None:
    ranker = _FakeRanker()
    scraper = _FakeScraper(SourceKind.HACKERNEWS, {
        "A": _items("a", 3),
        "B": SourceFailureError("connection reset", source="B"),
    })
    orchestrator, notifier = _build(
        sources=[
            SourceDescriptor(kind=SourceKind.HACKERNEWS, identifier="A"),
            SourceDescriptor(kind=SourceKind.HACKERNEWS, identifier="B"),
        ],
        scrapers={SourceKind.HACKERNEWS: scraper},
        ranker=ranker,
    )

    outcome = await orchestrator.run()

    assert outcome.state == RunState.PARTIAL_SUCCESS
    assert outcome.stats.sources_attempted == 2
    assert outcome.stats.sources_failed == 1
    assert outcome.stats.items_collected == 3
    assert ranker.calls == [["a0", "a1", "a2"]]
    warnings = [(title, body) for lvl, title, body in notifier.sent if lvl == NotifyLevel.WARNING]
    assert any(title == "source failed" and "hackernews:B" in body for title, body in warnings)
    assert "workflow finished (partial success)" in notifier.titles(NotifyLevel.WARNING)


@pytest.mark.asyncio
async def test_empty_working_set_stops_before_ranking() -> None:
    ranker = _FakeRanker()
    summarizer = _FakeSummarizer()
    publisher = _FakePublisher()
    scraper = _FakeScraper(SourceKind.HACKERNEWS, {"A": [], "B": []})
    orchestrator, notifier = _build(
        sources=[
            SourceDescriptor(kind=SourceKind.HACKERNEWS, identifier="A"),
            SourceDescriptor(kind=SourceKind.HACKERNEWS, identifier="B"),
        ],
        scrapers={SourceKind.HACKERNEWS: scraper},
        ranker=ranker,
        summarizer=summarizer,
        publisher=publisher,
    )

    outcome = await orchestrator.run()

    assert outcome.state == RunState.EMPTY
    assert outcome.stats.items_collected == 0
    assert ranker.calls == [] and summarizer.calls == [] and publisher.published == []
    assert notifier.titles(NotifyLevel.ERROR) == ["workflow stopped"]


@pytest.mark.asyncio
async def test_successful_run_selects_top_n_by_score_stably() -> None:
    ranker = _FakeRanker({"hn0": 10, "hn1": 80, "hn2": 80, "hn3": 50})
    scraper = _FakeScraper(SourceKind.HACKERNEWS, {"front_page": _items("hn", 4)})
    publisher = _FakePublisher()
    orchestrator, notifier = _build(
        scrapers={SourceKind.HACKERNEWS: scraper},
        ranker=ranker,
        publisher=publisher,
        settings=PipelineSettings(top_n=3, run_timeout=None),
    )

    outcome = await orchestrator.run()

    assert outcome.state == RunState.SUCCESS
    assert outcome.selected_ids == ["hn1", "hn2", "hn3"]
    assert outcome.title == "2026-03-01 AI Digest | Models everywhere"
    assert outcome.publish_result is not None and outcome.publish_result.id == "draft-1"
    assert publisher.uploaded == ["https://img.example.com/cover.png"]
    assert publisher.published[0]["cover"] == "media-1"
    assert publisher.published[0]["digest"] == "Models everywhere"
    assert notifier.titles(NotifyLevel.SUCCESS) == ["workflow finished"]
    assert outcome.finished_at == NOW


@pytest.mark.asyncio
async def test_ranking_failure_keeps_default_scores_and_continues() -> None:
    ranker = _FakeRanker(error=RankingError("ranking failed after 3 attempt(s)"))
    orchestrator, notifier = _build(ranker=ranker, settings=PipelineSettings(top_n=2, run_timeout=None))

    outcome = await orchestrator.run()

    assert outcome.state == RunState.SUCCESS
    assert outcome.selected_ids == ["hn0", "hn1"]
    assert "ranking failed" in notifier.titles(NotifyLevel.ERROR)


@pytest.mark.asyncio
async def test_enrichment_failure_keeps_original_item() -> None:
    summarizer = _FakeSummarizer(failing=["hn1"])
    orchestrator, notifier = _build(summarizer=summarizer)

    await orchestrator.run()

    renderer_calls = orchestrator.renderer.calls
    assert renderer_calls[0][0] == ["hn0", "hn1", "hn2"]
    assert sorted(summarizer.calls) == ["hn0", "hn1", "hn2"]
    assert notifier.titles(NotifyLevel.WARNING).count("enrichment failed") == 1
    published = orchestrator.publisher.published[0]["document"]
    assert "rewritten hn0" in published
    assert "hn title 1" in published


@pytest.mark.asyncio
async def test_title_falls_back_to_date_prefix() -> None:
    orchestrator, notifier = _build(summarizer=_FakeSummarizer(title=None))

    outcome = await orchestrator.run()

    assert outcome.title == "2026-03-01 AI Digest"
    assert orchestrator.publisher.published[0]["digest"] == "2026-03-01 AI Digest"
    assert "title generation failed" in notifier.titles(NotifyLevel.WARNING)


@pytest.mark.asyncio
async def test_title_is_generated_from_every_collected_item() -> None:
    summarizer = _FakeSummarizer()
    scraper = _FakeScraper(SourceKind.HACKERNEWS, {"front_page": _items("hn", 4)})
    orchestrator, _ = _build(
        scrapers={SourceKind.HACKERNEWS: scraper},
        summarizer=summarizer,
        settings=PipelineSettings(top_n=2, run_timeout=None),
    )

    outcome = await orchestrator.run()

    assert outcome.selected_ids == ["hn0", "hn1"]
    title_input = summarizer.title_inputs[0].splitlines()
    assert title_input == ["rewritten hn0", "rewritten hn1", "hn title 2", "hn title 3"]


@pytest.mark.asyncio
async def test_cover_failure_aborts_before_publish() -> None:
    publisher = _FakePublisher()
    generator = _FakeImageGenerator(AsyncTask(id="task-1", status=TaskStatus.FAILED, error="moderation"))
    orchestrator, notifier = _build(image_generator=generator, publisher=publisher)

    with pytest.raises(CoverAssetError):
        await orchestrator.run()

    assert publisher.published == []
    assert notifier.titles(NotifyLevel.ERROR) == ["workflow failed"]


@pytest.mark.asyncio
async def test_publish_failure_is_raised_and_notified() -> None:
    orchestrator, notifier = _build(publisher=_FakePublisher(error=RuntimeError("errcode 45009")))

    with pytest.raises(PublishError) as exc_info:
        await orchestrator.run()

    assert exc_info.value.platform == "fake"
    assert notifier.titles(NotifyLevel.ERROR) == ["workflow failed"]


@pytest.mark.asyncio
async def test_unregistered_source_kind_counts_as_failed_source() -> None:
    orchestrator, notifier = _build(sources=[
        SourceDescriptor(kind=SourceKind.HACKERNEWS, identifier="front_page"),
        SourceDescriptor(kind=SourceKind.TWITTER, identifier="OpenAI"),
    ])

    outcome = await orchestrator.run()

    assert outcome.state == RunState.PARTIAL_SUCCESS
    assert outcome.stats.sources_failed == 1
    assert outcome.stats.items_collected == 3


@pytest.mark.asyncio
async def test_duplicate_item_ids_across_sources_keep_first() -> None:
    scraper = _FakeScraper(SourceKind.HACKERNEWS, {"A": _items("x", 2), "B": _items("x", 3)})
    orchestrator, _ = _build(
        sources=[
            SourceDescriptor(kind=SourceKind.HACKERNEWS, identifier="A"),
            SourceDescriptor(kind=SourceKind.HACKERNEWS, identifier="B"),
        ],
        scrapers={SourceKind.HACKERNEWS: scraper},
    )

    outcome = await orchestrator.run()

    assert outcome.stats.items_collected == 3


@pytest.mark.asyncio
async def test_low_balance_sends_warning_and_run_continues() -> None:
    orchestrator, notifier = _build(balance_checker=_FixedBalance(0.2))

    outcome = await orchestrator.run()

    assert outcome.state == RunState.SUCCESS
    assert "low provider balance" in notifier.titles(NotifyLevel.WARNING)


@pytest.mark.asyncio
async def test_failing_balance_check_is_notified_and_run_continues() -> None:
    orchestrator, notifier = _build(balance_checker=_BrokenBalance())

    outcome = await orchestrator.run()

    assert outcome.state == RunState.SUCCESS
    warnings = [(title, body) for lvl, title, body in notifier.sent if lvl == NotifyLevel.WARNING]
    assert ("balance check failed", "balance endpoint unreachable") in warnings


@pytest.mark.asyncio
async def test_run_timeout_raises_pipeline_timeout() -> None:
    scraper = _FakeScraper(SourceKind.HACKERNEWS, {"front_page": _items("hn", 1)}, delay=5)
    orchestrator, notifier = _build(
        scrapers={SourceKind.HACKERNEWS: scraper},
        settings=PipelineSettings(run_timeout=0.05),
    )

    with pytest.raises(PipelineTimeoutError):
        await orchestrator.run()

    assert notifier.titles(NotifyLevel.ERROR) == ["workflow failed"]
    assert notifier.sent[0][1] == "workflow started"
