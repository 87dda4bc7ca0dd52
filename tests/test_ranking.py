from __future__ import annotations

from typing import List

import pytest

from core import ContentItem, RankResult
from intelligence.llm.base import BaseLLM, LLMResponse, Message
from intelligence.ranking import ContentRanker, RankingResultParser, reconcile_scores
from utils.exceptions import InvalidInputError, MalformedRankingLineError, RankingError
from utils.retry import RetryExecutor, RetryPolicy


class _ScriptedLLM(BaseLLM):
    def __init__(self, replies: List[str]) -> None:
        super().__init__(model="fake")
        self.replies = list(replies)
        self.calls: List[List[Message]] = []

    @property
    def provider(self) -> str:
        return "fake"

    async def acomplete(self, messages, *, temperature=None, max_tokens=None, json_mode=False, **kwargs) -> LLMResponse:
        self.calls.append(list(messages))
        reply = self.replies[min(len(self.calls) - 1, len(self.replies) - 1)]
        return LLMResponse(content=reply, model=self.model)


async def _no_sleep(_: float) -> None:
    return None


def _ranker(llm: BaseLLM, attempts: int = 3) -> ContentRanker:
    return ContentRanker(
        llm,
        executor=RetryExecutor(sleep=_no_sleep, name="ranking"),
        policy=RetryPolicy(max_attempts=attempts, base_delay=0),
        pause=0,
    )


def _items(*ids: str) -> List[ContentItem]:
    return [ContentItem(id=i, title=f"title {i}", body=f"body {i}") for i in ids]


def test_parser_handles_colons_labels_and_spacing() -> None:
    results = RankingResultParser().parse("a1: 72.50\nID:a2  90")

    assert results == [RankResult(id="a1", score=72.5), RankResult(id="a2", score=90.0)]


def test_parser_accepts_article_id_labels_and_fullwidth_colon() -> None:
    parser = RankingResultParser()

    assert parser.parse("Article ID: x9 12") == [RankResult(id="x9", score=12.0)]
    assert parser.parse("文章ID：1880 66.6") == [RankResult(id="1880", score=66.6)]
    assert parser.parse("id-7 3") == [RankResult(id="id-7", score=3.0)]


def test_parser_skips_blank_lines_between_entries() -> None:
    results = RankingResultParser().parse("\n a1 10\n\n a2 20 \n")

    assert [r.id for r in results] == ["a1", "a2"]


@pytest.mark.parametrize(
    "raw",
    [
        "a1 72.5\nbroken-line",
        "a1 72.5 extra",
        "a1 seventy",
        "",
        "   \n ",
    ],
)
def test_parser_rejects_whole_batch_on_malformed_line(raw: str) -> None:
    with pytest.raises(MalformedRankingLineError):
        RankingResultParser().parse(raw)


def test_malformed_error_carries_line_number() -> None:
    with pytest.raises(MalformedRankingLineError) as exc_info:
        RankingResultParser().parse("a1 1\na2 2\n???")

    assert exc_info.value.line == "???"
    assert exc_info.value.line_no == 3


def test_reconcile_drops_unknown_ids_and_keeps_default_for_unmatched() -> None:
    items = _items("a", "b", "c")

    matched = reconcile_scores(items, [RankResult(id="a", score=50), RankResult(id="zzz", score=99)])

    assert matched == 1
    assert [i.score for i in items] == [50.0, 0.0, 0.0]


@pytest.mark.asyncio
async def test_rank_contents_requeries_after_malformed_reply() -> None:
    llm = _ScriptedLLM(["not a ranking", "a 10\nb 20"])

    results = await _ranker(llm).rank_contents(_items("a", "b"))

    assert len(llm.calls) == 2
    assert [(r.id, r.score) for r in results] == [("a", 10.0), ("b", 20.0)]


@pytest.mark.asyncio
async def test_rank_contents_raises_ranking_error_after_exhausting_attempts() -> None:
    llm = _ScriptedLLM(["garbage line"])

    with pytest.raises(RankingError) as exc_info:
        await _ranker(llm, attempts=2).rank_contents(_items("a"))

    assert len(llm.calls) == 2
    assert isinstance(exc_info.value.__cause__, MalformedRankingLineError)


@pytest.mark.asyncio
async def test_rank_contents_empty_input_makes_no_call() -> None:
    llm = _ScriptedLLM(["a 1"])

    assert await _ranker(llm).rank_contents([]) == []
    assert llm.calls == []


@pytest.mark.asyncio
async def test_rank_contents_prompt_lists_every_item_id() -> None:
    llm = _ScriptedLLM(["a 1\nb 2"])

    await _ranker(llm).rank_contents(_items("a", "b"))

    prompt = llm.calls[0][-1].content
    assert "Article ID: a" in prompt and "Article ID: b" in prompt


@pytest.mark.asyncio
async def test_rank_contents_batch_slices_input() -> None:
    llm = _ScriptedLLM(["a 1\nb 2", "c 3"])

    results = await _ranker(llm).rank_contents_batch(_items("a", "b", "c"), batch_size=2)

    assert len(llm.calls) == 2
    assert [r.id for r in results] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_rank_contents_batch_rejects_bad_batch_size() -> None:
    with pytest.raises(InvalidInputError):
        await _ranker(_ScriptedLLM(["a 1"])).rank_contents_batch(_items("a"), batch_size=0)
