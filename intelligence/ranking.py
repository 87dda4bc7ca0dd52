"""LLM scoring of collected items and strict parsing of the scoring reply."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Dict, List, Optional, Sequence

from core import ContentItem, RankResult
from utils.exceptions import InvalidInputError, LLMError, MalformedRankingLineError, RankingError
from utils.retry import RetryExecutor, RetryPolicy

from .llm.base import BaseLLM, Message
from .prompts import RANKING_SYSTEM_PROMPT, build_ranking_prompt


logger = logging.getLogger(__name__)

# bump when the reply micro-format changes
RANKING_FORMAT_VERSION = "1"

_LABEL_RE = re.compile(r"^(?:article\s*id|文章\s*id|id)(?:\s*[:：#]\s*|\s+)", re.IGNORECASE)
_LINE_RE = re.compile(r"^([^\s:：]+)[\s:：]+(\d+(?:\.\d+)?)$")


class RankingResultParser:
    """
    Parses ``<id><separator><score>`` lines.

    The separator is any run of spaces and colons; a leading label such as
    ``ID:`` or ``Article ID`` is ignored. One bad line rejects the whole reply.
    """

    version = RANKING_FORMAT_VERSION

    def parse_line(self, line: str, line_no: Optional[int] = None) -> RankResult:
        text = line.strip()
        candidates = []
        stripped = _LABEL_RE.sub("", text, count=1)
        if stripped != text:
            candidates.append(stripped.strip())
        candidates.append(text)

        for candidate in candidates:
            match = _LINE_RE.match(candidate)
            if match:
                return RankResult(id=match.group(1), score=float(match.group(2)))
        raise MalformedRankingLineError(line, line_no=line_no)

    def parse(self, raw_text: str) -> List[RankResult]:
        if raw_text is None or not raw_text.strip():
            raise MalformedRankingLineError(raw_text or "")

        results: List[RankResult] = []
        for line_no, line in enumerate(raw_text.strip().splitlines(), start=1):
            if not line.strip():
                continue
            results.append(self.parse_line(line, line_no=line_no))
        return results


def reconcile_scores(items: Sequence[ContentItem], results: Sequence[RankResult]) -> int:
    """
    Copy scores onto items by id.

    Results naming an unknown id are dropped; items without a result keep
    their current score. Returns the number of items that received a score.
    """
    by_id: Dict[str, ContentItem] = {item.id: item for item in items}
    matched = set()
    for result in results:
        item = by_id.get(result.id)
        if item is None:
            logger.debug("ranking result for unknown id %s dropped", result.id)
            continue
        if result.id in matched:
            continue
        item.score = result.score
        matched.add(result.id)

    unmatched = len(by_id) - len(matched)
    if unmatched:
        logger.info("%s item(s) received no ranking score and keep their default", unmatched)
    return len(matched)


class ContentRanker:
    """Scores items with the ranking model, re-querying on malformed replies."""

    def __init__(
        self,
        llm: BaseLLM,
        executor: Optional[RetryExecutor] = None,
        policy: Optional[RetryPolicy] = None,
        parser: Optional[RankingResultParser] = None,
        pause: float = 1.0,
    ):
        self.llm = llm
        self.executor = executor or RetryExecutor(name="ranking")
        self.policy = policy or RetryPolicy()
        self.parser = parser or RankingResultParser()
        self.pause = pause

    async def _rank_once(self, items: Sequence[ContentItem]) -> List[RankResult]:
        messages = [
            Message.system(RANKING_SYSTEM_PROMPT),
            Message.user(build_ranking_prompt(items)),
        ]
        response = await self.llm.acomplete(messages)
        if not response.content or not response.content.strip():
            raise LLMError("ranking model returned an empty reply", provider=self.llm.provider)
        return self.parser.parse(response.content)

    async def rank_contents(self, items: Sequence[ContentItem]) -> List[RankResult]:
        """
        Score ``items`` in one model call.

        Raises:
            RankingError: every attempt failed; the last error is chained
        """
        if not items:
            return []

        try:
            results = await self.executor.run(lambda: self._rank_once(items), self.policy)
        except InvalidInputError:
            raise
        except Exception as exc:
            raise RankingError(f"ranking failed after {self.policy.max_attempts} attempt(s): {exc}") from exc

        logger.info("ranked %s item(s), %s score(s) parsed", len(items), len(results))
        return results

    async def rank_contents_batch(
        self,
        items: Sequence[ContentItem],
        batch_size: int = 5,
    ) -> List[RankResult]:
        """Rank in consecutive slices of ``batch_size``, pausing between calls."""
        if batch_size < 1:
            raise InvalidInputError("batch_size must be >= 1", {"batch_size": batch_size})

        results: List[RankResult] = []
        for start in range(0, len(items), batch_size):
            batch = items[start:start + batch_size]
            results.extend(await self.rank_contents(batch))
            if start + batch_size < len(items) and self.pause > 0:
                await asyncio.sleep(self.pause)
        return results
