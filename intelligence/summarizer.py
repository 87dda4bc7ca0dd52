"""AI summaries and digest titles."""

from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from core import ContentItem, Summary
from utils.exceptions import EnrichmentError, InvalidInputError, LLMError
from utils.retry import RetryExecutor, RetryPolicy

from .llm.base import BaseLLM, Message
from .prompts import SUMMARIZER_SYSTEM_PROMPT, TITLE_SYSTEM_PROMPT, build_summarizer_prompt, build_title_prompt


logger = logging.getLogger(__name__)


def parse_summary(raw: str) -> Summary:
    """Validate a JSON summarizer reply; needs non-empty ``title`` and ``content``."""
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise LLMError(f"summary reply is not JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise LLMError("summary reply is not a JSON object")
    try:
        return Summary.model_validate(payload)
    except ValidationError as exc:
        raise LLMError(f"summary reply is incomplete: {exc.error_count()} error(s)") from exc


class AISummarizer:
    """Rewrites one item into title/content/keywords with JSON-mode completion."""

    def __init__(
        self,
        llm: BaseLLM,
        executor: Optional[RetryExecutor] = None,
        policy: Optional[RetryPolicy] = None,
        language: str = "English",
        temperature: float = 0.7,
    ):
        self.llm = llm
        self.executor = executor or RetryExecutor(name="summarizer")
        self.policy = policy or RetryPolicy()
        self.language = language
        self.temperature = temperature

    async def _summarize_once(self, item: ContentItem) -> Summary:
        messages = [
            Message.system(SUMMARIZER_SYSTEM_PROMPT),
            Message.user(build_summarizer_prompt(item, language=self.language)),
        ]
        response = await self.llm.acomplete(messages, temperature=self.temperature, json_mode=True)
        if not response.content:
            raise LLMError("summarizer returned an empty reply", provider=self.llm.provider)
        return parse_summary(response.content)

    async def summarize(self, item: ContentItem) -> Summary:
        if not (item.body or item.title).strip():
            raise InvalidInputError("content is required for summarization", {"item_id": item.id})

        try:
            return await self.executor.run(lambda: self._summarize_once(item), self.policy)
        except InvalidInputError:
            raise
        except Exception as exc:
            raise EnrichmentError(f"summarizing {item.id} failed: {exc}", item_id=item.id) from exc

    async def generate_title(self, text: str, max_tokens: int = 100) -> str:
        if not text or not text.strip():
            raise InvalidInputError("text is required for title generation")

        async def _title_once() -> str:
            messages = [
                Message.system(TITLE_SYSTEM_PROMPT),
                Message.user(build_title_prompt(text, language=self.language)),
            ]
            response = await self.llm.acomplete(messages, temperature=self.temperature, max_tokens=max_tokens)
            title = (response.content or "").strip().strip('"').strip()
            if not title:
                raise LLMError("title model returned an empty reply", provider=self.llm.provider)
            return title

        return await self.executor.run(_title_once, self.policy)
