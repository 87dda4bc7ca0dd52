"""
Prompt templates
Ranking, summarization and digest-title prompts
"""
from typing import Iterable

from core import ContentItem


RANKING_SYSTEM_PROMPT = """You are an editor for a daily AI technology digest.
Score every article from 0 to 100 for importance, novelty and reader value.
Scores must be spread out and use two decimal places.

Reply with one line per article and nothing else, in exactly this form:
<article id>: <score>
"""

SUMMARIZER_SYSTEM_PROMPT = """You are a professional technology writer.
Rewrite the given content into a clear, accurate news-style piece:
1. keep the original meaning and add useful background or technical detail
2. write a concise, informative title without marketing tone
3. extract 3 to 5 short keywords

Return only a JSON object of the form:
{"title": "...", "content": "...", "keywords": ["...", "..."]}
"""

TITLE_SYSTEM_PROMPT = """You are a headline editor.
Write one short, factual headline (at most 20 words) that captures the most
important story in the given list. Reply with the headline only."""


def build_ranking_prompt(items: Iterable[ContentItem], body_chars: int = 500) -> str:
    blocks = []
    for item in items:
        body = (item.body or "").strip().replace("\n", " ")
        blocks.append(f"Article ID: {item.id}\nTitle: {item.title}\nContent: {body[:body_chars]}")
    return "Score the following articles:\n\n" + "\n\n---\n\n".join(blocks)


def build_summarizer_prompt(item: ContentItem, language: str = "English", min_words: int = 120, max_words: int = 300) -> str:
    text = item.body or item.title
    return (
        f"Write in {language}, between {min_words} and {max_words} words, plain text without markdown.\n\n"
        f"Title: {item.title}\n\n{text}"
    )


def build_title_prompt(text: str, language: str = "English") -> str:
    return f"Write a {language} headline for today's digest of these stories:\n\n{text}"
