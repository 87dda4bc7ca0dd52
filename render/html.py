"""HTML digest rendering with jinja2."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Sequence

from jinja2 import BaseLoader, Environment

from core import ContentItem

from .base import DocumentRenderer


logger = logging.getLogger(__name__)

_PARAGRAPH_SPLIT = re.compile(r"<next_paragraph\s*/>|\n\s*\n|\n")

DIGEST_TEMPLATE = """<section class="digest">
  <h1 style="font-size:20px;margin:0 0 16px;">{{ title }}</h1>
  {% for article in articles %}
  <article style="margin:0 0 28px;">
    <h2 style="font-size:17px;margin:0 0 8px;">{{ loop.index }}. {{ article.title }}</h2>
    {% if article.keywords %}
    <p style="font-size:12px;color:#888;margin:0 0 8px;">
      {% for keyword in article.keywords %}<span style="margin-right:6px;">#{{ keyword }}</span>{% endfor %}
    </p>
    {% endif %}
    {% for block in article.blocks %}
      {% if block.kind == "image" %}
    <p style="text-align:center;"><img src="{{ block.value }}" alt="{{ article.title }}" style="max-width:100%;" /></p>
      {% else %}
    <p style="font-size:15px;line-height:1.75;margin:0 0 10px;">{{ block.value }}</p>
      {% endif %}
    {% endfor %}
    {% if article.source_url %}
    <p style="font-size:12px;color:#999;">Source: {{ article.source_url }}</p>
    {% endif %}
  </article>
  {% endfor %}
</section>"""


def split_paragraphs(text: str) -> List[str]:
    return [part.strip() for part in _PARAGRAPH_SPLIT.split(text or "") if part.strip()]


def interleave_media(paragraphs: List[str], media_urls: List[str]) -> List[Dict[str, str]]:
    """First image leads the article; the rest go between paragraphs while both last."""
    blocks: List[Dict[str, str]] = []
    remaining = list(media_urls)
    if remaining:
        blocks.append({"kind": "image", "value": remaining.pop(0)})
    for index, paragraph in enumerate(paragraphs):
        blocks.append({"kind": "text", "value": paragraph})
        if remaining and index < len(paragraphs) - 1:
            blocks.append({"kind": "image", "value": remaining.pop(0)})
    return blocks


class HtmlDigestRenderer(DocumentRenderer):
    """Inline-styled HTML suitable for article editors that strip stylesheets."""

    name = "html"

    def __init__(self, template: str = DIGEST_TEMPLATE, include_media: bool = True):
        self._env = Environment(loader=BaseLoader(), autoescape=True, trim_blocks=True, lstrip_blocks=True)
        self._template = self._env.from_string(template)
        self.include_media = include_media

    def _article_context(self, item: ContentItem) -> Dict[str, Any]:
        media_urls = [m.url for m in item.media if m.type in ("image", "photo")] if self.include_media else []
        return {
            "id": item.id,
            "title": item.title,
            "keywords": item.keywords,
            "source_url": item.source_url,
            "blocks": interleave_media(split_paragraphs(item.body), media_urls),
        }

    def render(self, items: Sequence[ContentItem], title: str) -> str:
        articles = [self._article_context(item) for item in items]
        document = self._template.render(title=title, articles=articles)
        logger.info("rendered %s article(s) into %s chars", len(articles), len(document))
        return document
