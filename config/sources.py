"""Source list loading and grouping."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from core import SourceDescriptor, SourceKind


logger = logging.getLogger(__name__)


DEFAULT_SOURCES: Dict[str, List[str]] = {
    SourceKind.HACKERNEWS.value: [
        "front_page",
        "LLM",
        "OpenAI",
        "Anthropic",
    ],
    SourceKind.TWITTER.value: [
        "OpenAIDevs",
        "AnthropicAI",
        "GoogleDeepMind",
        "AIatMeta",
        "MistralAI",
        "karpathy",
        "huggingface",
        "LangChainAI",
    ],
}


def parse_sources(payload: Any) -> List[SourceDescriptor]:
    """
    Accepts either ``{"kind": ["id", ...]}`` or ``[{"kind": ..., "identifier": ...}]``.
    Entries are de-duplicated keeping first occurrence.
    """
    descriptors: List[SourceDescriptor] = []
    if isinstance(payload, dict):
        for kind, identifiers in payload.items():
            for identifier in identifiers or []:
                descriptors.append(SourceDescriptor(kind=SourceKind(str(kind).lower()), identifier=str(identifier)))
    elif isinstance(payload, list):
        for entry in payload:
            descriptors.append(SourceDescriptor(**entry))
    else:
        raise ValueError("sources must be a JSON object or array")

    seen = set()
    unique: List[SourceDescriptor] = []
    for descriptor in descriptors:
        if descriptor in seen:
            continue
        seen.add(descriptor)
        unique.append(descriptor)
    return unique


def load_sources(path: Optional[Path] = None) -> List[SourceDescriptor]:
    """Read the configured sources file, or fall back to the built-in list."""
    if path is None:
        return parse_sources(DEFAULT_SOURCES)
    path = Path(path)
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    sources = parse_sources(payload)
    logger.info("loaded %s sources from %s", len(sources), path)
    return sources


def group_by_kind(sources: List[SourceDescriptor]) -> Dict[SourceKind, List[SourceDescriptor]]:
    grouped: Dict[SourceKind, List[SourceDescriptor]] = {}
    for source in sources:
        grouped.setdefault(source.kind, []).append(source)
    return grouped
