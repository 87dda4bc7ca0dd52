"""Document renderer interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from core import ContentItem


class DocumentRenderer(ABC):
    """Turns the selected, enriched items into one publishable document."""

    name: str = "renderer"

    @abstractmethod
    def render(self, items: Sequence[ContentItem], title: str) -> str:
        """Return the rendered document; item order is preserved."""
