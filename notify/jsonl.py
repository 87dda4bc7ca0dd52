"""Local notification log appended as JSON lines."""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Dict

from .base import Notifier, NotifyLevel


logger = logging.getLogger(__name__)


class JsonlNotifier(Notifier):
    """Appends each notification to ``<out_dir>/notifications.jsonl``."""

    name = "jsonl"

    def __init__(self, out_dir: str | Path, filename: str = "notifications.jsonl") -> None:
        self.log_path = Path(out_dir) / filename

    def _entry(self, level: NotifyLevel, title: str, body: str) -> Dict[str, Any]:
        return {
            "level": level.value,
            "title": str(title),
            "body": str(body),
            "sent_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        }

    async def notify(self, level: NotifyLevel, title: str, body: str) -> bool:
        entry = self._entry(level, title, body)
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with self.log_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as exc:
            logger.error("writing %s failed: %s", self.log_path, exc)
            return False
        return True
