"""Canonical data contracts for the digest pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceKind(str, Enum):
    """Supported content source families."""

    HACKERNEWS = "hackernews"
    TWITTER = "twitter"


class TaskStatus(str, Enum):
    """Lifecycle of a long-running external task."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.SUCCEEDED, TaskStatus.FAILED)


class PublishStatus(str, Enum):
    PENDING = "pending"
    PUBLISHED = "published"
    FAILED = "failed"
    DRAFT = "draft"
    SCHEDULED = "scheduled"


class RunState(str, Enum):
    """Terminal outcome of one pipeline run."""

    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    EMPTY = "empty"
    FAILURE = "failure"


class MediaRef(BaseModel):
    """Media attached to a scraped item."""

    url: str
    type: str = "image"
    width: Optional[int] = None
    height: Optional[int] = None


class ContentItem(BaseModel):
    """One scraped item; ``id`` is stable from scrape through publish."""

    id: str
    title: str = ""
    body: str = ""
    source_url: str = ""
    published_at: Optional[datetime] = None
    score: float = 0.0
    media: List[MediaRef] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _non_empty_id(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("id is required")
        return text

    @property
    def keywords(self) -> List[str]:
        return list(self.metadata.get("keywords") or [])


class RankResult(BaseModel):
    """One parsed (id, score) pair from the ranking model."""

    id: str
    score: float


class SourceDescriptor(BaseModel):
    """Static source configuration."""

    kind: SourceKind
    identifier: str

    model_config = {"frozen": True}

    def label(self) -> str:
        return f"{self.kind.value}:{self.identifier}"


class ScraperOptions(BaseModel):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: Optional[int] = None
    filters: Dict[str, Any] = Field(default_factory=dict)


class RunStats(BaseModel):
    """Counters accumulated over one run."""

    sources_attempted: int = 0
    sources_succeeded: int = 0
    sources_failed: int = 0
    items_collected: int = 0


class Credential(BaseModel):
    """Bearer credential with an absolute expiry."""

    value: str
    expires_at: datetime

    def remaining_seconds(self, now: datetime) -> float:
        return (self.expires_at - now).total_seconds()


class AsyncTask(BaseModel):
    """Snapshot of a long-running external task."""

    id: str
    status: TaskStatus
    result: Optional[str] = None
    error: Optional[str] = None


class Summary(BaseModel):
    """Validated summarizer reply."""

    title: str
    content: str
    keywords: List[str] = Field(default_factory=list)

    @field_validator("title", "content", mode="before")
    @classmethod
    def _non_empty_text(cls, value: Any) -> str:
        text = str(value or "").strip()
        if not text:
            raise ValueError("value is required")
        return text

    @field_validator("keywords", mode="before")
    @classmethod
    def _keyword_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return [str(part).strip() for part in value if str(part).strip()]


class PublishResult(BaseModel):
    """Outcome reported by a publisher."""

    id: str
    status: PublishStatus
    url: Optional[str] = None
    published_at: datetime = Field(default_factory=_utcnow)
    platform: str = ""


class RunOutcome(BaseModel):
    """Inspectable result of one orchestrator run."""

    state: RunState
    stats: RunStats = Field(default_factory=RunStats)
    title: Optional[str] = None
    selected_ids: List[str] = Field(default_factory=list)
    publish_result: Optional[PublishResult] = None
    error: Optional[str] = None
    started_at: datetime = Field(default_factory=_utcnow)
    finished_at: Optional[datetime] = None
