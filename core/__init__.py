"""Core contracts and shared types for the digest pipeline."""

from .contracts import (
    AsyncTask,
    ContentItem,
    Credential,
    MediaRef,
    PublishResult,
    PublishStatus,
    RankResult,
    RunOutcome,
    RunState,
    RunStats,
    ScraperOptions,
    SourceDescriptor,
    SourceKind,
    Summary,
    TaskStatus,
)

__all__ = [
    "AsyncTask",
    "ContentItem",
    "Credential",
    "MediaRef",
    "PublishResult",
    "PublishStatus",
    "RankResult",
    "RunOutcome",
    "RunState",
    "RunStats",
    "ScraperOptions",
    "SourceDescriptor",
    "SourceKind",
    "Summary",
    "TaskStatus",
]
