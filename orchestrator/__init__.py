"""Pipeline orchestration: stage sequencing and bounded batch execution."""

from .batch import BatchOutcome, BoundedBatchRunner
from .workflow import PipelineOrchestrator
from .bootstrap import build_notifier, build_orchestrator

__all__ = [
    "BatchOutcome",
    "BoundedBatchRunner",
    "PipelineOrchestrator",
    "build_notifier",
    "build_orchestrator",
]
