"""Operator notifications."""

from .base import CompositeNotifier, LoggingNotifier, Notifier, NotifyLevel
from .bark import BarkNotifier
from .jsonl import JsonlNotifier

__all__ = [
    "Notifier",
    "NotifyLevel",
    "LoggingNotifier",
    "CompositeNotifier",
    "BarkNotifier",
    "JsonlNotifier",
]
