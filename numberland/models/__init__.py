"""Data models for the NumberLand progress service."""

from numberland.models.progress import (
    ActivityLabel,
    ActivityStats,
    Category,
    ItemProgress,
    PeriodType,
    QuizType,
    Snapshot,
)
from numberland.models.events import BatchActivityEvent, QuizDetail, QuizEvent, TracingEvent
from numberland.models.analysis import WeakItem, WeaknessAnalysis

__all__ = [
    "ActivityLabel",
    "ActivityStats",
    "Category",
    "ItemProgress",
    "PeriodType",
    "QuizType",
    "Snapshot",
    "BatchActivityEvent",
    "QuizDetail",
    "QuizEvent",
    "TracingEvent",
    "WeakItem",
    "WeaknessAnalysis",
]
