"""Progress tracking models."""

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Iterator, List, Tuple

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Category(str, Enum):
    """Content categories taught by the app."""
    NUMBERS = "Numbers"
    CAPITAL_ALPHABET = "CapitalAlphabet"
    SMALL_ALPHABET = "SmallAlphabet"
    SHAPES = "Shapes"
    COLORS = "Colors"


class PeriodType(str, Enum):
    """Time bucket a snapshot covers."""
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"


class QuizType(str, Enum):
    """Quiz styles a quiz detail can report."""
    OBJECT_RECOGNITION = "ObjectRecognition"
    LISTENING = "Listening"
    TEXT_TO_FIGURE = "TextToFigure"
    FIGURE_TO_TEXT = "FigureToText"
    COUNTING = "Counting"
    BUBBLE_POP = "BubblePop"


class ActivityLabel(str, Enum):
    """Activity labels used for weakness ranking, in tie-break order."""
    TRACING = "Tracing"
    OBJECT_RECOGNITION = "ObjectRecognition"
    HEARING = "Hearing"
    TEXT_TO_FIGURE = "TextToFigure"
    FIGURE_TO_TEXT = "FigureToText"
    COUNTING = "Counting"
    BUBBLE_POP = "BubblePop"


# Quiz sub-record attribute on ItemProgress, keyed by the label it reports under.
QUIZ_STAT_FIELDS: Dict[ActivityLabel, str] = {
    ActivityLabel.OBJECT_RECOGNITION: "object_recognition",
    ActivityLabel.HEARING: "hearing",
    ActivityLabel.TEXT_TO_FIGURE: "text_to_figure",
    ActivityLabel.FIGURE_TO_TEXT: "figure_to_text",
    ActivityLabel.COUNTING: "counting",
    ActivityLabel.BUBBLE_POP: "bubble_pop",
}

QUIZ_TYPE_LABELS: Dict[QuizType, ActivityLabel] = {
    QuizType.OBJECT_RECOGNITION: ActivityLabel.OBJECT_RECOGNITION,
    QuizType.LISTENING: ActivityLabel.HEARING,
    QuizType.TEXT_TO_FIGURE: ActivityLabel.TEXT_TO_FIGURE,
    QuizType.FIGURE_TO_TEXT: ActivityLabel.FIGURE_TO_TEXT,
    QuizType.COUNTING: ActivityLabel.COUNTING,
    QuizType.BUBBLE_POP: ActivityLabel.BUBBLE_POP,
}

EXPECTED_ITEMS: Dict[Category, List[str]] = {
    Category.NUMBERS: [str(n) for n in range(1, 11)],
    Category.CAPITAL_ALPHABET: [chr(c) for c in range(ord("A"), ord("Z") + 1)],
    Category.SMALL_ALPHABET: [chr(c) for c in range(ord("a"), ord("z") + 1)],
    Category.SHAPES: [
        "Circle", "Square", "Triangle", "Rectangle", "Oval",
        "Diamond", "Star", "Heart", "Pentagon", "Hexagon",
    ],
    Category.COLORS: [
        "Red", "Blue", "Yellow", "Green", "Orange", "Purple",
        "Pink", "Brown", "Black", "White", "Gray", "Cyan",
    ],
}


class ActivityStats(BaseModel):
    """Running counters for one quiz sub-type."""

    count: int = 0
    fail_count: int = 0
    total_time: float = 0.0
    total_fail_time: float = 0.0
    time_out_count: int = 0

    @property
    def success_rate(self) -> float:
        if self.count > 0:
            return (self.count - self.fail_count) / self.count * 100
        return 0.0

    @property
    def average_time(self) -> float:
        if self.count > 0:
            return self.total_time / self.count
        return 0.0


class ItemProgress(BaseModel):
    """Aggregate progress for one item (a digit, a letter, a shape...)."""

    item_name: str
    completed: bool = False

    # Tracing
    tracing_count: int = 0
    tracing_complete_count: int = 0
    tracing_total_time: float = 0.0
    total_stars: int = 0
    total_stars_achieved: int = 0

    # Generic quiz counters, one increment per quiz detail
    quiz_count: int = 0
    quiz_total_time: float = 0.0
    quiz_fail_count: int = 0
    quiz_time_out_count: int = 0

    # Per quiz style
    object_recognition: ActivityStats = Field(default_factory=ActivityStats)
    hearing: ActivityStats = Field(default_factory=ActivityStats)
    text_to_figure: ActivityStats = Field(default_factory=ActivityStats)
    figure_to_text: ActivityStats = Field(default_factory=ActivityStats)
    counting: ActivityStats = Field(default_factory=ActivityStats)
    bubble_pop: ActivityStats = Field(default_factory=ActivityStats)

    def stats_for(self, label: ActivityLabel) -> ActivityStats:
        """Return the quiz sub-record reported under ``label``."""
        return getattr(self, QUIZ_STAT_FIELDS[label])

    def quiz_stats(self) -> Iterator[Tuple[ActivityLabel, ActivityStats]]:
        """Yield (label, stats) for the six quiz styles in label order."""
        for label, field_name in QUIZ_STAT_FIELDS.items():
            yield label, getattr(self, field_name)


def _empty_categories() -> Dict[Category, Dict[str, ItemProgress]]:
    return {category: {} for category in Category}


class Snapshot(BaseModel):
    """One time-bucketed progress record for a learner."""

    user_id: str
    period_type: PeriodType = PeriodType.DAILY
    period_start: date
    created_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime = Field(default_factory=utcnow)
    version: int = 0
    categories: Dict[Category, Dict[str, ItemProgress]] = Field(default_factory=_empty_categories)

    @property
    def key(self) -> str:
        return f"{self.user_id}:{self.period_type.value}:{self.period_start.isoformat()}"

    def items(self, category: Category) -> Dict[str, ItemProgress]:
        """Item map for ``category``; missing categories read as empty."""
        return self.categories.setdefault(category, {})

    def get_or_create_item(self, category: Category, item_name: str) -> ItemProgress:
        items = self.items(category)
        if item_name not in items:
            items[item_name] = ItemProgress(item_name=item_name)
        return items[item_name]

    def iter_items(self) -> Iterator[Tuple[Category, ItemProgress]]:
        """Yield (category, item) over every category in enum order."""
        for category in Category:
            for item in self.categories.get(category, {}).values():
                yield category, item

    def touch(self) -> None:
        self.last_updated = utcnow()


def period_start_for(period_type: PeriodType, day: date) -> date:
    """First day of the ``period_type`` bucket containing ``day``."""
    if period_type == PeriodType.DAILY:
        return day
    elif period_type == PeriodType.WEEKLY:
        return day - timedelta(days=day.weekday())
    elif period_type == PeriodType.MONTHLY:
        return day.replace(day=1)
    else:  # yearly
        return day.replace(month=1, day=1)


def window_bounds(days: int, today: date = None) -> Tuple[date, date]:
    """Inclusive ``[today - days, today]`` range used by the analysis windows."""
    if not today:
        today = utcnow().date()
    return today - timedelta(days=days), today
