"""Activity event models consumed by the progress updater."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from numberland.core.config import settings
from numberland.models.progress import Category, QuizType


class QuizPerformanceLevel(str, Enum):
    """Coarse grading of a single quiz attempt."""
    FAILED = "failed"
    BELOW_AVERAGE = "below_average"
    AVERAGE = "average"
    GOOD = "good"
    EXCELLENT = "excellent"


class TracingEvent(BaseModel):
    """One tracing attempt for an item."""

    category: Category
    item_label: str
    completed: bool = False
    stars_achieved: int = 0
    max_stars: int = 3
    total_time: float = 0.0


class QuizDetail(BaseModel):
    """Outcome of one quiz attempt inside a quiz event."""

    type: QuizType
    lives_remaining: int
    total_lives: int
    timed_out: bool = False
    time_taken: float = 0.0
    time_given: Optional[float] = None
    score: int = 0

    @property
    def is_failed(self) -> bool:
        """An attempt fails when lives run out, the score is below the pass mark, or time runs out."""
        return (
            self.lives_remaining == 0
            or self.score < settings.QUIZ_PASS_SCORE
            or self.timed_out
        )

    @property
    def performance_level(self) -> QuizPerformanceLevel:
        if self.is_failed:
            return QuizPerformanceLevel.FAILED
        if self.score >= 90:
            return QuizPerformanceLevel.EXCELLENT
        if self.score >= 80:
            return QuizPerformanceLevel.GOOD
        if self.score >= 70:
            return QuizPerformanceLevel.AVERAGE
        return QuizPerformanceLevel.BELOW_AVERAGE


class QuizEvent(BaseModel):
    """A batch of quiz attempts for one item."""

    category: Category
    item_label: str
    quiz_details: List[QuizDetail] = Field(default_factory=list)


class BatchActivityEvent(BaseModel):
    """Several tracing and quiz events for one learner."""

    user_id: Optional[str] = None
    tracing_activities: List[TracingEvent] = Field(default_factory=list)
    quiz_activities: List[QuizEvent] = Field(default_factory=list)


def _empty_levels() -> Dict[QuizPerformanceLevel, int]:
    return {level: 0 for level in QuizPerformanceLevel}


class BatchResult(BaseModel):
    """Outcome of an applied batch, with quiz attempts tallied by performance level."""

    tracing_applied: int = 0
    quiz_applied: int = 0
    quiz_performance: Dict[QuizPerformanceLevel, int] = Field(default_factory=_empty_levels)

    def record_quiz(self, event: QuizEvent) -> None:
        self.quiz_applied += 1
        for detail in event.quiz_details:
            self.quiz_performance[detail.performance_level] += 1
