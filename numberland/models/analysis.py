"""Analysis, recommendation and report models."""

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, computed_field

from numberland.models.progress import ActivityLabel, Category, PeriodType, utcnow


class WeakItem(BaseModel):
    category: Category
    item_name: str
    overall_score: float = 0.0
    weakest_activity: Optional[ActivityLabel] = None
    completed: bool = False
    total_attempts: int = 0
    total_time_spent: float = 0.0
    completion_rate: float = 0.0


class ActivityWeakness(BaseModel):
    activity_type: ActivityLabel
    average_success_rate: float = 0.0
    total_attempts: int = 0
    total_failures: int = 0
    average_time: float = 0.0


def _empty_weak_items() -> Dict[Category, List[WeakItem]]:
    return {category: [] for category in Category}


class WeaknessAnalysis(BaseModel):
    """Ranked weak items per category plus the weakest activities overall."""

    weak_items: Dict[Category, List[WeakItem]] = Field(default_factory=_empty_weak_items)
    weakest_activities: List[ActivityWeakness] = Field(default_factory=list)

    def for_category(self, category: Category) -> List[WeakItem]:
        return self.weak_items.get(category, [])

    def all_weak_items(self) -> List[WeakItem]:
        """Every weak item, categories in enum order."""
        return [item for category in Category for item in self.for_category(category)]

    @property
    def is_empty(self) -> bool:
        return not self.weakest_activities and not self.all_weak_items()


class FocusItem(BaseModel):
    category: Category
    item_name: str
    score: float
    weakest_activity: Optional[ActivityLabel] = None
    priority: float


class FocusActivity(BaseModel):
    category: Category
    item_name: str
    activity_type: Optional[ActivityLabel] = None
    target_score: int
    estimated_minutes: int
    reason: str


class DailyFocus(BaseModel):
    day: int
    scheduled_date: date
    focus_items: List[FocusActivity] = Field(default_factory=list)
    estimated_duration: int = 0  # minutes


class FocusedLearningPlan(BaseModel):
    generated_date: datetime = Field(default_factory=utcnow)
    plan_duration: int
    daily_focus_items: List[DailyFocus] = Field(default_factory=list)


class ActivityRecommendation(BaseModel):
    activity_type: str
    reason: str
    suggested_items: List[str] = Field(default_factory=list)
    priority: int


class CategoryProgressSummary(BaseModel):
    category: Category
    total_items: int
    items_attempted: int = 0
    items_completed: int = 0
    completion_rate: float = 0.0
    success_rate: float = 0.0
    time_spent: float = 0.0
    weak_items: List[str] = Field(default_factory=list)
    strong_items: List[str] = Field(default_factory=list)


class ActivityPerformanceSummary(BaseModel):
    activity_type: ActivityLabel
    total_attempts: int = 0
    success_rate: float = 0.0
    average_time: float = 0.0
    needs_improvement: bool = False
    weak_categories: List[Category] = Field(default_factory=list)


class ParentProgressReport(BaseModel):
    """Structured report handed to the report renderer."""

    child_user_id: str
    report_date: datetime = Field(default_factory=utcnow)
    report_period: PeriodType
    total_activities: int = 0
    total_time_spent: float = 0.0
    overall_success_rate: float = 0.0
    category_progress: Dict[Category, CategoryProgressSummary] = Field(default_factory=dict)
    activity_performance: Dict[ActivityLabel, ActivityPerformanceSummary] = Field(default_factory=dict)
    top_priority_items: List[FocusItem] = Field(default_factory=list)
    activity_recommendations: List[ActivityRecommendation] = Field(default_factory=list)


class CategoryCompletion(BaseModel):
    category: Category
    total_items: int
    attempted_items: int = 0
    completed_items: int = 0
    completion_percentage: float = 0.0
    attempt_percentage: float = 0.0
    completed_items_list: List[str] = Field(default_factory=list)
    attempted_items_list: List[str] = Field(default_factory=list)
    not_attempted_items_list: List[str] = Field(default_factory=list)


class CompletionSummary(BaseModel):
    user_id: str
    generated_date: datetime = Field(default_factory=utcnow)
    category_completions: Dict[Category, CategoryCompletion] = Field(default_factory=dict)


class ChildStatistics(BaseModel):
    user_id: str
    generated_date: datetime = Field(default_factory=utcnow)
    analysis_period: int  # days
    total_days_active: int = 0
    total_activities_attempted: int = 0
    total_activities_succeeded: int = 0
    total_items_completed: int = 0
    total_time_spent: float = 0.0  # seconds
    overall_success_rate: float = 0.0

    @computed_field
    @property
    def average_session_time(self) -> float:
        if self.total_days_active > 0:
            return self.total_time_spent / self.total_days_active
        return 0.0


class ItemPerformance(BaseModel):
    item_name: str
    total_attempts: int = 0
    total_success: int = 0
    total_time: float = 0.0

    @computed_field
    @property
    def success_rate(self) -> float:
        if self.total_attempts > 0:
            return self.total_success / self.total_attempts * 100
        return 0.0

    @computed_field
    @property
    def average_time(self) -> float:
        if self.total_attempts > 0:
            return self.total_time / self.total_attempts
        return 0.0


class ActivityWeaknessDetails(BaseModel):
    activity_type: ActivityLabel
    weak_items_by_category: Dict[Category, List[ItemPerformance]] = Field(default_factory=dict)
    overall_success_rate: float = 0.0
    total_attempts: int = 0
    top_weak_items: List[str] = Field(default_factory=list)
