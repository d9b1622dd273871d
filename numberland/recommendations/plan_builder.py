"""Prioritized focus items, learning plans and activity recommendations."""

from datetime import date, timedelta
from typing import List

import structlog

from numberland.analytics import scoring
from numberland.core.config import settings
from numberland.models.analysis import (
    ActivityRecommendation,
    DailyFocus,
    FocusActivity,
    FocusedLearningPlan,
    FocusItem,
    WeakItem,
    WeaknessAnalysis,
)
from numberland.models.progress import EXPECTED_ITEMS, Category, Snapshot, utcnow

logger = structlog.get_logger()


def calculate_priority(item: WeakItem) -> float:
    """Higher is more urgent: score gap plus flat bonuses for little practice and no completion."""
    priority = 100 - item.overall_score

    if item.total_attempts < settings.PRIORITY_LOW_ATTEMPTS:
        priority += settings.PRIORITY_LOW_ATTEMPTS_BONUS

    if not item.completed:
        priority += settings.PRIORITY_INCOMPLETE_BONUS

    return priority


def get_prioritized_focus_items(analysis: WeaknessAnalysis, max_items: int = None) -> List[FocusItem]:
    """Flatten weak items across categories and rank them by priority, highest first."""
    if max_items is None:
        max_items = settings.MAX_FOCUS_ITEMS

    focus_items = [
        FocusItem(
            category=weak_item.category,
            item_name=weak_item.item_name,
            score=weak_item.overall_score,
            weakest_activity=weak_item.weakest_activity,
            priority=calculate_priority(weak_item),
        )
        for weak_item in analysis.all_weak_items()
    ]

    # sorted() is stable: equal priorities keep category order
    focus_items = sorted(focus_items, key=lambda f: f.priority, reverse=True)
    return focus_items[:max_items]


def generate_learning_plan(
    analysis: WeaknessAnalysis,
    plan_duration: int = None,
    start_date: date = None
) -> FocusedLearningPlan:
    """Spread the top priority items over consecutive days, a fixed number per day."""
    if plan_duration is None:
        plan_duration = settings.PLAN_DURATION_DAYS
    if not start_date:
        start_date = utcnow().date()

    per_day = settings.PLAN_ITEMS_PER_DAY
    priority_items = get_prioritized_focus_items(analysis, plan_duration * per_day)

    plan = FocusedLearningPlan(plan_duration=plan_duration)

    for day in range(plan_duration):
        daily = DailyFocus(day=day + 1, scheduled_date=start_date + timedelta(days=day))

        for item in priority_items[day * per_day:(day + 1) * per_day]:
            daily.focus_items.append(
                FocusActivity(
                    category=item.category,
                    item_name=item.item_name,
                    activity_type=item.weakest_activity,
                    target_score=settings.PLAN_TARGET_SCORE,
                    estimated_minutes=settings.PLAN_MINUTES_PER_ITEM,
                    reason=f"Current score: {item.score:.0f}%",
                )
            )
            daily.estimated_duration += settings.PLAN_MINUTES_PER_ITEM

        plan.daily_focus_items.append(daily)

    logger.info(
        "Learning plan generated",
        plan_duration=plan_duration,
        planned_items=len(priority_items),
    )
    return plan


def _items_for_weak_activity(snapshot: Snapshot, activity_type) -> List[str]:
    items = [
        f"{category.value}: {item.item_name}"
        for category, item in snapshot.iter_items()
        if scoring.weakest_activity(item) == activity_type
    ]
    return items[:settings.RECOMMENDATION_SUGGESTED_ITEMS]


def generate_recommendations(snapshot: Snapshot, analysis: WeaknessAnalysis) -> List[ActivityRecommendation]:
    """
    Suggest activities to practice.

    The weakest activities each get a recommendation listing items whose own
    weakest activity matches. Every category with few completed items gets a
    completion-focus recommendation, including categories never touched.
    """
    recommendations = []

    for weakness in analysis.weakest_activities[:settings.RECOMMENDATION_ACTIVITY_COUNT]:
        recommendations.append(
            ActivityRecommendation(
                activity_type=weakness.activity_type.value,
                reason=f"Success rate is only {weakness.average_success_rate:.0f}%",
                suggested_items=_items_for_weak_activity(snapshot, weakness.activity_type),
                priority=1 if weakness.average_success_rate < 50 else 2,
            )
        )

    for category in Category:
        items = snapshot.items(category)

        completed = sum(1 for item in items.values() if item.completed)
        completion = completed / len(EXPECTED_ITEMS[category]) * 100

        if completion < settings.RECOMMENDATION_COMPLETION_THRESHOLD:
            uncompleted = [name for name, item in items.items() if not item.completed]
            recommendations.append(
                ActivityRecommendation(
                    activity_type="Completion Focus",
                    reason=f"Only {completion:.0f}% of {category.value} completed",
                    suggested_items=uncompleted[:settings.RECOMMENDATION_SUGGESTED_ITEMS],
                    priority=1,
                )
            )

    return sorted(recommendations, key=lambda r: r.priority)
