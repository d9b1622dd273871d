"""
Reporting

Structured report payloads built on top of the scoring engine:
- parent progress report for one snapshot
- completion summary against the expected-item catalog
- child statistics over a window of snapshots
- per-activity weakness details over a window of snapshots
"""

from typing import Dict, List, Sequence, Tuple

import structlog

from numberland.analytics import scoring
from numberland.analytics.weakness_analyzer import gather_activity_totals
from numberland.core.config import settings
from numberland.models.analysis import (
    ActivityPerformanceSummary,
    ActivityWeaknessDetails,
    CategoryCompletion,
    CategoryProgressSummary,
    ChildStatistics,
    CompletionSummary,
    ItemPerformance,
    ParentProgressReport,
    WeaknessAnalysis,
)
from numberland.models.progress import EXPECTED_ITEMS, ActivityLabel, Category, Snapshot
from numberland.recommendations.plan_builder import (
    generate_recommendations,
    get_prioritized_focus_items,
)

logger = structlog.get_logger()


def _percent(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0.0


# ============================================================================
# Parent report
# ============================================================================

def summarize_category(snapshot: Snapshot, category: Category) -> CategoryProgressSummary:
    items = snapshot.items(category)
    total_items = len(EXPECTED_ITEMS[category])
    scores = {name: scoring.overall_score(item) for name, item in items.items()}
    completed = sum(1 for item in items.values() if item.completed)

    return CategoryProgressSummary(
        category=category,
        total_items=total_items,
        items_attempted=len(items),
        items_completed=completed,
        completion_rate=_percent(completed, total_items),
        success_rate=sum(scores.values()) / len(scores) if scores else 0.0,
        time_spent=sum(scoring.total_time_spent(item) for item in items.values()),
        weak_items=[name for name, score in scores.items() if score < settings.WEAK_SCORE_THRESHOLD],
        strong_items=[name for name, score in scores.items() if score >= settings.STRONG_SCORE_THRESHOLD],
    )


def summarize_activity(snapshot: Snapshot, label: ActivityLabel) -> ActivityPerformanceSummary:
    totals = gather_activity_totals(snapshot, label)
    success_rate = _percent(totals.successes, totals.attempts)

    weak_categories = []
    for category in Category:
        attempts = successes = 0
        for item in snapshot.items(category).values():
            item_totals = scoring.activity_totals(item, label)
            attempts += item_totals.attempts
            successes += item_totals.successes
        if attempts > 0 and successes / attempts < settings.WEAK_CATEGORY_RATIO:
            weak_categories.append(category)

    return ActivityPerformanceSummary(
        activity_type=label,
        total_attempts=totals.attempts,
        success_rate=success_rate,
        average_time=totals.time / totals.attempts if totals.attempts > 0 else 0.0,
        needs_improvement=success_rate < settings.WEAK_SCORE_THRESHOLD,
        weak_categories=weak_categories,
    )


def build_parent_report(snapshot: Snapshot, analysis: WeaknessAnalysis) -> ParentProgressReport:
    """Assemble the structured progress report for one snapshot."""
    attempts = successes = 0
    time_spent = 0.0
    for _, item in snapshot.iter_items():
        attempts += scoring.total_attempts(item)
        successes += scoring.total_successes(item)
        time_spent += scoring.total_time_spent(item)

    report = ParentProgressReport(
        child_user_id=snapshot.user_id,
        report_period=snapshot.period_type,
        total_activities=attempts,
        total_time_spent=time_spent,
        overall_success_rate=_percent(successes, attempts),
        top_priority_items=get_prioritized_focus_items(analysis, settings.TOP_WEAK_ITEMS),
        activity_recommendations=generate_recommendations(snapshot, analysis),
    )

    for category in Category:
        if snapshot.items(category):
            report.category_progress[category] = summarize_category(snapshot, category)

    for label in ActivityLabel:
        summary = summarize_activity(snapshot, label)
        if summary.total_attempts > 0:
            report.activity_performance[label] = summary

    logger.info(
        "Parent report built",
        user_id=snapshot.user_id,
        total_activities=attempts,
        categories=len(report.category_progress),
    )
    return report


# ============================================================================
# Completion summary
# ============================================================================

def completion_summary(snapshot: Snapshot) -> CompletionSummary:
    """Per-category completion measured against the expected-item catalog."""
    summary = CompletionSummary(user_id=snapshot.user_id)

    for category in Category:
        expected = EXPECTED_ITEMS[category]
        items = snapshot.items(category)

        completed = [name for name in expected if name in items and items[name].completed]
        attempted = [name for name in expected if name in items]
        not_attempted = [name for name in expected if name not in items]

        summary.category_completions[category] = CategoryCompletion(
            category=category,
            total_items=len(expected),
            attempted_items=len(attempted),
            completed_items=len(completed),
            completion_percentage=_percent(len(completed), len(expected)),
            attempt_percentage=_percent(len(attempted), len(expected)),
            completed_items_list=completed,
            attempted_items_list=attempted,
            not_attempted_items_list=not_attempted,
        )

    return summary


# ============================================================================
# Window statistics
# ============================================================================

def child_statistics(user_id: str, snapshots: Sequence[Snapshot], days: int) -> ChildStatistics:
    """
    Totals across a window of snapshots.

    Each snapshot counts as one active day and is summed on its own, so an
    item completed on several days counts once per day. A completed item adds
    one to the succeeded total on top of its successful attempts, which lets
    the success rate exceed 100%.
    """
    stats = ChildStatistics(user_id=user_id, analysis_period=days, total_days_active=len(snapshots))

    for snapshot in snapshots:
        for _, item in snapshot.iter_items():
            stats.total_activities_attempted += scoring.total_attempts(item)
            stats.total_time_spent += scoring.total_time_spent(item)
            if item.completed:
                stats.total_items_completed += 1
                stats.total_activities_succeeded += 1
            stats.total_activities_succeeded += scoring.total_successes(item)

    stats.overall_success_rate = _percent(
        stats.total_activities_succeeded, stats.total_activities_attempted
    )
    return stats


def _item_performances(
    snapshots: Sequence[Snapshot],
    category: Category,
    label: ActivityLabel
) -> Dict[str, ItemPerformance]:
    performances: Dict[str, ItemPerformance] = {}

    for snapshot in snapshots:
        for name, item in snapshot.items(category).items():
            totals = scoring.activity_totals(item, label)
            if totals.attempts == 0:
                continue
            perf = performances.setdefault(name, ItemPerformance(item_name=name))
            perf.total_attempts += totals.attempts
            perf.total_success += totals.successes
            perf.total_time += totals.time

    return performances


def activity_weakness_details(
    snapshots: Sequence[Snapshot],
    label: ActivityLabel
) -> ActivityWeaknessDetails:
    """Weak items for one activity label, summed across the window."""
    details = ActivityWeaknessDetails(activity_type=label)
    weak_items: List[Tuple[str, ItemPerformance]] = []

    for category in Category:
        weak = [
            perf for perf in _item_performances(snapshots, category, label).values()
            if perf.success_rate < settings.WEAK_SCORE_THRESHOLD
        ]
        if not weak:
            continue

        weak.sort(key=lambda p: p.success_rate)
        details.weak_items_by_category[category] = weak
        weak_items.extend((f"{category.value}:{perf.item_name}", perf) for perf in weak)

    # Totals cover the weak items only
    details.total_attempts = sum(perf.total_attempts for _, perf in weak_items)
    details.overall_success_rate = _percent(
        sum(perf.total_success for _, perf in weak_items), details.total_attempts
    )

    weak_items.sort(key=lambda kv: kv[1].success_rate)
    details.top_weak_items = [
        key for key, perf in weak_items
        if perf.success_rate < settings.WEAK_ITEM_DETAIL_THRESHOLD
    ][:settings.TOP_WEAK_ITEMS]

    return details


def activity_weakness_details_by_label(
    snapshots: Sequence[Snapshot]
) -> Dict[ActivityLabel, ActivityWeaknessDetails]:
    """Weakness details for every activity label, including ones never attempted."""
    return {label: activity_weakness_details(snapshots, label) for label in ActivityLabel}
