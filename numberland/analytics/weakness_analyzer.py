"""Weakness analysis over a single snapshot."""

from typing import Dict, List

import structlog

from numberland.analytics import scoring
from numberland.core.config import settings
from numberland.models.analysis import ActivityWeakness, WeakItem, WeaknessAnalysis
from numberland.models.progress import ActivityLabel, Category, ItemProgress, Snapshot

logger = structlog.get_logger()


def build_weak_item(category: Category, item: ItemProgress) -> WeakItem:
    """Score one item into a WeakItem candidate."""
    return WeakItem(
        category=category,
        item_name=item.item_name,
        overall_score=scoring.overall_score(item),
        weakest_activity=scoring.weakest_activity(item),
        completed=item.completed,
        total_attempts=scoring.total_attempts(item),
        total_time_spent=scoring.total_time_spent(item),
        completion_rate=scoring.completion_rate(item),
    )


def is_weak(weak_item: WeakItem) -> bool:
    return not weak_item.completed or weak_item.overall_score < settings.WEAK_SCORE_THRESHOLD


def get_weak_items(
    category: Category,
    items: Dict[str, ItemProgress],
    top_n: int = None
) -> List[WeakItem]:
    """Incomplete or low-scoring items, lowest score first, then lowest completion rate."""
    if top_n is None:
        top_n = settings.TOP_WEAK_ITEMS

    candidates = [build_weak_item(category, item) for item in items.values()]
    weak = [candidate for candidate in candidates if is_weak(candidate)]
    weak.sort(key=lambda w: (w.overall_score, w.completion_rate))

    return weak[:top_n]


def gather_activity_totals(snapshot: Snapshot, label: ActivityLabel) -> scoring.ActivityTotals:
    """Sum one label's counters over every item in every category."""
    attempts = successes = failures = 0
    time = 0.0

    for _, item in snapshot.iter_items():
        totals = scoring.activity_totals(item, label)
        attempts += totals.attempts
        successes += totals.successes
        failures += totals.failures
        time += totals.time

    return scoring.ActivityTotals(attempts, successes, failures, time)


def get_weakest_activities(snapshot: Snapshot, limit: int = None) -> List[ActivityWeakness]:
    """Attempted activity labels, lowest success rate first, most failures breaking ties."""
    if limit is None:
        limit = settings.TOP_WEAK_ACTIVITIES

    weaknesses = []
    for label in ActivityLabel:
        totals = gather_activity_totals(snapshot, label)
        if totals.attempts <= 0:
            continue

        weaknesses.append(
            ActivityWeakness(
                activity_type=label,
                average_success_rate=totals.successes / totals.attempts * 100,
                total_attempts=totals.attempts,
                total_failures=totals.failures,
                average_time=totals.time / totals.attempts,
            )
        )

    weaknesses.sort(key=lambda w: (w.average_success_rate, -w.total_failures))
    return weaknesses[:limit]


def analyze_weaknesses(snapshot: Snapshot, top_n: int = None) -> WeaknessAnalysis:
    """Rank weak items per category and the weakest activities for one snapshot."""
    analysis = WeaknessAnalysis(
        weak_items={
            category: get_weak_items(category, snapshot.items(category), top_n)
            for category in Category
        },
        weakest_activities=get_weakest_activities(snapshot),
    )

    logger.debug(
        "Weakness analysis computed",
        user_id=snapshot.user_id,
        period_start=snapshot.period_start.isoformat(),
        weak_items=len(analysis.all_weak_items()),
        weak_activities=len(analysis.weakest_activities),
    )
    return analysis
