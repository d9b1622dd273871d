"""
Multi-day weakness aggregation.

Each snapshot is analyzed on its own, then every (category, item) and every
activity label is reduced to the mean of the scores observed for it. The
aggregated ``total_attempts`` is the number of snapshots that contributed an
observation, not a sum of underlying attempts.
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np
import structlog

from numberland.analytics.weakness_analyzer import analyze_weaknesses
from numberland.models.analysis import ActivityWeakness, WeakItem, WeaknessAnalysis
from numberland.models.progress import ActivityLabel, Category, Snapshot

logger = structlog.get_logger()


def aggregate(snapshots: Sequence[Snapshot], top_n: int = None) -> WeaknessAnalysis:
    """Merge per-snapshot analyses by averaging scores per item and per activity."""
    item_scores: Dict[Tuple[Category, str], List[float]] = {}
    latest_weakest: Dict[Tuple[Category, str], ActivityLabel] = {}
    activity_scores: Dict[ActivityLabel, List[float]] = {}

    for snapshot in sorted(snapshots, key=lambda s: s.period_start):
        analysis = analyze_weaknesses(snapshot, top_n)

        for weak_item in analysis.all_weak_items():
            key = (weak_item.category, weak_item.item_name)
            item_scores.setdefault(key, []).append(weak_item.overall_score)
            latest_weakest[key] = weak_item.weakest_activity

        for weakness in analysis.weakest_activities:
            activity_scores.setdefault(weakness.activity_type, []).append(
                weakness.average_success_rate
            )

    aggregated = WeaknessAnalysis()

    for (category, item_name), scores in sorted(item_scores.items(), key=lambda kv: np.mean(kv[1])):
        aggregated.weak_items[category].append(
            WeakItem(
                category=category,
                item_name=item_name,
                overall_score=float(np.mean(scores)),
                weakest_activity=latest_weakest[(category, item_name)],
                total_attempts=len(scores),
            )
        )

    for label, scores in sorted(activity_scores.items(), key=lambda kv: np.mean(kv[1])):
        aggregated.weakest_activities.append(
            ActivityWeakness(
                activity_type=label,
                average_success_rate=float(np.mean(scores)),
                total_attempts=len(scores),
            )
        )

    logger.debug(
        "Weakness analyses aggregated",
        snapshots=len(snapshots),
        weak_items=len(item_scores),
        weak_activities=len(activity_scores),
    )
    return aggregated


def analyze_window(snapshots: Sequence[Snapshot], top_n: int = None) -> WeaknessAnalysis:
    """Analyze a window of snapshots: none is empty, one is analyzed directly, more are aggregated."""
    if not snapshots:
        return WeaknessAnalysis()
    if len(snapshots) == 1:
        return analyze_weaknesses(snapshots[0], top_n)
    return aggregate(snapshots, top_n)
