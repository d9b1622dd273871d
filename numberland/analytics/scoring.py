"""
Scoring Engine

Pure functions turning an ItemProgress into scores. Every other component
(analyzer, reports, plans) scores items through this module.

Overall score:
- Unweighted mean of up to eight rates, each counted only when attempted:
  tracing stars, generic quiz pass rate, and the six quiz style success rates.
"""

from typing import Dict, NamedTuple

from numberland.models.progress import ActivityLabel, ItemProgress


class ActivityTotals(NamedTuple):
    """Raw counters for one activity label on one item."""
    attempts: int
    successes: int
    failures: int
    time: float


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator > 0 else 0.0


def tracing_star_rate(item: ItemProgress) -> float:
    return _ratio(item.total_stars_achieved, item.total_stars)


def tracing_success_rate(item: ItemProgress) -> float:
    return _ratio(item.tracing_complete_count, item.tracing_count)


def quiz_success_rate(item: ItemProgress) -> float:
    return _ratio(item.quiz_count - item.quiz_fail_count, item.quiz_count)


def overall_score(item: ItemProgress) -> float:
    """Mean of every attempted component rate, 0 when nothing was attempted."""
    components = []

    if item.total_stars > 0:
        components.append(tracing_star_rate(item))
    if item.quiz_count > 0:
        components.append(quiz_success_rate(item))
    for _, stats in item.quiz_stats():
        if stats.count > 0:
            components.append(stats.success_rate)

    if not components:
        return 0.0
    return sum(components) / len(components)


def activity_success_rates(item: ItemProgress) -> Dict[ActivityLabel, float]:
    """
    Success rate per activity label, in tie-break order.

    Untried activities count as 100 so that absence never reads as weakness.
    """
    rates = {
        ActivityLabel.TRACING: tracing_success_rate(item) if item.tracing_count > 0 else 100.0,
    }
    for label, stats in item.quiz_stats():
        rates[label] = stats.success_rate if stats.count > 0 else 100.0
    return rates


def weakest_activity(item: ItemProgress) -> ActivityLabel:
    """Label with the lowest success rate; the first label wins ties."""
    rates = activity_success_rates(item)
    return min(rates, key=rates.get)


def completion_rate(item: ItemProgress) -> float:
    if item.tracing_count == 0 and item.quiz_count == 0:
        return 0.0

    tracing_rate = item.tracing_complete_count / item.tracing_count if item.tracing_count > 0 else 0.0
    quiz_rate = (item.quiz_count - item.quiz_fail_count) / item.quiz_count if item.quiz_count > 0 else 0.0

    return (tracing_rate + quiz_rate) / 2 * 100


def total_attempts(item: ItemProgress) -> int:
    return item.tracing_count + item.quiz_count


def total_time_spent(item: ItemProgress) -> float:
    return item.tracing_total_time + item.quiz_total_time


def total_successes(item: ItemProgress) -> int:
    """Completed tracing attempts plus passed quiz attempts."""
    return item.tracing_complete_count + (item.quiz_count - item.quiz_fail_count)


def activity_totals(item: ItemProgress, label: ActivityLabel) -> ActivityTotals:
    """Counters behind ``label`` for this item."""
    if label == ActivityLabel.TRACING:
        return ActivityTotals(
            attempts=item.tracing_count,
            successes=item.tracing_complete_count,
            failures=item.tracing_count - item.tracing_complete_count,
            time=item.tracing_total_time,
        )

    stats = item.stats_for(label)
    return ActivityTotals(
        attempts=stats.count,
        successes=stats.count - stats.fail_count,
        failures=stats.fail_count,
        time=stats.total_time,
    )
