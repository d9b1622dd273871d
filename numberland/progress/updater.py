"""
Progress Updater

Applies one tracing or quiz event to a snapshot. Events are validated before
anything is touched, so a rejected event leaves the snapshot unchanged.

Usage:
    from numberland.progress.updater import apply_tracing

    item = apply_tracing(snapshot, TracingEvent(category=Category.NUMBERS, item_label="3", ...))
"""

import structlog

from numberland.core.config import settings
from numberland.models.events import QuizEvent, TracingEvent
from numberland.models.progress import QUIZ_TYPE_LABELS, ItemProgress, Snapshot
from numberland.progress.validation import validate_quiz_event, validate_tracing_event

logger = structlog.get_logger()


def apply_tracing(snapshot: Snapshot, event: TracingEvent) -> ItemProgress:
    """Record a tracing attempt, creating the item entry on first sight."""
    validate_tracing_event(event)

    item = snapshot.get_or_create_item(event.category, event.item_label)
    item.tracing_count += 1

    # Completion never reverts once a tracing attempt completes
    if event.completed:
        item.tracing_complete_count += 1
        item.completed = True

    item.tracing_total_time += event.total_time
    item.total_stars += event.max_stars
    item.total_stars_achieved += event.stars_achieved

    snapshot.touch()

    logger.debug(
        "Tracing applied",
        user_id=snapshot.user_id,
        category=event.category.value,
        item=event.item_label,
        completed=event.completed,
    )
    return item


def apply_quiz(snapshot: Snapshot, event: QuizEvent) -> ItemProgress:
    """Record a batch of quiz attempts against one item."""
    validate_quiz_event(event)

    item = snapshot.get_or_create_item(event.category, event.item_label)

    for detail in event.quiz_details:
        stats = item.stats_for(QUIZ_TYPE_LABELS[detail.type])
        failed = detail.is_failed

        stats.count += 1
        stats.total_time += detail.time_taken
        item.quiz_count += 1
        item.quiz_total_time += detail.time_taken

        if failed:
            stats.fail_count += 1
            stats.total_fail_time += detail.time_taken
            item.quiz_fail_count += 1

        if detail.timed_out:
            stats.time_out_count += 1
            item.quiz_time_out_count += 1

    # Judged per batch: sets completion but never clears it
    if all(detail.score >= settings.QUIZ_COMPLETION_SCORE for detail in event.quiz_details):
        item.completed = True

    snapshot.touch()

    logger.debug(
        "Quiz applied",
        user_id=snapshot.user_id,
        category=event.category.value,
        item=event.item_label,
        attempts=len(event.quiz_details),
    )
    return item
