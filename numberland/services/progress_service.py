"""
Progress Service

Orchestrates event ingestion and analysis over a snapshot store.

Writes:
- load (or create) the learner's daily snapshot
- apply the event to a working copy
- store it under the version check, retrying on conflict

Writers for one learner are serialized by a per-user asyncio lock; the
version check covers writers in other processes.
"""

import asyncio
import weakref
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple, TypeVar, Union

import structlog

from numberland.analytics.aggregator import analyze_window
from numberland.analytics.reporting import (
    activity_weakness_details,
    activity_weakness_details_by_label,
    build_parent_report,
    child_statistics,
    completion_summary,
)
from numberland.core.config import settings
from numberland.core.exceptions import BatchValidationError, ConcurrencyError, NotFoundError, ValidationError
from numberland.models.analysis import (
    ActivityRecommendation,
    ActivityWeaknessDetails,
    ChildStatistics,
    CompletionSummary,
    FocusedLearningPlan,
    FocusItem,
    ParentProgressReport,
    WeaknessAnalysis,
)
from numberland.models.events import BatchActivityEvent, BatchResult, QuizEvent, TracingEvent
from numberland.models.progress import (
    ActivityLabel,
    ItemProgress,
    PeriodType,
    Snapshot,
    utcnow,
    window_bounds,
)
from numberland.progress.updater import apply_quiz, apply_tracing
from numberland.progress.validation import validate_batch
from numberland.recommendations.plan_builder import (
    generate_learning_plan,
    generate_recommendations,
    get_prioritized_focus_items,
)
from numberland.storage.snapshot_store import SnapshotStore

logger = structlog.get_logger()

T = TypeVar("T")

# Entries disappear once no writer holds or awaits the lock
_user_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _lock_for(user_id: str) -> asyncio.Lock:
    lock = _user_locks.get(user_id)
    if lock is None:
        lock = asyncio.Lock()
        _user_locks[user_id] = lock
    return lock


class ProgressService:
    """Ingestion and analysis entry points for one snapshot store."""

    def __init__(self, store: SnapshotStore):
        self.store = store

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def _write(
        self,
        user_id: str,
        apply: Callable[[Snapshot], T],
        day: date = None
    ) -> Tuple[Snapshot, T]:
        """Apply ``apply`` to the learner's daily snapshot and store it, retrying on version conflicts."""
        retries = settings.SNAPSHOT_WRITE_RETRIES

        async with _lock_for(user_id):
            for attempt in range(1, retries + 1):
                snapshot = await self.store.get_or_create(user_id, PeriodType.DAILY, day)
                working = snapshot.model_copy(deep=True)
                result = apply(working)

                try:
                    saved = await self.store.put(working)
                    return saved, result
                except ConcurrencyError as e:
                    if attempt == retries:
                        logger.error("Snapshot write failed", user_id=user_id, key=e.key, attempts=attempt)
                        raise
                    logger.warning("Snapshot version conflict, retrying", user_id=user_id, key=e.key, attempt=attempt)

    async def record_tracing(self, user_id: str, event: TracingEvent, day: date = None) -> ItemProgress:
        """Validate and apply one tracing event to today's snapshot."""
        try:
            _, item = await self._write(user_id, lambda snapshot: apply_tracing(snapshot, event), day)
        except ValidationError as e:
            logger.warning("Tracing event rejected", user_id=user_id, field=e.field, reason=e.reason)
            raise

        logger.info(
            "Tracing recorded",
            user_id=user_id,
            category=event.category.value,
            item=event.item_label,
            completed=item.completed,
        )
        return item

    async def record_quiz(self, user_id: str, event: QuizEvent, day: date = None) -> ItemProgress:
        """Validate and apply one quiz event to today's snapshot."""
        try:
            _, item = await self._write(user_id, lambda snapshot: apply_quiz(snapshot, event), day)
        except ValidationError as e:
            logger.warning("Quiz event rejected", user_id=user_id, field=e.field, reason=e.reason)
            raise

        logger.info(
            "Quiz recorded",
            user_id=user_id,
            category=event.category.value,
            item=event.item_label,
            attempts=len(event.quiz_details),
        )
        return item

    async def record_batch(self, user_id: str, batch: BatchActivityEvent, day: date = None) -> BatchResult:
        """
        Apply every event of a batch in one write.

        The whole batch is validated first; a single malformed event rejects
        the batch and nothing is stored.
        """
        try:
            validate_batch(batch, user_id)
        except BatchValidationError as e:
            logger.warning("Batch rejected", user_id=user_id, errors=len(e.errors), first_field=e.field)
            raise

        def apply_all(snapshot: Snapshot) -> BatchResult:
            result = BatchResult()

            for event in batch.tracing_activities:
                apply_tracing(snapshot, event)
                result.tracing_applied += 1

            for event in batch.quiz_activities:
                apply_quiz(snapshot, event)
                result.record_quiz(event)

            return result

        _, result = await self._write(user_id, apply_all, day)

        logger.info(
            "Batch recorded",
            user_id=user_id,
            tracing=result.tracing_applied,
            quizzes=result.quiz_applied,
        )
        return result

    async def delete_progress(self, user_id: str) -> int:
        async with _lock_for(user_id):
            return await self.store.delete_user(user_id)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get_snapshot(self, user_id: str, day: date = None) -> Snapshot:
        """Stored daily snapshot for ``day`` (default today)."""
        if not day:
            day = utcnow().date()

        snapshot = await self.store.get(user_id, PeriodType.DAILY, day)
        if snapshot is None:
            raise NotFoundError("snapshot", f"{user_id}:{PeriodType.DAILY.value}:{day.isoformat()}")
        return snapshot

    async def _window(self, user_id: str, days: int) -> List[Snapshot]:
        start, end = window_bounds(days)
        return await self.store.query_range(user_id, PeriodType.DAILY, start, end)

    async def _latest_or_empty(self, user_id: str) -> Snapshot:
        """Most recent daily snapshot; a new learner reads as an empty one."""
        snapshot = await self.store.latest(user_id, PeriodType.DAILY)
        if snapshot is None:
            snapshot = Snapshot(user_id=user_id, period_start=utcnow().date())
        return snapshot

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def get_weakness_analysis(self, user_id: str, days: Optional[int] = None) -> WeaknessAnalysis:
        if days is None:
            days = settings.ANALYSIS_WINDOW_DAYS
        snapshots = await self._window(user_id, days)
        return analyze_window(snapshots)

    async def get_focus_items(
        self,
        user_id: str,
        days: Optional[int] = None,
        max_items: Optional[int] = None
    ) -> List[FocusItem]:
        analysis = await self.get_weakness_analysis(user_id, days)
        return get_prioritized_focus_items(analysis, max_items)

    async def get_learning_plan(
        self,
        user_id: str,
        days: Optional[int] = None,
        plan_duration: Optional[int] = None
    ) -> FocusedLearningPlan:
        analysis = await self.get_weakness_analysis(user_id, days)
        plan = generate_learning_plan(analysis, plan_duration)
        logger.info("Learning plan served", user_id=user_id, plan_duration=plan.plan_duration)
        return plan

    async def get_recommendations(self, user_id: str, days: Optional[int] = None) -> List[ActivityRecommendation]:
        """Recommendations from the latest snapshot; a learner with no snapshot gets none."""
        snapshot = await self.store.latest(user_id, PeriodType.DAILY)
        if snapshot is None:
            return []
        analysis = await self.get_weakness_analysis(user_id, days)
        return generate_recommendations(snapshot, analysis)

    async def get_activity_weakness_details(
        self,
        user_id: str,
        activity: Optional[ActivityLabel] = None,
        days: Optional[int] = None
    ) -> Union[ActivityWeaknessDetails, Dict[ActivityLabel, ActivityWeaknessDetails]]:
        """Details for one activity label, or for every label when ``activity`` is omitted."""
        if days is None:
            days = settings.ANALYSIS_WINDOW_DAYS
        snapshots = await self._window(user_id, days)
        if activity is None:
            return activity_weakness_details_by_label(snapshots)
        return activity_weakness_details(snapshots, activity)

    async def get_statistics(self, user_id: str, days: Optional[int] = None) -> ChildStatistics:
        if days is None:
            days = settings.STATISTICS_WINDOW_DAYS
        snapshots = await self._window(user_id, days)
        return child_statistics(user_id, snapshots, days)

    async def get_parent_report(self, user_id: str, days: Optional[int] = None) -> ParentProgressReport:
        analysis = await self.get_weakness_analysis(user_id, days)
        snapshot = await self._latest_or_empty(user_id)
        return build_parent_report(snapshot, analysis)

    async def get_completion_summary(self, user_id: str) -> CompletionSummary:
        snapshot = await self._latest_or_empty(user_id)
        return completion_summary(snapshot)
