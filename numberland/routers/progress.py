"""Activity ingestion endpoints."""

from datetime import date
from typing import Dict, Optional
from fastapi import APIRouter, Depends, Query
import structlog

from numberland.core.dependencies import ensure_can_access, get_current_user, get_progress_service
from numberland.models.events import BatchActivityEvent, BatchResult, QuizEvent, TracingEvent
from numberland.models.progress import ItemProgress, Snapshot
from numberland.services.progress_service import ProgressService

logger = structlog.get_logger()
router = APIRouter()


@router.post("/{user_id}/tracing", response_model=ItemProgress)
async def record_tracing(
    user_id: str,
    event: TracingEvent,
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """Record a tracing attempt."""
    ensure_can_access(current_user, user_id)
    return await service.record_tracing(user_id, event)


@router.post("/{user_id}/quiz", response_model=ItemProgress)
async def record_quiz(
    user_id: str,
    event: QuizEvent,
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """Record a batch of quiz attempts for one item."""
    ensure_can_access(current_user, user_id)
    return await service.record_quiz(user_id, event)


@router.post("/{user_id}/batch", response_model=BatchResult)
async def record_batch(
    user_id: str,
    batch: BatchActivityEvent,
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """Record several activities at once; any invalid event rejects the whole batch."""
    ensure_can_access(current_user, user_id)
    return await service.record_batch(user_id, batch)


@router.get("/{user_id}/snapshot", response_model=Snapshot)
async def get_snapshot(
    user_id: str,
    day: Optional[date] = Query(None),
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """Get the stored daily snapshot."""
    ensure_can_access(current_user, user_id)
    return await service.get_snapshot(user_id, day)


@router.delete("/{user_id}", response_model=Dict[str, int])
async def delete_progress(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """Delete every snapshot for a learner."""
    ensure_can_access(current_user, user_id)
    deleted = await service.delete_progress(user_id)
    logger.info("Progress deleted", user_id=user_id, requested_by=current_user["user_id"], count=deleted)
    return {"deleted": deleted}
