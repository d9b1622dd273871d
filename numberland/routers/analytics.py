"""Weakness analysis, planning and reporting endpoints."""

from typing import Dict, List, Optional, Union
from fastapi import APIRouter, Depends, Query
import structlog

from numberland.core.dependencies import ensure_can_access, get_current_user, get_progress_service
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
from numberland.models.progress import ActivityLabel
from numberland.services.progress_service import ProgressService

logger = structlog.get_logger()
router = APIRouter()


@router.get("/{user_id}/weaknesses", response_model=WeaknessAnalysis)
async def get_weaknesses(
    user_id: str,
    days: Optional[int] = Query(None, ge=0, le=365),
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """Weak items and activities over the recent window."""
    ensure_can_access(current_user, user_id)
    return await service.get_weakness_analysis(user_id, days)


@router.get("/{user_id}/focus-items", response_model=List[FocusItem])
async def get_focus_items(
    user_id: str,
    days: Optional[int] = Query(None, ge=0, le=365),
    max_items: Optional[int] = Query(None, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    ensure_can_access(current_user, user_id)
    return await service.get_focus_items(user_id, days, max_items)


@router.get("/{user_id}/learning-plan", response_model=FocusedLearningPlan)
async def get_learning_plan(
    user_id: str,
    days: Optional[int] = Query(None, ge=0, le=365),
    plan_duration: Optional[int] = Query(None, ge=1, le=30),
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """Day-by-day practice plan built from the highest priority items."""
    ensure_can_access(current_user, user_id)
    return await service.get_learning_plan(user_id, days, plan_duration)


@router.get("/{user_id}/recommendations", response_model=List[ActivityRecommendation])
async def get_recommendations(
    user_id: str,
    days: Optional[int] = Query(None, ge=0, le=365),
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    ensure_can_access(current_user, user_id)
    return await service.get_recommendations(user_id, days)


@router.get(
    "/{user_id}/activity-weaknesses",
    response_model=Union[ActivityWeaknessDetails, Dict[ActivityLabel, ActivityWeaknessDetails]]
)
async def get_activity_weaknesses(
    user_id: str,
    activity: Optional[ActivityLabel] = Query(None),
    days: Optional[int] = Query(None, ge=0, le=365),
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """Weak items for one activity type, or keyed by type for all of them when ``activity`` is omitted."""
    ensure_can_access(current_user, user_id)
    return await service.get_activity_weakness_details(user_id, activity, days)


@router.get("/{user_id}/statistics", response_model=ChildStatistics)
async def get_statistics(
    user_id: str,
    days: Optional[int] = Query(None, ge=0, le=365),
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    ensure_can_access(current_user, user_id)
    return await service.get_statistics(user_id, days)


@router.get("/{user_id}/report", response_model=ParentProgressReport)
async def get_parent_report(
    user_id: str,
    days: Optional[int] = Query(None, ge=0, le=365),
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    """Structured progress report for parents and educators."""
    ensure_can_access(current_user, user_id)
    report = await service.get_parent_report(user_id, days)
    logger.info("Parent report served", user_id=user_id, requested_by=current_user["user_id"])
    return report


@router.get("/{user_id}/completion", response_model=CompletionSummary)
async def get_completion(
    user_id: str,
    current_user: dict = Depends(get_current_user),
    service: ProgressService = Depends(get_progress_service)
):
    ensure_can_access(current_user, user_id)
    return await service.get_completion_summary(user_id)
