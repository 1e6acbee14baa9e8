from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional

from ..auth import get_current_user
from ..database import get_db
from ..models import User
from ..schemas import (
    EditsRequest, FeedbackRequest, FeedbackResult, PlanOut, PreviewRequest, PreviewResponse, ScheduleRequest
)
from ..scheduling.utils.time_utils import get_timezone, local_today
from ..services.ai_provider import AIProvider, get_ai_provider
from ..services.scheduler_service import SchedulerService, preview_schedule

router = APIRouter()


def get_scheduler_service(
    db: Session = Depends(get_db),
    provider: AIProvider = Depends(get_ai_provider),
) -> SchedulerService:
    return SchedulerService(db, provider)


@router.get("/", response_model=PlanOut)
def get_schedule(
    day: Optional[date] = Query(None, alias="date"),
    current_user: User = Depends(get_current_user),
    service: SchedulerService = Depends(get_scheduler_service),
):
    """
    Get the stored plan for a date, calculating it on first request.
    Defaults to today in the user's timezone.
    """
    day = day or local_today(get_timezone(current_user.timezone))
    plan = service.get_or_calculate(current_user, day)
    return service.plan_to_schema(plan, current_user)


@router.post("/calculate", response_model=PlanOut)
def calculate_schedule(
    request: ScheduleRequest,
    current_user: User = Depends(get_current_user),
    service: SchedulerService = Depends(get_scheduler_service),
):
    """Recalculate and store the plan for a date, replacing any previous one."""
    plan = service.calculate_schedule(current_user, request.date, request.task_ids)
    return service.plan_to_schema(plan, current_user)


@router.post("/preview", response_model=PreviewResponse)
def preview(request: PreviewRequest):
    """Schedule the given tasks without touching stored data."""
    return preview_schedule(request)


@router.post("/feedback", response_model=FeedbackResult)
def submit_feedback(
    request: FeedbackRequest,
    current_user: User = Depends(get_current_user),
    service: SchedulerService = Depends(get_scheduler_service),
):
    try:
        result = service.record_feedback(current_user, request.plan_id, request.entries)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if result is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    return result


@router.post("/edits", response_model=FeedbackResult)
def apply_edits(
    request: EditsRequest,
    current_user: User = Depends(get_current_user),
    service: SchedulerService = Depends(get_scheduler_service),
):
    result = service.apply_edits(current_user, request.plan_id, request.patches)
    if result is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    return result
