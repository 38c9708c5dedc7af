"""
Mood API endpoints - daily survey, camera detection and completion status.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from ..core import dates
from ..core.aggregator import WeeklyAggregator, in_range
from ..core.completion import CompletionTracker
from ..core.errors import StoreUnavailable, ValidationError
from ..models import CameraMoodIn, CameraMoodRecord, CompletionStatus, MoodSurveyIn, MoodSurveyRecord
from ..storage import RecordStore, get_record_store
from ..utils.auth import get_current_user_id

logger = logging.getLogger(__name__)

router = APIRouter(tags=["mood"])


def get_completion_tracker(
    request: Request,
    records: RecordStore = Depends(get_record_store),
) -> CompletionTracker:
    """Tracker sharing the application's record lock registry."""
    return CompletionTracker(records, request.app.state.record_locks)


async def _mark_completed(
    tracker: CompletionTracker,
    user_id: str,
    day: str,
    kind: str,
    completed_at: str,
) -> CompletionStatus:
    """
    Update the day's completion flags.

    The primary record is already stored, so a failure here is logged and
    answered with the status the write implies.
    """
    try:
        return await tracker.mark_completed(user_id, day, kind)
    except StoreUnavailable as e:
        logger.warning(f"Completion flag for {kind} of user {user_id} on {day} not updated: {e.message}")
        return CompletionStatus(**{
            f"{kind}_completed": True,
            f"{kind}_completed_at": completed_at,
        })


def _window(start_date: Optional[str], end_date: Optional[str]):
    """Date window for list endpoints; None means every stored record."""
    if not start_date:
        if end_date:
            raise ValidationError("startDate is required when endDate is given")
        return None
    return WeeklyAggregator.resolve_range(start_date, end_date)


@router.post("/mood-survey")
async def save_mood_survey(
    survey: MoodSurveyIn,
    user_id: str = Depends(get_current_user_id),
    records: RecordStore = Depends(get_record_store),
    tracker: CompletionTracker = Depends(get_completion_tracker),
):
    """Store today's survey (overwriting any earlier one) and mark it completed."""
    today = dates.today()
    record = MoodSurveyRecord(**survey.model_dump(), date=today)
    await records.save_survey(user_id, record)
    logger.info(f"Mood survey saved for user {user_id} on {today}")

    status = await _mark_completed(tracker, user_id, today, "survey", record.completed_at)
    return {
        "success": True,
        "message": "Mood survey saved successfully",
        "completionStatus": status.to_store(),
    }


@router.get("/mood-surveys")
async def get_mood_surveys(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
    records: RecordStore = Depends(get_record_store),
):
    """Surveys in [startDate, endDate or today]; all surveys when startDate is omitted."""
    window = _window(start_date, end_date)
    surveys = await records.list_surveys(user_id)
    if window:
        surveys = in_range(surveys, *window)
    return {"success": True, "surveys": [s.to_store() for s in surveys]}


@router.post("/camera-mood")
async def save_camera_mood(
    detection: CameraMoodIn,
    user_id: str = Depends(get_current_user_id),
    records: RecordStore = Depends(get_record_store),
    tracker: CompletionTracker = Depends(get_completion_tracker),
):
    """Store today's camera detection and mark it completed."""
    today = dates.today()
    record = CameraMoodRecord(**detection.model_dump(), date=today)
    await records.save_camera_mood(user_id, record)
    logger.info(f"Camera mood saved for user {user_id} on {today}")

    status = await _mark_completed(tracker, user_id, today, "camera", record.completed_at)
    return {
        "success": True,
        "message": "Camera mood detection saved successfully",
        "completionStatus": status.to_store(),
    }


@router.get("/camera-moods")
async def get_camera_moods(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    user_id: str = Depends(get_current_user_id),
    records: RecordStore = Depends(get_record_store),
):
    window = _window(start_date, end_date)
    camera_moods = await records.list_camera_moods(user_id)
    if window:
        camera_moods = in_range(camera_moods, *window)
    return {"success": True, "cameraMoods": [c.to_store() for c in camera_moods]}


@router.get("/completion-status")
async def get_completion_status(
    date: Optional[str] = Query(None),
    user_id: str = Depends(get_current_user_id),
    tracker: CompletionTracker = Depends(get_completion_tracker),
):
    """Completion flags for a day (defaults to today)."""
    day = dates.parse_date(date).isoformat() if date else dates.today()
    status = await tracker.get_status(user_id, day)
    return {"success": True, "completionStatus": status.to_store(), "date": day}
