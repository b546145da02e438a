"""Session tracking, analytics and completion API routes."""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..deps import get_analytics_service, get_completion_service, get_tracking_service
from ...exceptions import DatabaseError, SessionNotFoundError
from ...models.sessions import EventType, WorkoutCompletion
from ...services.analytics import AnalyticsService
from ...services.completions import WorkoutCompletionService
from ...services.session_tracking import SessionTrackingService


router = APIRouter()


class CompletionInput(BaseModel):
    """A workout ticked off by hand."""
    user_id: str = Field(..., min_length=1)
    planned_workout_id: str = Field(..., min_length=1)
    duration: float = Field(..., ge=0, description="Seconds")
    distance: float = Field(..., ge=0, description="Meters")
    average_pace: Optional[float] = Field(None, ge=0)
    max_heart_rate: Optional[int] = Field(None, gt=0)
    average_heart_rate: Optional[int] = Field(None, gt=0)
    calories_burned: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)


class StartSessionInput(BaseModel):
    user_id: str = Field(..., min_length=1)
    workout_name: str = Field(..., min_length=1)
    planned_workout_id: Optional[str] = None
    initial_speed: float = Field(0.0, ge=0, description="km/h")


class SessionEventInput(BaseModel):
    """An event measured by the client: its own clock and odometer."""
    event_type: EventType
    elapsed_time: float = Field(..., ge=0, description="Seconds since the session started")
    distance: float = Field(..., ge=0, description="Meters covered so far")
    new_speed: Optional[float] = Field(None, ge=0, description="km/h, for speed changes")
    segment_index: Optional[int] = Field(None, ge=0)
    segment_name: Optional[str] = None


class FinishSessionInput(BaseModel):
    elapsed_time: float = Field(..., ge=0, description="Seconds")
    distance: float = Field(..., ge=0, description="Meters")


@router.get("/stats/{user_id}")
async def get_user_stats(
    user_id: str,
    days: int = Query(30, ge=1, le=365),
    service: AnalyticsService = Depends(get_analytics_service),
) -> Dict[str, Any]:
    """Totals of the user's completed sessions over the last ``days`` days."""
    return service.user_progress_stats(user_id, days).to_dict()


@router.post("/completions")
async def complete_workout(
    body: CompletionInput,
    service: WorkoutCompletionService = Depends(get_completion_service),
) -> Dict[str, Any]:
    saved = service.complete_workout(WorkoutCompletion(**body.model_dump()))
    if saved is None:
        raise DatabaseError("Could not save the completion", operation="save_completion")
    return saved.to_dict()


@router.get("/completions/{user_id}/stats")
async def get_completion_stats(
    user_id: str,
    days: int = Query(30, ge=1, le=365),
    service: WorkoutCompletionService = Depends(get_completion_service),
) -> Dict[str, Any]:
    end = datetime.utcnow()
    stats = service.workout_stats(user_id, end - timedelta(days=days), end)
    return {**stats.to_dict(), "current_streak": service.current_streak(user_id, end)}


@router.get("/{session_id}/analytics")
async def get_analytics(
    session_id: str,
    service: AnalyticsService = Depends(get_analytics_service),
) -> Dict[str, Any]:
    analytics = service.analyze(session_id)
    if analytics is None:
        raise SessionNotFoundError(session_id)
    return {
        **analytics.to_dict(),
        "split_performance": service.split_performance(session_id).to_dict(),
    }


@router.get("/{session_id}/comparison")
async def get_comparison(
    session_id: str,
    user_id: str,
    service: AnalyticsService = Depends(get_analytics_service),
) -> Dict[str, Any]:
    """Changes against the user's previous comparable session, empty without a baseline."""
    comparisons = service.compare(session_id, user_id)
    return {"session_id": session_id, "comparisons": [c.to_dict() for c in comparisons]}


@router.get("/{session_id}/splits")
async def get_splits(
    session_id: str,
    service: AnalyticsService = Depends(get_analytics_service),
) -> Dict[str, Any]:
    splits = service.get_splits(session_id)
    return {"session_id": session_id, "splits": [s.to_dict() for s in splits]}


@router.post("")
async def start_session(
    body: StartSessionInput,
    service: SessionTrackingService = Depends(get_tracking_service),
) -> Dict[str, Any]:
    """Create a session and log its start event."""
    active = service.start_session(body.user_id, body.planned_workout_id, body.workout_name, body.initial_speed)
    if active is None:
        raise DatabaseError("Could not start the session", operation="create_session")
    return active.session.to_dict()


@router.post("/{session_id}/events")
async def record_event(
    session_id: str,
    body: SessionEventInput,
    service: SessionTrackingService = Depends(get_tracking_service),
) -> Dict[str, Any]:
    event = service.record_client_event(
        session_id,
        body.event_type,
        body.elapsed_time,
        body.distance,
        new_speed=body.new_speed,
        segment_index=body.segment_index,
        segment_name=body.segment_name,
    )
    if event is None:
        raise DatabaseError("Could not record the event", operation="add_event")
    return event.to_dict()


@router.post("/{session_id}/finish")
async def finish_session(
    session_id: str,
    body: FinishSessionInput,
    service: SessionTrackingService = Depends(get_tracking_service),
) -> Dict[str, Any]:
    """Freeze the session totals and compute its splits. Safe to retry after a failure."""
    session = service.finish_client_session(session_id, body.elapsed_time, body.distance)
    if session is None:
        raise DatabaseError("Could not finish the session", operation="complete_session")
    return session.to_dict()
