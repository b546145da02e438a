"""Training plan generation and management API routes."""

from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..deps import get_plan_service, get_progress_service
from .profiles import ProfileInput
from ...exceptions import PlanNotFoundError
from ...models.plans import PlanGenerationRequest, PlanIntensity, WorkoutType
from ...scheduling.safety import cap_workouts
from ...services.plan_generator import GenerationStrategy
from ...services.plan_service import PlanService
from ...services.progress import ProgressService


router = APIRouter()


# ============================================================================
# Pydantic Models for API
# ============================================================================

class GeneratePlanRequest(BaseModel):
    """Request to generate and store a training plan."""
    user_id: str = Field(..., min_length=1)
    goal: str = Field(..., min_length=1, description="Free-form goal, e.g. 10k or marathon")
    weeks: int = Field(..., ge=1, le=52)
    start_date: date = Field(default_factory=date.today)
    intensity: PlanIntensity = PlanIntensity.MODERATE
    focus_types: List[WorkoutType] = Field(default_factory=list)
    strategy: Optional[GenerationStrategy] = Field(
        None,
        description="auto, ai, fixture or fallback. Defaults to the configured strategy.",
    )
    profile: Optional[ProfileInput] = Field(
        None,
        description="Profile to use instead of the stored one",
    )


# ============================================================================
# Routes
# ============================================================================

@router.post("/generate")
async def generate_plan(
    request: GeneratePlanRequest,
    service: PlanService = Depends(get_plan_service),
) -> Dict[str, Any]:
    """
    Generate a plan and make it the user's active plan.

    The response always carries a plan once the profile is valid; if the AI
    assistant fails the deterministic plan is returned instead.
    """
    generation_request = PlanGenerationRequest(
        profile=request.profile.to_profile(request.user_id) if request.profile else None,
        goal=request.goal,
        weeks=request.weeks,
        start_date=request.start_date,
        intensity=request.intensity,
        focus_types=list(request.focus_types),
    )
    result = await service.generate_and_save(request.user_id, generation_request, request.strategy)
    return result.to_dict()


@router.get("/safety-cap")
async def get_safety_cap(
    level: str,
    requested: int = Query(..., ge=0),
    goal: Optional[str] = None,
) -> Dict[str, Any]:
    """Sessions per week allowed for a level, with the reason for any reduction."""
    return cap_workouts(level, requested, goal).to_dict()


@router.get("/active/{user_id}")
async def get_active_plan(
    user_id: str,
    service: PlanService = Depends(get_plan_service),
) -> Dict[str, Any]:
    info = service.get_active_plan(user_id)
    if info is None:
        return {
            "active_plan": None,
            "message": "No active plan. Generate a new plan or activate an existing one.",
        }
    return {"active_plan": info.to_dict()}


@router.get("/user/{user_id}")
async def list_user_plans(
    user_id: str,
    service: PlanService = Depends(get_plan_service),
) -> Dict[str, Any]:
    """All plans of a user, newest first, without their workouts."""
    plans = service.get_user_plans(user_id)
    return {"plans": [p.to_dict() for p in plans], "total": len(plans)}


@router.get("/{plan_id}")
async def get_plan(
    plan_id: str,
    service: PlanService = Depends(get_plan_service),
) -> Dict[str, Any]:
    plan = service.get_plan(plan_id)
    if plan is None:
        raise PlanNotFoundError(plan_id)
    return plan.to_dict()


@router.delete("/{plan_id}")
async def delete_plan(
    plan_id: str,
    service: PlanService = Depends(get_plan_service),
) -> Dict[str, Any]:
    if not service.delete_plan(plan_id):
        raise PlanNotFoundError(plan_id)
    return {"deleted": True, "plan_id": plan_id}


@router.post("/{plan_id}/activate")
async def activate_plan(
    plan_id: str,
    user_id: str,
    service: PlanService = Depends(get_plan_service),
) -> Dict[str, Any]:
    if not service.set_active_plan(user_id, plan_id):
        raise PlanNotFoundError(plan_id)
    return {"activated": True, "plan_id": plan_id}


@router.get("/{plan_id}/schedule")
async def get_schedule(
    plan_id: str,
    service: PlanService = Depends(get_plan_service),
) -> Dict[str, Any]:
    """Workouts of the plan grouped by week, with calendar dates."""
    schedule = service.get_schedule(plan_id)
    if not schedule:
        raise PlanNotFoundError(plan_id)
    return {"plan_id": plan_id, "weeks": [week.to_dict() for week in schedule.values()]}


@router.get("/{plan_id}/progress")
async def get_progress(
    plan_id: str,
    user_id: str,
    service: ProgressService = Depends(get_progress_service),
) -> Dict[str, Any]:
    progress = service.plan_progress(plan_id, user_id)
    if progress is None:
        raise PlanNotFoundError(plan_id)
    return progress.to_dict()


@router.get("/{plan_id}/completion")
async def get_completion_status(
    plan_id: str,
    user_id: str,
    service: ProgressService = Depends(get_progress_service),
) -> Dict[str, Any]:
    statuses = service.completion_status(plan_id, user_id)
    return {"plan_id": plan_id, "workouts": [s.to_dict() for s in statuses]}
