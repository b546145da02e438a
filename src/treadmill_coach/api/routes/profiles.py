"""Onboarding profile API routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..deps import get_adapter
from ...db.adapters import DatabaseAdapter
from ...exceptions import ProfileNotFoundError
from ...models.profile import FitnessLevel, SpeedRange, UserProfile


router = APIRouter()


class SpeedRangeInput(BaseModel):
    walking: float = Field(5.0, gt=0)
    running: float = Field(10.0, gt=0)
    sprint: float = Field(15.0, gt=0)


class ProfileInput(BaseModel):
    """Onboarding answers."""
    name: Optional[str] = None
    level: str = Field(FitnessLevel.BEGINNER.value, description="beginner, intermediate or advanced")
    goal: str = "5k"
    weekly_availability: int = Field(3, ge=0, le=7)
    available_days: Optional[List[int]] = Field(None, description="1=Monday .. 7=Sunday")
    max_speed: float = Field(12.0, gt=0)
    max_incline: float = Field(15.0, ge=0)
    has_heart_rate_monitor: bool = False
    preferred_speed_range: SpeedRangeInput = Field(default_factory=SpeedRangeInput)
    usual_workout_duration: int = Field(45, gt=0, description="Minutes")
    previous_experience: List[str] = Field(default_factory=list)
    physical_constraints: List[str] = Field(default_factory=list)
    treadmill_brand: Optional[str] = None

    def to_profile(self, user_id: Optional[str] = None) -> UserProfile:
        data = self.model_dump()
        return UserProfile(
            **{k: v for k, v in data.items() if k != "preferred_speed_range"},
            preferred_speed_range=SpeedRange(**data["preferred_speed_range"]),
            user_id=user_id,
        )


@router.get("/{user_id}")
async def get_profile(user_id: str, adapter: DatabaseAdapter = Depends(get_adapter)):
    profile = adapter.get_profile(user_id)
    if profile is None:
        raise ProfileNotFoundError(user_id)
    return profile.to_dict()


@router.put("/{user_id}")
async def save_profile(
    user_id: str,
    body: ProfileInput,
    adapter: DatabaseAdapter = Depends(get_adapter),
):
    """Create or replace the onboarding profile of a user."""
    saved = adapter.save_profile(user_id, body.to_profile(user_id))
    return saved.to_dict()
