"""
Schemas for plan JSON coming from outside the package.

Two shapes are accepted:
- AIPlanResponse: what the assistant returns, already using the canonical
  workout types and intensity zones.
- FixturePlan: the bundled debug plan, which uses a shorthand vocabulary
  (``warmup``, ``run``, ``intervals``...) that is remapped before use.

Both fail closed: any deviation raises pydantic's ValidationError, which the
generator turns into a fallback.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.plans import IntensityZone, WorkoutType


def to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    components = string.split("_")
    return components[0] + "".join(x.title() for x in components[1:])


# =============================================================================
# Assistant response
# =============================================================================


class AISegment(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1)
    duration: int = Field(..., gt=0, description="Seconds")
    distance: Optional[float] = Field(None, ge=0)
    target_speed: float = Field(..., ge=0)
    target_incline: float = Field(0.0, ge=0)
    intensity: IntensityZone
    rpe: int = Field(..., ge=1, le=10)
    instruction: str = ""
    recovery_after: Optional[int] = Field(None, ge=0)


class AIWorkout(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    workout_type: WorkoutType
    estimated_duration: int = Field(..., gt=0, description="Minutes")
    estimated_distance: float = Field(0.0, ge=0, description="Meters")
    difficulty: int = Field(..., ge=1, le=10)
    target_pace: Optional[float] = Field(None, ge=0)
    week_number: int = Field(..., ge=1)
    day_of_week: int = Field(..., ge=1, le=7)
    segments: List[AISegment] = Field(..., min_length=1)


class AIPlanResponse(BaseModel):
    """Top-level JSON object returned by the assistant."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1)
    description: str = ""
    workouts_per_week: int = Field(..., ge=1, le=7)
    workouts: List[AIWorkout] = Field(..., min_length=1)


# =============================================================================
# Bundled fixture
# =============================================================================

SEGMENT_TYPE_TO_INTENSITY = {
    "warmup": IntensityZone.WARM_UP,
    "warm_up": IntensityZone.WARM_UP,
    "cooldown": IntensityZone.COOL_DOWN,
    "cool_down": IntensityZone.COOL_DOWN,
    "walk": IntensityZone.RECOVERY,
    "rest": IntensityZone.RECOVERY,
    "recovery": IntensityZone.RECOVERY,
    "run": IntensityZone.EASY,
    "easy": IntensityZone.EASY,
    "tempo": IntensityZone.TEMPO,
    "threshold": IntensityZone.THRESHOLD,
    "intervals": IntensityZone.VO2MAX,
    "interval": IntensityZone.VO2MAX,
    "sprint": IntensityZone.NEUROMUSCULAR,
}

SEGMENT_TYPE_NAMES = {
    IntensityZone.WARM_UP: "Warm-up",
    IntensityZone.COOL_DOWN: "Cool-down",
    IntensityZone.RECOVERY: "Recovery walk",
    IntensityZone.EASY: "Easy run",
    IntensityZone.TEMPO: "Tempo",
    IntensityZone.THRESHOLD: "Threshold",
    IntensityZone.VO2MAX: "Interval",
    IntensityZone.NEUROMUSCULAR: "Sprint",
}

INTENSITY_RPE = {
    IntensityZone.WARM_UP: 3,
    IntensityZone.COOL_DOWN: 2,
    IntensityZone.RECOVERY: 3,
    IntensityZone.EASY: 5,
    IntensityZone.TEMPO: 6,
    IntensityZone.THRESHOLD: 7,
    IntensityZone.VO2MAX: 8,
    IntensityZone.NEUROMUSCULAR: 9,
}

WORKOUT_TYPE_ALIASES = {
    "easy": WorkoutType.EASY_RUN,
    "easy_run": WorkoutType.EASY_RUN,
    "interval": WorkoutType.INTERVALS,
    "intervals": WorkoutType.INTERVALS,
    "tempo": WorkoutType.TEMPO,
    "long": WorkoutType.LONG_RUN,
    "long_run": WorkoutType.LONG_RUN,
    "time_trial": WorkoutType.TIME_TRIAL,
    "fartlek": WorkoutType.FARTLEK,
    "hill": WorkoutType.HILL_TRAINING,
    "hills": WorkoutType.HILL_TRAINING,
    "hill_training": WorkoutType.HILL_TRAINING,
    "recovery": WorkoutType.RECOVERY_RUN,
    "recovery_run": WorkoutType.RECOVERY_RUN,
    "progression": WorkoutType.PROGRESSION_RUN,
    "progression_run": WorkoutType.PROGRESSION_RUN,
    "threshold": WorkoutType.THRESHOLD,
}


class FixtureSegment(BaseModel):
    type: str
    duration: int = Field(..., gt=0)
    target_speed: float = Field(..., alias="targetSpeed", ge=0)
    incline: float = Field(0.0, ge=0)
    description: str = ""

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        key = v.strip().lower()
        if key not in SEGMENT_TYPE_TO_INTENSITY:
            raise ValueError(f"Unknown segment type: {v}")
        return key

    @property
    def intensity(self) -> IntensityZone:
        return SEGMENT_TYPE_TO_INTENSITY[self.type]


class FixtureWorkout(BaseModel):
    name: str
    workout_type: Optional[str] = Field(None, alias="workoutType")
    description: str = ""
    week_number: int = Field(..., alias="weekNumber", ge=1)
    day_of_week: int = Field(..., alias="dayOfWeek", ge=1, le=7)
    estimated_duration: int = Field(..., alias="estimatedDuration", gt=0)
    segments: List[FixtureSegment] = Field(..., min_length=1)

    @field_validator("workout_type")
    @classmethod
    def validate_workout_type(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        key = v.strip().lower()
        if key not in WORKOUT_TYPE_ALIASES:
            raise ValueError(f"Unknown workout type: {v}")
        return key


class FixturePlan(BaseModel):
    name: str = "Debug plan"
    description: str = ""
    training_plan: List[FixtureWorkout] = Field(..., alias="trainingPlan", min_length=1)
