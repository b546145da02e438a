"""Data models for training plans."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional
import uuid

from .profile import UserProfile, weekday_name
from .sessions import parse_datetime


class WorkoutType(str, Enum):
    """Types of treadmill sessions."""
    EASY_RUN = "easy_run"
    INTERVALS = "intervals"
    TEMPO = "tempo"
    LONG_RUN = "long_run"
    TIME_TRIAL = "time_trial"
    FARTLEK = "fartlek"
    HILL_TRAINING = "hill_training"
    RECOVERY_RUN = "recovery_run"
    PROGRESSION_RUN = "progression_run"
    THRESHOLD = "threshold"


class IntensityZone(str, Enum):
    """Effort zone of a single segment."""
    WARM_UP = "warm_up"
    RECOVERY = "recovery"
    EASY = "easy"
    TEMPO = "tempo"
    THRESHOLD = "threshold"
    VO2MAX = "vo2max"
    NEUROMUSCULAR = "neuromuscular"
    COOL_DOWN = "cool_down"


class PlanIntensity(str, Enum):
    """Overall intensity requested for a plan."""
    LIGHT = "light"
    MODERATE = "moderate"
    INTENSE = "intense"


class PlanSource(str, Enum):
    """Which generation strategy produced a plan."""
    AI = "ai"
    FIXTURE = "fixture"
    FALLBACK = "fallback"


def _parse_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    return date.fromisoformat(str(value)[:10])


@dataclass
class TrainingSegment:
    """A sub-interval of a workout with its own speed, incline and effort."""
    name: str
    duration: int  # seconds
    target_speed: float  # km/h
    intensity: IntensityZone
    rpe: int = 5
    target_incline: float = 0.0  # percent
    instruction: str = ""
    distance: Optional[float] = None  # meters
    recovery_after: Optional[int] = None  # seconds
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "duration": self.duration,
            "distance": self.distance,
            "target_speed": self.target_speed,
            "target_incline": self.target_incline,
            "intensity": self.intensity.value,
            "rpe": self.rpe,
            "instruction": self.instruction,
            "recovery_after": self.recovery_after,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrainingSegment":
        return cls(
            id=data.get("id"),
            name=data["name"],
            duration=int(data["duration"]),
            distance=data.get("distance"),
            target_speed=float(data.get("target_speed", 0.0)),
            target_incline=float(data.get("target_incline") or 0.0),
            intensity=IntensityZone(data["intensity"]),
            rpe=int(data.get("rpe", 5)),
            instruction=data.get("instruction") or "",
            recovery_after=data.get("recovery_after"),
        )


@dataclass
class PlannedWorkout:
    """A single session scheduled within a plan.

    `scheduled_date` is derived from the plan start, `week_number` and
    `day_of_week`; it is never the source of truth and may be recomputed.
    """
    name: str
    workout_type: WorkoutType
    week_number: Optional[int]
    day_of_week: Optional[int]  # 1=Monday, 7=Sunday
    estimated_duration: int  # minutes
    estimated_distance: float  # meters
    difficulty: int  # 1-10
    segments: List[TrainingSegment] = field(default_factory=list)
    description: str = ""
    target_pace: Optional[float] = None  # min/km
    notes: Optional[str] = None
    scheduled_date: Optional[date] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def day_name(self) -> str:
        return weekday_name(self.day_of_week or 0)

    def copy(self, **changes: Any) -> "PlannedWorkout":
        """Shallow copy with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "workout_type": self.workout_type.value,
            "estimated_duration": self.estimated_duration,
            "estimated_distance": self.estimated_distance,
            "difficulty": self.difficulty,
            "target_pace": self.target_pace,
            "week_number": self.week_number,
            "day_of_week": self.day_of_week,
            "day_name": self.day_name,
            "scheduled_date": self.scheduled_date.isoformat() if self.scheduled_date else None,
            "segments": [s.to_dict() for s in self.segments],
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlannedWorkout":
        """Create from dictionary."""
        return cls(
            id=data.get("id") or str(uuid.uuid4()),
            name=data["name"],
            description=data.get("description") or "",
            workout_type=WorkoutType(data["workout_type"]),
            estimated_duration=int(data.get("estimated_duration", 0)),
            estimated_distance=float(data.get("estimated_distance", 0.0)),
            difficulty=int(data.get("difficulty", 5)),
            target_pace=data.get("target_pace"),
            week_number=data.get("week_number"),
            day_of_week=data.get("day_of_week"),
            scheduled_date=_parse_date(data.get("scheduled_date")),
            segments=[TrainingSegment.from_dict(s) for s in data.get("segments", [])],
            notes=data.get("notes"),
        )


@dataclass
class TrainingPlan:
    """A multi-week treadmill program.

    `end_date` is always derived from `start_date` and `total_weeks`, so the
    two can never drift apart.
    """
    name: str
    goal: str
    total_weeks: int
    workouts_per_week: int
    start_date: date
    planned_workouts: List[PlannedWorkout] = field(default_factory=list)
    description: str = ""
    user_profile: Optional[UserProfile] = None
    generated_by_ai: bool = False
    source: PlanSource = PlanSource.FALLBACK
    ai_prompt: Optional[str] = None
    is_active: bool = False
    user_id: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=self.total_weeks * 7)

    @property
    def total_workouts(self) -> int:
        return len(self.planned_workouts)

    def get_week(self, week_number: int) -> List[PlannedWorkout]:
        """Workouts of a given week, ordered by day."""
        return sorted(
            (w for w in self.planned_workouts if w.week_number == week_number),
            key=lambda w: w.day_of_week or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "goal": self.goal,
            "total_weeks": self.total_weeks,
            "workouts_per_week": self.workouts_per_week,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "generated_by_ai": self.generated_by_ai,
            "source": self.source.value,
            "ai_prompt": self.ai_prompt,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "user_profile": self.user_profile.to_dict() if self.user_profile else None,
            "planned_workouts": [w.to_dict() for w in self.planned_workouts],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrainingPlan":
        """Create from dictionary."""
        profile = data.get("user_profile")
        return cls(
            id=data.get("id") or str(uuid.uuid4()),
            user_id=data.get("user_id"),
            name=data["name"],
            description=data.get("description") or "",
            goal=data.get("goal") or "",
            total_weeks=int(data["total_weeks"]),
            workouts_per_week=int(data["workouts_per_week"]),
            start_date=_parse_date(data["start_date"]),
            generated_by_ai=bool(data.get("generated_by_ai", False)),
            source=PlanSource(data.get("source") or PlanSource.FALLBACK.value),
            ai_prompt=data.get("ai_prompt"),
            is_active=bool(data.get("is_active", False)),
            created_at=parse_datetime(data.get("created_at")) or datetime.utcnow(),
            user_profile=UserProfile.from_dict(profile) if profile else None,
            planned_workouts=[PlannedWorkout.from_dict(w) for w in data.get("planned_workouts", [])],
        )


@dataclass
class PlanGenerationRequest:
    """Everything the generator needs to build a plan."""
    profile: Optional[UserProfile]
    goal: str
    weeks: int
    start_date: date
    intensity: PlanIntensity = PlanIntensity.MODERATE
    focus_types: List[WorkoutType] = field(default_factory=list)


@dataclass
class PlanGenerationResult:
    """Result of generate-and-save."""
    success: bool
    plan: Optional[TrainingPlan] = None
    plan_id: Optional[str] = None
    explanation: str = ""
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "plan": self.plan.to_dict() if self.plan else None,
            "plan_id": self.plan_id,
            "explanation": self.explanation,
            "error": self.error,
        }
