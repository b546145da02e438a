"""Data models for the onboarding profile."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class FitnessLevel(str, Enum):
    """Self-declared running level."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def weekday_name(day_of_week: int) -> str:
    """Name of a 1-based weekday (1=Monday, 7=Sunday)."""
    if 1 <= day_of_week <= 7:
        return WEEKDAY_NAMES[day_of_week - 1]
    return "Unknown"


@dataclass
class SpeedRange:
    """Preferred treadmill speeds in km/h."""
    walking: float = 5.0
    running: float = 10.0
    sprint: float = 15.0

    def to_dict(self) -> Dict[str, Any]:
        return {"walking": self.walking, "running": self.running, "sprint": self.sprint}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SpeedRange":
        if not data:
            return cls()
        return cls(
            walking=float(data.get("walking", 5.0)),
            running=float(data.get("running", 10.0)),
            sprint=float(data.get("sprint", 15.0)),
        )


@dataclass
class UserProfile:
    """Onboarding answers that drive plan generation.

    `level` is kept as a plain string so that values outside FitnessLevel
    survive a round trip; the safety policy decides what to do with them.
    `available_days` uses 1=Monday .. 7=Sunday. When it is set, its length
    is the number of sessions the user asked for.
    """
    level: str = FitnessLevel.BEGINNER.value
    goal: str = "5k"
    weekly_availability: int = 3
    available_days: Optional[List[int]] = None
    max_speed: float = 12.0
    max_incline: float = 15.0
    has_heart_rate_monitor: bool = False
    preferred_speed_range: SpeedRange = field(default_factory=SpeedRange)
    usual_workout_duration: int = 45  # minutes
    previous_experience: List[str] = field(default_factory=list)
    physical_constraints: List[str] = field(default_factory=list)
    treadmill_brand: Optional[str] = None
    name: Optional[str] = None
    user_id: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def requested_sessions(self) -> int:
        """Sessions per week the user asked for."""
        if self.available_days is not None:
            return len(self.available_days)
        return self.weekly_availability

    @property
    def sorted_days(self) -> List[int]:
        return sorted(set(self.available_days or []))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "level": self.level,
            "goal": self.goal,
            "weekly_availability": self.weekly_availability,
            "available_days": self.available_days,
            "max_speed": self.max_speed,
            "max_incline": self.max_incline,
            "has_heart_rate_monitor": self.has_heart_rate_monitor,
            "preferred_speed_range": self.preferred_speed_range.to_dict(),
            "usual_workout_duration": self.usual_workout_duration,
            "previous_experience": list(self.previous_experience),
            "physical_constraints": list(self.physical_constraints),
            "treadmill_brand": self.treadmill_brand,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        """Create from dictionary."""
        available_days = data.get("available_days")
        return cls(
            name=data.get("name"),
            level=data.get("level", FitnessLevel.BEGINNER.value),
            goal=data.get("goal", "5k"),
            weekly_availability=int(data.get("weekly_availability", 3)),
            available_days=[int(d) for d in available_days] if available_days is not None else None,
            max_speed=float(data.get("max_speed", 12.0)),
            max_incline=float(data.get("max_incline", 15.0)),
            has_heart_rate_monitor=bool(data.get("has_heart_rate_monitor", False)),
            preferred_speed_range=SpeedRange.from_dict(data.get("preferred_speed_range")),
            usual_workout_duration=int(data.get("usual_workout_duration", 45)),
            previous_experience=list(data.get("previous_experience") or []),
            physical_constraints=list(data.get("physical_constraints") or []),
            treadmill_brand=data.get("treadmill_brand"),
            user_id=data.get("user_id"),
            updated_at=data.get("updated_at"),
        )
