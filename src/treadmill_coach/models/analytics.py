"""Data models for derived session analytics."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SplitType(str, Enum):
    SEGMENT = "segment"
    KILOMETER = "kilometer"


@dataclass
class WorkoutSplit:
    """Summary of one segment or one kilometer of a finished session."""
    session_id: str
    split_type: SplitType
    split_number: int
    start_time: float  # seconds
    end_time: float
    start_distance: float  # meters
    end_distance: float
    duration: float
    distance: float
    average_speed: float  # km/h
    average_pace: float  # min/km
    speed_changes: int = 0
    min_speed: Optional[float] = None
    max_speed: Optional[float] = None
    segment_name: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "split_type": self.split_type.value,
            "split_number": self.split_number,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "start_distance": self.start_distance,
            "end_distance": self.end_distance,
            "duration": self.duration,
            "distance": self.distance,
            "average_speed": round(self.average_speed, 2),
            "average_pace": round(self.average_pace, 2),
            "speed_changes": self.speed_changes,
            "min_speed": self.min_speed,
            "max_speed": self.max_speed,
            "segment_name": self.segment_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutSplit":
        return cls(
            id=data.get("id"),
            session_id=data["session_id"],
            split_type=SplitType(data["split_type"]),
            split_number=int(data["split_number"]),
            start_time=float(data["start_time"]),
            end_time=float(data["end_time"]),
            start_distance=float(data["start_distance"]),
            end_distance=float(data["end_distance"]),
            duration=float(data["duration"]),
            distance=float(data["distance"]),
            average_speed=float(data["average_speed"]),
            average_pace=float(data["average_pace"]),
            speed_changes=int(data.get("speed_changes") or 0),
            min_speed=data.get("min_speed"),
            max_speed=data.get("max_speed"),
            segment_name=data.get("segment_name"),
        )


@dataclass
class ProfilePoint:
    """One sample of the speed or pace profile."""
    time: float
    value: float
    distance: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "value": round(self.value, 2), "distance": self.distance}


@dataclass
class WorkoutAnalytics:
    """Aggregate view of one session."""
    session_id: str
    total_duration: float
    total_distance: float
    average_speed: float
    average_pace: float
    max_speed: float
    min_speed: float
    speed_changes: int
    splits: List[WorkoutSplit] = field(default_factory=list)
    speed_profile: List[ProfilePoint] = field(default_factory=list)
    pace_profile: List[ProfilePoint] = field(default_factory=list)

    @property
    def segment_splits(self) -> List[WorkoutSplit]:
        return [s for s in self.splits if s.split_type == SplitType.SEGMENT]

    @property
    def kilometer_splits(self) -> List[WorkoutSplit]:
        return [s for s in self.splits if s.split_type == SplitType.KILOMETER]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "total_duration": self.total_duration,
            "total_distance": self.total_distance,
            "average_speed": round(self.average_speed, 2),
            "average_pace": round(self.average_pace, 2),
            "max_speed": self.max_speed,
            "min_speed": self.min_speed,
            "speed_changes": self.speed_changes,
            "segment_splits": [s.to_dict() for s in self.segment_splits],
            "kilometer_splits": [s.to_dict() for s in self.kilometer_splits],
            "speed_profile": [p.to_dict() for p in self.speed_profile],
            "pace_profile": [p.to_dict() for p in self.pace_profile],
        }


@dataclass
class PerformanceComparison:
    """Signed change of one metric against a previous session."""
    metric: str
    current_value: float
    previous_value: float
    improvement: float
    improvement_percentage: float
    unit: str

    @property
    def improved(self) -> bool:
        return self.improvement > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "current_value": round(self.current_value, 2),
            "previous_value": round(self.previous_value, 2),
            "improvement": round(self.improvement, 2),
            "improvement_percentage": round(self.improvement_percentage, 1),
            "unit": self.unit,
            "improved": self.improved,
        }


@dataclass
class SplitPerformance:
    """Fastest, slowest and pace spread of a set of splits."""
    fastest_split: Optional[WorkoutSplit]
    slowest_split: Optional[WorkoutSplit]
    pace_variability: float  # population std dev of pace, min/km
    most_consistent: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fastest_split": self.fastest_split.to_dict() if self.fastest_split else None,
            "slowest_split": self.slowest_split.to_dict() if self.slowest_split else None,
            "pace_variability": round(self.pace_variability, 3),
            "most_consistent": self.most_consistent,
        }


@dataclass
class UserProgressStats:
    """Rolling totals over the last N days of completed sessions."""
    total_workouts: int = 0
    total_distance_km: float = 0.0
    total_time_min: float = 0.0
    average_speed: float = 0.0
    best_pace: float = 0.0
    consistency: int = 0  # percent of days with at least one session

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_workouts": self.total_workouts,
            "total_distance_km": round(self.total_distance_km, 2),
            "total_time_min": round(self.total_time_min, 1),
            "average_speed": round(self.average_speed, 2),
            "best_pace": round(self.best_pace, 2),
            "consistency": self.consistency,
        }
