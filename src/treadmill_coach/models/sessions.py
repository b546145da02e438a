"""Data models for tracked workout sessions and their event log."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
import re
import uuid


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class EventType(str, Enum):
    """Kinds of entries in a session's append-only event log."""
    START = "start"
    SPEED_CHANGE = "speed_change"
    SEGMENT_START = "segment_start"
    SEGMENT_END = "segment_end"
    PAUSE = "pause"
    RESUME = "resume"
    FINISH = "finish"


_FRACTION = re.compile(r"\.(\d{1,6})\d*")


def parse_datetime(value: Any) -> Optional[datetime]:
    """ISO timestamp as stored by SQLite or returned by PostgreSQL.

    PostgreSQL trims trailing zeros from the fraction and may use a Z suffix,
    neither of which datetime.fromisoformat accepts before Python 3.11.
    """
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).replace("Z", "+00:00")
    text = _FRACTION.sub(lambda m: "." + m.group(1).ljust(6, "0"), text, count=1)
    return datetime.fromisoformat(text)


@dataclass
class EventData:
    """Payload of a workout event. Which fields are set depends on the event type."""
    previous_speed: Optional[float] = None
    new_speed: Optional[float] = None
    segment_index: Optional[int] = None
    segment_name: Optional[str] = None
    distance: Optional[float] = None  # meters covered when the event happened
    current_pace: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "EventData":
        data = data or {}
        return cls(
            previous_speed=data.get("previous_speed"),
            new_speed=data.get("new_speed"),
            segment_index=data.get("segment_index"),
            segment_name=data.get("segment_name"),
            distance=data.get("distance"),
            current_pace=data.get("current_pace"),
        )


@dataclass
class WorkoutEvent:
    """One timestamped entry of the event log, ordered by `elapsed_time`."""
    session_id: str
    event_type: EventType
    elapsed_time: float  # seconds since session start
    data: EventData = field(default_factory=EventData)
    timestamp: datetime = field(default_factory=datetime.utcnow)
    id: Optional[str] = None

    @property
    def distance(self) -> Optional[float]:
        return self.data.distance

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "event_type": self.event_type.value,
            "elapsed_time": self.elapsed_time,
            "data": self.data.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutEvent":
        return cls(
            id=data.get("id"),
            session_id=data["session_id"],
            event_type=EventType(data["event_type"]),
            elapsed_time=float(data.get("elapsed_time", 0)),
            data=EventData.from_dict(data.get("data")),
            timestamp=parse_datetime(data.get("timestamp")) or datetime.utcnow(),
        )


@dataclass
class WorkoutSession:
    """One attempt at a planned workout. Finalized exactly once."""
    user_id: str
    workout_name: str
    planned_workout_id: Optional[str] = None
    start_time: datetime = field(default_factory=datetime.utcnow)
    end_time: Optional[datetime] = None
    status: SessionStatus = SessionStatus.ACTIVE
    total_duration: float = 0.0  # seconds
    total_distance: float = 0.0  # meters
    created_at: datetime = field(default_factory=datetime.utcnow)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    @property
    def average_speed(self) -> float:
        """km/h over the whole session."""
        if self.total_duration <= 0:
            return 0.0
        return (self.total_distance / 1000) / (self.total_duration / 3600)

    @property
    def average_pace(self) -> float:
        """min/km over the whole session, 0 when not moving."""
        speed = self.average_speed
        return 60 / speed if speed > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "planned_workout_id": self.planned_workout_id,
            "workout_name": self.workout_name,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "status": self.status.value,
            "total_duration": self.total_duration,
            "total_distance": self.total_distance,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutSession":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            planned_workout_id=data.get("planned_workout_id"),
            workout_name=data.get("workout_name") or "",
            start_time=parse_datetime(data.get("start_time")) or datetime.utcnow(),
            end_time=parse_datetime(data.get("end_time")),
            status=SessionStatus(data.get("status") or SessionStatus.ACTIVE.value),
            total_duration=float(data.get("total_duration") or 0),
            total_distance=float(data.get("total_distance") or 0),
            created_at=parse_datetime(data.get("created_at")) or datetime.utcnow(),
        )


@dataclass
class WorkoutCompletion:
    """A manually recorded completion of a planned workout."""
    user_id: str
    planned_workout_id: str
    duration: float  # seconds
    distance: float  # meters
    completed_at: datetime = field(default_factory=datetime.utcnow)
    average_pace: Optional[float] = None
    average_speed: Optional[float] = None
    max_heart_rate: Optional[int] = None
    average_heart_rate: Optional[int] = None
    calories_burned: Optional[int] = None
    notes: Optional[str] = None
    rating: Optional[int] = None  # 1-5
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "planned_workout_id": self.planned_workout_id,
            "completed_at": self.completed_at.isoformat(),
            "duration": self.duration,
            "distance": self.distance,
            "average_pace": self.average_pace,
            "average_speed": self.average_speed,
            "max_heart_rate": self.max_heart_rate,
            "average_heart_rate": self.average_heart_rate,
            "calories_burned": self.calories_burned,
            "notes": self.notes,
            "rating": self.rating,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutCompletion":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            planned_workout_id=data["planned_workout_id"],
            completed_at=parse_datetime(data.get("completed_at")) or datetime.utcnow(),
            duration=float(data.get("duration") or 0),
            distance=float(data.get("distance") or 0),
            average_pace=data.get("average_pace"),
            average_speed=data.get("average_speed"),
            max_heart_rate=data.get("max_heart_rate"),
            average_heart_rate=data.get("average_heart_rate"),
            calories_burned=data.get("calories_burned"),
            notes=data.get("notes"),
            rating=data.get("rating"),
        )
