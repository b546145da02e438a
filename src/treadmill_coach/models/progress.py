"""Data models for plan progress."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .plans import PlannedWorkout, TrainingPlan


@dataclass
class CompletionData:
    """Totals of the session that completed a planned workout."""
    duration: float  # seconds
    distance: float  # meters
    average_speed: float  # km/h
    average_pace: float  # min/km
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": self.duration,
            "distance": self.distance,
            "average_speed": round(self.average_speed, 2),
            "average_pace": round(self.average_pace, 2),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass
class WorkoutCompletionStatus:
    planned_workout_id: str
    workout_name: str
    week_number: Optional[int]
    day_of_week: Optional[int]
    is_completed: bool
    completed_session_id: Optional[str] = None
    completion_data: Optional[CompletionData] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "planned_workout_id": self.planned_workout_id,
            "workout_name": self.workout_name,
            "week_number": self.week_number,
            "day_of_week": self.day_of_week,
            "is_completed": self.is_completed,
            "completed_session_id": self.completed_session_id,
            "completion_data": self.completion_data.to_dict() if self.completion_data else None,
        }


@dataclass
class WeekProgress:
    total: int = 0
    completed: int = 0
    percentage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "completed": self.completed, "percentage": self.percentage}


@dataclass
class PlanProgress:
    total_workouts: int
    completed_workouts: int
    completion_percentage: int
    current_week: int
    current_week_progress: WeekProgress
    weekly_breakdown: Dict[int, WeekProgress] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_workouts": self.total_workouts,
            "completed_workouts": self.completed_workouts,
            "completion_percentage": self.completion_percentage,
            "current_week": self.current_week,
            "current_week_progress": self.current_week_progress.to_dict(),
            "weekly_breakdown": {
                str(week): progress.to_dict() for week, progress in sorted(self.weekly_breakdown.items())
            },
        }


@dataclass
class WeekSchedule:
    """Workouts of one plan week together with its calendar bounds."""
    week_number: int
    start_date: date
    end_date: date
    workouts: List[PlannedWorkout] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_number": self.week_number,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "workouts": [w.to_dict() for w in self.workouts],
        }


@dataclass
class ActivePlanInfo:
    """The user's active plan with where they are in it."""
    plan: TrainingPlan
    current_week: int
    total_progress: int
    weekly_progress: int
    schedule: Dict[int, WeekSchedule] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan": self.plan.to_dict(),
            "current_week": self.current_week,
            "total_progress": self.total_progress,
            "weekly_progress": self.weekly_progress,
            "schedule": {str(week): s.to_dict() for week, s in sorted(self.schedule.items())},
        }


@dataclass
class WorkoutStats:
    """Totals of manually recorded completions over a period."""
    total_workouts: int = 0
    total_distance: float = 0.0  # meters
    total_duration: float = 0.0  # seconds
    average_pace: float = 0.0
    best_pace: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_workouts": self.total_workouts,
            "total_distance": self.total_distance,
            "total_duration": self.total_duration,
            "average_pace": round(self.average_pace, 2),
            "best_pace": round(self.best_pace, 2),
        }
