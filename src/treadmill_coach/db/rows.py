"""Row mapping shared by the database adapters.

Rows are flat dicts keyed by column name. JSON columns hold Python lists and
dicts here; SQLite serializes them to text on write, while Supabase stores
them as jsonb. ``_json`` accepts both forms on read.
"""

import json
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ..models.plans import PlannedWorkout, TrainingPlan, TrainingSegment
from ..models.profile import SpeedRange, UserProfile
from ..models.sessions import WorkoutCompletion, WorkoutEvent, WorkoutSession
from ..models.analytics import WorkoutSplit

JSON_COLUMNS = {
    "available_days",
    "preferred_speed_range",
    "previous_experience",
    "physical_constraints",
    "user_profile",
    "data",
}


def _json(value: Any) -> Any:
    if isinstance(value, str):
        return json.loads(value)
    return value


def _iso(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


# =============================================================================
# Profiles
# =============================================================================


def profile_to_row(user_id: str, profile: UserProfile) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "name": profile.name,
        "level": profile.level,
        "goal": profile.goal,
        "weekly_availability": profile.weekly_availability,
        "available_days": profile.available_days,
        "max_speed": profile.max_speed,
        "max_incline": profile.max_incline,
        "has_heart_rate_monitor": profile.has_heart_rate_monitor,
        "preferred_speed_range": profile.preferred_speed_range.to_dict(),
        "usual_workout_duration": profile.usual_workout_duration,
        "previous_experience": list(profile.previous_experience),
        "physical_constraints": list(profile.physical_constraints),
        "treadmill_brand": profile.treadmill_brand,
        "updated_at": datetime.utcnow().isoformat(),
    }


def row_to_profile(row: Dict[str, Any]) -> UserProfile:
    available_days = _json(row.get("available_days"))
    return UserProfile(
        user_id=row["user_id"],
        name=row.get("name"),
        level=row.get("level") or "beginner",
        goal=row.get("goal") or "5k",
        weekly_availability=int(row.get("weekly_availability") or 0),
        available_days=[int(d) for d in available_days] if available_days is not None else None,
        max_speed=float(row.get("max_speed") or 0),
        max_incline=float(row.get("max_incline") or 0),
        has_heart_rate_monitor=bool(row.get("has_heart_rate_monitor")),
        preferred_speed_range=SpeedRange.from_dict(_json(row.get("preferred_speed_range"))),
        usual_workout_duration=int(row.get("usual_workout_duration") or 45),
        previous_experience=list(_json(row.get("previous_experience")) or []),
        physical_constraints=list(_json(row.get("physical_constraints")) or []),
        treadmill_brand=row.get("treadmill_brand"),
        updated_at=row.get("updated_at"),
    )


# =============================================================================
# Plans, workouts, segments
# =============================================================================


def plan_to_row(plan: TrainingPlan) -> Dict[str, Any]:
    return {
        "id": plan.id,
        "user_id": plan.user_id,
        "name": plan.name,
        "description": plan.description,
        "goal": plan.goal,
        "total_weeks": plan.total_weeks,
        "workouts_per_week": plan.workouts_per_week,
        "start_date": plan.start_date.isoformat(),
        "end_date": plan.end_date.isoformat(),
        "user_profile": plan.user_profile.to_dict() if plan.user_profile else None,
        "generated_by_ai": plan.generated_by_ai,
        "source": plan.source.value,
        "ai_prompt": plan.ai_prompt,
        "is_active": plan.is_active,
        "created_at": plan.created_at.isoformat(),
    }


def row_to_plan(row: Dict[str, Any], workouts: List[PlannedWorkout]) -> TrainingPlan:
    data = dict(row)
    data["user_profile"] = _json(row.get("user_profile"))
    data["planned_workouts"] = []
    plan = TrainingPlan.from_dict(data)
    plan.planned_workouts = workouts
    return plan


def workout_to_row(plan_id: str, workout: PlannedWorkout) -> Dict[str, Any]:
    return {
        "id": workout.id,
        "plan_id": plan_id,
        "name": workout.name,
        "description": workout.description,
        "workout_type": workout.workout_type.value,
        "estimated_duration": workout.estimated_duration,
        "estimated_distance": workout.estimated_distance,
        "difficulty": workout.difficulty,
        "target_pace": workout.target_pace,
        "week_number": workout.week_number,
        "day_of_week": workout.day_of_week,
        "notes": workout.notes,
    }


def row_to_workout(row: Dict[str, Any], segments: List[TrainingSegment]) -> PlannedWorkout:
    data = {k: v for k, v in dict(row).items() if k != "plan_id"}
    data["segments"] = []
    workout = PlannedWorkout.from_dict(data)
    workout.segments = segments
    return workout


def segment_to_row(workout_id: str, order_index: int, segment: TrainingSegment, segment_id: str) -> Dict[str, Any]:
    return {
        "id": segment_id,
        "workout_id": workout_id,
        "order_index": order_index,
        "name": segment.name,
        "duration": segment.duration,
        "distance": segment.distance,
        "target_speed": segment.target_speed,
        "target_incline": segment.target_incline,
        "intensity": segment.intensity.value,
        "rpe": segment.rpe,
        "instruction": segment.instruction,
        "recovery_after": segment.recovery_after,
    }


def row_to_segment(row: Dict[str, Any]) -> TrainingSegment:
    return TrainingSegment.from_dict(dict(row))


# =============================================================================
# Sessions, events, splits, completions
# =============================================================================


def session_to_row(session: WorkoutSession) -> Dict[str, Any]:
    return session.to_dict()


def row_to_session(row: Dict[str, Any]) -> WorkoutSession:
    return WorkoutSession.from_dict(dict(row))


def event_to_row(event: WorkoutEvent, seq: Optional[int] = None) -> Dict[str, Any]:
    row = event.to_dict()
    if seq is not None:
        row["seq"] = seq
    return row


def row_to_event(row: Dict[str, Any]) -> WorkoutEvent:
    data = dict(row)
    data["data"] = _json(row.get("data"))
    data.pop("seq", None)
    return WorkoutEvent.from_dict(data)


def split_to_row(split: WorkoutSplit) -> Dict[str, Any]:
    row = split.to_dict()
    row["average_speed"] = split.average_speed
    row["average_pace"] = split.average_pace
    return row


def row_to_split(row: Dict[str, Any]) -> WorkoutSplit:
    return WorkoutSplit.from_dict(dict(row))


def completion_to_row(completion: WorkoutCompletion) -> Dict[str, Any]:
    return completion.to_dict()


def row_to_completion(row: Dict[str, Any]) -> WorkoutCompletion:
    data = dict(row)
    data.pop("updated_at", None)
    return WorkoutCompletion.from_dict(data)
