"""Calendar mapping and the workout-count safety policy."""

from .calendar import (
    calculate_workout_dates,
    date_for_workout,
    format_full_workout_date,
    format_workout_date,
    group_by_week,
    is_today,
    reschedule,
    upcoming,
    week_start,
)
from .safety import WorkoutCapResult, cap_workouts

__all__ = [
    "calculate_workout_dates",
    "date_for_workout",
    "format_full_workout_date",
    "format_workout_date",
    "group_by_week",
    "is_today",
    "reschedule",
    "upcoming",
    "week_start",
    "WorkoutCapResult",
    "cap_workouts",
]
