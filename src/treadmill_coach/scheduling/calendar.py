"""Mapping between plan-relative (week, day) positions and calendar dates.

Weeks of a plan are Monday-to-Sunday blocks. Week N starts on the first
Monday on or after ``plan_start + (N-1)*7 days``, so week 1 day 1 is always a
Monday and day 7 the Sunday that follows it, whatever weekday the plan was
created on.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from ..exceptions import ValidationError
from ..models.plans import PlannedWorkout
from ..models.progress import WeekSchedule

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


def week_start(day: date) -> date:
    """Monday of the calendar week containing ``day``."""
    return day - timedelta(days=day.weekday())


def date_for_workout(plan_start: date, week_number: int, day_of_week: int) -> date:
    """Calendar date of a workout given its week (1-based) and weekday (1=Monday)."""
    if week_number < 1:
        raise ValidationError(f"week_number must be >= 1, got {week_number}", field="week_number")
    if not 1 <= day_of_week <= 7:
        raise ValidationError(f"day_of_week must be in 1..7, got {day_of_week}", field="day_of_week")

    anchor = plan_start + timedelta(days=(week_number - 1) * 7)
    monday = anchor + timedelta(days=(7 - anchor.weekday()) % 7)
    return monday + timedelta(days=day_of_week - 1)


def calculate_workout_dates(
    workouts: Iterable[PlannedWorkout],
    plan_start: date,
) -> List[PlannedWorkout]:
    """Return copies of the workouts annotated with their scheduled date."""
    dated = []
    for workout in workouts:
        if not workout.week_number or not workout.day_of_week:
            logger.warning(f"Workout {workout.id} ({workout.name}) has no week/day, leaving it unscheduled")
            dated.append(workout)
            continue
        scheduled = date_for_workout(plan_start, workout.week_number, workout.day_of_week)
        dated.append(workout.copy(scheduled_date=scheduled))
    return dated


def group_by_week(workouts: Iterable[PlannedWorkout]) -> Dict[int, WeekSchedule]:
    """Group dated workouts by week number, each week sorted by weekday."""
    weeks: Dict[int, WeekSchedule] = {}
    for workout in workouts:
        if not workout.week_number or not workout.scheduled_date:
            continue
        if workout.week_number not in weeks:
            start = week_start(workout.scheduled_date)
            weeks[workout.week_number] = WeekSchedule(
                week_number=workout.week_number,
                start_date=start,
                end_date=start + timedelta(days=6),
            )
        weeks[workout.week_number].workouts.append(workout)

    for schedule in weeks.values():
        schedule.workouts.sort(key=lambda w: w.day_of_week or 0)
    return dict(sorted(weeks.items()))


def is_today(workout: PlannedWorkout, today: Optional[date] = None) -> bool:
    if not workout.scheduled_date:
        return False
    return workout.scheduled_date == (today or date.today())


def upcoming(
    workouts: Iterable[PlannedWorkout],
    horizon_days: int = 7,
    now: Optional[datetime] = None,
) -> List[PlannedWorkout]:
    """Workouts scheduled between today and ``horizon_days`` from now, soonest first."""
    today = (now or datetime.now()).date()
    limit = today + timedelta(days=horizon_days)
    selected = [
        w for w in workouts
        if w.scheduled_date and today <= w.scheduled_date <= limit
    ]
    return sorted(selected, key=lambda w: w.scheduled_date)


def reschedule(
    workout: PlannedWorkout,
    new_date: date,
    plan_start: Optional[date] = None,
) -> PlannedWorkout:
    """Move a workout to another date.

    The weekday is always recomputed (Sunday is 7). The week number is only
    recomputed when ``plan_start`` is given; otherwise it is left as is, so a
    move across a week boundary keeps its old week until the plan is re-dated.
    """
    changes = {"scheduled_date": new_date, "day_of_week": new_date.isoweekday()}
    if plan_start is not None:
        first_monday = date_for_workout(plan_start, 1, 1)
        changes["week_number"] = max(1, (new_date - first_monday).days // 7 + 1)
    return workout.copy(**changes)


def format_workout_date(day: date) -> str:
    """Short label, e.g. "26 August"."""
    return f"{day.day} {MONTH_NAMES[day.month - 1]}"


def format_full_workout_date(day: date) -> str:
    """Long label, e.g. "Monday 26 August 2024"."""
    return f"{day.strftime('%A')} {day.day} {MONTH_NAMES[day.month - 1]} {day.year}"
