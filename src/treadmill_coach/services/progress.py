"""
Progress of a user through a training plan.

A planned workout counts as done when the user has a completed session linked
to it. The pure functions below do the math; ProgressService only loads the
rows they need.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from ..models.plans import PlannedWorkout
from ..models.progress import CompletionData, PlanProgress, WeekProgress, WorkoutCompletionStatus
from ..models.sessions import WorkoutSession
from .base import BaseService


def percentage(part: int, whole: int) -> int:
    """Integer percentage rounded half up, 0 for an empty whole."""
    if whole <= 0:
        return 0
    return int(part * 100 / whole + 0.5)


def completion_data_from_session(session: WorkoutSession) -> CompletionData:
    speed = session.average_speed
    return CompletionData(
        duration=session.total_duration,
        distance=session.total_distance,
        average_speed=speed,
        average_pace=60 / speed if speed > 0 else 0.0,
        completed_at=session.end_time,
    )


def build_completion_statuses(
    workouts: Iterable[PlannedWorkout],
    completed_sessions: Iterable[WorkoutSession],
) -> List[WorkoutCompletionStatus]:
    """Pair every planned workout with the first completed session linked to it.

    Sessions are expected newest first, so the most recent completion wins.
    """
    by_workout: Dict[str, WorkoutSession] = {}
    for session in completed_sessions:
        if session.planned_workout_id and session.planned_workout_id not in by_workout:
            by_workout[session.planned_workout_id] = session

    statuses = []
    for workout in workouts:
        session = by_workout.get(workout.id)
        statuses.append(WorkoutCompletionStatus(
            planned_workout_id=workout.id,
            workout_name=workout.name,
            week_number=workout.week_number,
            day_of_week=workout.day_of_week,
            is_completed=session is not None,
            completed_session_id=session.id if session else None,
            completion_data=completion_data_from_session(session) if session else None,
        ))
    return statuses


def compute_current_week(start_date: date, today: Optional[date] = None) -> int:
    """1-based week of the plan containing ``today``; never below 1."""
    days = ((today or date.today()) - start_date).days
    return max(1, days // 7 + 1)


def compute_plan_progress(
    statuses: List[WorkoutCompletionStatus],
    start_date: date,
    today: Optional[date] = None,
) -> PlanProgress:
    completed = sum(1 for s in statuses if s.is_completed)

    totals: Dict[int, int] = defaultdict(int)
    done: Dict[int, int] = defaultdict(int)
    for status in statuses:
        if status.week_number is None:
            continue
        totals[status.week_number] += 1
        if status.is_completed:
            done[status.week_number] += 1

    breakdown = {
        week: WeekProgress(total=totals[week], completed=done[week], percentage=percentage(done[week], totals[week]))
        for week in sorted(totals)
    }
    current_week = compute_current_week(start_date, today)

    return PlanProgress(
        total_workouts=len(statuses),
        completed_workouts=completed,
        completion_percentage=percentage(completed, len(statuses)),
        current_week=current_week,
        current_week_progress=breakdown.get(current_week, WeekProgress()),
        weekly_breakdown=breakdown,
    )


def compute_current_streak(completion_dates: Iterable[date], today: Optional[date] = None) -> int:
    """Consecutive training days ending today or yesterday."""
    days = sorted(set(completion_dates), reverse=True)
    if not days:
        return 0

    today = today or date.today()
    if days[0] not in (today, today - timedelta(days=1)):
        return 0

    streak = 1
    for previous, current in zip(days, days[1:]):
        if (previous - current).days > 1:
            break
        streak += 1
    return streak


def _as_date(value: datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


class ProgressService(BaseService):
    """Completion status and progress of plans, from completed sessions."""

    def completion_status(self, plan_id: str, user_id: str) -> List[WorkoutCompletionStatus]:
        workouts = self._guarded("Loading planned workouts", lambda: self._adapter.get_planned_workouts(plan_id), [])
        return self.statuses_for(workouts, user_id)

    def plan_progress(
        self,
        plan_id: str,
        user_id: str,
        today: Optional[date] = None,
    ) -> Optional[PlanProgress]:
        plan = self._guarded("Loading plan", lambda: self._adapter.get_plan(plan_id), None)
        if plan is None:
            self._logger.warning(f"No plan {plan_id}, no progress to report")
            return None
        statuses = self.statuses_for(plan.planned_workouts, user_id)
        return compute_plan_progress(statuses, plan.start_date, today)

    def statuses_for(self, workouts: List[PlannedWorkout], user_id: str) -> List[WorkoutCompletionStatus]:
        """Completion statuses for workouts that are already loaded."""
        if not workouts:
            return []
        sessions = self._guarded(
            "Loading completed sessions",
            lambda: self._adapter.get_completed_sessions(user_id, [w.id for w in workouts]),
            [],
        )
        return build_completion_statuses(workouts, sessions)

    def get_completed_session(self, planned_workout_id: str, user_id: str) -> Optional[WorkoutSession]:
        """Most recent completed session of a planned workout."""
        sessions = self._guarded(
            "Loading completed sessions",
            lambda: self._adapter.get_completed_sessions(user_id, [planned_workout_id]),
            [],
        )
        return sessions[0] if sessions else None

    def is_workout_completed(self, planned_workout_id: str, user_id: str) -> bool:
        return self.get_completed_session(planned_workout_id, user_id) is not None

    def current_streak(self, user_id: str, today: Optional[date] = None) -> int:
        sessions = self._guarded(
            "Loading completed sessions",
            lambda: self._adapter.get_completed_sessions(user_id),
            [],
        )
        dates = [_as_date(s.end_time) for s in sessions if s.end_time]
        return compute_current_streak(dates, today)
