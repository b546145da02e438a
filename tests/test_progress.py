"""Tests for plan progress aggregation."""

from datetime import date, datetime, timedelta

import pytest

from treadmill_coach.models.progress import WorkoutCompletionStatus
from treadmill_coach.models.sessions import WorkoutSession
from treadmill_coach.services.plan_generator import apply_safety_cap, build_fallback_plan
from treadmill_coach.services.progress import (
    ProgressService,
    build_completion_statuses,
    compute_current_streak,
    compute_current_week,
    compute_plan_progress,
    percentage,
)

from conftest import make_completed_session


def status(week, completed):
    return WorkoutCompletionStatus(
        planned_workout_id=f"w-{week}-{completed}",
        workout_name="Run",
        week_number=week,
        day_of_week=1,
        is_completed=completed,
    )


@pytest.fixture
def saved_plan(adapter, plan_request):
    plan = build_fallback_plan(plan_request, apply_safety_cap(plan_request))
    plan.user_id = "user-1"
    plan.is_active = True
    adapter.save_plan(plan)
    return plan


class TestPercentage:

    @pytest.mark.parametrize("part,whole,expected", [
        (1, 3, 33),
        (2, 3, 67),
        (1, 2, 50),
        (1, 8, 13),
        (3, 3, 100),
        (0, 0, 0),
    ])
    def test_rounds_half_up(self, part, whole, expected):
        assert percentage(part, whole) == expected


class TestCurrentWeek:

    def test_first_day_is_week_one(self):
        assert compute_current_week(date(2024, 8, 22), date(2024, 8, 22)) == 1

    def test_seven_days_later_is_week_two(self):
        assert compute_current_week(date(2024, 8, 22), date(2024, 8, 29)) == 2

    def test_before_start_clamps_to_one(self):
        assert compute_current_week(date(2024, 8, 22), date(2024, 8, 1)) == 1


class TestPlanProgress:
    """Tests for compute_plan_progress."""

    def test_totals_and_breakdown(self):
        statuses = [status(1, True), status(1, True), status(1, False), status(2, True), status(2, False)]

        progress = compute_plan_progress(statuses, date(2024, 8, 22), today=date(2024, 8, 23))

        assert progress.total_workouts == 5
        assert progress.completed_workouts == 3
        assert progress.completion_percentage == 60
        assert progress.current_week == 1
        assert progress.current_week_progress.percentage == 67
        assert progress.weekly_breakdown[2].completed == 1
        assert progress.weekly_breakdown[2].percentage == 50

    def test_empty_plan(self):
        progress = compute_plan_progress([], date(2024, 8, 22), today=date(2024, 8, 22))

        assert progress.completion_percentage == 0
        assert progress.current_week_progress.total == 0

    def test_current_week_past_the_plan(self):
        progress = compute_plan_progress([status(1, True)], date(2024, 8, 22), today=date(2024, 10, 1))

        assert progress.current_week > 1
        assert progress.current_week_progress.percentage == 0


class TestCompletionStatuses:

    def test_most_recent_session_wins(self, saved_plan):
        workout = saved_plan.planned_workouts[0]
        newer = WorkoutSession(user_id="user-1", workout_name="a", planned_workout_id=workout.id,
                               total_duration=1800, total_distance=6000, end_time=datetime(2024, 9, 2))
        older = WorkoutSession(user_id="user-1", workout_name="a", planned_workout_id=workout.id,
                               total_duration=1800, total_distance=5000, end_time=datetime(2024, 8, 26))

        statuses = build_completion_statuses(saved_plan.planned_workouts, [newer, older])

        assert statuses[0].is_completed
        assert statuses[0].completed_session_id == newer.id
        assert statuses[0].completion_data.average_speed == pytest.approx(12.0)
        assert statuses[0].completion_data.average_pace == pytest.approx(5.0)
        assert not statuses[1].is_completed
        assert statuses[1].completion_data is None


class TestStreak:

    def test_consecutive_days_ending_today(self):
        today = date(2024, 9, 10)
        dates = [today, today - timedelta(days=1), today - timedelta(days=2), today - timedelta(days=5)]
        assert compute_current_streak(dates, today) == 3

    def test_streak_can_end_yesterday(self):
        today = date(2024, 9, 10)
        assert compute_current_streak([today - timedelta(days=1), today - timedelta(days=2)], today) == 2

    def test_broken_streak(self):
        today = date(2024, 9, 10)
        assert compute_current_streak([today - timedelta(days=2)], today) == 0

    def test_same_day_counts_once(self):
        today = date(2024, 9, 10)
        assert compute_current_streak([today, today], today) == 1

    def test_no_dates(self):
        assert compute_current_streak([], date(2024, 9, 10)) == 0


class TestProgressService:
    """Tests for ProgressService against SQLite."""

    def test_plan_progress(self, adapter, saved_plan):
        week_one = saved_plan.get_week(1)
        for workout in week_one[:2]:
            make_completed_session(adapter, planned_workout_id=workout.id)

        progress = ProgressService(adapter).plan_progress(saved_plan.id, "user-1", today=date(2024, 8, 27))

        assert progress.total_workouts == 12
        assert progress.completed_workouts == 2
        assert progress.completion_percentage == 17
        assert progress.current_week == 1
        assert progress.current_week_progress.completed == 2
        assert progress.current_week_progress.percentage == 67

    def test_other_users_sessions_do_not_count(self, adapter, saved_plan):
        make_completed_session(adapter, user_id="user-2", planned_workout_id=saved_plan.planned_workouts[0].id)

        statuses = ProgressService(adapter).completion_status(saved_plan.id, "user-1")

        assert not any(s.is_completed for s in statuses)

    def test_missing_plan(self, adapter):
        assert ProgressService(adapter).plan_progress("missing", "user-1") is None

    def test_is_workout_completed(self, adapter, saved_plan):
        workout = saved_plan.planned_workouts[0]
        service = ProgressService(adapter)

        assert not service.is_workout_completed(workout.id, "user-1")
        session = make_completed_session(adapter, planned_workout_id=workout.id)
        assert service.is_workout_completed(workout.id, "user-1")
        assert service.get_completed_session(workout.id, "user-1").id == session.id

    def test_current_streak(self, adapter):
        now = datetime.utcnow()
        make_completed_session(adapter, end_time=now)
        make_completed_session(adapter, end_time=now - timedelta(days=1))

        assert ProgressService(adapter).current_streak("user-1", today=now.date()) == 2
