"""Tests for manually recorded workout completions."""

from datetime import datetime, timedelta

import pytest

from treadmill_coach.exceptions import ValidationError
from treadmill_coach.models.sessions import WorkoutCompletion
from treadmill_coach.services.completions import WorkoutCompletionService, compute_workout_stats


def completion(workout_id="w1", completed_at=None, distance=5000, duration=1800, **kwargs):
    return WorkoutCompletion(
        user_id="user-1",
        planned_workout_id=workout_id,
        duration=duration,
        distance=distance,
        completed_at=completed_at or datetime.utcnow(),
        **kwargs,
    )


@pytest.fixture
def service(adapter):
    return WorkoutCompletionService(adapter)


class TestCompleteWorkout:

    def test_derives_speed_and_pace(self, service):
        saved = service.complete_workout(completion(distance=6000, duration=1800))

        assert saved.average_speed == pytest.approx(12.0)
        assert saved.average_pace == pytest.approx(5.0)

    def test_keeps_given_pace(self, service):
        saved = service.complete_workout(completion(average_pace=5.5))
        assert saved.average_pace == 5.5

    def test_invalid_rating(self, service):
        with pytest.raises(ValidationError):
            service.complete_workout(completion(rating=6))

    def test_status_lookups(self, service):
        service.complete_workout(completion("w1"))

        assert service.is_workout_completed("user-1", "w1")
        assert not service.is_workout_completed("user-1", "w2")
        assert service.workouts_status("user-1", ["w1", "w2"]) == {"w1": True, "w2": False}

    def test_update_completion(self, service):
        saved = service.complete_workout(completion())

        assert service.update_completion(saved.id, notes="Legs heavy", rating=3)
        assert service.get_completions("user-1")[0].rating == 3

        with pytest.raises(ValidationError):
            service.update_completion(saved.id, rating=0)


class TestStats:

    def test_compute_workout_stats(self):
        stats = compute_workout_stats([
            completion(average_pace=6.0),
            completion(average_pace=5.0),
            completion(average_pace=None),
        ])

        assert stats.total_workouts == 3
        assert stats.total_distance == 15000
        assert stats.average_pace == pytest.approx(5.5)
        assert stats.best_pace == 5.0

    def test_empty_stats(self):
        assert compute_workout_stats([]).total_workouts == 0

    def test_stats_in_range(self, service):
        now = datetime(2024, 9, 10, 12, 0)
        service.complete_workout(completion(completed_at=now - timedelta(days=1)))
        service.complete_workout(completion(completed_at=now - timedelta(days=40)))

        stats = service.workout_stats("user-1", now - timedelta(days=30), now)

        assert stats.total_workouts == 1

    def test_current_streak(self, service):
        now = datetime(2024, 9, 10, 18, 0)
        for days_ago in (0, 1, 2, 4):
            service.complete_workout(completion(completed_at=now - timedelta(days=days_ago, hours=1)))

        assert service.current_streak("user-1", now=now) == 3
