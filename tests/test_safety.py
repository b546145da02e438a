"""Tests for the workout-count safety policy."""

import pytest

from treadmill_coach.exceptions import ValidationError
from treadmill_coach.scheduling.safety import (
    BEGINNER_CAP,
    BEGINNER_MARATHON_CAP,
    INTERMEDIATE_CAP,
    UNKNOWN_LEVEL_CAP,
    cap_workouts,
)


class TestCapWorkouts:
    """Tests for the per-level cap."""

    def test_beginner_marathon_capped_to_three(self):
        result = cap_workouts("beginner", 6, goal="Marathon")

        assert result.workouts_per_week == BEGINNER_MARATHON_CAP == 3
        assert result.was_capped
        assert result.explanation.startswith("Sessions per week reduced from 6 to 3.")

    def test_beginner_other_goal_capped_to_four(self):
        result = cap_workouts("beginner", 6, goal="10k")
        assert result.workouts_per_week == BEGINNER_CAP == 4

    def test_intermediate_capped_to_five(self):
        result = cap_workouts("intermediate", 7)
        assert result.workouts_per_week == INTERMEDIATE_CAP == 5

    def test_advanced_is_not_capped(self):
        result = cap_workouts("advanced", 7, goal="marathon")

        assert result.workouts_per_week == 7
        assert result.cap is None
        assert result.explanation == ""

    def test_unknown_level_gets_conservative_cap(self):
        result = cap_workouts("elite", 7)
        assert result.workouts_per_week == UNKNOWN_LEVEL_CAP

    def test_level_is_case_insensitive(self):
        assert cap_workouts("  Beginner ", 6).workouts_per_week == BEGINNER_CAP

    @pytest.mark.parametrize("level", ["beginner", "intermediate", "advanced", "other"])
    @pytest.mark.parametrize("requested", [0, 1, 3])
    def test_requests_within_cap_are_kept_without_explanation(self, level, requested):
        result = cap_workouts(level, requested)

        assert result.workouts_per_week == requested
        assert not result.was_capped
        assert result.explanation == ""

    @pytest.mark.parametrize("level", ["beginner", "intermediate", "advanced", "other"])
    @pytest.mark.parametrize("requested", range(0, 8))
    def test_never_exceeds_request(self, level, requested):
        assert cap_workouts(level, requested).workouts_per_week <= requested

    def test_experience_tags_do_not_change_the_cap(self):
        with_tags = cap_workouts("beginner", 6, experience_tags=["ultra", "marathon"])
        assert with_tags.workouts_per_week == BEGINNER_CAP

    def test_negative_request_rejected(self):
        with pytest.raises(ValidationError):
            cap_workouts("beginner", -1)

    def test_to_dict(self):
        data = cap_workouts("intermediate", 6).to_dict()

        assert data["workouts_per_week"] == 5
        assert data["requested"] == 6
        assert data["was_capped"] is True
