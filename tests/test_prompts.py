"""Tests for the plan prompt builder."""

from treadmill_coach.llm.prompts import RESPONSE_FORMAT_HINT, build_plan_prompt
from treadmill_coach.models.plans import WorkoutType


class TestBuildPlanPrompt:

    def test_contains_profile_lines(self, plan_request):
        prompt = build_plan_prompt(plan_request, workouts_per_week=3)

        assert "OBJECTIVE: 10k" in prompt
        assert "LEVEL: beginner" in prompt
        assert "DURATION: 4 weeks" in prompt
        assert "AVAILABILITY: 3 sessions/week" in prompt
        assert "WEEKDAYS: Monday, Wednesday, Friday" in prompt
        assert "INTENSITY: moderate" in prompt
        assert "SPEEDS: walk 5.5 / run 9 / sprint 13 km/h" in prompt
        assert "CONSTRAINTS: knee" in prompt
        assert "START DATE: 2024-08-22" in prompt

    def test_ends_with_total_sessions(self, plan_request):
        """The last line repeats the exact number of sessions expected."""
        prompt = build_plan_prompt(plan_request, workouts_per_week=3)
        assert prompt.splitlines()[-1] == "TOTAL SESSIONS REQUIRED: 12"

    def test_uses_capped_count_not_request(self, plan_request):
        prompt = build_plan_prompt(plan_request, workouts_per_week=2)

        assert "AVAILABILITY: 2 sessions/week" in prompt
        assert prompt.endswith("TOTAL SESSIONS REQUIRED: 8")

    def test_empty_lists_render_placeholders(self, plan_request):
        plan_request.profile.available_days = None
        plan_request.profile.physical_constraints = []

        prompt = build_plan_prompt(plan_request, workouts_per_week=3)

        assert "WEEKDAYS: any" in prompt
        assert "FOCUS: any" in prompt
        assert "CONSTRAINTS: none" in prompt

    def test_focus_types(self, plan_request):
        plan_request.focus_types = [WorkoutType.TEMPO, WorkoutType.INTERVALS]
        assert "FOCUS: tempo, intervals" in build_plan_prompt(plan_request, 3)

    def test_format_hint_only_on_request(self, plan_request):
        assert RESPONSE_FORMAT_HINT not in build_plan_prompt(plan_request, 3)
        assert RESPONSE_FORMAT_HINT in build_plan_prompt(plan_request, 3, include_format=True)
