"""
Prompt construction for the plan-generation assistant.

The assistant already carries the long-form coaching instructions and the
response schema, so each request is a compact list of ``KEY: value`` lines.
The last line repeats the exact number of sessions expected, which keeps the
model from generating too few workouts on long plans.
"""

from typing import List

from ..models.plans import PlanGenerationRequest
from ..models.profile import weekday_name


RESPONSE_FORMAT_HINT = """Respond with JSON only:
{
  "name": string,
  "description": string,
  "workoutsPerWeek": integer,
  "workouts": [
    {
      "name": string,
      "description": string,
      "workoutType": "easy_run|intervals|tempo|long_run|time_trial|fartlek|hill_training|recovery_run|progression_run|threshold",
      "estimatedDuration": minutes,
      "estimatedDistance": meters,
      "difficulty": 1-10,
      "targetPace": minutes per km,
      "weekNumber": integer,
      "dayOfWeek": 1-7,
      "segments": [
        {
          "name": string,
          "duration": seconds,
          "distance": meters (optional),
          "targetSpeed": km/h,
          "targetIncline": percent,
          "intensity": "warm_up|recovery|easy|tempo|threshold|vo2max|neuromuscular|cool_down",
          "rpe": 1-10,
          "instruction": string,
          "recoveryAfter": seconds (optional)
        }
      ]
    }
  ]
}"""


def _join(values: List[str], empty: str = "none") -> str:
    return ", ".join(values) if values else empty


def build_plan_prompt(
    request: PlanGenerationRequest,
    workouts_per_week: int,
    include_format: bool = False,
) -> str:
    """Build the compact prompt for one plan request.

    Args:
        request: The validated generation request (profile must be set)
        workouts_per_week: Sessions per week after the safety cap
        include_format: Append the JSON response schema, for assistants
            that were not configured with it
    """
    profile = request.profile
    speeds = profile.preferred_speed_range
    days = profile.sorted_days
    weekdays = _join([weekday_name(d) for d in days], empty="any")
    focus = _join([t.value for t in request.focus_types], empty="any")
    total_sessions = request.weeks * workouts_per_week

    lines = [
        f"OBJECTIVE: {request.goal}",
        f"LEVEL: {profile.level}",
        f"DURATION: {request.weeks} weeks",
        f"AVAILABILITY: {workouts_per_week} sessions/week",
        f"WEEKDAYS: {weekdays}",
        f"INTENSITY: {request.intensity.value}",
        f"FOCUS: {focus}",
        (
            f"EQUIPMENT: max speed {profile.max_speed:g} km/h, "
            f"max incline {profile.max_incline:g}%, "
            f"heart rate sensor {'yes' if profile.has_heart_rate_monitor else 'no'}"
        ),
        f"SPEEDS: walk {speeds.walking:g} / run {speeds.running:g} / sprint {speeds.sprint:g} km/h",
        f"SESSION: {profile.usual_workout_duration} minutes",
        f"EXPERIENCE: {_join(profile.previous_experience)}",
        f"CONSTRAINTS: {_join(profile.physical_constraints)}",
        f"START DATE: {request.start_date.isoformat()}",
    ]
    if include_format:
        lines.append("")
        lines.append(RESPONSE_FORMAT_HINT)
    lines.append("")
    lines.append(f"TOTAL SESSIONS REQUIRED: {total_sessions}")
    return "\n".join(lines)
