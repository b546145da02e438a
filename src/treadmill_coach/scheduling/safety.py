"""
Workout-count safety policy.

Caps the number of sessions per week according to the runner's declared
level, whatever the user asked for, and explains the reduction so the UI can
show it. Beginners preparing a marathon get the lowest cap because their
sessions will be the longest.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from ..exceptions import ValidationError
from ..models.profile import FitnessLevel


# =============================================================================
# Constants
# =============================================================================

BEGINNER_CAP = 4
BEGINNER_MARATHON_CAP = 3
INTERMEDIATE_CAP = 5
UNKNOWN_LEVEL_CAP = 4


@dataclass
class WorkoutCapResult:
    """Sessions per week after the safety cap, with the reason for any reduction."""
    workouts_per_week: int
    explanation: str = ""
    requested: Optional[int] = None
    cap: Optional[int] = None  # None when the level has no cap

    @property
    def was_capped(self) -> bool:
        return self.requested is not None and self.workouts_per_week < self.requested

    def to_dict(self) -> Dict:
        return {
            "workouts_per_week": self.workouts_per_week,
            "explanation": self.explanation,
            "requested": self.requested,
            "cap": self.cap,
            "was_capped": self.was_capped,
        }


def _is_marathon_goal(goal: Optional[str]) -> bool:
    return "marathon" in (goal or "").lower()


def _explanation(level: str, requested: int, cap: int, goal: Optional[str]) -> str:
    if level == FitnessLevel.BEGINNER.value:
        if _is_marathon_goal(goal):
            reason = (
                "Marathon preparation means long sessions, and a beginner needs "
                "rest days between them to absorb the load and avoid injury."
            )
        else:
            reason = (
                "As a beginner, recovery days are as important as training days; "
                "this keeps the load manageable while your body adapts."
            )
    elif level == FitnessLevel.INTERMEDIATE.value:
        reason = "At least two rest days per week keep an intermediate runner fresh and injury-free."
    else:
        reason = "Your level is not recognised, so a conservative limit is applied."
    return f"Sessions per week reduced from {requested} to {cap}. {reason}"


def cap_workouts(
    level: str,
    requested_per_week: int,
    goal: Optional[str] = None,
    experience_tags: Optional[Iterable[str]] = None,
) -> WorkoutCapResult:
    """
    Apply the per-level session cap.

    Args:
        level: beginner, intermediate or advanced (anything else gets the
            conservative default cap)
        requested_per_week: Sessions the user asked for
        goal: Free-form goal text, only checked for "marathon"
        experience_tags: Accepted for callers that have them; they do not
            change the cap

    Returns:
        WorkoutCapResult with an explanation only when the request was reduced
    """
    if requested_per_week < 0:
        raise ValidationError(
            f"Requested sessions per week cannot be negative: {requested_per_week}",
            field="requested_per_week",
        )

    normalized = (level or "").strip().lower()
    if normalized == FitnessLevel.ADVANCED.value:
        return WorkoutCapResult(workouts_per_week=requested_per_week, requested=requested_per_week)

    if normalized == FitnessLevel.BEGINNER.value:
        cap = BEGINNER_MARATHON_CAP if _is_marathon_goal(goal) else BEGINNER_CAP
    elif normalized == FitnessLevel.INTERMEDIATE.value:
        cap = INTERMEDIATE_CAP
    else:
        cap = UNKNOWN_LEVEL_CAP

    if requested_per_week <= cap:
        return WorkoutCapResult(workouts_per_week=requested_per_week, requested=requested_per_week, cap=cap)

    return WorkoutCapResult(
        workouts_per_week=cap,
        explanation=_explanation(normalized, requested_per_week, cap, goal),
        requested=requested_per_week,
        cap=cap,
    )
