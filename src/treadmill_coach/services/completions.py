"""Manually recorded workout completions (ticking off a workout without tracking it)."""

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from ..exceptions import ValidationError
from ..models.progress import WorkoutStats
from ..models.sessions import WorkoutCompletion
from .base import BaseService
from .progress import compute_current_streak


STREAK_WINDOW_DAYS = 60


def _check_rating(rating: Optional[int]) -> None:
    if rating is not None and not 1 <= rating <= 5:
        raise ValidationError(f"Rating must be between 1 and 5, got {rating}", field="rating")


def compute_workout_stats(completions: List[WorkoutCompletion]) -> WorkoutStats:
    """Totals of a set of completions; pace figures only use entries that have one."""
    if not completions:
        return WorkoutStats()

    paces = [c.average_pace for c in completions if c.average_pace and c.average_pace > 0]
    return WorkoutStats(
        total_workouts=len(completions),
        total_distance=sum(c.distance for c in completions),
        total_duration=sum(c.duration for c in completions),
        average_pace=sum(paces) / len(paces) if paces else 0.0,
        best_pace=min(paces) if paces else 0.0,
    )


class WorkoutCompletionService(BaseService):

    def complete_workout(self, completion: WorkoutCompletion) -> Optional[WorkoutCompletion]:
        _check_rating(completion.rating)
        if completion.average_speed is None and completion.duration > 0 and completion.distance > 0:
            completion.average_speed = (completion.distance / 1000) / (completion.duration / 3600)
        if completion.average_pace is None and completion.average_speed:
            completion.average_pace = 60 / completion.average_speed
        return self._guarded("Saving completion", lambda: self._adapter.save_completion(completion), None)

    def get_completions(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[WorkoutCompletion]:
        return self._guarded("Loading completions", lambda: self._adapter.get_completions(user_id, start, end), [])

    def is_workout_completed(self, user_id: str, planned_workout_id: str) -> bool:
        return any(c.planned_workout_id == planned_workout_id for c in self.get_completions(user_id))

    def workouts_status(self, user_id: str, planned_workout_ids: Iterable[str]) -> Dict[str, bool]:
        """Map of planned workout id to whether it has a completion."""
        done = {c.planned_workout_id for c in self.get_completions(user_id)}
        return {workout_id: workout_id in done for workout_id in planned_workout_ids}

    def workout_stats(self, user_id: str, start: datetime, end: datetime) -> WorkoutStats:
        return compute_workout_stats(self.get_completions(user_id, start, end))

    def current_streak(self, user_id: str, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        completions = self.get_completions(user_id, now - timedelta(days=STREAK_WINDOW_DAYS), now)
        return compute_current_streak([c.completed_at.date() for c in completions], now.date())

    def update_completion(
        self,
        completion_id: str,
        notes: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> bool:
        _check_rating(rating)
        return self._guarded(
            "Updating completion",
            lambda: self._adapter.update_completion(completion_id, notes=notes, rating=rating),
            False,
        )
