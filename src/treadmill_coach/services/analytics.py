"""
Session analytics: splits, speed/pace profiles and comparisons.

Everything here is derived from the append-only event log of a session. The
module-level functions are pure; AnalyticsService loads rows and stores the
splits of finished sessions.

Split rules:
    - A segment split spans a segment_start event and the next segment_end.
    - Kilometre splits are measured from the first event that carries a
      distance. An event within 10 m of a boundary is used as is; when the
      nearest event is more than 50 m away the crossing time is interpolated
      between the two events around the boundary.
    - Splits with no duration or no distance are dropped.
"""

from datetime import datetime, timedelta
from math import sqrt
from typing import List, NamedTuple, Optional

from ..models.analytics import (
    PerformanceComparison,
    ProfilePoint,
    SplitPerformance,
    SplitType,
    UserProgressStats,
    WorkoutAnalytics,
    WorkoutSplit,
)
from ..models.sessions import EventType, WorkoutEvent, WorkoutSession
from .base import BaseService


EXACT_MATCH_METERS = 10
INTERPOLATE_BEYOND_METERS = 50
CONSISTENT_PACE_STDDEV = 0.5  # min/km


class _Mark(NamedTuple):
    """A (time, distance) position inside a session."""
    elapsed_time: float
    distance: float


def speed_from(distance_m: float, duration_s: float) -> float:
    """Average speed in km/h."""
    if distance_m <= 0 or duration_s <= 0:
        return 0.0
    return (distance_m / 1000) / (duration_s / 3600)


def pace_from_speed(speed: float) -> float:
    """min/km for a speed in km/h, 0 when not moving."""
    return 60 / speed if speed > 0 else 0.0


def _sorted_events(events: List[WorkoutEvent]) -> List[WorkoutEvent]:
    return sorted(events, key=lambda e: e.elapsed_time)


def create_split(
    session_id: str,
    split_type: SplitType,
    split_number: int,
    start: _Mark,
    end: _Mark,
    events: List[WorkoutEvent],
    segment_name: Optional[str] = None,
) -> Optional[WorkoutSplit]:
    """Build a split between two positions, None when it covers no time or distance."""
    duration = end.elapsed_time - start.elapsed_time
    distance = end.distance - start.distance
    if duration <= 0 or distance <= 0:
        return None

    speed_events = [
        e for e in events
        if e.event_type == EventType.SPEED_CHANGE and start.elapsed_time <= e.elapsed_time <= end.elapsed_time
    ]
    speeds = [e.data.new_speed or 0.0 for e in speed_events]
    average_speed = speed_from(distance, duration)

    return WorkoutSplit(
        session_id=session_id,
        split_type=split_type,
        split_number=split_number,
        start_time=start.elapsed_time,
        end_time=end.elapsed_time,
        start_distance=start.distance,
        end_distance=end.distance,
        duration=duration,
        distance=distance,
        average_speed=average_speed,
        average_pace=pace_from_speed(average_speed),
        speed_changes=len(speed_events),
        min_speed=min(speeds) if speeds else None,
        max_speed=max(speeds) if speeds else None,
        segment_name=segment_name,
    )


def calculate_segment_splits(events: List[WorkoutEvent]) -> List[WorkoutSplit]:
    """One split per segment_start / segment_end pair, numbered by segment start."""
    events = _sorted_events(events)
    splits = []
    opened: Optional[WorkoutEvent] = None
    number = 0

    for event in events:
        if event.event_type == EventType.SEGMENT_START:
            opened = event
            number += 1
        elif event.event_type == EventType.SEGMENT_END and opened is not None:
            split = create_split(
                event.session_id,
                SplitType.SEGMENT,
                number,
                _Mark(opened.elapsed_time, opened.distance or 0.0),
                _Mark(event.elapsed_time, event.distance or 0.0),
                events,
                segment_name=opened.data.segment_name,
            )
            if split:
                splits.append(split)
            opened = None
    return splits


def _interpolate_at(marks: List[_Mark], target: float) -> Optional[_Mark]:
    for before, after in zip(marks, marks[1:]):
        if before.distance <= target <= after.distance:
            if after.distance == before.distance:
                return _Mark(before.elapsed_time, target)
            ratio = (target - before.distance) / (after.distance - before.distance)
            return _Mark(before.elapsed_time + (after.elapsed_time - before.elapsed_time) * ratio, target)
    return None


def find_mark_at_distance(marks: List[_Mark], target: float) -> Optional[_Mark]:
    """Position at which ``target`` meters were reached, None if it cannot be placed."""
    closest: Optional[_Mark] = None
    min_diff = float("inf")
    for mark in marks:
        diff = abs(mark.distance - target)
        if diff < min_diff:
            min_diff = diff
            closest = mark
        if diff < EXACT_MATCH_METERS:
            break

    if closest is None or min_diff > INTERPOLATE_BEYOND_METERS:
        return _interpolate_at(marks, target)
    return closest


def calculate_kilometer_splits(events: List[WorkoutEvent]) -> List[WorkoutSplit]:
    """One split per full kilometre covered since the first distance reading."""
    events = _sorted_events(events)
    with_distance = [e for e in events if e.distance is not None]
    if len(with_distance) < 2:
        return []

    marks = [_Mark(e.elapsed_time, e.distance) for e in with_distance]
    origin = marks[0].distance
    total = marks[-1].distance - origin
    if total <= 0:
        return []

    session_id = with_distance[0].session_id
    splits = []
    for km in range(1, int(total // 1000) + 1):
        start = find_mark_at_distance(marks, origin + (km - 1) * 1000)
        end = find_mark_at_distance(marks, origin + km * 1000)
        if start is None or end is None or start.elapsed_time >= end.elapsed_time:
            continue
        split = create_split(session_id, SplitType.KILOMETER, km, start, end, events)
        if split:
            splits.append(split)
    return splits


def build_splits(events: List[WorkoutEvent]) -> List[WorkoutSplit]:
    """Segment splits followed by kilometre splits."""
    return calculate_segment_splits(events) + calculate_kilometer_splits(events)


def build_speed_profile(events: List[WorkoutEvent]) -> List[ProfilePoint]:
    """Speed in effect at every event, with the last known distance."""
    profile = []
    speed = 0.0
    distance = 0.0
    for event in _sorted_events(events):
        if event.event_type == EventType.SPEED_CHANGE:
            speed = event.data.new_speed or 0.0
        if event.distance is not None:
            distance = event.distance
        profile.append(ProfilePoint(time=event.elapsed_time, value=speed, distance=distance))
    return profile


def build_pace_profile(speed_profile: List[ProfilePoint]) -> List[ProfilePoint]:
    return [
        ProfilePoint(time=p.time, value=pace_from_speed(p.value), distance=p.distance)
        for p in speed_profile
    ]


def analyze_workout_data(
    session: WorkoutSession,
    events: List[WorkoutEvent],
    splits: List[WorkoutSplit],
) -> WorkoutAnalytics:
    speed_events = [e for e in events if e.event_type == EventType.SPEED_CHANGE]
    speeds = [e.data.new_speed for e in speed_events if e.data.new_speed and e.data.new_speed > 0]
    average_speed = speed_from(session.total_distance, session.total_duration)
    speed_profile = build_speed_profile(events)

    return WorkoutAnalytics(
        session_id=session.id,
        total_duration=session.total_duration,
        total_distance=session.total_distance,
        average_speed=average_speed,
        average_pace=pace_from_speed(average_speed),
        max_speed=max(speeds) if speeds else 0.0,
        min_speed=min(speeds) if speeds else 0.0,
        speed_changes=len(speed_events),
        splits=splits,
        speed_profile=speed_profile,
        pace_profile=build_pace_profile(speed_profile),
    )


def _comparison(metric: str, current: float, previous: float, improvement: float, unit: str) -> PerformanceComparison:
    percentage = improvement / abs(previous) * 100 if previous else 0.0
    return PerformanceComparison(
        metric=metric,
        current_value=current,
        previous_value=previous,
        improvement=improvement,
        improvement_percentage=percentage,
        unit=unit,
    )


def compare_analytics(current: WorkoutAnalytics, previous: WorkoutAnalytics) -> List[PerformanceComparison]:
    """Signed changes against a previous session, positive meaning better.

    Lower pace and shorter duration count as improvements.
    """
    return [
        _comparison(
            "average_speed", current.average_speed, previous.average_speed,
            current.average_speed - previous.average_speed, "km/h",
        ),
        _comparison(
            "average_pace", current.average_pace, previous.average_pace,
            previous.average_pace - current.average_pace, "min/km",
        ),
        _comparison(
            "total_distance", current.total_distance / 1000, previous.total_distance / 1000,
            (current.total_distance - previous.total_distance) / 1000, "km",
        ),
        _comparison(
            "duration", current.total_duration, previous.total_duration,
            previous.total_duration - current.total_duration, "s",
        ),
    ]


def analyze_split_performance(splits: List[WorkoutSplit]) -> SplitPerformance:
    if not splits:
        return SplitPerformance(fastest_split=None, slowest_split=None, pace_variability=0.0, most_consistent=False)

    fastest = splits[0]
    slowest = splits[0]
    for split in splits[1:]:
        if split.average_speed > fastest.average_speed:
            fastest = split
        if split.average_speed < slowest.average_speed:
            slowest = split

    paces = [s.average_pace for s in splits]
    mean = sum(paces) / len(paces)
    variability = sqrt(sum((p - mean) ** 2 for p in paces) / len(paces))

    return SplitPerformance(
        fastest_split=fastest,
        slowest_split=slowest,
        pace_variability=variability,
        most_consistent=variability < CONSISTENT_PACE_STDDEV,
    )


def compute_user_progress_stats(sessions: List[WorkoutSession], days: int = 30) -> UserProgressStats:
    """Totals over completed sessions already restricted to the last ``days`` days."""
    total_distance = sum(s.total_distance for s in sessions)
    total_time = sum(s.total_duration for s in sessions)
    paces = [
        pace_from_speed(speed_from(s.total_distance, s.total_duration))
        for s in sessions
        if s.total_distance > 0 and s.total_duration > 0
    ]
    training_days = {s.start_time.date() for s in sessions}

    return UserProgressStats(
        total_workouts=len(sessions),
        total_distance_km=total_distance / 1000,
        total_time_min=total_time / 60,
        average_speed=speed_from(total_distance, total_time),
        best_pace=min(paces) if paces else 0.0,
        consistency=int(len(training_days) / days * 100 + 0.5) if days > 0 else 0,
    )


class AnalyticsService(BaseService):
    """Splits and analytics of stored sessions.

    Missing sessions, events or baselines are "no data": an empty list or
    None, never an exception.
    """

    def build_splits(self, session_id: str) -> List[WorkoutSplit]:
        events = self._guarded("Loading events", lambda: self._adapter.get_events(session_id), [])
        if not events:
            self._logger.warning(f"No events recorded for session {session_id}")
            return []
        return build_splits(events)

    def calculate_and_save_splits(self, session_id: str) -> bool:
        """Compute the splits of a finished session and store them."""
        splits = self.build_splits(session_id)
        saved = self._guarded("Saving splits", lambda: self._adapter.save_splits(session_id, splits), None)
        if saved is None:
            return False
        self._logger.info(f"Saved {saved} splits for session {session_id}")
        return True

    def get_splits(self, session_id: str) -> List[WorkoutSplit]:
        return self._guarded("Loading splits", lambda: self._adapter.get_splits(session_id), [])

    def analyze(self, session_id: str) -> Optional[WorkoutAnalytics]:
        session = self._guarded("Loading session", lambda: self._adapter.get_session(session_id), None)
        if session is None:
            self._logger.warning(f"Session {session_id} not found, no analytics")
            return None
        events = self._guarded("Loading events", lambda: self._adapter.get_events(session_id), [])
        return analyze_workout_data(session, events, self.get_splits(session_id))

    def find_baseline(self, session: WorkoutSession) -> Optional[WorkoutSession]:
        """Most recent other completed session, preferring one of the same workout."""
        sessions = self._guarded(
            "Loading completed sessions",
            lambda: self._adapter.get_completed_sessions(session.user_id),
            [],
        )
        others = [s for s in sessions if s.id != session.id]
        if not others:
            return None
        for candidate in others:
            if candidate.workout_name == session.workout_name:
                return candidate
        return others[0]

    def compare(self, session_id: str, user_id: str) -> List[PerformanceComparison]:
        session = self._guarded("Loading session", lambda: self._adapter.get_session(session_id), None)
        if session is None or session.user_id != user_id:
            return []

        baseline = self.find_baseline(session)
        if baseline is None:
            self._logger.info(f"No previous session to compare {session_id} with")
            return []

        current = self.analyze(session_id)
        previous = self.analyze(baseline.id)
        if current is None or previous is None:
            return []
        return compare_analytics(current, previous)

    def split_performance(self, session_id: str) -> SplitPerformance:
        return analyze_split_performance(self.get_splits(session_id))

    def user_progress_stats(
        self,
        user_id: str,
        days: int = 30,
        now: Optional[datetime] = None,
    ) -> UserProgressStats:
        since = (now or datetime.utcnow()) - timedelta(days=days)
        sessions = self._guarded(
            "Loading completed sessions",
            lambda: self._adapter.get_completed_sessions(user_id, since=since),
            [],
        )
        return compute_user_progress_stats(sessions, days)
