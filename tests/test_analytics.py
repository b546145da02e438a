"""
Tests for session analytics.

Covers:
- Segment and kilometre splits from an event log
- Speed/pace profiles and workout analytics
- Comparisons against a previous session
- Split performance and rolling user stats
"""

from datetime import datetime, timedelta

import pytest

from treadmill_coach.models.analytics import SplitType, WorkoutSplit
from treadmill_coach.models.sessions import EventType, WorkoutSession
from treadmill_coach.services.analytics import (
    AnalyticsService,
    _Mark,
    analyze_split_performance,
    analyze_workout_data,
    build_speed_profile,
    calculate_kilometer_splits,
    calculate_segment_splits,
    compute_user_progress_stats,
    find_mark_at_distance,
    pace_from_speed,
    speed_from,
)

from conftest import make_completed_session, make_event


def split(number, speed):
    return WorkoutSplit(
        session_id="s",
        split_type=SplitType.KILOMETER,
        split_number=number,
        start_time=0,
        end_time=60 / speed * 60,
        start_distance=0,
        end_distance=1000,
        duration=60 / speed * 60,
        distance=1000,
        average_speed=speed,
        average_pace=pace_from_speed(speed),
    )


class TestConversions:

    def test_speed_from(self):
        assert speed_from(1000, 300) == pytest.approx(12.0)
        assert speed_from(0, 300) == 0.0
        assert speed_from(1000, 0) == 0.0

    def test_pace_from_speed(self):
        assert pace_from_speed(12.0) == 5.0
        assert pace_from_speed(0) == 0.0


class TestSegmentSplits:

    def test_one_split_per_segment(self):
        events = [
            make_event(EventType.SEGMENT_START, 0, 0, segment_index=0, segment_name="Warm-up"),
            make_event(EventType.SPEED_CHANGE, 0, 0, new_speed=12.0),
            make_event(EventType.SEGMENT_END, 300, 1000, segment_index=0, segment_name="Warm-up"),
        ]

        splits = calculate_segment_splits(events)

        assert len(splits) == 1
        assert splits[0].split_number == 1
        assert splits[0].segment_name == "Warm-up"
        assert splits[0].average_speed == pytest.approx(12.0)
        assert splits[0].average_pace == pytest.approx(5.0)
        assert splits[0].speed_changes == 1

    def test_zero_length_segment_dropped(self):
        events = [
            make_event(EventType.SEGMENT_START, 100, 500, segment_name="Skipped"),
            make_event(EventType.SEGMENT_END, 100, 500, segment_name="Skipped"),
        ]
        assert calculate_segment_splits(events) == []

    def test_end_without_start_ignored(self):
        assert calculate_segment_splits([make_event(EventType.SEGMENT_END, 100, 500)]) == []

    def test_events_sorted_by_time(self):
        events = [
            make_event(EventType.SEGMENT_END, 300, 1000, segment_name="Main"),
            make_event(EventType.SEGMENT_START, 0, 0, segment_name="Main"),
        ]
        assert len(calculate_segment_splits(events)) == 1


class TestKilometerSplits:
    """Tests for kilometre boundaries."""

    def test_interpolated_boundaries(self):
        events = [
            make_event(EventType.START, 0, 0),
            make_event(EventType.SPEED_CHANGE, 0, 0, new_speed=10.0),
            make_event(EventType.FINISH, 900, 2500),
        ]

        splits = calculate_kilometer_splits(events)

        assert [s.split_number for s in splits] == [1, 2]
        for km_split in splits:
            assert km_split.duration == pytest.approx(360)
            assert km_split.distance == pytest.approx(1000)
            assert km_split.average_speed == pytest.approx(10.0)
            assert km_split.average_pace == pytest.approx(6.0)
        assert splits[0].speed_changes == 1
        assert splits[0].min_speed == splits[0].max_speed == 10.0
        assert splits[1].speed_changes == 0
        assert splits[1].min_speed is None

    def test_event_near_boundary_used_directly(self):
        marks = [_Mark(0, 0), _Mark(295, 995), _Mark(600, 2000)]
        assert find_mark_at_distance(marks, 1000) == _Mark(295, 995)

    def test_measured_from_first_distance(self):
        events = [
            make_event(EventType.START, 0, None),
            make_event(EventType.SPEED_CHANGE, 10, 100, new_speed=12.0),
            make_event(EventType.FINISH, 310, 1100),
        ]

        splits = calculate_kilometer_splits(events)

        assert len(splits) == 1
        assert splits[0].start_distance == 100

    def test_under_one_kilometre(self):
        events = [make_event(EventType.START, 0, 0), make_event(EventType.FINISH, 200, 600)]
        assert calculate_kilometer_splits(events) == []

    def test_not_enough_events(self):
        assert calculate_kilometer_splits([make_event(EventType.FINISH, 900, 2500)]) == []


class TestWorkoutAnalytics:

    def test_speed_profile_carries_last_speed(self):
        events = [
            make_event(EventType.START, 0, 0),
            make_event(EventType.SPEED_CHANGE, 10, 0, new_speed=8.0),
            make_event(EventType.PAUSE, 70, 133.33),
            make_event(EventType.SPEED_CHANGE, 80, 133.33, new_speed=12.0),
        ]

        profile = build_speed_profile(events)

        assert [p.value for p in profile] == [0.0, 8.0, 8.0, 12.0]
        assert profile[2].distance == 133.33

    def test_analyze_workout_data(self):
        session = WorkoutSession(user_id="u", workout_name="Run", total_duration=1800, total_distance=5000)
        events = [
            make_event(EventType.SPEED_CHANGE, 0, 0, session_id=session.id, new_speed=0.0),
            make_event(EventType.SPEED_CHANGE, 10, 0, session_id=session.id, new_speed=9.0),
            make_event(EventType.SPEED_CHANGE, 900, 2500, session_id=session.id, new_speed=11.0),
        ]

        analytics = analyze_workout_data(session, events, [])

        assert analytics.average_speed == pytest.approx(10.0)
        assert analytics.average_pace == pytest.approx(6.0)
        assert analytics.max_speed == 11.0
        assert analytics.min_speed == 9.0
        assert analytics.speed_changes == 3
        assert len(analytics.pace_profile) == 3


class TestSplitPerformance:

    def test_fastest_slowest_and_variability(self):
        splits = [split(1, 10.0), split(2, 12.0), split(3, 8.0)]

        result = analyze_split_performance(splits)

        assert result.fastest_split.split_number == 2
        assert result.slowest_split.split_number == 3
        assert result.pace_variability > 0.5
        assert not result.most_consistent

    def test_even_pacing_is_consistent(self):
        result = analyze_split_performance([split(1, 10.0), split(2, 10.2)])
        assert result.most_consistent

    def test_no_splits(self):
        result = analyze_split_performance([])

        assert result.fastest_split is None
        assert result.pace_variability == 0.0
        assert not result.most_consistent


class TestUserProgressStats:

    def test_totals(self):
        base = datetime(2024, 9, 10, 12, 0)
        sessions = [
            WorkoutSession(user_id="u", workout_name="a", start_time=base,
                           total_duration=1800, total_distance=5000),
            WorkoutSession(user_id="u", workout_name="b", start_time=base - timedelta(days=1),
                           total_duration=1800, total_distance=6000),
        ]

        stats = compute_user_progress_stats(sessions, days=30)

        assert stats.total_workouts == 2
        assert stats.total_distance_km == pytest.approx(11.0)
        assert stats.total_time_min == pytest.approx(60.0)
        assert stats.average_speed == pytest.approx(11.0)
        assert stats.best_pace == pytest.approx(5.0)
        assert stats.consistency == 7

    def test_empty(self):
        stats = compute_user_progress_stats([], days=30)

        assert stats.total_workouts == 0
        assert stats.best_pace == 0.0
        assert stats.consistency == 0


class TestAnalyticsService:
    """Tests for AnalyticsService against SQLite."""

    def test_compare_with_same_workout(self, adapter):
        now = datetime.utcnow()
        make_completed_session(adapter, workout_name="Tempo", distance=4000, end_time=now - timedelta(days=3))
        make_completed_session(adapter, workout_name="Easy run", distance=5000, end_time=now - timedelta(days=2))
        current = make_completed_session(adapter, workout_name="Easy run", distance=6000, end_time=now)

        comparisons = {c.metric: c for c in AnalyticsService(adapter).compare(current.id, "user-1")}

        assert comparisons["average_speed"].improvement == pytest.approx(2.0)
        assert comparisons["average_speed"].improvement_percentage == pytest.approx(20.0)
        assert comparisons["average_pace"].improvement == pytest.approx(1.0)
        assert comparisons["total_distance"].unit == "km"
        assert comparisons["total_distance"].improvement == pytest.approx(1.0)
        assert comparisons["duration"].improvement == 0

    def test_compare_falls_back_to_latest_session(self, adapter):
        now = datetime.utcnow()
        previous = make_completed_session(adapter, workout_name="Tempo", end_time=now - timedelta(days=1))
        current = make_completed_session(adapter, workout_name="Intervals", end_time=now)

        assert AnalyticsService(adapter).find_baseline(current).id == previous.id

    def test_compare_without_history(self, adapter):
        current = make_completed_session(adapter)
        assert AnalyticsService(adapter).compare(current.id, "user-1") == []

    def test_compare_other_users_session(self, adapter):
        make_completed_session(adapter, end_time=datetime.utcnow() - timedelta(days=1))
        current = make_completed_session(adapter)

        assert AnalyticsService(adapter).compare(current.id, "someone-else") == []

    def test_calculate_and_save_splits(self, adapter):
        session = make_completed_session(adapter, duration=900, distance=2500)
        for event in [
            make_event(EventType.START, 0, 0, session_id=session.id),
            make_event(EventType.SPEED_CHANGE, 0, 0, session_id=session.id, new_speed=10.0),
            make_event(EventType.FINISH, 900, 2500, session_id=session.id),
        ]:
            adapter.add_event(event)
        service = AnalyticsService(adapter)

        assert service.calculate_and_save_splits(session.id)
        assert service.calculate_and_save_splits(session.id)

        splits = service.get_splits(session.id)
        assert len(splits) == 2
        assert service.split_performance(session.id).most_consistent

    def test_analyze_missing_session(self, adapter):
        assert AnalyticsService(adapter).analyze("missing") is None

    def test_user_progress_stats_window(self, adapter):
        now = datetime(2024, 9, 10, 12, 0)
        make_completed_session(adapter, distance=5000, end_time=now - timedelta(days=1))
        make_completed_session(adapter, distance=6000, end_time=now - timedelta(days=2))
        make_completed_session(adapter, distance=9000, end_time=now - timedelta(days=40))

        stats = AnalyticsService(adapter).user_progress_stats("user-1", days=30, now=now)

        assert stats.total_workouts == 2
        assert stats.total_distance_km == pytest.approx(11.0)
