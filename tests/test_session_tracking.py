"""Tests for live session tracking."""

from unittest.mock import patch

import pytest

from treadmill_coach.exceptions import (
    DatabaseError,
    SessionFinishedError,
    SessionNotFoundError,
    SessionValidationError,
    ValidationError,
)
from treadmill_coach.models.analytics import SplitType
from treadmill_coach.models.sessions import EventType, SessionStatus, WorkoutSession
from treadmill_coach.services.session_tracking import ActiveSession, SessionTrackingService


@pytest.fixture
def active():
    return ActiveSession(WorkoutSession(user_id="user-1", workout_name="Easy run"), speed=0.0)


class TestActiveSession:
    """Tests for the in-memory session state."""

    def test_distance_accumulates_at_current_speed(self, active):
        active.change_speed(12.0)
        active.advance(300)

        assert active.elapsed_time == 300
        assert active.distance == pytest.approx(1000.0)

    def test_speed_change_event(self, active):
        active.change_speed(10.0)
        active.advance(60)

        event = active.change_speed(12.0)

        assert event.event_type == EventType.SPEED_CHANGE
        assert event.elapsed_time == 60
        assert event.data.previous_speed == 10.0
        assert event.data.new_speed == 12.0
        assert event.data.current_pace == 5.0
        assert event.distance == pytest.approx(166.67, abs=0.01)

    def test_pause_stops_the_clock(self, active):
        active.change_speed(12.0)
        active.pause()
        active.advance(120)

        assert active.elapsed_time == 0
        assert active.distance == 0

        active.resume()
        active.advance(60)
        assert active.distance == pytest.approx(200.0)

    def test_double_pause_rejected(self, active):
        active.pause()
        with pytest.raises(SessionValidationError):
            active.pause()

    def test_resume_without_pause_rejected(self, active):
        with pytest.raises(SessionValidationError):
            active.resume()

    def test_negative_speed_rejected(self, active):
        with pytest.raises(SessionValidationError):
            active.change_speed(-1)

    def test_time_cannot_go_backwards(self, active):
        with pytest.raises(ValidationError):
            active.advance(-5)

    def test_segment_events(self, active):
        start = active.start_segment(2, "Intervals")
        end = active.end_segment()

        assert start.data.segment_index == 2
        assert end.data.segment_name == "Intervals"
        assert active.segment_index is None

    def test_end_segment_without_start(self, active):
        with pytest.raises(SessionValidationError):
            active.end_segment()

    def test_second_start_rejected(self, active):
        assert active.start().event_type == EventType.START

        with pytest.raises(SessionValidationError):
            active.start()

    def test_no_events_after_finish(self, active):
        active.finish()

        with pytest.raises(SessionFinishedError):
            active.change_speed(10)
        with pytest.raises(SessionFinishedError):
            active.advance(10)
        with pytest.raises(SessionFinishedError):
            active.finish()


class TestSessionTrackingService:
    """Tests for persisting a tracked session."""

    def test_full_session(self, adapter):
        service = SessionTrackingService(adapter)

        active = service.start_session("user-1", "workout-1", "Easy run")
        assert service.record_segment_start(active, 0, "Main")
        assert service.record_speed_change(active, 12.0)
        active.advance(300)
        assert service.record_segment_end(active)
        assert service.finish_session(active)

        session = adapter.get_session(active.session_id)
        assert session.status == SessionStatus.COMPLETED
        assert session.total_duration == 300
        assert session.total_distance == 1000.0
        assert session.end_time is not None

        events = adapter.get_events(active.session_id)
        assert [e.event_type for e in events] == [
            EventType.START,
            EventType.SEGMENT_START,
            EventType.SPEED_CHANGE,
            EventType.SEGMENT_END,
            EventType.FINISH,
        ]

        splits = adapter.get_splits(active.session_id)
        assert [s.split_type for s in splits] == [SplitType.SEGMENT, SplitType.KILOMETER]
        assert splits[0].segment_name == "Main"
        assert splits[0].average_speed == pytest.approx(12.0)
        assert splits[0].average_pace == pytest.approx(5.0)

    def test_finish_closes_open_segment(self, adapter):
        service = SessionTrackingService(adapter)
        active = service.start_session("user-1", None, "Free run", initial_speed=10.0)
        service.record_segment_start(active, 0, "Main")
        active.advance(120)

        service.finish_session(active)

        types = [e.event_type for e in adapter.get_events(active.session_id)]
        assert types[-2:] == [EventType.SEGMENT_END, EventType.FINISH]

    def test_pause_and_resume_are_logged(self, adapter):
        service = SessionTrackingService(adapter)
        active = service.start_session("user-1", None, "Free run", initial_speed=10.0)

        assert service.record_pause(active)
        assert service.record_resume(active)

        types = [e.event_type for e in adapter.get_events(active.session_id)]
        assert types == [EventType.START, EventType.PAUSE, EventType.RESUME]

    def test_storage_failure_is_reported(self, tmp_path):
        from treadmill_coach.db.adapters import SQLiteAdapter

        # Schema never created, every insert fails
        broken = SQLiteAdapter(db_path=str(tmp_path / "empty.db"))
        service = SessionTrackingService(broken)

        assert service.start_session("user-1", None, "Easy run") is None

    def test_failed_completion_can_be_finished_again(self, adapter):
        service = SessionTrackingService(adapter)
        active = service.start_session("user-1", "workout-1", "Easy run", initial_speed=12.0)
        active.advance(300)

        with patch.object(adapter, "complete_session", side_effect=DatabaseError("disk I/O error")):
            assert not service.finish_session(active)
        assert adapter.get_session(active.session_id).status == SessionStatus.ACTIVE

        assert service.finish_session(active)

        session = adapter.get_session(active.session_id)
        assert session.status == SessionStatus.COMPLETED
        assert session.total_distance == 1000.0
        types = [e.event_type for e in adapter.get_events(active.session_id)]
        assert types.count(EventType.FINISH) == 1

        with pytest.raises(SessionFinishedError):
            service.finish_session(active)


class TestClientClockedSessions:
    """Tests for sessions whose clock and distance come from the client."""

    @pytest.fixture
    def service(self, adapter):
        return SessionTrackingService(adapter)

    @pytest.fixture
    def session_id(self, service):
        return service.start_session("user-1", "workout-1", "Easy run").session_id

    def test_full_session(self, service, adapter, session_id):
        service.record_client_event(session_id, EventType.SEGMENT_START, 0, 0, segment_index=0, segment_name="Main")
        event = service.record_client_event(session_id, EventType.SPEED_CHANGE, 0, 0, new_speed=12.0)
        assert event.data.previous_speed == 0.0
        assert event.data.current_pace == 5.0

        session = service.finish_client_session(session_id, 300, 1000)

        assert session.status == SessionStatus.COMPLETED
        assert session.total_duration == 300
        types = [e.event_type for e in adapter.get_events(session_id)]
        assert types == [
            EventType.START,
            EventType.SEGMENT_START,
            EventType.SPEED_CHANGE,
            EventType.SEGMENT_END,
            EventType.FINISH,
        ]
        splits = adapter.get_splits(session_id)
        assert splits[0].segment_name == "Main"
        assert splits[0].average_speed == pytest.approx(12.0)

    def test_events_cannot_go_back_in_time(self, service, session_id):
        service.record_client_event(session_id, EventType.SPEED_CHANGE, 60, 150, new_speed=9.0)

        with pytest.raises(SessionValidationError):
            service.record_client_event(session_id, EventType.SPEED_CHANGE, 30, 200, new_speed=10.0)
        with pytest.raises(SessionValidationError):
            service.record_client_event(session_id, EventType.SPEED_CHANGE, 90, 100, new_speed=10.0)

    def test_log_rules(self, service, session_id):
        with pytest.raises(SessionValidationError):
            service.record_client_event(session_id, EventType.START, 0, 0)
        with pytest.raises(SessionValidationError):
            service.record_client_event(session_id, EventType.SEGMENT_END, 10, 20)
        with pytest.raises(SessionValidationError):
            service.record_client_event(session_id, EventType.RESUME, 10, 20)
        with pytest.raises(SessionValidationError):
            service.record_client_event(session_id, EventType.SPEED_CHANGE, 10, 20)

        service.record_client_event(session_id, EventType.PAUSE, 10, 20)
        with pytest.raises(SessionValidationError):
            service.record_client_event(session_id, EventType.PAUSE, 15, 20)

    def test_unknown_session(self, service):
        with pytest.raises(SessionNotFoundError):
            service.record_client_event("missing", EventType.PAUSE, 0, 0)

    def test_finished_session_is_closed(self, service, session_id):
        service.finish_client_session(session_id, 60, 150)

        with pytest.raises(SessionFinishedError):
            service.record_client_event(session_id, EventType.PAUSE, 70, 150)
        with pytest.raises(SessionFinishedError):
            service.finish_client_session(session_id, 60, 150)

    def test_failed_finish_is_retried_once(self, service, adapter, session_id):
        with patch.object(adapter, "complete_session", side_effect=DatabaseError("disk I/O error")):
            assert service.finish_client_session(session_id, 60, 150) is None

        session = service.finish_client_session(session_id, 60, 150)

        assert session.status == SessionStatus.COMPLETED
        types = [e.event_type for e in adapter.get_events(session_id)]
        assert types.count(EventType.FINISH) == 1
