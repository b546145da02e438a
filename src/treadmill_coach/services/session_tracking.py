"""
Live tracking of a treadmill session.

ActiveSession is owned by the caller (a screen, a CLI loop, a test) and holds
the running totals; nothing about a session in progress lives at module
level. Each state change returns the WorkoutEvent to append to the log, and
SessionTrackingService persists those events and finalizes the session.
"""

from datetime import datetime
from typing import List, NamedTuple, Optional, Tuple
import logging

from ..db.adapters import DatabaseAdapter
from ..exceptions import (
    SessionFinishedError,
    SessionNotFoundError,
    SessionValidationError,
    ValidationError,
)
from ..models.sessions import EventData, EventType, WorkoutEvent, WorkoutSession
from .analytics import AnalyticsService, pace_from_speed
from .base import BaseService


class ActiveSession:
    """
    Running state of one session.

    Time only moves through advance(); distance accumulates at the current
    speed while the session is not paused. Once finished, every mutation
    raises SessionFinishedError.
    """

    def __init__(self, session: WorkoutSession, speed: float = 0.0) -> None:
        self.session = session
        self.elapsed_time = 0.0
        self.distance = 0.0
        self.speed = speed
        self.started = False
        self.paused = False
        self.finished = False
        self.completed = False
        self.segment_index: Optional[int] = None
        self.segment_name: Optional[str] = None

    @property
    def session_id(self) -> str:
        return self.session.id

    @property
    def current_pace(self) -> float:
        return pace_from_speed(self.speed)

    def _check_open(self) -> None:
        if self.finished:
            raise SessionFinishedError(session_id=self.session.id)

    def _event(self, event_type: EventType, **data) -> WorkoutEvent:
        return WorkoutEvent(
            session_id=self.session.id,
            event_type=event_type,
            elapsed_time=self.elapsed_time,
            data=EventData(distance=round(self.distance, 2), **data),
        )

    def start(self) -> WorkoutEvent:
        self._check_open()
        if self.started:
            raise SessionValidationError("Session has already started")
        self.started = True
        return self._event(EventType.START, new_speed=self.speed)

    def advance(self, delta_seconds: float) -> None:
        """Move the clock forward, accumulating distance unless paused."""
        self._check_open()
        if delta_seconds < 0:
            raise ValidationError(
                f"Time cannot move backwards ({delta_seconds}s)",
                field="delta_seconds",
            )
        if self.paused:
            return
        self.elapsed_time += delta_seconds
        self.distance += self.speed / 3.6 * delta_seconds

    def change_speed(self, new_speed: float) -> WorkoutEvent:
        self._check_open()
        if new_speed < 0:
            raise SessionValidationError(f"Speed cannot be negative: {new_speed}", field="new_speed")
        previous = self.speed
        self.speed = new_speed
        return self._event(
            EventType.SPEED_CHANGE,
            previous_speed=previous,
            new_speed=new_speed,
            current_pace=round(self.current_pace, 3),
        )

    def start_segment(self, index: int, name: str) -> WorkoutEvent:
        self._check_open()
        self.segment_index = index
        self.segment_name = name
        return self._event(EventType.SEGMENT_START, segment_index=index, segment_name=name)

    def end_segment(self) -> WorkoutEvent:
        self._check_open()
        if self.segment_index is None:
            raise SessionValidationError("No segment in progress", field="segment_index")
        event = self._event(EventType.SEGMENT_END, segment_index=self.segment_index, segment_name=self.segment_name)
        self.segment_index = None
        self.segment_name = None
        return event

    def pause(self) -> WorkoutEvent:
        self._check_open()
        if self.paused:
            raise SessionValidationError("Session is already paused")
        self.paused = True
        return self._event(EventType.PAUSE)

    def resume(self) -> WorkoutEvent:
        self._check_open()
        if not self.paused:
            raise SessionValidationError("Session is not paused")
        self.paused = False
        return self._event(EventType.RESUME)

    def finish(self) -> WorkoutEvent:
        """Close the session; the totals are frozen from here on."""
        self._check_open()
        event = self._event(EventType.FINISH)
        self.finished = True
        self.paused = False
        return event


class SessionTrackingService(BaseService):
    """
    Persists the event log of live sessions.

    Recording calls return False when the event could not be stored; the
    in-memory session keeps going either way.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        analytics: Optional[AnalyticsService] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(adapter, logger)
        self._analytics = analytics or AnalyticsService(adapter)

    def start_session(
        self,
        user_id: str,
        planned_workout_id: Optional[str],
        workout_name: str,
        initial_speed: float = 0.0,
    ) -> Optional[ActiveSession]:
        """Create the session row and its start event."""
        session = WorkoutSession(
            user_id=user_id,
            planned_workout_id=planned_workout_id,
            workout_name=workout_name,
        )
        created = self._guarded("Creating session", lambda: self._adapter.create_session(session), None)
        if created is None:
            return None

        active = ActiveSession(created, speed=initial_speed)
        self._store(active.start())
        self._logger.info(f"Started session {created.id} ({workout_name}) for {user_id}")
        return active

    def _store(self, event: WorkoutEvent) -> bool:
        return self._guarded(
            f"Recording {event.event_type.value} event",
            lambda: self._adapter.add_event(event) is not None,
            False,
        )

    def record_speed_change(self, active: ActiveSession, new_speed: float) -> bool:
        return self._store(active.change_speed(new_speed))

    def record_segment_start(self, active: ActiveSession, index: int, name: str) -> bool:
        return self._store(active.start_segment(index, name))

    def record_segment_end(self, active: ActiveSession) -> bool:
        return self._store(active.end_segment())

    def record_pause(self, active: ActiveSession) -> bool:
        return self._store(active.pause())

    def record_resume(self, active: ActiveSession) -> bool:
        return self._store(active.resume())

    def finish_session(self, active: ActiveSession) -> bool:
        """Record the finish event, freeze the totals and compute the splits.

        A session whose totals could not be stored is not reported as finished
        and can be finished again; the finish event is only logged once. A
        failed split computation is only logged.
        """
        if active.completed:
            raise SessionFinishedError(session_id=active.session_id)
        if not active.finished:
            if active.segment_index is not None:
                self._store(active.end_segment())
            self._store(active.finish())

        if not self._complete(active.session_id, active.elapsed_time, active.distance):
            return False
        active.completed = True
        self._logger.info(
            f"Finished session {active.session_id}: {active.distance:.0f} m in {active.elapsed_time:.0f}s"
        )
        return True

    def _complete(self, session_id: str, elapsed_time: float, distance: float) -> bool:
        completed = self._guarded(
            "Completing session",
            lambda: self._adapter.complete_session(
                session_id,
                end_time=datetime.utcnow(),
                total_duration=elapsed_time,
                total_distance=round(distance, 2),
            ),
            False,
        )
        if not completed:
            return False
        if not self._analytics.calculate_and_save_splits(session_id):
            self._logger.warning(f"Splits of session {session_id} were not saved")
        return True

    # =========================================================================
    # Client-clocked sessions
    #
    # A remote client keeps its own clock and odometer and posts each event
    # with the elapsed time and distance it measured. The stored event log is
    # the only state between calls.
    # =========================================================================

    def _open_session(self, session_id: str) -> Tuple[WorkoutSession, List[WorkoutEvent]]:
        session = self._guarded("Loading session", lambda: self._adapter.get_session(session_id), None)
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.is_completed:
            raise SessionFinishedError(session_id=session_id)
        events = self._guarded("Loading events", lambda: self._adapter.get_events(session_id), [])
        return session, events

    def record_client_event(
        self,
        session_id: str,
        event_type: EventType,
        elapsed_time: float,
        distance: float,
        new_speed: Optional[float] = None,
        segment_index: Optional[int] = None,
        segment_name: Optional[str] = None,
    ) -> Optional[WorkoutEvent]:
        """Append an event measured by the client, None if it was not stored.

        Raises:
            SessionNotFoundError: Unknown session
            SessionFinishedError: The session was already finished
            SessionValidationError: The event does not fit the log
        """
        if event_type in (EventType.START, EventType.FINISH):
            raise SessionValidationError(
                f"{event_type.value} events are recorded when the session starts or finishes",
                field="event_type",
            )
        _, events = self._open_session(session_id)
        state = _log_state(events)

        if elapsed_time < state.elapsed_time:
            raise SessionValidationError(
                f"Event at {elapsed_time}s is earlier than the last one ({state.elapsed_time}s)",
                field="elapsed_time",
            )
        if distance < state.distance:
            raise SessionValidationError(
                f"Distance {distance} m is below the last recorded {state.distance} m",
                field="distance",
            )

        data = EventData(distance=round(distance, 2))
        if event_type == EventType.SPEED_CHANGE:
            if new_speed is None or new_speed < 0:
                raise SessionValidationError(f"Invalid speed: {new_speed}", field="new_speed")
            data.previous_speed = state.speed
            data.new_speed = new_speed
            data.current_pace = round(pace_from_speed(new_speed), 3)
        elif event_type == EventType.SEGMENT_START:
            if segment_index is None:
                raise SessionValidationError("A segment start needs its index", field="segment_index")
            data.segment_index = segment_index
            data.segment_name = segment_name
        elif event_type == EventType.SEGMENT_END:
            if state.segment_index is None:
                raise SessionValidationError("No segment in progress", field="segment_index")
            data.segment_index = state.segment_index
            data.segment_name = state.segment_name
        elif event_type == EventType.PAUSE and state.paused:
            raise SessionValidationError("Session is already paused")
        elif event_type == EventType.RESUME and not state.paused:
            raise SessionValidationError("Session is not paused")

        event = WorkoutEvent(session_id=session_id, event_type=event_type, elapsed_time=elapsed_time, data=data)
        return self._guarded(f"Recording {event_type.value} event", lambda: self._adapter.add_event(event), None)

    def finish_client_session(
        self,
        session_id: str,
        elapsed_time: float,
        distance: float,
    ) -> Optional[WorkoutSession]:
        """Close a client-clocked session with the client's totals.

        Returns the completed session, or None when the totals could not be
        stored; calling again retries without logging a second finish event.
        """
        _, events = self._open_session(session_id)
        state = _log_state(events)
        if elapsed_time < state.elapsed_time or distance < state.distance:
            raise SessionValidationError(
                f"Totals ({elapsed_time}s, {distance} m) are below the last event "
                f"({state.elapsed_time}s, {state.distance} m)"
            )

        if not state.finished:
            payload = EventData(distance=round(distance, 2))
            if state.segment_index is not None:
                self._store(WorkoutEvent(
                    session_id=session_id,
                    event_type=EventType.SEGMENT_END,
                    elapsed_time=elapsed_time,
                    data=EventData(
                        distance=payload.distance,
                        segment_index=state.segment_index,
                        segment_name=state.segment_name,
                    ),
                ))
            self._store(WorkoutEvent(session_id=session_id, event_type=EventType.FINISH,
                                     elapsed_time=elapsed_time, data=payload))

        if not self._complete(session_id, elapsed_time, distance):
            return None
        self._logger.info(f"Finished session {session_id}: {distance:.0f} m in {elapsed_time:.0f}s")
        return self._guarded("Loading session", lambda: self._adapter.get_session(session_id), None)


class _LogState(NamedTuple):
    elapsed_time: float
    distance: float
    speed: float
    paused: bool
    segment_index: Optional[int]
    segment_name: Optional[str]
    finished: bool


def _log_state(events: List[WorkoutEvent]) -> _LogState:
    """Where a session stands after replaying its event log."""
    elapsed, distance, speed = 0.0, 0.0, 0.0
    paused, finished = False, False
    segment_index: Optional[int] = None
    segment_name: Optional[str] = None
    for event in sorted(events, key=lambda e: e.elapsed_time):
        elapsed = max(elapsed, event.elapsed_time)
        if event.distance is not None:
            distance = max(distance, event.distance)
        if event.event_type in (EventType.START, EventType.SPEED_CHANGE) and event.data.new_speed is not None:
            speed = event.data.new_speed
        elif event.event_type == EventType.PAUSE:
            paused = True
        elif event.event_type == EventType.RESUME:
            paused = False
        elif event.event_type == EventType.SEGMENT_START:
            segment_index, segment_name = event.data.segment_index, event.data.segment_name
        elif event.event_type == EventType.SEGMENT_END:
            segment_index, segment_name = None, None
        elif event.event_type == EventType.FINISH:
            finished = True
    return _LogState(elapsed, distance, speed, paused, segment_index, segment_name, finished)
