"""Shared fixtures for the Treadmill Coach test suite."""

from datetime import date, datetime, timedelta
from typing import List, Optional

import pytest

from treadmill_coach.config import Settings
from treadmill_coach.db.adapters import SQLiteAdapter
from treadmill_coach.models.plans import PlanGenerationRequest, PlanIntensity
from treadmill_coach.models.profile import SpeedRange, UserProfile
from treadmill_coach.models.sessions import EventData, EventType, WorkoutEvent, WorkoutSession


@pytest.fixture
def adapter(tmp_path):
    """SQLite adapter on a fresh database file."""
    db = SQLiteAdapter(db_path=str(tmp_path / "test_treadmill.db"))
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def fallback_settings(tmp_path):
    """Settings that never reach the AI assistant."""
    return Settings(
        _env_file=None,
        openai_api_key="",
        openai_assistant_id="",
        plan_generation_strategy="fallback",
        database_path=tmp_path / "settings.db",
    )


@pytest.fixture
def beginner_profile():
    return UserProfile(
        level="beginner",
        goal="10k",
        weekly_availability=3,
        available_days=[1, 3, 5],
        max_speed=14.0,
        max_incline=10.0,
        preferred_speed_range=SpeedRange(walking=5.5, running=9.0, sprint=13.0),
        usual_workout_duration=40,
        previous_experience=["5k race"],
        physical_constraints=["knee"],
    )


@pytest.fixture
def plan_request(beginner_profile):
    return PlanGenerationRequest(
        profile=beginner_profile,
        goal="10k",
        weeks=4,
        start_date=date(2024, 8, 22),
        intensity=PlanIntensity.MODERATE,
    )


def make_event(
    event_type: EventType,
    elapsed: float,
    distance: Optional[float] = None,
    session_id: str = "session-1",
    **data,
) -> WorkoutEvent:
    """Build an event the way the tracker records it."""
    return WorkoutEvent(
        session_id=session_id,
        event_type=event_type,
        elapsed_time=elapsed,
        data=EventData(distance=distance, **data),
    )


def make_completed_session(
    adapter,
    user_id: str = "user-1",
    workout_name: str = "Easy run",
    planned_workout_id: Optional[str] = None,
    duration: float = 1800.0,
    distance: float = 5000.0,
    end_time: Optional[datetime] = None,
) -> WorkoutSession:
    """Create and complete a session directly through the adapter."""
    end_time = end_time or datetime.utcnow()
    session = WorkoutSession(
        user_id=user_id,
        workout_name=workout_name,
        planned_workout_id=planned_workout_id,
        start_time=end_time - timedelta(seconds=duration),
    )
    adapter.create_session(session)
    adapter.complete_session(session.id, end_time=end_time, total_duration=duration, total_distance=distance)
    return adapter.get_session(session.id)


def speed_events(session_id: str, *points) -> List[WorkoutEvent]:
    """Speed-change events from (elapsed, distance, new_speed) tuples."""
    return [
        make_event(EventType.SPEED_CHANGE, t, d, session_id=session_id, new_speed=s)
        for t, d, s in points
    ]
