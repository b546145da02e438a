"""Database adapters.

The services talk to storage only through DatabaseAdapter, so the same code
runs on a local SQLite file (development, tests, the CLI) and on Supabase
(the hosted PostgreSQL backend of the mobile app).

Usage:
    # SQLite (development)
    from treadmill_coach.db.adapters import SQLiteAdapter
    adapter = SQLiteAdapter(db_path="treadmill_coach.db")

    # Supabase (production)
    from treadmill_coach.db.adapters import SupabaseAdapter
    adapter = SupabaseAdapter(url=SUPABASE_URL, key=SUPABASE_KEY)

    # Or pick from settings
    adapter = get_database_adapter()

Every method raises DatabaseError when the backend fails. Turning that into
"no data" or a False result is the services' job.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ...models.analytics import WorkoutSplit
from ...models.plans import PlannedWorkout, TrainingPlan
from ...models.profile import UserProfile
from ...models.sessions import WorkoutCompletion, WorkoutEvent, WorkoutSession


class DatabaseAdapter(ABC):
    """Abstract base class for database adapters.

    Key differences between backends:

    SQLite:
        - TEXT for dates (stored as ISO strings)
        - INTEGER for booleans (0/1)
        - JSON columns stored as TEXT
        - Real transactions: a plan and its children are saved atomically

    PostgreSQL/Supabase:
        - Native DATE/TIMESTAMPTZ, BOOLEAN and JSONB
        - REST table API without client-side transactions: a plan is saved
          row by row and a failed child row is logged and skipped
    """

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the database connection and schema.

        For SQLite: Creates tables if they don't exist.
        For Supabase: Verifies connection and permissions.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the database connection and cleanup resources."""
        pass

    # =========================================================================
    # Profiles
    # =========================================================================

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Get the onboarding profile of a user, None if onboarding is not done."""
        pass

    @abstractmethod
    def save_profile(self, user_id: str, profile: UserProfile) -> UserProfile:
        """Create or replace the profile of a user."""
        pass

    # =========================================================================
    # Training plans
    # =========================================================================

    @abstractmethod
    def save_plan(self, plan: TrainingPlan) -> str:
        """Insert a plan with its workouts and segments.

        Args:
            plan: The plan to save; ``plan.user_id`` must be set

        Returns:
            The plan id
        """
        pass

    @abstractmethod
    def get_plan(self, plan_id: str) -> Optional[TrainingPlan]:
        """Get a plan with workouts ordered by (week, day) and segments in order."""
        pass

    @abstractmethod
    def list_plans(self, user_id: str) -> List[TrainingPlan]:
        """All plans of a user, newest first, without their workouts."""
        pass

    @abstractmethod
    def delete_plan(self, plan_id: str) -> bool:
        """Delete a plan together with its workouts and segments."""
        pass

    @abstractmethod
    def set_active_plan(self, user_id: str, plan_id: str) -> bool:
        """Mark one plan active and every other plan of the user inactive."""
        pass

    @abstractmethod
    def get_active_plan_id(self, user_id: str) -> Optional[str]:
        """Id of the user's active plan, if any."""
        pass

    @abstractmethod
    def get_planned_workouts(self, plan_id: str) -> List[PlannedWorkout]:
        """Workouts of a plan ordered by (week, day), with segments."""
        pass

    # =========================================================================
    # Sessions and events
    # =========================================================================

    @abstractmethod
    def create_session(self, session: WorkoutSession) -> WorkoutSession:
        """Insert a new session row."""
        pass

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[WorkoutSession]:
        pass

    @abstractmethod
    def complete_session(
        self,
        session_id: str,
        end_time: datetime,
        total_duration: float,
        total_distance: float,
    ) -> bool:
        """Freeze the totals of a session and mark it completed."""
        pass

    @abstractmethod
    def get_completed_sessions(
        self,
        user_id: str,
        planned_workout_ids: Optional[Iterable[str]] = None,
        since: Optional[datetime] = None,
    ) -> List[WorkoutSession]:
        """Completed sessions of a user, most recently finished first."""
        pass

    @abstractmethod
    def add_event(self, event: WorkoutEvent) -> WorkoutEvent:
        """Append an event to a session's log."""
        pass

    @abstractmethod
    def get_events(self, session_id: str) -> List[WorkoutEvent]:
        """The event log of a session in append order."""
        pass

    # =========================================================================
    # Splits
    # =========================================================================

    @abstractmethod
    def save_splits(self, session_id: str, splits: List[WorkoutSplit]) -> int:
        """Store the splits of a finished session, returns how many were saved."""
        pass

    @abstractmethod
    def get_splits(self, session_id: str) -> List[WorkoutSplit]:
        """Splits of a session, segment splits first, each kind by number."""
        pass

    # =========================================================================
    # Completions
    # =========================================================================

    @abstractmethod
    def save_completion(self, completion: WorkoutCompletion) -> WorkoutCompletion:
        pass

    @abstractmethod
    def get_completions(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[WorkoutCompletion]:
        """Completions of a user in [start, end], newest first."""
        pass

    @abstractmethod
    def update_completion(
        self,
        completion_id: str,
        notes: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> bool:
        pass

    # =========================================================================
    # Health Check
    # =========================================================================

    @abstractmethod
    def health_check(self) -> Dict[str, Any]:
        """Check database health and connectivity.

        Returns:
            Dict with:
                - healthy: bool
                - backend: str (sqlite, supabase)
                - latency_ms: float
                - details: Any additional info
        """
        pass


# Export the adapter classes
from .sqlite_adapter import SQLiteAdapter  # noqa: E402
from .supabase_adapter import SupabaseAdapter  # noqa: E402


def get_database_adapter(settings=None) -> DatabaseAdapter:
    """Build the adapter selected by ``database_backend``."""
    from ...config import get_settings

    settings = settings or get_settings()
    if settings.database_backend == "supabase":
        return SupabaseAdapter(url=settings.supabase_url or None, key=settings.supabase_key or None)
    return SQLiteAdapter(db_path=str(settings.database_path))


__all__ = [
    "DatabaseAdapter",
    "SQLiteAdapter",
    "SupabaseAdapter",
    "get_database_adapter",
]
