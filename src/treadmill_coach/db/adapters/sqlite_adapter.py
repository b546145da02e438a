"""SQLite database adapter implementation.

SQLite-Specific Considerations:
    - Stores dates and timestamps as TEXT in ISO format
    - Stores booleans as INTEGER (0/1)
    - Stores JSON columns (profile snapshot, event payload, lists) as TEXT
    - Foreign keys are enabled per connection so plan deletes cascade
    - Single-writer model (WAL for better concurrent reads)
"""

import json
import sqlite3
import os
import time
import uuid
from pathlib import Path
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from . import DatabaseAdapter
from .. import rows
from ...exceptions import DatabaseError
from ...models.analytics import WorkoutSplit
from ...models.plans import PlannedWorkout, TrainingPlan
from ...models.profile import UserProfile
from ...models.sessions import SessionStatus, WorkoutCompletion, WorkoutEvent, WorkoutSession


def get_default_db_path() -> Path:
    """Get the default database path."""
    env_path = os.environ.get("TREADMILL_DB_PATH")
    if env_path:
        return Path(env_path)
    return Path.cwd() / "treadmill_coach.db"


def _encode(row: Dict[str, Any]) -> Dict[str, Any]:
    """Serialize JSON columns and booleans for SQLite."""
    encoded = {}
    for key, value in row.items():
        if key in rows.JSON_COLUMNS and value is not None:
            encoded[key] = json.dumps(value)
        elif isinstance(value, bool):
            encoded[key] = int(value)
        else:
            encoded[key] = value
    return encoded


def _insert(conn: sqlite3.Connection, table: str, row: Dict[str, Any]) -> None:
    row = _encode(row)
    columns = ", ".join(row.keys())
    placeholders = ", ".join("?" for _ in row)
    conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", tuple(row.values()))


class SQLiteAdapter(DatabaseAdapter):
    """SQLite implementation of the DatabaseAdapter interface.

    Usage:
        adapter = SQLiteAdapter()  # Uses default path
        adapter = SQLiteAdapter(db_path="custom.db")
        adapter.initialize()

        plan_id = adapter.save_plan(plan)
    """

    def __init__(self, db_path: Optional[str] = None):
        """Initialize SQLite adapter.

        Args:
            db_path: Path to SQLite database file.
                    If not provided, uses TREADMILL_DB_PATH env var or default.
        """
        if db_path:
            self.db_path = Path(db_path)
        else:
            self.db_path = get_default_db_path()

    def initialize(self) -> None:
        """Initialize the database schema."""
        from ..schema import SCHEMA

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_connection() as conn:
            conn.executescript(SCHEMA)

    def close(self) -> None:
        """Nothing to release: every call opens and closes its own connection."""

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row

        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    @contextmanager
    def _get_connection(self):
        """Yield a fresh connection, committed on exit and rolled back on error."""
        try:
            conn = self._open()
        except sqlite3.Error as e:
            raise DatabaseError(f"Could not open {self.db_path}: {e}", operation="connect")

        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise DatabaseError(str(e), operation="sqlite")
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # =========================================================================
    # Profiles
    # =========================================================================

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
            return rows.row_to_profile(dict(row)) if row else None

    def save_profile(self, user_id: str, profile: UserProfile) -> UserProfile:
        row = _encode(rows.profile_to_row(user_id, profile))
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)
        with self._get_connection() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO profiles ({columns}) VALUES ({placeholders})",
                tuple(row.values()),
            )
        profile.user_id = user_id
        profile.updated_at = row["updated_at"]
        return profile

    # =========================================================================
    # Training plans
    # =========================================================================

    def save_plan(self, plan: TrainingPlan) -> str:
        """Insert the plan, its workouts and their segments in one transaction."""
        if not plan.user_id:
            raise DatabaseError("Plan has no user_id", operation="save_plan")

        with self._get_connection() as conn:
            if plan.is_active:
                conn.execute(
                    "UPDATE training_plans SET is_active = 0 WHERE user_id = ?",
                    (plan.user_id,),
                )
            _insert(conn, "training_plans", rows.plan_to_row(plan))
            for workout in plan.planned_workouts:
                _insert(conn, "planned_workouts", rows.workout_to_row(plan.id, workout))
                for index, segment in enumerate(workout.segments):
                    segment_id = segment.id or str(uuid.uuid4())
                    _insert(
                        conn,
                        "training_segments",
                        rows.segment_to_row(workout.id, index, segment, segment_id),
                    )
        return plan.id

    def get_plan(self, plan_id: str) -> Optional[TrainingPlan]:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM training_plans WHERE id = ?", (plan_id,)).fetchone()
            if not row:
                return None
            workouts = self._load_workouts(conn, plan_id)
            return rows.row_to_plan(dict(row), workouts)

    def list_plans(self, user_id: str) -> List[TrainingPlan]:
        with self._get_connection() as conn:
            result = conn.execute(
                "SELECT * FROM training_plans WHERE user_id = ? ORDER BY created_at DESC",
                (user_id,),
            ).fetchall()
            return [rows.row_to_plan(dict(r), []) for r in result]

    def delete_plan(self, plan_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM training_plans WHERE id = ?", (plan_id,))
            return cursor.rowcount > 0

    def set_active_plan(self, user_id: str, plan_id: str) -> bool:
        with self._get_connection() as conn:
            exists = conn.execute(
                "SELECT 1 FROM training_plans WHERE id = ? AND user_id = ?",
                (plan_id, user_id),
            ).fetchone()
            if not exists:
                return False
            conn.execute("UPDATE training_plans SET is_active = 0 WHERE user_id = ?", (user_id,))
            conn.execute("UPDATE training_plans SET is_active = 1 WHERE id = ?", (plan_id,))
            return True

    def get_active_plan_id(self, user_id: str) -> Optional[str]:
        with self._get_connection() as conn:
            row = conn.execute(
                """
                SELECT id FROM training_plans
                WHERE user_id = ? AND is_active = 1
                ORDER BY created_at DESC LIMIT 1
                """,
                (user_id,),
            ).fetchone()
            return row["id"] if row else None

    def get_planned_workouts(self, plan_id: str) -> List[PlannedWorkout]:
        with self._get_connection() as conn:
            return self._load_workouts(conn, plan_id)

    def _load_workouts(self, conn: sqlite3.Connection, plan_id: str) -> List[PlannedWorkout]:
        workout_rows = conn.execute(
            """
            SELECT * FROM planned_workouts
            WHERE plan_id = ?
            ORDER BY week_number, day_of_week
            """,
            (plan_id,),
        ).fetchall()

        segment_rows = conn.execute(
            """
            SELECT s.* FROM training_segments s
            JOIN planned_workouts w ON s.workout_id = w.id
            WHERE w.plan_id = ?
            ORDER BY s.workout_id, s.order_index
            """,
            (plan_id,),
        ).fetchall()

        segments_by_workout: Dict[str, list] = {}
        for segment_row in segment_rows:
            segments_by_workout.setdefault(segment_row["workout_id"], []).append(
                rows.row_to_segment(dict(segment_row))
            )

        return [
            rows.row_to_workout(dict(r), segments_by_workout.get(r["id"], []))
            for r in workout_rows
        ]

    # =========================================================================
    # Sessions and events
    # =========================================================================

    def create_session(self, session: WorkoutSession) -> WorkoutSession:
        with self._get_connection() as conn:
            _insert(conn, "workout_sessions_detailed", rows.session_to_row(session))
        return session

    def get_session(self, session_id: str) -> Optional[WorkoutSession]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM workout_sessions_detailed WHERE id = ?",
                (session_id,),
            ).fetchone()
            return rows.row_to_session(dict(row)) if row else None

    def complete_session(
        self,
        session_id: str,
        end_time: datetime,
        total_duration: float,
        total_distance: float,
    ) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE workout_sessions_detailed
                SET end_time = ?, status = ?, total_duration = ?, total_distance = ?
                WHERE id = ?
                """,
                (end_time.isoformat(), SessionStatus.COMPLETED.value, total_duration, total_distance, session_id),
            )
            return cursor.rowcount > 0

    def get_completed_sessions(
        self,
        user_id: str,
        planned_workout_ids: Optional[Iterable[str]] = None,
        since: Optional[datetime] = None,
    ) -> List[WorkoutSession]:
        query = "SELECT * FROM workout_sessions_detailed WHERE user_id = ? AND status = ?"
        params: List[Any] = [user_id, SessionStatus.COMPLETED.value]

        if planned_workout_ids is not None:
            ids = list(planned_workout_ids)
            if not ids:
                return []
            query += f" AND planned_workout_id IN ({', '.join('?' for _ in ids)})"
            params.extend(ids)

        if since is not None:
            query += " AND end_time >= ?"
            params.append(since.isoformat())

        query += " ORDER BY end_time DESC"

        with self._get_connection() as conn:
            return [rows.row_to_session(dict(r)) for r in conn.execute(query, params).fetchall()]

    def add_event(self, event: WorkoutEvent) -> WorkoutEvent:
        if event.id is None:
            event.id = str(uuid.uuid4())
        with self._get_connection() as conn:
            seq = conn.execute(
                "SELECT COALESCE(MAX(seq), 0) + 1 FROM workout_events WHERE session_id = ?",
                (event.session_id,),
            ).fetchone()[0]
            _insert(conn, "workout_events", rows.event_to_row(event, seq))
        return event

    def get_events(self, session_id: str) -> List[WorkoutEvent]:
        with self._get_connection() as conn:
            result = conn.execute(
                "SELECT * FROM workout_events WHERE session_id = ? ORDER BY seq",
                (session_id,),
            ).fetchall()
            return [rows.row_to_event(dict(r)) for r in result]

    # =========================================================================
    # Splits
    # =========================================================================

    def save_splits(self, session_id: str, splits: List[WorkoutSplit]) -> int:
        """Replace the stored splits of a session."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM workout_splits WHERE session_id = ?", (session_id,))
            for split in splits:
                if split.id is None:
                    split.id = str(uuid.uuid4())
                _insert(conn, "workout_splits", rows.split_to_row(split))
        return len(splits)

    def get_splits(self, session_id: str) -> List[WorkoutSplit]:
        with self._get_connection() as conn:
            result = conn.execute(
                """
                SELECT * FROM workout_splits WHERE session_id = ?
                ORDER BY CASE split_type WHEN 'segment' THEN 0 ELSE 1 END, split_number
                """,
                (session_id,),
            ).fetchall()
            return [rows.row_to_split(dict(r)) for r in result]

    # =========================================================================
    # Completions
    # =========================================================================

    def save_completion(self, completion: WorkoutCompletion) -> WorkoutCompletion:
        with self._get_connection() as conn:
            _insert(conn, "workout_completions", rows.completion_to_row(completion))
        return completion

    def get_completions(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[WorkoutCompletion]:
        query = "SELECT * FROM workout_completions WHERE user_id = ?"
        params: List[Any] = [user_id]
        if start is not None:
            query += " AND completed_at >= ?"
            params.append(start.isoformat())
        if end is not None:
            query += " AND completed_at <= ?"
            params.append(end.isoformat())
        query += " ORDER BY completed_at DESC"

        with self._get_connection() as conn:
            return [rows.row_to_completion(dict(r)) for r in conn.execute(query, params).fetchall()]

    def update_completion(
        self,
        completion_id: str,
        notes: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE workout_completions
                SET notes = COALESCE(?, notes), rating = COALESCE(?, rating), updated_at = ?
                WHERE id = ?
                """,
                (notes, rating, datetime.utcnow().isoformat(), completion_id),
            )
            return cursor.rowcount > 0

    # =========================================================================
    # Health Check
    # =========================================================================

    def health_check(self) -> Dict[str, Any]:
        """Check database health and connectivity."""
        start_time = time.time()
        try:
            with self._get_connection() as conn:
                version = conn.execute("SELECT sqlite_version()").fetchone()[0]
            db_size = self.db_path.stat().st_size if self.db_path.exists() else 0
            latency_ms = (time.time() - start_time) * 1000

            return {
                "healthy": True,
                "backend": "sqlite",
                "version": version,
                "latency_ms": round(latency_ms, 2),
                "details": {
                    "db_path": str(self.db_path),
                    "db_size_bytes": db_size,
                },
            }

        except DatabaseError as e:
            latency_ms = (time.time() - start_time) * 1000
            return {
                "healthy": False,
                "backend": "sqlite",
                "version": None,
                "latency_ms": round(latency_ms, 2),
                "details": {"error": e.message},
            }
