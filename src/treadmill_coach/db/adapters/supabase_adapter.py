"""Supabase/PostgreSQL database adapter implementation.

PostgreSQL/Supabase-Specific Considerations:
    - JSON columns are JSONB, passed as Python dicts/lists
    - ``workout_events.seq`` is a BIGSERIAL filled in by the database
    - The REST table API has no client-side transactions. A plan is written
      row by row: the plan row must succeed, a failing workout or segment
      insert is logged and skipped, and the save still reports the plan id.

Environment Variables:
    SUPABASE_URL   - Project URL (https://xxx.supabase.co)
    SUPABASE_KEY   - Service role key for the backend
"""

import logging
import os
import time
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from supabase import Client, create_client

from . import DatabaseAdapter
from .. import rows
from ...exceptions import DatabaseError
from ...models.analytics import WorkoutSplit
from ...models.plans import PlannedWorkout, TrainingPlan
from ...models.profile import UserProfile
from ...models.sessions import SessionStatus, WorkoutCompletion, WorkoutEvent, WorkoutSession


logger = logging.getLogger(__name__)


class SupabaseAdapter(DatabaseAdapter):
    """Supabase/PostgreSQL implementation of the DatabaseAdapter interface.

    Usage:
        adapter = SupabaseAdapter()  # SUPABASE_URL / SUPABASE_KEY

        adapter = SupabaseAdapter(
            url="https://xxx.supabase.co",
            key="your-service-key"
        )
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[Client] = None,
    ):
        """Initialize Supabase adapter.

        Args:
            url: Supabase project URL. If not provided, uses SUPABASE_URL env var.
            key: Supabase API key. If not provided, uses SUPABASE_KEY env var.
            client: Pre-built client, mainly for tests.

        Raises:
            ValueError: If required configuration is missing.
        """
        self._client: Optional[Client] = client
        if client is not None:
            self.url = url
            self.key = key
            return

        self.url = url or os.environ.get("SUPABASE_URL")
        if not self.url:
            raise ValueError(
                "Supabase URL not provided. Set SUPABASE_URL environment variable "
                "or pass url parameter."
            )

        self.key = key or os.environ.get("SUPABASE_KEY")
        if not self.key:
            raise ValueError(
                "Supabase API key not provided. Set SUPABASE_KEY environment "
                "variable or pass key parameter."
            )

    @property
    def client(self) -> Client:
        """Lazy-initialize Supabase client."""
        if self._client is None:
            self._client = create_client(self.url, self.key)
        return self._client

    def _execute(self, query, operation: str):
        try:
            return query.execute()
        except Exception as e:
            raise DatabaseError(f"Supabase {operation} failed: {e}", operation=operation)

    def initialize(self) -> None:
        """Verify the connection; the schema is managed by Supabase migrations."""
        self._execute(self.client.table("training_plans").select("id").limit(1), "initialize")

    def close(self) -> None:
        self._client = None

    # =========================================================================
    # Profiles
    # =========================================================================

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        result = self._execute(
            self.client.table("profiles").select("*").eq("user_id", user_id).limit(1),
            "get_profile",
        )
        return rows.row_to_profile(result.data[0]) if result.data else None

    def save_profile(self, user_id: str, profile: UserProfile) -> UserProfile:
        row = rows.profile_to_row(user_id, profile)
        self._execute(
            self.client.table("profiles").upsert(row, on_conflict="user_id"),
            "save_profile",
        )
        profile.user_id = user_id
        profile.updated_at = row["updated_at"]
        return profile

    # =========================================================================
    # Training plans
    # =========================================================================

    def save_plan(self, plan: TrainingPlan) -> str:
        if not plan.user_id:
            raise DatabaseError("Plan has no user_id", operation="save_plan")

        self._execute(self.client.table("training_plans").insert(rows.plan_to_row(plan)), "save_plan")
        if plan.is_active:
            self._execute(
                self.client.table("training_plans")
                .update({"is_active": False})
                .eq("user_id", plan.user_id)
                .neq("id", plan.id),
                "deactivate_plans",
            )

        for workout in plan.planned_workouts:
            try:
                self._execute(
                    self.client.table("planned_workouts").insert(rows.workout_to_row(plan.id, workout)),
                    "save_workout",
                )
            except DatabaseError as e:
                logger.error(f"Skipping workout '{workout.name}' of plan {plan.id}: {e.message}")
                continue

            segment_rows = [
                rows.segment_to_row(workout.id, i, segment, segment.id or str(uuid.uuid4()))
                for i, segment in enumerate(workout.segments)
            ]
            if not segment_rows:
                continue
            try:
                self._execute(self.client.table("training_segments").insert(segment_rows), "save_segments")
            except DatabaseError as e:
                logger.error(f"Segments of workout '{workout.name}' not saved: {e.message}")

        return plan.id

    def get_plan(self, plan_id: str) -> Optional[TrainingPlan]:
        result = self._execute(
            self.client.table("training_plans").select("*").eq("id", plan_id).limit(1),
            "get_plan",
        )
        if not result.data:
            return None
        return rows.row_to_plan(result.data[0], self.get_planned_workouts(plan_id))

    def list_plans(self, user_id: str) -> List[TrainingPlan]:
        result = self._execute(
            self.client.table("training_plans").select("*").eq("user_id", user_id).order("created_at", desc=True),
            "list_plans",
        )
        return [rows.row_to_plan(r, []) for r in result.data or []]

    def delete_plan(self, plan_id: str) -> bool:
        result = self._execute(self.client.table("training_plans").delete().eq("id", plan_id), "delete_plan")
        return bool(result.data)

    def set_active_plan(self, user_id: str, plan_id: str) -> bool:
        exists = self._execute(
            self.client.table("training_plans").select("id").eq("id", plan_id).eq("user_id", user_id),
            "set_active_plan",
        )
        if not exists.data:
            return False
        self._execute(
            self.client.table("training_plans").update({"is_active": False}).eq("user_id", user_id),
            "set_active_plan",
        )
        self._execute(
            self.client.table("training_plans").update({"is_active": True}).eq("id", plan_id),
            "set_active_plan",
        )
        return True

    def get_active_plan_id(self, user_id: str) -> Optional[str]:
        result = self._execute(
            self.client.table("training_plans")
            .select("id")
            .eq("user_id", user_id)
            .eq("is_active", True)
            .order("created_at", desc=True)
            .limit(1),
            "get_active_plan_id",
        )
        return result.data[0]["id"] if result.data else None

    def get_planned_workouts(self, plan_id: str) -> List[PlannedWorkout]:
        workouts = self._execute(
            self.client.table("planned_workouts")
            .select("*")
            .eq("plan_id", plan_id)
            .order("week_number")
            .order("day_of_week"),
            "get_planned_workouts",
        ).data or []
        if not workouts:
            return []

        segments = self._execute(
            self.client.table("training_segments")
            .select("*")
            .in_("workout_id", [w["id"] for w in workouts])
            .order("order_index"),
            "get_segments",
        ).data or []

        segments_by_workout: Dict[str, list] = {}
        for segment_row in segments:
            segments_by_workout.setdefault(segment_row["workout_id"], []).append(rows.row_to_segment(segment_row))

        return [rows.row_to_workout(w, segments_by_workout.get(w["id"], [])) for w in workouts]

    # =========================================================================
    # Sessions and events
    # =========================================================================

    def create_session(self, session: WorkoutSession) -> WorkoutSession:
        self._execute(
            self.client.table("workout_sessions_detailed").insert(rows.session_to_row(session)),
            "create_session",
        )
        return session

    def get_session(self, session_id: str) -> Optional[WorkoutSession]:
        result = self._execute(
            self.client.table("workout_sessions_detailed").select("*").eq("id", session_id).limit(1),
            "get_session",
        )
        return rows.row_to_session(result.data[0]) if result.data else None

    def complete_session(
        self,
        session_id: str,
        end_time: datetime,
        total_duration: float,
        total_distance: float,
    ) -> bool:
        result = self._execute(
            self.client.table("workout_sessions_detailed").update({
                "end_time": end_time.isoformat(),
                "status": SessionStatus.COMPLETED.value,
                "total_duration": total_duration,
                "total_distance": total_distance,
            }).eq("id", session_id),
            "complete_session",
        )
        return bool(result.data)

    def get_completed_sessions(
        self,
        user_id: str,
        planned_workout_ids: Optional[Iterable[str]] = None,
        since: Optional[datetime] = None,
    ) -> List[WorkoutSession]:
        query = (
            self.client.table("workout_sessions_detailed")
            .select("*")
            .eq("user_id", user_id)
            .eq("status", SessionStatus.COMPLETED.value)
        )
        if planned_workout_ids is not None:
            ids = list(planned_workout_ids)
            if not ids:
                return []
            query = query.in_("planned_workout_id", ids)
        if since is not None:
            query = query.gte("end_time", since.isoformat())

        result = self._execute(query.order("end_time", desc=True), "get_completed_sessions")
        return [rows.row_to_session(r) for r in result.data or []]

    def add_event(self, event: WorkoutEvent) -> WorkoutEvent:
        if event.id is None:
            event.id = str(uuid.uuid4())
        self._execute(self.client.table("workout_events").insert(rows.event_to_row(event)), "add_event")
        return event

    def get_events(self, session_id: str) -> List[WorkoutEvent]:
        result = self._execute(
            self.client.table("workout_events").select("*").eq("session_id", session_id).order("seq"),
            "get_events",
        )
        return [rows.row_to_event(r) for r in result.data or []]

    # =========================================================================
    # Splits
    # =========================================================================

    def save_splits(self, session_id: str, splits: List[WorkoutSplit]) -> int:
        self._execute(self.client.table("workout_splits").delete().eq("session_id", session_id), "clear_splits")
        if not splits:
            return 0
        for split in splits:
            if split.id is None:
                split.id = str(uuid.uuid4())
        self._execute(
            self.client.table("workout_splits").insert([rows.split_to_row(s) for s in splits]),
            "save_splits",
        )
        return len(splits)

    def get_splits(self, session_id: str) -> List[WorkoutSplit]:
        result = self._execute(
            self.client.table("workout_splits")
            .select("*")
            .eq("session_id", session_id)
            .order("split_type", desc=True)
            .order("split_number"),
            "get_splits",
        )
        return [rows.row_to_split(r) for r in result.data or []]

    # =========================================================================
    # Completions
    # =========================================================================

    def save_completion(self, completion: WorkoutCompletion) -> WorkoutCompletion:
        self._execute(
            self.client.table("workout_completions").insert(rows.completion_to_row(completion)),
            "save_completion",
        )
        return completion

    def get_completions(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[WorkoutCompletion]:
        query = self.client.table("workout_completions").select("*").eq("user_id", user_id)
        if start is not None:
            query = query.gte("completed_at", start.isoformat())
        if end is not None:
            query = query.lte("completed_at", end.isoformat())
        result = self._execute(query.order("completed_at", desc=True), "get_completions")
        return [rows.row_to_completion(r) for r in result.data or []]

    def update_completion(
        self,
        completion_id: str,
        notes: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> bool:
        updates: Dict[str, Any] = {"updated_at": datetime.utcnow().isoformat()}
        if notes is not None:
            updates["notes"] = notes
        if rating is not None:
            updates["rating"] = rating
        result = self._execute(
            self.client.table("workout_completions").update(updates).eq("id", completion_id),
            "update_completion",
        )
        return bool(result.data)

    # =========================================================================
    # Health Check
    # =========================================================================

    def health_check(self) -> Dict[str, Any]:
        start_time = time.time()
        try:
            self.initialize()
            return {
                "healthy": True,
                "backend": "supabase",
                "latency_ms": round((time.time() - start_time) * 1000, 2),
                "details": {"url": self.url},
            }
        except DatabaseError as e:
            return {
                "healthy": False,
                "backend": "supabase",
                "latency_ms": round((time.time() - start_time) * 1000, 2),
                "details": {"error": e.message},
            }
