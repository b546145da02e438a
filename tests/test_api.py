"""
Tests for the REST API.

Every dependency is overridden so requests hit a temporary SQLite database and
a generator that always uses the deterministic fallback plan.
"""

import pytest
from fastapi.testclient import TestClient

from treadmill_coach.api.deps import (
    get_adapter,
    get_analytics_service,
    get_completion_service,
    get_plan_service,
    get_progress_service,
    get_tracking_service,
)
from treadmill_coach.main import app
from treadmill_coach.services.analytics import AnalyticsService
from treadmill_coach.services.completions import WorkoutCompletionService
from treadmill_coach.services.plan_generator import PlanGenerator
from treadmill_coach.services.plan_service import PlanService
from treadmill_coach.services.progress import ProgressService
from treadmill_coach.services.session_tracking import SessionTrackingService

from conftest import make_completed_session


client = TestClient(app)

PROFILE = {
    "level": "beginner",
    "goal": "10k",
    "available_days": [1, 3, 5],
    "max_speed": 14.0,
    "preferred_speed_range": {"walking": 5.5, "running": 9.0, "sprint": 13.0},
    "usual_workout_duration": 40,
}


@pytest.fixture(autouse=True)
def override_dependencies(adapter, fallback_settings):
    generator = PlanGenerator(settings=fallback_settings)
    app.dependency_overrides[get_adapter] = lambda: adapter
    app.dependency_overrides[get_plan_service] = lambda: PlanService(adapter, generator=generator)
    app.dependency_overrides[get_progress_service] = lambda: ProgressService(adapter)
    app.dependency_overrides[get_analytics_service] = lambda: AnalyticsService(adapter)
    app.dependency_overrides[get_completion_service] = lambda: WorkoutCompletionService(adapter)
    app.dependency_overrides[get_tracking_service] = lambda: SessionTrackingService(adapter)
    yield
    app.dependency_overrides.clear()


def generate(user_id="user-1", **overrides):
    body = {
        "user_id": user_id,
        "goal": "10k",
        "weeks": 4,
        "start_date": "2024-08-22",
        "profile": PROFILE,
    }
    body.update(overrides)
    return client.post("/api/v1/plans/generate", json=body)


class TestHealth:

    def test_root(self):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_includes_database(self):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["database"]["backend"] == "sqlite"


class TestProfilesEndpoint:

    def test_put_then_get(self):
        response = client.put("/api/v1/profiles/user-1", json=PROFILE)
        assert response.status_code == 200

        data = client.get("/api/v1/profiles/user-1").json()
        assert data["level"] == "beginner"
        assert data["available_days"] == [1, 3, 5]

    def test_missing_profile(self):
        response = client.get("/api/v1/profiles/nobody")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PROFILE_NOT_FOUND"

    def test_invalid_profile(self):
        response = client.put("/api/v1/profiles/user-1", json={**PROFILE, "max_speed": -1})
        assert response.status_code == 422


class TestPlansEndpoint:
    """Tests for plan generation and reads."""

    def test_generate(self):
        response = generate()

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["plan"]["source"] == "fallback"
        assert data["plan"]["planned_workouts"][0]["scheduled_date"] == "2024-08-26"
        assert len(data["plan"]["planned_workouts"]) == 12

    def test_generate_reports_cap(self):
        data = generate(goal="marathon", profile={**PROFILE, "available_days": [1, 2, 3, 4, 5, 6]}).json()

        assert data["plan"]["workouts_per_week"] == 3
        assert "reduced from 6 to 3" in data["explanation"]

    def test_generate_with_stored_profile(self):
        client.put("/api/v1/profiles/user-1", json=PROFILE)

        assert generate(profile=None).json()["success"] is True

    def test_generate_without_profile(self):
        response = generate(profile=None)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PLAN_VALIDATION_ERROR"

    def test_generate_rejects_zero_weeks(self):
        assert generate(weeks=0).status_code == 422

    def test_plan_reads(self):
        plan_id = generate().json()["plan_id"]

        plan = client.get(f"/api/v1/plans/{plan_id}").json()
        assert plan["id"] == plan_id

        schedule = client.get(f"/api/v1/plans/{plan_id}/schedule").json()
        assert [w["week_number"] for w in schedule["weeks"]] == [1, 2, 3, 4]
        assert schedule["weeks"][0]["start_date"] == "2024-08-26"

        plans = client.get("/api/v1/plans/user/user-1").json()
        assert plans["total"] == 1

        active = client.get("/api/v1/plans/active/user-1").json()
        assert active["active_plan"]["plan"]["id"] == plan_id

    def test_no_active_plan(self):
        data = client.get("/api/v1/plans/active/user-1").json()

        assert data["active_plan"] is None
        assert data["message"]

    def test_unknown_plan(self):
        response = client.get("/api/v1/plans/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PLAN_NOT_FOUND"
        assert client.get("/api/v1/plans/missing/schedule").status_code == 404
        assert client.get("/api/v1/plans/missing/progress", params={"user_id": "user-1"}).status_code == 404

    def test_delete(self):
        plan_id = generate().json()["plan_id"]

        assert client.delete(f"/api/v1/plans/{plan_id}").json()["deleted"] is True
        assert client.delete(f"/api/v1/plans/{plan_id}").status_code == 404

    def test_activate_requires_owner(self):
        plan_id = generate().json()["plan_id"]

        response = client.post(f"/api/v1/plans/{plan_id}/activate", params={"user_id": "user-2"})

        assert response.status_code == 404

    def test_progress_and_completion(self, adapter):
        data = generate().json()
        workout_id = data["plan"]["planned_workouts"][0]["id"]
        make_completed_session(adapter, planned_workout_id=workout_id)

        progress = client.get(f"/api/v1/plans/{data['plan_id']}/progress", params={"user_id": "user-1"}).json()
        assert progress["completed_workouts"] == 1
        assert progress["completion_percentage"] == 8

        completion = client.get(
            f"/api/v1/plans/{data['plan_id']}/completion", params={"user_id": "user-1"}
        ).json()
        done = [w for w in completion["workouts"] if w["is_completed"]]
        assert [w["planned_workout_id"] for w in done] == [workout_id]

    def test_safety_cap(self):
        data = client.get(
            "/api/v1/plans/safety-cap",
            params={"level": "beginner", "requested": 6, "goal": "marathon"},
        ).json()

        assert data["workouts_per_week"] == 3
        assert data["was_capped"] is True


class TestSessionsEndpoint:

    def test_user_stats(self, adapter):
        make_completed_session(adapter, distance=6000, duration=1800)

        data = client.get("/api/v1/sessions/stats/user-1", params={"days": 7}).json()

        assert data["total_workouts"] == 1
        assert data["average_speed"] == 12.0

    def test_analytics_of_unknown_session(self):
        response = client.get("/api/v1/sessions/missing/analytics")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SESSION_NOT_FOUND"

    def test_analytics_and_comparison(self, adapter):
        make_completed_session(adapter, distance=5000)
        current = make_completed_session(adapter, distance=6000)

        analytics = client.get(f"/api/v1/sessions/{current.id}/analytics").json()
        assert analytics["total_distance"] == 6000
        assert "split_performance" in analytics

        comparison = client.get(
            f"/api/v1/sessions/{current.id}/comparison", params={"user_id": "user-1"}
        ).json()
        assert {c["metric"] for c in comparison["comparisons"]} == {
            "average_speed", "average_pace", "total_distance", "duration",
        }

        splits = client.get(f"/api/v1/sessions/{current.id}/splits").json()
        assert splits["splits"] == []

    def test_completions(self):
        body = {"user_id": "user-1", "planned_workout_id": "w1", "duration": 1800, "distance": 6000, "rating": 4}

        saved = client.post("/api/v1/sessions/completions", json=body).json()
        assert saved["average_speed"] == pytest.approx(12.0)

        stats = client.get("/api/v1/sessions/completions/user-1/stats").json()
        assert stats["total_workouts"] == 1
        assert stats["current_streak"] == 1

    def test_completion_rating_out_of_range(self):
        body = {"user_id": "user-1", "planned_workout_id": "w1", "duration": 1800, "distance": 6000, "rating": 9}
        assert client.post("/api/v1/sessions/completions", json=body).status_code == 422


class TestSessionTrackingEndpoint:
    """Tests for starting, logging and finishing a session over HTTP."""

    def start(self, **overrides):
        body = {"user_id": "user-1", "workout_name": "Easy run", "planned_workout_id": "w1"}
        body.update(overrides)
        return client.post("/api/v1/sessions", json=body)

    def post_event(self, session_id, **body):
        return client.post(f"/api/v1/sessions/{session_id}/events", json=body)

    def test_tracked_session_feeds_analytics(self):
        session = self.start().json()
        assert session["status"] == "active"
        session_id = session["id"]

        self.post_event(session_id, event_type="segment_start", elapsed_time=0, distance=0,
                        segment_index=0, segment_name="Main")
        event = self.post_event(session_id, event_type="speed_change", elapsed_time=0, distance=0, new_speed=12.0)
        assert event.status_code == 200
        assert event.json()["data"]["new_speed"] == 12.0

        finished = client.post(f"/api/v1/sessions/{session_id}/finish", json={"elapsed_time": 300, "distance": 1000})
        assert finished.status_code == 200
        assert finished.json()["status"] == "completed"

        splits = client.get(f"/api/v1/sessions/{session_id}/splits").json()["splits"]
        assert splits[0]["segment_name"] == "Main"
        assert splits[0]["average_speed"] == 12.0

        analytics = client.get(f"/api/v1/sessions/{session_id}/analytics").json()
        assert analytics["total_distance"] == 1000

    def test_event_out_of_order(self):
        session_id = self.start().json()["id"]
        self.post_event(session_id, event_type="pause", elapsed_time=60, distance=150)

        response = self.post_event(session_id, event_type="resume", elapsed_time=30, distance=150)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "SESSION_VALIDATION_ERROR"

    def test_event_on_unknown_session(self):
        response = self.post_event("missing", event_type="pause", elapsed_time=0, distance=0)
        assert response.status_code == 404

    def test_finish_twice(self):
        session_id = self.start().json()["id"]
        client.post(f"/api/v1/sessions/{session_id}/finish", json={"elapsed_time": 60, "distance": 150})

        response = client.post(f"/api/v1/sessions/{session_id}/finish", json={"elapsed_time": 60, "distance": 150})

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "SESSION_FINISHED"

    def test_unknown_event_type(self):
        session_id = self.start().json()["id"]
        assert self.post_event(session_id, event_type="jump", elapsed_time=0, distance=0).status_code == 422
