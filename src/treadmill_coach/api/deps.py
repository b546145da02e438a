"""Dependency injection for API routes."""

from functools import lru_cache

from ..config import get_settings
from ..db.adapters import DatabaseAdapter, get_database_adapter
from ..services.analytics import AnalyticsService
from ..services.completions import WorkoutCompletionService
from ..services.plan_generator import PlanGenerator
from ..services.plan_service import PlanService
from ..services.progress import ProgressService
from ..services.session_tracking import SessionTrackingService


@lru_cache
def get_adapter() -> DatabaseAdapter:
    """Get the database adapter, schema initialized."""
    adapter = get_database_adapter(get_settings())
    adapter.initialize()
    return adapter


@lru_cache
def get_plan_generator() -> PlanGenerator:
    return PlanGenerator(settings=get_settings())


def get_plan_service() -> PlanService:
    return PlanService(get_adapter(), generator=get_plan_generator())


def get_progress_service() -> ProgressService:
    return ProgressService(get_adapter())


def get_analytics_service() -> AnalyticsService:
    return AnalyticsService(get_adapter())


def get_completion_service() -> WorkoutCompletionService:
    return WorkoutCompletionService(get_adapter())


def get_tracking_service() -> SessionTrackingService:
    return SessionTrackingService(get_adapter())
