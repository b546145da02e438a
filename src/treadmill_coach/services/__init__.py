"""Services: plan lifecycle, progress, session tracking and analytics."""

from .analytics import AnalyticsService
from .base import BaseService
from .completions import WorkoutCompletionService
from .plan_generator import GenerationStrategy, PlanGenerator
from .plan_service import PlanService
from .progress import ProgressService
from .session_tracking import ActiveSession, SessionTrackingService

__all__ = [
    "ActiveSession",
    "AnalyticsService",
    "BaseService",
    "GenerationStrategy",
    "PlanGenerator",
    "PlanService",
    "ProgressService",
    "SessionTrackingService",
    "WorkoutCompletionService",
]
