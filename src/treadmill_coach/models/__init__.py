"""Domain models."""

from .profile import FitnessLevel, SpeedRange, UserProfile, weekday_name
from .plans import (
    IntensityZone,
    PlanGenerationRequest,
    PlanGenerationResult,
    PlanIntensity,
    PlannedWorkout,
    PlanSource,
    TrainingPlan,
    TrainingSegment,
    WorkoutType,
)
from .sessions import (
    EventData,
    EventType,
    SessionStatus,
    WorkoutCompletion,
    WorkoutEvent,
    WorkoutSession,
)
from .analytics import (
    PerformanceComparison,
    ProfilePoint,
    SplitPerformance,
    SplitType,
    UserProgressStats,
    WorkoutAnalytics,
    WorkoutSplit,
)
from .progress import (
    ActivePlanInfo,
    CompletionData,
    PlanProgress,
    WeekProgress,
    WeekSchedule,
    WorkoutCompletionStatus,
    WorkoutStats,
)

__all__ = [
    "FitnessLevel",
    "SpeedRange",
    "UserProfile",
    "weekday_name",
    "IntensityZone",
    "PlanGenerationRequest",
    "PlanGenerationResult",
    "PlanIntensity",
    "PlannedWorkout",
    "PlanSource",
    "TrainingPlan",
    "TrainingSegment",
    "WorkoutType",
    "EventData",
    "EventType",
    "SessionStatus",
    "WorkoutCompletion",
    "WorkoutEvent",
    "WorkoutSession",
    "PerformanceComparison",
    "ProfilePoint",
    "SplitPerformance",
    "SplitType",
    "UserProgressStats",
    "WorkoutAnalytics",
    "WorkoutSplit",
    "ActivePlanInfo",
    "CompletionData",
    "PlanProgress",
    "WeekProgress",
    "WeekSchedule",
    "WorkoutCompletionStatus",
    "WorkoutStats",
]
