"""
Training plan generation.

Three strategies build the same TrainingPlan shape:

- ai: ask the plan assistant and validate its JSON
- fixture: load the bundled debug plan (ignores the requested week count)
- fallback: deterministic easy/intervals/tempo rotation

Every request goes through the workout-count safety policy first. Any failure
of the ai or fixture strategy is logged and answered with the fallback plan,
so a valid profile always yields a plan.
"""

from collections import Counter
from datetime import datetime
from enum import Enum
from math import ceil
from pathlib import Path
from typing import Dict, List, Optional, Tuple
import json
import logging

from pydantic import ValidationError as SchemaValidationError

from ..config import Settings, get_settings
from ..exceptions import LLMError, LLMResponseInvalidError, PlanGenerationError, PlanValidationError
from ..llm.assistant import AssistantClient
from ..llm.prompts import build_plan_prompt
from ..llm.schemas import (
    INTENSITY_RPE,
    SEGMENT_TYPE_NAMES,
    WORKOUT_TYPE_ALIASES,
    AIPlanResponse,
    FixturePlan,
)
from ..models.plans import (
    IntensityZone,
    PlanGenerationRequest,
    PlanIntensity,
    PlannedWorkout,
    PlanSource,
    TrainingPlan,
    TrainingSegment,
    WorkoutType,
)
from ..models.profile import UserProfile
from ..scheduling.safety import WorkoutCapResult, cap_workouts


logger = logging.getLogger(__name__)


class GenerationStrategy(str, Enum):
    AUTO = "auto"
    AI = "ai"
    FIXTURE = "fixture"
    FALLBACK = "fallback"


# =============================================================================
# Constants
# =============================================================================

WORKOUT_ROTATION = [WorkoutType.EASY_RUN, WorkoutType.INTERVALS, WorkoutType.TEMPO]

# Weekdays used when the user did not pick any, spread to leave rest days
DEFAULT_DAY_PATTERNS: Dict[int, List[int]] = {
    1: [1],
    2: [1, 4],
    3: [1, 3, 5],
    4: [1, 3, 5, 7],
    5: [1, 2, 4, 5, 7],
    6: [1, 2, 3, 5, 6, 7],
    7: [1, 2, 3, 4, 5, 6, 7],
}

WARM_UP_SECONDS = 300
COOL_DOWN_SECONDS = 300
MIN_MAIN_MINUTES = 5

INTENSITY_MULTIPLIERS = {
    PlanIntensity.LIGHT: 0.8,
    PlanIntensity.MODERATE: 1.0,
    PlanIntensity.INTENSE: 1.2,
}

BASE_DIFFICULTY = {
    WorkoutType.EASY_RUN: 4,
    WorkoutType.INTERVALS: 7,
    WorkoutType.TEMPO: 6,
}

# Ratio of distance covered vs. running at the usual speed for the whole session
DISTANCE_MULTIPLIERS = {
    WorkoutType.EASY_RUN: 0.85,
    WorkoutType.INTERVALS: 0.9,
    WorkoutType.TEMPO: 1.05,
    WorkoutType.LONG_RUN: 0.8,
    WorkoutType.RECOVERY_RUN: 0.75,
    WorkoutType.FARTLEK: 0.95,
    WorkoutType.TIME_TRIAL: 1.1,
    WorkoutType.HILL_TRAINING: 0.8,
    WorkoutType.PROGRESSION_RUN: 0.9,
    WorkoutType.THRESHOLD: 1.0,
}

# Target pace relative to the usual running pace
PACE_ADJUSTMENTS = {
    WorkoutType.EASY_RUN: 1.15,
    WorkoutType.INTERVALS: 0.85,
    WorkoutType.TEMPO: 0.95,
    WorkoutType.LONG_RUN: 1.2,
    WorkoutType.RECOVERY_RUN: 1.3,
    WorkoutType.FARTLEK: 1.0,
    WorkoutType.TIME_TRIAL: 0.9,
    WorkoutType.HILL_TRAINING: 1.1,
    WorkoutType.PROGRESSION_RUN: 1.05,
    WorkoutType.THRESHOLD: 0.92,
}

WORKOUT_NAMES = {
    WorkoutType.EASY_RUN: "Easy run",
    WorkoutType.INTERVALS: "Intervals",
    WorkoutType.TEMPO: "Tempo run",
}

WORKOUT_DESCRIPTIONS = {
    WorkoutType.EASY_RUN: "Comfortable running to build your aerobic base.",
    WorkoutType.INTERVALS: "Faster running to raise your top-end speed.",
    WorkoutType.TEMPO: "Comfortably hard running just above your usual pace.",
}


# =============================================================================
# Validation and shared helpers
# =============================================================================


def validate_request(request: PlanGenerationRequest) -> None:
    """Reject requests that cannot produce a plan. Runs before any generation."""
    profile = request.profile
    if profile is None:
        raise PlanValidationError("Complete your profile before generating a plan", field="profile")
    if request.weeks < 1:
        raise PlanValidationError(f"A plan needs at least one week, got {request.weeks}", field="weeks")
    if not isinstance(request.intensity, PlanIntensity):
        raise PlanValidationError(f"Unknown intensity: {request.intensity}", field="intensity")
    if profile.available_days is not None:
        if not profile.available_days:
            raise PlanValidationError("Select at least one training day", field="available_days")
        invalid = [d for d in profile.available_days if not 1 <= d <= 7]
        if invalid:
            raise PlanValidationError(f"Invalid weekdays: {invalid}", field="available_days")
        if len(set(profile.available_days)) != len(profile.available_days):
            raise PlanValidationError(
                f"Each training day can only be picked once: {profile.available_days}",
                field="available_days",
            )
    if profile.requested_sessions < 1:
        raise PlanValidationError("Request at least one session per week", field="weekly_availability")


def apply_safety_cap(request: PlanGenerationRequest) -> WorkoutCapResult:
    profile = request.profile
    return cap_workouts(
        profile.level,
        profile.requested_sessions,
        request.goal or profile.goal,
        profile.previous_experience,
    )


def pick_training_days(profile: UserProfile, count: int) -> List[int]:
    """Weekdays for ``count`` sessions: the user's own days first, else a fixed spread."""
    days = profile.sorted_days
    if len(days) >= count:
        return days[:count]
    return DEFAULT_DAY_PATTERNS[min(max(count, 1), 7)]


def estimate_distance(workout_type: WorkoutType, duration_min: int, running_speed: float) -> float:
    """Rough distance in meters when only the duration of a workout is known."""
    full_speed_distance = running_speed / 3.6 * duration_min * 60
    return round(full_speed_distance * DISTANCE_MULTIPLIERS.get(workout_type, 1.0))


def target_pace_for(workout_type: WorkoutType, running_speed: float) -> Optional[float]:
    """Target pace in min/km derived from the usual running speed."""
    if running_speed <= 0:
        return None
    return round(60 / running_speed * PACE_ADJUSTMENTS.get(workout_type, 1.0), 2)


def _segments_distance(segments: List[TrainingSegment]) -> float:
    return round(sum(s.duration * s.target_speed / 3.6 for s in segments))


def _clamp(value: float, low: int, high: int) -> int:
    return int(max(low, min(high, round(value))))


def _plan_name(goal: str, weeks: int) -> str:
    return f"Plan {goal} - {weeks} weeks"


# =============================================================================
# Fallback strategy
# =============================================================================


def _main_segment(workout_type: WorkoutType, profile: UserProfile, duration: int) -> TrainingSegment:
    speeds = profile.preferred_speed_range
    cap = profile.max_speed
    if workout_type == WorkoutType.INTERVALS:
        speed = speeds.sprint if speeds.sprint > speeds.running else speeds.running * 1.15
        return TrainingSegment(
            name="Fast running",
            duration=duration,
            target_speed=round(min(speed, cap), 1),
            intensity=IntensityZone.VO2MAX,
            rpe=8,
            instruction="Run hard but controlled; slow down if your form breaks.",
        )
    if workout_type == WorkoutType.TEMPO:
        return TrainingSegment(
            name="Tempo",
            duration=duration,
            target_speed=round(min(speeds.running * 1.05, cap), 1),
            intensity=IntensityZone.TEMPO,
            rpe=6,
            instruction="Comfortably hard: you can speak a few words, not full sentences.",
        )
    return TrainingSegment(
        name="Easy run",
        duration=duration,
        target_speed=round(min(speeds.running, cap), 1),
        intensity=IntensityZone.EASY,
        rpe=5,
        instruction="Comfortable running, you should be able to hold a conversation.",
    )


def build_fallback_workout(
    workout_type: WorkoutType,
    profile: UserProfile,
    week_number: int,
    day_of_week: int,
    intensity: PlanIntensity,
) -> PlannedWorkout:
    """One warm-up / main / cool-down workout."""
    walking = round(min(profile.preferred_speed_range.walking, profile.max_speed), 1)
    main_minutes = max(MIN_MAIN_MINUTES, profile.usual_workout_duration - 10)

    segments = [
        TrainingSegment(
            name="Warm-up",
            duration=WARM_UP_SECONDS,
            target_speed=walking,
            intensity=IntensityZone.WARM_UP,
            rpe=3,
            instruction="Brisk walk to get your muscles ready.",
        ),
        _main_segment(workout_type, profile, main_minutes * 60),
        TrainingSegment(
            name="Cool-down",
            duration=COOL_DOWN_SECONDS,
            target_speed=walking,
            intensity=IntensityZone.COOL_DOWN,
            rpe=2,
            instruction="Slow walk to bring your heart rate down gradually.",
        ),
    ]

    main_speed = segments[1].target_speed
    return PlannedWorkout(
        name=f"{WORKOUT_NAMES[workout_type]} - Week {week_number}",
        description=WORKOUT_DESCRIPTIONS[workout_type],
        workout_type=workout_type,
        week_number=week_number,
        day_of_week=day_of_week,
        estimated_duration=main_minutes + (WARM_UP_SECONDS + COOL_DOWN_SECONDS) // 60,
        estimated_distance=_segments_distance(segments),
        difficulty=_clamp(BASE_DIFFICULTY[workout_type] * INTENSITY_MULTIPLIERS[intensity], 1, 10),
        target_pace=round(60 / main_speed, 2) if main_speed > 0 else None,
        segments=segments,
    )


def build_fallback_plan(request: PlanGenerationRequest, cap: WorkoutCapResult) -> TrainingPlan:
    """``weeks x workouts_per_week`` workouts cycling easy run, intervals, tempo."""
    profile = request.profile
    per_week = cap.workouts_per_week
    days = pick_training_days(profile, per_week)

    workouts = []
    for week in range(1, request.weeks + 1):
        for slot, day in enumerate(days):
            index = (week - 1) * per_week + slot
            workout_type = WORKOUT_ROTATION[index % len(WORKOUT_ROTATION)]
            workouts.append(build_fallback_workout(workout_type, profile, week, day, request.intensity))

    return TrainingPlan(
        name=_plan_name(request.goal, request.weeks),
        description="Automatically generated plan alternating easy runs, intervals and tempo runs.",
        goal=request.goal,
        total_weeks=request.weeks,
        workouts_per_week=per_week,
        start_date=request.start_date,
        planned_workouts=workouts,
        user_profile=profile,
        generated_by_ai=False,
        source=PlanSource.FALLBACK,
    )


# =============================================================================
# AI strategy
# =============================================================================


def plan_from_ai_response(
    data: Dict,
    request: PlanGenerationRequest,
    cap: WorkoutCapResult,
    prompt: str,
) -> TrainingPlan:
    """Validate the assistant's JSON and turn it into a plan.

    Raises LLMResponseInvalidError when the payload does not match the schema,
    schedules a week beyond the plan, or puts more sessions in a week than the
    safety cap allows.
    """
    try:
        response = AIPlanResponse.model_validate(data)
    except SchemaValidationError as e:
        raise LLMResponseInvalidError(
            message="Assistant plan does not match the expected schema",
            details={"errors": e.errors(include_url=False)[:10]},
        )

    out_of_range = [w.week_number for w in response.workouts if w.week_number > request.weeks]
    if out_of_range:
        raise LLMResponseInvalidError(
            message=f"Assistant scheduled workouts after week {request.weeks}",
            details={"weeks": sorted(set(out_of_range))},
        )

    per_week = Counter(w.week_number for w in response.workouts)
    busiest = max(per_week.values())
    if busiest > cap.workouts_per_week:
        raise LLMResponseInvalidError(
            message=f"Assistant planned {busiest} sessions in a week, limit is {cap.workouts_per_week}",
        )

    running_speed = request.profile.preferred_speed_range.running
    workouts = []
    for item in response.workouts:
        segments = [
            TrainingSegment(
                name=s.name,
                duration=s.duration,
                distance=s.distance,
                target_speed=s.target_speed,
                target_incline=s.target_incline,
                intensity=s.intensity,
                rpe=s.rpe,
                instruction=s.instruction,
                recovery_after=s.recovery_after,
            )
            for s in item.segments
        ]
        workouts.append(PlannedWorkout(
            name=item.name,
            description=item.description,
            workout_type=item.workout_type,
            week_number=item.week_number,
            day_of_week=item.day_of_week,
            estimated_duration=item.estimated_duration,
            estimated_distance=item.estimated_distance or estimate_distance(
                item.workout_type, item.estimated_duration, running_speed
            ),
            difficulty=item.difficulty,
            target_pace=item.target_pace or target_pace_for(item.workout_type, running_speed),
            segments=segments,
        ))

    if response.workouts_per_week != cap.workouts_per_week:
        logger.warning(
            f"Assistant reported {response.workouts_per_week} sessions/week, "
            f"using {cap.workouts_per_week}"
        )

    return TrainingPlan(
        name=response.name,
        description=response.description,
        goal=request.goal,
        total_weeks=request.weeks,
        workouts_per_week=cap.workouts_per_week,
        start_date=request.start_date,
        planned_workouts=workouts,
        user_profile=request.profile,
        generated_by_ai=True,
        source=PlanSource.AI,
        ai_prompt=prompt,
    )


# =============================================================================
# Fixture strategy
# =============================================================================


def load_fixture(path: Path) -> FixturePlan:
    """Read and validate the debug plan file."""
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        return FixturePlan.model_validate(raw)
    except (OSError, json.JSONDecodeError, SchemaValidationError) as e:
        raise PlanGenerationError(f"Could not load fixture plan {path}: {e}", phase="fixture")


def _fixture_workout_type(workout_type: Optional[str], segments: List[TrainingSegment]) -> WorkoutType:
    if workout_type:
        return WORKOUT_TYPE_ALIASES[workout_type]
    zones = {s.intensity for s in segments}
    if zones & {IntensityZone.VO2MAX, IntensityZone.NEUROMUSCULAR}:
        return WorkoutType.INTERVALS
    if IntensityZone.THRESHOLD in zones:
        return WorkoutType.THRESHOLD
    if IntensityZone.TEMPO in zones:
        return WorkoutType.TEMPO
    return WorkoutType.EASY_RUN


def plan_from_fixture(fixture: FixturePlan, request: PlanGenerationRequest) -> TrainingPlan:
    """Map the shorthand fixture vocabulary onto canonical workouts.

    The plan length comes from the fixture itself (its highest week number),
    not from the request.
    """
    workouts = []
    for item in fixture.training_plan:
        segments = [
            TrainingSegment(
                name=SEGMENT_TYPE_NAMES[s.intensity],
                duration=s.duration,
                target_speed=s.target_speed,
                target_incline=s.incline,
                intensity=s.intensity,
                rpe=INTENSITY_RPE[s.intensity],
                instruction=s.description,
            )
            for s in item.segments
        ]
        distance = _segments_distance(segments)
        total_seconds = sum(s.duration for s in segments)
        average_speed = distance / 1000 / (total_seconds / 3600) if total_seconds else 0
        workouts.append(PlannedWorkout(
            name=item.name,
            description=item.description,
            workout_type=_fixture_workout_type(item.workout_type, segments),
            week_number=item.week_number,
            day_of_week=item.day_of_week,
            estimated_duration=item.estimated_duration,
            estimated_distance=distance,
            difficulty=_clamp(sum(s.rpe for s in segments) / len(segments), 1, 10),
            target_pace=round(60 / average_speed, 2) if average_speed > 0 else None,
            segments=segments,
        ))

    total_weeks = max(w.week_number for w in workouts)
    return TrainingPlan(
        name=fixture.name,
        description=fixture.description,
        goal=request.goal,
        total_weeks=total_weeks,
        workouts_per_week=max(1, ceil(len(workouts) / total_weeks)),
        start_date=request.start_date,
        planned_workouts=workouts,
        user_profile=request.profile,
        generated_by_ai=False,
        source=PlanSource.FIXTURE,
    )


# =============================================================================
# Generator
# =============================================================================


class PlanGenerator:
    """
    Builds training plans with the configured strategy.

    Usage:
        generator = PlanGenerator()
        plan, cap = await generator.generate_plan(request)
        if cap.explanation:
            show(cap.explanation)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        assistant: Optional[AssistantClient] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._assistant = assistant
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    def _resolve_strategy(self, strategy: Optional[GenerationStrategy]) -> GenerationStrategy:
        chosen = GenerationStrategy(strategy or self._settings.plan_generation_strategy)
        if chosen != GenerationStrategy.AUTO:
            return chosen
        if self._assistant is not None or self._settings.ai_configured:
            return GenerationStrategy.AI
        return GenerationStrategy.FALLBACK

    async def generate_plan(
        self,
        request: PlanGenerationRequest,
        strategy: Optional[GenerationStrategy] = None,
    ) -> Tuple[TrainingPlan, WorkoutCapResult]:
        """Generate a plan for a validated request.

        Raises:
            PlanValidationError: The request cannot produce a plan
        """
        validate_request(request)
        cap = apply_safety_cap(request)
        if cap.was_capped:
            self._logger.info(cap.explanation)

        chosen = self._resolve_strategy(strategy)
        started = datetime.now()

        if chosen == GenerationStrategy.AI:
            try:
                plan = await self._generate_with_ai(request, cap)
            except LLMError as e:
                self._logger.warning(f"AI plan generation failed, using fallback plan: {e.message}")
                plan = build_fallback_plan(request, cap)
        elif chosen == GenerationStrategy.FIXTURE:
            try:
                plan = plan_from_fixture(load_fixture(self._settings.fixture_plan_path), request)
            except PlanGenerationError as e:
                self._logger.warning(f"Fixture plan unavailable, using fallback plan: {e.message}")
                plan = build_fallback_plan(request, cap)
        else:
            plan = build_fallback_plan(request, cap)

        elapsed = (datetime.now() - started).total_seconds()
        self._logger.info(
            f"Generated {plan.source.value} plan '{plan.name}': {plan.total_weeks} weeks, "
            f"{plan.total_workouts} workouts in {elapsed:.1f}s"
        )
        return plan, cap

    async def _generate_with_ai(self, request: PlanGenerationRequest, cap: WorkoutCapResult) -> TrainingPlan:
        assistant = self._assistant or AssistantClient()
        prompt = build_plan_prompt(request, cap.workouts_per_week)
        data = await assistant.run_json(prompt)
        return plan_from_ai_response(data, request, cap, prompt)
