"""
Plan service: generate, store and read back training plans.

Plans are stored without calendar dates; every read re-derives them from the
plan start so that dates can never disagree with (week, day).
"""

from datetime import date
from typing import Dict, List, Optional
import logging

from ..db.adapters import DatabaseAdapter
from ..models.plans import PlanGenerationRequest, PlanGenerationResult, TrainingPlan
from ..models.progress import ActivePlanInfo, WeekSchedule
from ..scheduling.calendar import calculate_workout_dates, group_by_week
from .base import BaseService
from .plan_generator import GenerationStrategy, PlanGenerator
from .progress import ProgressService, compute_plan_progress


class PlanService(BaseService):
    """
    Service for the lifecycle of training plans.

    Usage:
        service = PlanService(adapter)
        result = await service.generate_and_save(user_id, request)
        info = service.get_active_plan(user_id)
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        generator: Optional[PlanGenerator] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(adapter, logger)
        self._generator = generator or PlanGenerator()
        self._progress = ProgressService(adapter)

    async def generate_and_save(
        self,
        user_id: str,
        request: PlanGenerationRequest,
        strategy: Optional[GenerationStrategy] = None,
    ) -> PlanGenerationResult:
        """Generate a plan for the user and store it as their active plan.

        The stored profile is used when the request carries none. Validation
        errors propagate; a failed save is reported in the result.
        """
        if request.profile is None:
            request.profile = self._guarded("Loading profile", lambda: self._adapter.get_profile(user_id), None)

        plan, cap = await self._generator.generate_plan(request, strategy)
        plan_id = self.save_plan(user_id, plan)
        if plan_id is None:
            return PlanGenerationResult(
                success=False,
                plan=plan,
                explanation=cap.explanation,
                error="The plan was generated but could not be saved",
            )

        return PlanGenerationResult(
            success=True,
            plan=self.get_plan(plan_id) or plan,
            plan_id=plan_id,
            explanation=cap.explanation,
        )

    def save_plan(self, user_id: str, plan: TrainingPlan, activate: bool = True) -> Optional[str]:
        """Store a plan for a user, returns its id or None when the save failed.

        Workouts without a week or day are placed by their position in the
        plan, ``workouts_per_week`` at a time.
        """
        per_week = max(1, plan.workouts_per_week)
        for index, workout in enumerate(plan.planned_workouts):
            if not workout.week_number:
                workout.week_number = index // per_week + 1
            if not workout.day_of_week:
                workout.day_of_week = index % per_week + 1

        plan.user_id = user_id
        plan.is_active = activate
        plan_id = self._guarded("Saving plan", lambda: self._adapter.save_plan(plan), None)
        if plan_id is None:
            return None

        if activate:
            self._guarded("Activating plan", lambda: self._adapter.set_active_plan(user_id, plan_id), False)
        self._logger.info(f"Saved plan {plan_id} ({plan.total_workouts} workouts) for {user_id}")
        return plan_id

    def get_plan(self, plan_id: str) -> Optional[TrainingPlan]:
        """A plan with its workouts ordered by (week, day) and dated."""
        plan = self._guarded("Loading plan", lambda: self._adapter.get_plan(plan_id), None)
        if plan is None:
            return None
        ordered = sorted(plan.planned_workouts, key=lambda w: (w.week_number or 0, w.day_of_week or 0))
        plan.planned_workouts = calculate_workout_dates(ordered, plan.start_date)
        return plan

    def get_user_plans(self, user_id: str) -> List[TrainingPlan]:
        return self._guarded("Listing plans", lambda: self._adapter.list_plans(user_id), [])

    def delete_plan(self, plan_id: str) -> bool:
        return self._guarded("Deleting plan", lambda: self._adapter.delete_plan(plan_id), False)

    def set_active_plan(self, user_id: str, plan_id: str) -> bool:
        return self._guarded("Activating plan", lambda: self._adapter.set_active_plan(user_id, plan_id), False)

    def get_schedule(self, plan_id: str) -> Dict[int, WeekSchedule]:
        plan = self.get_plan(plan_id)
        if plan is None:
            return {}
        return group_by_week(plan.planned_workouts)

    def get_active_plan(self, user_id: str, today: Optional[date] = None) -> Optional[ActivePlanInfo]:
        """The user's active plan with current week, progress and schedule."""
        plan_id = self._guarded("Loading active plan", lambda: self._adapter.get_active_plan_id(user_id), None)
        if plan_id is None:
            return None

        plan = self.get_plan(plan_id)
        if plan is None:
            self._logger.warning(f"Active plan {plan_id} of {user_id} could not be loaded")
            return None

        statuses = self._progress.statuses_for(plan.planned_workouts, user_id)
        progress = compute_plan_progress(statuses, plan.start_date, today)
        return ActivePlanInfo(
            plan=plan,
            current_week=progress.current_week,
            total_progress=progress.completion_percentage,
            weekly_progress=progress.current_week_progress.percentage,
            schedule=group_by_week(plan.planned_workouts),
        )
