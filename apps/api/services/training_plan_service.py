"""
Training Plan Service

Orchestrates the plan pipeline for one athlete:

    activity source -> metrics -> zones -> weekly workouts -> plan store

Decisions made here:
- A stored plan younger than PLAN_FRESHNESS_DAYS is reused. Only its
  weekly workouts are rebuilt (from the stored metrics/zones/goals, dated
  from today); nothing is fetched and nothing is written.
- An older plan, or no plan, triggers a fetch and a full regeneration.
- Sync always fetches, and records why the plan changed.

The service never reads the clock. Callers pass `now` (tz-aware).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Protocol
from uuid import UUID

from core.config import settings
from services.plan_adaptation import (
    AdaptationEntry,
    append_adaptations,
    calculate_adaptations,
    initial_plan_entry,
    sync_adaptations,
)
from services.plan_goals import TrainingGoals, plan_name
from services.plan_store import PlanStore, TrainingPlanDocument
from services.running_metrics import ActivityRecord, analyze_running_data
from services.strava_service import StravaCredentials
from services.training_zones import calculate_training_zones
from services.workout_builder import Workout, build_weekly_workouts

logger = logging.getLogger(__name__)


class ActivitySource(Protocol):
    def fetch_recent_activities(
        self,
        credentials: StravaCredentials,
        window_days: int,
        now: datetime,
    ) -> List[ActivityRecord]:
        ...


@dataclass
class PlanView:
    """A plan plus the workouts to show for the current week."""
    plan: TrainingPlanDocument
    upcoming_workouts: List[Workout]
    regenerated: bool


@dataclass
class SyncResult:
    activities_synced: int
    synced_at: datetime
    adaptations: List[AdaptationEntry] = field(default_factory=list)
    plan: Optional[TrainingPlanDocument] = None
    activities: List[ActivityRecord] = field(default_factory=list)


class TrainingPlanService:
    """
    Plan orchestration over a PlanStore and an ActivitySource.

    Usage:
        service = TrainingPlanService(SqlAlchemyPlanStore(db), StravaActivitySource())
        view = service.get_or_create_plan(athlete.id, credentials, now)
    """

    def __init__(
        self,
        store: PlanStore,
        source: ActivitySource,
        window_days: Optional[int] = None,
        metrics_window_days: Optional[int] = None,
        freshness_days: Optional[int] = None,
        adaptation_limit: Optional[int] = None,
    ):
        self.store = store
        self.source = source
        self.window_days = window_days or settings.STRAVA_ACTIVITY_WINDOW_DAYS
        self.metrics_window_days = metrics_window_days or settings.METRICS_WINDOW_DAYS
        self.freshness_days = freshness_days or settings.PLAN_FRESHNESS_DAYS
        self.adaptation_limit = adaptation_limit or settings.ADAPTATION_LOG_LIMIT

    # =========================================================================
    # READ / GENERATE
    # =========================================================================

    def is_fresh(self, plan: TrainingPlanDocument, now: datetime) -> bool:
        return now - plan.created_at < timedelta(days=self.freshness_days)

    def get_or_create_plan(
        self,
        user_id: UUID,
        credentials: StravaCredentials,
        now: datetime,
    ) -> PlanView:
        """
        Current plan for the athlete, regenerating it when stale or missing.

        A fresh plan is returned with its weekly workouts re-dated from
        today; the stored document is left untouched.
        """
        existing = self.store.get_plan(user_id)

        if existing is not None and self.is_fresh(existing, now):
            workouts = build_weekly_workouts(
                existing.metrics,
                existing.training_zones,
                existing.goals,
                now.date(),
            )
            logger.debug(f"Reusing plan {existing.id} for athlete {user_id}")
            return PlanView(plan=existing, upcoming_workouts=workouts, regenerated=False)

        goals = existing.goals if existing is not None else TrainingGoals()
        plan = self._regenerate(user_id, credentials, goals, existing, now)
        return PlanView(plan=plan, upcoming_workouts=plan.weekly_plan, regenerated=True)

    def generate_plan(
        self,
        user_id: UUID,
        credentials: StravaCredentials,
        goals: TrainingGoals,
        now: datetime,
    ) -> PlanView:
        """Build a plan for explicit goals. Always fetches and persists."""
        existing = self.store.get_plan(user_id)
        plan = self._regenerate(user_id, credentials, goals, existing, now)
        return PlanView(plan=plan, upcoming_workouts=plan.weekly_plan, regenerated=True)

    def current_week(
        self,
        user_id: UUID,
        credentials: StravaCredentials,
        now: datetime,
    ) -> List[Workout]:
        return self.get_or_create_plan(user_id, credentials, now).upcoming_workouts

    def _regenerate(
        self,
        user_id: UUID,
        credentials: StravaCredentials,
        goals: TrainingGoals,
        existing: Optional[TrainingPlanDocument],
        now: datetime,
    ) -> TrainingPlanDocument:
        activities = self.source.fetch_recent_activities(credentials, self.window_days, now)
        metrics = analyze_running_data(activities, now, self.metrics_window_days)
        zones = calculate_training_zones(metrics)
        workouts = build_weekly_workouts(metrics, zones, goals, now.date())

        if existing is None:
            adaptations = [initial_plan_entry(now)]
            plan_id = None
        else:
            entries = calculate_adaptations(metrics, existing.metrics, now)
            adaptations = append_adaptations(existing.adaptations, entries, self.adaptation_limit)
            plan_id = existing.id

        plan = TrainingPlanDocument(
            user_id=user_id,
            name=plan_name(goals),
            created_at=now,
            updated_at=now,
            goals=goals,
            metrics=metrics,
            training_zones=zones,
            weekly_plan=workouts,
            adaptations=adaptations,
        )
        if plan_id is not None:
            plan.id = plan_id

        self.store.save_plan(user_id, plan)
        logger.info(
            f"Generated training plan for athlete {user_id}",
            extra={"extra_fields": {
                "plan_id": str(plan.id),
                "activities": len(activities),
                "regeneration": existing is not None,
            }},
        )
        return plan

    # =========================================================================
    # SYNC
    # =========================================================================

    def sync_plan(
        self,
        user_id: UUID,
        credentials: StravaCredentials,
        now: datetime,
    ) -> SyncResult:
        """
        Pull recent activities and, if the athlete has a plan, adapt it.

        Metrics, zones and the weekly workouts are recomputed; new
        adaptation entries are appended to the capped log. `created_at`
        is kept and `updated_at` moves to `now`. Without a stored plan
        nothing is written and `plan` is None.
        """
        activities = self.source.fetch_recent_activities(credentials, self.window_days, now)
        existing = self.store.get_plan(user_id)

        if existing is None:
            logger.info(f"Synced {len(activities)} activities for athlete {user_id} (no plan to adapt)")
            return SyncResult(
                activities_synced=len(activities),
                synced_at=now,
                activities=activities,
            )

        metrics = analyze_running_data(activities, now, self.metrics_window_days)
        zones = calculate_training_zones(metrics)
        entries = sync_adaptations(activities, existing.metrics, metrics, now)

        existing.metrics = metrics
        existing.training_zones = zones
        existing.weekly_plan = build_weekly_workouts(metrics, zones, existing.goals, now.date())
        existing.adaptations = append_adaptations(existing.adaptations, entries, self.adaptation_limit)
        existing.updated_at = now

        self.store.save_plan(user_id, existing)
        logger.info(
            f"Synced {len(activities)} activities and adapted plan {existing.id}",
            extra={"extra_fields": {
                "user_id": str(user_id),
                "adaptations": [e.reason for e in entries],
            }},
        )
        return SyncResult(
            activities_synced=len(activities),
            synced_at=now,
            adaptations=entries,
            plan=existing,
            activities=activities,
        )
