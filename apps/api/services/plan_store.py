"""
Training Plan Store

One plan document per athlete, read and replaced as a whole.

TrainingPlanDocument is the in-memory aggregate the orchestrator works
with; SqlAlchemyPlanStore maps it to the `training_plan` row (JSON
columns). There is no version check: two concurrent saves for the same
athlete resolve as last writer wins.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import StoreUnavailableError
from models import TrainingPlan
from services.plan_adaptation import AdaptationEntry
from services.plan_goals import TrainingGoals
from services.running_metrics import RunningMetrics
from services.training_zones import TrainingZones, calculate_training_zones
from services.workout_builder import Workout

logger = logging.getLogger(__name__)


def _as_utc(dt: datetime) -> datetime:
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


@dataclass
class TrainingPlanDocument:
    user_id: UUID
    name: str
    created_at: datetime
    updated_at: datetime
    goals: TrainingGoals
    metrics: RunningMetrics
    training_zones: TrainingZones
    weekly_plan: List[Workout]
    adaptations: List[AdaptationEntry] = field(default_factory=list)
    id: UUID = field(default_factory=uuid.uuid4)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "name": self.name,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "goals": self.goals.to_dict(),
            "metrics": self.metrics.to_dict(),
            "training_zones": self.training_zones.to_dict(),
            "weekly_plan": [w.to_dict() for w in self.weekly_plan],
            "adaptations": [a.to_dict() for a in self.adaptations],
        }


class PlanStore(Protocol):
    def get_plan(self, user_id: UUID) -> Optional[TrainingPlanDocument]:
        ...

    def save_plan(self, user_id: UUID, plan: TrainingPlanDocument) -> None:
        ...


class SqlAlchemyPlanStore:
    """
    PlanStore over the `training_plan` table.

    With commit=False a save is only flushed, so the caller can commit the
    plan together with other writes in the same session.
    """

    def __init__(self, db: Session, commit: bool = True):
        self.db = db
        self.commit = commit

    def get_plan(self, user_id: UUID) -> Optional[TrainingPlanDocument]:
        try:
            row = self.db.query(TrainingPlan).filter(TrainingPlan.athlete_id == user_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read training plan for athlete {user_id}: {e}")
            raise StoreUnavailableError() from e
        if row is None:
            return None
        return self._to_document(row)

    def save_plan(self, user_id: UUID, plan: TrainingPlanDocument) -> None:
        try:
            row = self.db.query(TrainingPlan).filter(TrainingPlan.athlete_id == user_id).first()
            if row is None:
                row = TrainingPlan(id=plan.id, athlete_id=user_id)
                self.db.add(row)

            row.name = plan.name
            row.created_at = plan.created_at
            row.updated_at = plan.updated_at
            row.goals = plan.goals.to_dict()
            row.metrics = plan.metrics.to_dict()
            row.training_zones = plan.training_zones.to_dict()
            row.weekly_plan = [w.to_dict() for w in plan.weekly_plan]
            row.adaptations = [a.to_dict() for a in plan.adaptations]
            if self.commit:
                self.db.commit()
            else:
                self.db.flush()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save training plan for athlete {user_id}: {e}")
            raise StoreUnavailableError() from e

        plan.id = row.id

    @staticmethod
    def _to_document(row: TrainingPlan) -> TrainingPlanDocument:
        metrics = RunningMetrics.from_dict(row.metrics)
        zones = TrainingZones.from_dict(row.training_zones) or calculate_training_zones(metrics)
        return TrainingPlanDocument(
            id=row.id,
            user_id=row.athlete_id,
            name=row.name,
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
            goals=TrainingGoals.from_dict(row.goals),
            metrics=metrics,
            training_zones=zones,
            weekly_plan=[Workout.from_dict(w) for w in (row.weekly_plan or [])],
            adaptations=[AdaptationEntry.from_dict(a) for a in (row.adaptations or [])],
        )
