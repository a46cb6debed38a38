"""
Training Plans API Router

Endpoints for:
- Getting (or lazily creating) an athlete's training plan
- Generating a plan for explicit goals
- Viewing the current week's workouts
"""

from datetime import datetime
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.auth import get_activity_source, get_athlete, get_now, require_strava_credentials
from core.database import get_db
from core.exceptions import ValidationError
from models import Athlete
from schemas import (
    CurrentWeekResponse,
    GeneratePlanRequest,
    PlanEnvelope,
    TrainingPlanResponse,
    WorkoutResponse,
)
from services.plan_goals import build_goals, goals_for_display
from services.plan_store import SqlAlchemyPlanStore, TrainingPlanDocument
from services.strava_service import StravaActivitySource, StravaCredentials
from services.training_plan_service import PlanView, TrainingPlanService
from services.training_zones import zones_to_display
from services.workout_builder import weekly_volume_km

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/strava", tags=["Training Plans"])


def get_plan_service(
    db: Session = Depends(get_db),
    source: StravaActivitySource = Depends(get_activity_source),
) -> TrainingPlanService:
    return TrainingPlanService(SqlAlchemyPlanStore(db), source)


def plan_to_response(plan: TrainingPlanDocument) -> TrainingPlanResponse:
    data = plan.to_dict()
    data["goals_display"] = goals_for_display(plan.goals)
    data["zones_display"] = zones_to_display(plan.training_zones)
    return TrainingPlanResponse.model_validate(data)


def _envelope(view: PlanView) -> PlanEnvelope:
    return PlanEnvelope(
        plan=plan_to_response(view.plan),
        upcoming_workouts=[WorkoutResponse.model_validate(w.to_dict()) for w in view.upcoming_workouts],
        regenerated=view.regenerated,
    )


@router.get("/training-plan/{user_id}", response_model=PlanEnvelope)
def get_training_plan(
    athlete: Athlete = Depends(get_athlete),
    credentials: StravaCredentials = Depends(require_strava_credentials),
    service: TrainingPlanService = Depends(get_plan_service),
    now: datetime = Depends(get_now),
):
    """
    Get the athlete's plan, creating or refreshing it when needed.

    Plans younger than a week are reused; upcoming workouts are always
    dated from today.
    """
    view = service.get_or_create_plan(athlete.id, credentials, now)
    return _envelope(view)


@router.post("/training-plan/{user_id}", response_model=PlanEnvelope)
def generate_training_plan(
    request: GeneratePlanRequest,
    athlete: Athlete = Depends(get_athlete),
    credentials: StravaCredentials = Depends(require_strava_credentials),
    service: TrainingPlanService = Depends(get_plan_service),
    now: datetime = Depends(get_now),
):
    """Generate a new plan for the given goals, replacing the current one."""
    g = request.goals
    try:
        goals = build_goals(
            focus_area=g.focus_area,
            race_type=g.race_type,
            target_time=g.target_time,
            race_date=g.race_date,
            weekly_miles=g.weekly_miles,
            target_distance_km=g.target_distance_km,
        )
    except ValueError as e:
        raise ValidationError(str(e), field="target_time")

    view = service.generate_plan(athlete.id, credentials, goals, now)
    logger.info(f"Generated plan '{view.plan.name}' for athlete {athlete.id}")
    return _envelope(view)


@router.get("/training-plan/{user_id}/current-week", response_model=CurrentWeekResponse)
def get_current_week(
    athlete: Athlete = Depends(get_athlete),
    credentials: StravaCredentials = Depends(require_strava_credentials),
    service: TrainingPlanService = Depends(get_plan_service),
    now: datetime = Depends(get_now),
):
    workouts = service.current_week(athlete.id, credentials, now)
    return CurrentWeekResponse(
        workouts=[WorkoutResponse.model_validate(w.to_dict()) for w in workouts],
        total_distance_km=round(weekly_volume_km(workouts), 1),
    )
