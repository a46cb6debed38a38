"""
Strava Integration Router

Activity syncing and the cached run history views.
The OAuth connection itself is owned by the account service.
"""
from datetime import datetime
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.auth import get_activity_source, get_athlete, get_now, require_strava_credentials
from core.config import settings
from core.database import get_db
from core.exceptions import StoreUnavailableError, ValidationError
from models import Athlete
from schemas import (
    ActivitiesResponse,
    AdaptationResponse,
    CachedActivityResponse,
    RunStatsResponse,
    SyncResponse,
)
from services.activity_cache import load_recent_runs, upsert_activity_records
from services.run_stats import DEFAULT_PERIOD, period_to_days, summarize_runs
from services.plan_store import SqlAlchemyPlanStore
from services.strava_service import StravaActivitySource, StravaCredentials
from services.training_plan_service import TrainingPlanService
from services.training_zones import format_pace

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/strava", tags=["strava"])


def get_sync_service(
    db: Session = Depends(get_db),
    source: StravaActivitySource = Depends(get_activity_source),
) -> TrainingPlanService:
    # Plan is flushed only; the sync route commits it with the activity cache.
    return TrainingPlanService(SqlAlchemyPlanStore(db, commit=False), source)


@router.post("/sync/{user_id}", response_model=SyncResponse)
def sync_strava_activities(
    athlete: Athlete = Depends(get_athlete),
    credentials: StravaCredentials = Depends(require_strava_credentials),
    service: TrainingPlanService = Depends(get_sync_service),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """
    Pull recent activities from Strava, cache the runs and adapt the plan.

    Strava being down is not an error here: the sync reports zero
    activities and the plan is adapted against an empty window.
    The adapted plan, the cached runs and `last_strava_sync` are committed
    together; if any of them fails nothing is kept.
    """
    result = service.sync_plan(athlete.id, credentials, now)

    try:
        cached = upsert_activity_records(athlete, db, result.activities)
        athlete.last_strava_sync = now
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Strava sync for athlete {athlete.id} failed to save: {e}")
        raise StoreUnavailableError() from e

    logger.info(
        f"Strava sync complete for athlete {athlete.id}",
        extra={"extra_fields": {
            "activities_synced": result.activities_synced,
            **cached.to_dict(),
        }},
    )
    return SyncResponse(
        activities_synced=result.activities_synced,
        last_sync=result.synced_at,
        adaptations=[AdaptationResponse.model_validate(a.to_dict()) for a in result.adaptations],
    )


@router.get("/activities/{user_id}", response_model=ActivitiesResponse)
def get_recent_activities(
    athlete: Athlete = Depends(get_athlete),
    credentials: StravaCredentials = Depends(require_strava_credentials),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Cached runs from the last sync window, newest first."""
    runs = load_recent_runs(athlete, db, now, settings.STRAVA_ACTIVITY_WINDOW_DAYS)
    activities = [
        CachedActivityResponse(
            id=r.id,
            name=r.name,
            type=r.type,
            start_time=r.start_time,
            distance_km=round(r.distance_km, 2),
            moving_time_s=int(r.moving_time_seconds),
            pace=format_pace(r.pace_min_per_km) if r.pace_min_per_km else None,
            elevation_gain_m=r.elevation_gain_meters,
            average_heart_rate=r.average_heart_rate,
        )
        for r in runs
    ]
    return ActivitiesResponse(activities=activities, count=len(activities))


@router.get("/stats/{user_id}", response_model=RunStatsResponse)
def get_run_stats(
    period: str = Query(DEFAULT_PERIOD, description="e.g. 1week, 4weeks, 14days"),
    athlete: Athlete = Depends(get_athlete),
    credentials: StravaCredentials = Depends(require_strava_credentials),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
):
    """Run totals for the period in miles, seconds per mile and feet."""
    try:
        days = period_to_days(period)
    except ValueError as e:
        raise ValidationError(str(e), field="period")

    runs = load_recent_runs(athlete, db, now, days)
    return RunStatsResponse(**summarize_runs(runs, now, period).to_dict())
