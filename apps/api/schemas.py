from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, date
from uuid import UUID
from typing import Optional, List, Literal

from services.plan_goals import FocusArea


# ============ Requests ============

class GoalsRequest(BaseModel):
    """Training goals as sent by the web client (camelCase accepted)."""
    focus_area: Optional[FocusArea] = Field(default=None, alias="focusArea")
    race_type: Optional[str] = Field(default=None, alias="raceType")
    target_time: Optional[str] = Field(default=None, alias="targetTime")  # "MM:SS", "H:MM" or "HH:MM:SS"
    race_date: Optional[date] = Field(default=None, alias="raceDate")
    weekly_miles: Optional[float] = Field(default=None, alias="weeklyMiles", ge=0)
    target_distance_km: Optional[float] = Field(default=None, alias="targetDistanceKm", gt=0)

    model_config = ConfigDict(populate_by_name=True)


class GeneratePlanRequest(BaseModel):
    goals: GoalsRequest = Field(default_factory=GoalsRequest)


# ============ Plan ============

class PaceRangeResponse(BaseModel):
    min: float
    max: float


class IntervalSpecResponse(BaseModel):
    warmup_min: float
    work_min: float
    rest_min: float
    repeats: int
    cooldown_min: float


class WorkoutResponse(BaseModel):
    date: date
    type: Literal["easy", "tempo", "interval", "long", "recovery", "hill", "fartlek"]
    duration_minutes: int
    distance_km: Optional[float] = None
    description: str
    intensity: Literal["low", "medium", "high"]
    target_pace: Optional[PaceRangeResponse] = None
    interval_spec: Optional[IntervalSpecResponse] = None
    adaptation_tags: List[str] = []


class PaceBandResponse(BaseModel):
    min_pace: float  # min/km
    max_pace: float


class TrainingZonesResponse(BaseModel):
    recovery: PaceBandResponse
    easy: PaceBandResponse
    tempo: PaceBandResponse
    threshold: PaceBandResponse
    interval: PaceBandResponse


class MetricsResponse(BaseModel):
    weekly_distance_km: float
    weekly_run_count: float
    average_pace_min_per_km: float
    longest_run_km: float
    total_elevation_gain_m: float
    consistency_score: float
    improvement_rate_percent: float
    average_heart_rate: Optional[float] = None


class GoalsResponse(BaseModel):
    focus_area: Optional[FocusArea] = None
    race_type: Optional[str] = None
    target_distance_km: Optional[float] = None
    target_time_min: Optional[float] = None
    race_date: Optional[date] = None
    weekly_goal_miles: Optional[float] = None


class AdaptationResponse(BaseModel):
    reason: str
    change: str
    date: datetime


class TrainingPlanResponse(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    created_at: datetime
    updated_at: datetime
    goals: GoalsResponse
    goals_display: List[str] = []
    metrics: MetricsResponse
    training_zones: TrainingZonesResponse
    zones_display: dict = {}  # seconds per km, whole numbers
    weekly_plan: List[WorkoutResponse]
    adaptations: List[AdaptationResponse]


class PlanEnvelope(BaseModel):
    plan: TrainingPlanResponse
    upcoming_workouts: List[WorkoutResponse]
    regenerated: bool


class CurrentWeekResponse(BaseModel):
    workouts: List[WorkoutResponse]
    total_distance_km: float


# ============ Sync / Activities / Stats ============

class SyncResponse(BaseModel):
    activities_synced: int
    last_sync: datetime
    adaptations: List[AdaptationResponse]


class CachedActivityResponse(BaseModel):
    id: str
    name: Optional[str] = None
    type: str
    start_time: Optional[datetime] = None
    distance_km: float
    moving_time_s: int
    pace: Optional[str] = None  # "M:SS/km"
    elevation_gain_m: float
    average_heart_rate: Optional[float] = None


class ActivitiesResponse(BaseModel):
    activities: List[CachedActivityResponse]
    count: int


class RunStatsResponse(BaseModel):
    total_runs: int
    total_distance_miles: float
    total_time_seconds: int
    average_pace_seconds_per_mile: int
    total_elevation_feet: int
    period: str
