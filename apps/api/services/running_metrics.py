"""
Running Metrics Analyzer

Reduces a list of raw activities into a RunningMetrics summary:
- weekly distance / run count (4-week totals divided by 4)
- average pace, longest run, elevation
- average heart rate (when reported)
- consistency score and first-half vs second-half improvement rate

Every function here is total over its input: malformed records contribute
zero/absent to an aggregate instead of failing the batch, and an empty
window falls back to DEFAULT_METRICS.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

RUNNING_TYPES = frozenset({"Run", "VirtualRun", "TrailRun"})
METRICS_WINDOW_DAYS = 28
WEEKS_IN_WINDOW = 4
DEFAULT_PACE_MIN_PER_KM = 6.0
FULLY_CONSISTENT_RUNS_PER_WEEK = 4
MIN_RUNS_FOR_IMPROVEMENT = 4


def _coerce_float(x: Any) -> float:
    try:
        if x is None:
            return 0.0
        v = float(x)
    except (TypeError, ValueError):
        return 0.0
    # NaN / inf / negatives are treated as missing
    if v != v or v in (float("inf"), float("-inf")) or v < 0:
        return 0.0
    return v


def _coerce_optional_float(x: Any) -> Optional[float]:
    v = _coerce_float(x)
    return v if v > 0 else None


def _parse_start(x: Any) -> Optional[datetime]:
    if isinstance(x, datetime):
        return x if x.tzinfo else x.replace(tzinfo=timezone.utc)
    if not x:
        return None
    try:
        parsed = datetime.fromisoformat(str(x).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ActivityRecord:
    """One activity as received from the activity source. Immutable."""
    id: str
    type: str
    distance_meters: float
    moving_time_seconds: float
    elapsed_time_seconds: float
    elevation_gain_meters: float
    start_time: Optional[datetime]
    average_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    name: Optional[str] = None

    @classmethod
    def from_strava(cls, payload: Dict[str, Any]) -> "ActivityRecord":
        """
        Build a record from a Strava `/athlete/activities` item.

        Missing or non-numeric fields become 0 (or None for heart rate).
        """
        p = payload or {}
        return cls(
            id=str(p.get("id") or ""),
            type=str(p.get("type") or ""),
            distance_meters=_coerce_float(p.get("distance")),
            moving_time_seconds=_coerce_float(p.get("moving_time")),
            elapsed_time_seconds=_coerce_float(p.get("elapsed_time")),
            elevation_gain_meters=_coerce_float(p.get("total_elevation_gain")),
            start_time=_parse_start(p.get("start_date")),
            average_heart_rate=_coerce_optional_float(p.get("average_heartrate")),
            max_heart_rate=_coerce_optional_float(p.get("max_heartrate")),
            name=p.get("name"),
        )

    @property
    def is_run(self) -> bool:
        return self.type in RUNNING_TYPES

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000

    @property
    def pace_min_per_km(self) -> Optional[float]:
        """Moving pace, or None when distance or moving time is missing."""
        if self.distance_meters <= 0 or self.moving_time_seconds <= 0:
            return None
        return (self.moving_time_seconds / 60) / (self.distance_meters / 1000)


@dataclass(frozen=True)
class RunningMetrics:
    weekly_distance_km: float
    weekly_run_count: float
    average_pace_min_per_km: float
    longest_run_km: float
    total_elevation_gain_m: float
    consistency_score: float
    improvement_rate_percent: float
    average_heart_rate: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RunningMetrics":
        """Rehydrate a stored snapshot; absent keys take the default value."""
        if not data:
            return DEFAULT_METRICS
        defaults = DEFAULT_METRICS.to_dict()
        merged = {k: data.get(k, v) for k, v in defaults.items()}
        return cls(**merged)


DEFAULT_METRICS = RunningMetrics(
    weekly_distance_km=15,
    weekly_run_count=3,
    average_pace_min_per_km=DEFAULT_PACE_MIN_PER_KM,
    longest_run_km=5,
    total_elevation_gain_m=50,
    consistency_score=50,
    improvement_rate_percent=0,
    average_heart_rate=None,
)


def default_metrics() -> RunningMetrics:
    """Baseline used whenever there is no data at all."""
    return replace(DEFAULT_METRICS)


def filter_recent_runs(
    activities: Iterable[ActivityRecord],
    now: datetime,
    window_days: int = METRICS_WINDOW_DAYS,
) -> List[ActivityRecord]:
    """Running activities that started strictly after `now - window_days`."""
    cutoff = now - timedelta(days=window_days)
    return [
        a for a in activities
        if a.is_run and a.start_time is not None and a.start_time > cutoff
    ]


def _mean_pace(runs: Iterable[ActivityRecord]) -> Optional[float]:
    paces = [p for p in (r.pace_min_per_km for r in runs) if p is not None]
    if not paces:
        return None
    return sum(paces) / len(paces)


def calculate_improvement_rate(runs: List[ActivityRecord]) -> float:
    """
    Percent pace change between the older and newer half of `runs`.

    Positive means the second half was faster. Runs without a usable pace
    are skipped; fewer than 4 usable runs gives 0.
    """
    paced = [r for r in runs if r.pace_min_per_km is not None and r.start_time is not None]
    if len(paced) < MIN_RUNS_FOR_IMPROVEMENT:
        return 0.0

    ordered = sorted(paced, key=lambda r: r.start_time)
    mid = len(ordered) // 2
    first = _mean_pace(ordered[:mid])
    second = _mean_pace(ordered[mid:])
    if not first or second is None:
        return 0.0
    return ((first - second) / first) * 100


def analyze_running_data(
    activities: List[ActivityRecord],
    now: datetime,
    window_days: int = METRICS_WINDOW_DAYS,
) -> RunningMetrics:
    """
    Summarize the trailing window of runs.

    Args:
        activities: Raw activity records, any type, any age
        now: Reference time for the trailing window (tz-aware)
        window_days: Lookback; weekly figures always divide by 4

    Returns:
        RunningMetrics. An empty input, or one with no runs inside the
        window, returns the default baseline verbatim.
    """
    if not activities:
        return default_metrics()

    runs = filter_recent_runs(activities, now, window_days)
    if not runs:
        # Only rides, or nothing recent: same baseline as no data at all
        return default_metrics()

    total_km = sum(r.distance_km for r in runs)
    weekly_distance = total_km / WEEKS_IN_WINDOW
    weekly_runs = len(runs) / WEEKS_IN_WINDOW

    average_pace = _mean_pace(runs)
    if average_pace is None:
        average_pace = DEFAULT_PACE_MIN_PER_KM

    longest = max((r.distance_km for r in runs), default=0.0)
    elevation = sum(r.elevation_gain_meters for r in runs) / WEEKS_IN_WINDOW

    hr_values = [r.average_heart_rate for r in runs if r.average_heart_rate]
    average_hr = sum(hr_values) / len(hr_values) if hr_values else None

    consistency = min(100.0, (weekly_runs / FULLY_CONSISTENT_RUNS_PER_WEEK) * 100)

    metrics = RunningMetrics(
        weekly_distance_km=weekly_distance,
        weekly_run_count=weekly_runs,
        average_pace_min_per_km=average_pace,
        longest_run_km=longest,
        total_elevation_gain_m=elevation,
        consistency_score=consistency,
        improvement_rate_percent=calculate_improvement_rate(runs),
        average_heart_rate=average_hr,
    )
    logger.debug(
        "Analyzed running data",
        extra={"extra_fields": {
            "activities": len(activities),
            "runs_in_window": len(runs),
            "weekly_distance_km": round(weekly_distance, 2),
        }},
    )
    return metrics
