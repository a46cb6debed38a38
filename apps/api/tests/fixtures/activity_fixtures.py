"""Activity fixtures for metrics, adaptation and plan tests.

All builders are deterministic and take an explicit reference time.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from services.running_metrics import ActivityRecord

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def make_strava_activity(
    activity_id: int = 1,
    activity_type: str = "Run",
    distance_m: float = 5000.0,
    moving_time_s: float = 1800.0,
    days_ago: float = 1.0,
    elevation_m: float = 10.0,
    now: datetime = NOW,
    **overrides: Any,
) -> Dict[str, Any]:
    """A `/athlete/activities` item as Strava returns it."""
    start = now - timedelta(days=days_ago)
    payload = {
        "id": activity_id,
        "name": f"{activity_type} #{activity_id}",
        "type": activity_type,
        "distance": distance_m,
        "moving_time": moving_time_s,
        "elapsed_time": moving_time_s + 60,
        "total_elevation_gain": elevation_m,
        "start_date": start.strftime("%Y-%m-%dT%H:%M:%SZ"),
    }
    payload.update(overrides)
    return payload


def make_run(
    activity_id: str = "1",
    distance_km: float = 5.0,
    pace_min_per_km: float = 6.0,
    days_ago: float = 1.0,
    elevation_m: float = 10.0,
    activity_type: str = "Run",
    heart_rate: Optional[float] = None,
    now: datetime = NOW,
) -> ActivityRecord:
    moving = distance_km * pace_min_per_km * 60
    return ActivityRecord(
        id=activity_id,
        type=activity_type,
        distance_meters=distance_km * 1000,
        moving_time_seconds=moving,
        elapsed_time_seconds=moving + 60,
        elevation_gain_meters=elevation_m,
        start_time=now - timedelta(days=days_ago),
        average_heart_rate=heart_rate,
        name=f"Run {activity_id}",
    )


def make_training_block(
    count: int = 20,
    total_km: float = 100.0,
    long_run_km: float = 12.0,
    pace_min_per_km: float = 5.5,
    now: datetime = NOW,
) -> List[ActivityRecord]:
    """`count` runs spread over the last 27 days summing to `total_km`, one of them long."""
    rest_km = (total_km - long_run_km) / (count - 1)
    runs = [make_run("long", long_run_km, pace_min_per_km + 0.5, days_ago=2, now=now)]
    for i in range(count - 1):
        runs.append(make_run(
            str(i),
            rest_km,
            pace_min_per_km,
            days_ago=1 + (i * 26 / (count - 1)),
            now=now,
        ))
    return runs


class FakeActivitySource:
    """Activity source returning a fixed list and counting fetches."""

    def __init__(self, activities: Optional[List[ActivityRecord]] = None):
        self.activities = list(activities or [])
        self.calls = 0

    def fetch_recent_activities(self, credentials, window_days: int, now: datetime) -> List[ActivityRecord]:
        self.calls += 1
        return list(self.activities)
