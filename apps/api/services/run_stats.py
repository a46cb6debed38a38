"""
Run Stats

Headline totals for the stats view, reported in imperial units:
miles, seconds per mile, feet of climbing. Only running activities count.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List

from services.running_metrics import ActivityRecord, filter_recent_runs

METERS_PER_MILE = 1609.34
FEET_PER_METER = 3.28084

DEFAULT_PERIOD = "4weeks"
_PERIOD_RE = re.compile(r"^(\d{1,2})\s*(day|days|week|weeks)$")


def _round_half_up(x: float, ndigits: int = 0) -> float:
    factor = 10 ** ndigits
    return int(x * factor + 0.5) / factor if x >= 0 else -int(-x * factor + 0.5) / factor


def period_to_days(period: str) -> int:
    """
    '4weeks' -> 28, '7days' -> 7, '1week' -> 7.

    Raises:
        ValueError: unrecognized period label
    """
    match = _PERIOD_RE.match((period or "").strip().lower())
    if not match:
        raise ValueError(f"Unsupported stats period: {period!r}")
    count = int(match.group(1))
    if count <= 0:
        raise ValueError(f"Unsupported stats period: {period!r}")
    return count * 7 if match.group(2).startswith("week") else count


@dataclass(frozen=True)
class RunStats:
    total_runs: int
    total_distance_miles: float
    total_time_seconds: int
    average_pace_seconds_per_mile: int
    total_elevation_feet: int
    period: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_runs": self.total_runs,
            "total_distance_miles": self.total_distance_miles,
            "total_time_seconds": self.total_time_seconds,
            "average_pace_seconds_per_mile": self.average_pace_seconds_per_mile,
            "total_elevation_feet": self.total_elevation_feet,
            "period": self.period,
        }


def summarize_runs(
    activities: Iterable[ActivityRecord],
    now: datetime,
    period: str = DEFAULT_PERIOD,
) -> RunStats:
    """
    Totals over runs started inside `period` before `now`.

    Distance is rounded to 0.1 mi; pace and elevation to whole units.
    Pace is 0 when there is no distance.
    """
    runs: List[ActivityRecord] = filter_recent_runs(activities, now, period_to_days(period))

    miles = sum(r.distance_meters for r in runs) / METERS_PER_MILE
    seconds = sum(r.moving_time_seconds for r in runs)
    pace = seconds / miles if miles > 0 else 0.0
    feet = sum(r.elevation_gain_meters for r in runs) * FEET_PER_METER

    return RunStats(
        total_runs=len(runs),
        total_distance_miles=_round_half_up(miles, 1),
        total_time_seconds=int(seconds),
        average_pace_seconds_per_mile=int(_round_half_up(pace)),
        total_elevation_feet=int(_round_half_up(feet)),
        period=period,
    )
