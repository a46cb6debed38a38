"""
Plan Adaptation Engine

Explains how a plan changed between two analysis passes. Two rule sets:

1. Metric diff: compares a fresh RunningMetrics snapshot against the one
   stored on the plan (volume, pace, consistency).
2. Recent window: looks at the last 7 days of runs against the stored
   metrics (pace, volume, run frequency).

All matching rules fire (no first-match-wins). Every public function
returns at least one entry; when nothing notable happened a single generic
entry is used.

The plan keeps only the most recent entries (see append_adaptations).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from services.running_metrics import ActivityRecord, RunningMetrics

logger = logging.getLogger(__name__)

ADAPTATION_LOG_LIMIT = 10

# Metric diff thresholds
VOLUME_INCREASE_RATIO = 1.1
PACE_IMPROVEMENT_MIN_PER_KM = 0.2
CONSISTENCY_INCREASE_POINTS = 15

# Recent-window thresholds
RECENT_WINDOW_DAYS = 7
RECENT_PACE_IMPROVEMENT_MIN_PER_KM = 0.3
RECENT_VOLUME_RATIO = 1.2
CONSISTENT_WEEK_RUNS = 4
LOW_ACTIVITY_RUNS = 2


@dataclass(frozen=True)
class AdaptationEntry:
    reason: str
    change: str
    date: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"reason": self.reason, "change": self.change, "date": self.date.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdaptationEntry":
        """Rehydrate a stored entry. A missing or malformed date becomes datetime.min (UTC)."""
        when = data.get("date")
        if isinstance(when, str):
            try:
                when = datetime.fromisoformat(when)
            except ValueError:
                when = None
        if not isinstance(when, datetime):
            when = datetime.min.replace(tzinfo=timezone.utc)
        elif when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return cls(reason=str(data.get("reason", "")), change=str(data.get("change", "")), date=when)


def initial_plan_entry(now: datetime) -> AdaptationEntry:
    return AdaptationEntry(
        reason="Initial plan creation",
        change="Generated baseline training plan based on current fitness level",
        date=now,
    )


def _regular_update(now: datetime) -> AdaptationEntry:
    return AdaptationEntry(
        reason="Regular plan update",
        change="Fine-tuned plan based on recent performance",
        date=now,
    )


def _recent_runs(activities: Iterable[ActivityRecord], now: datetime) -> List[ActivityRecord]:
    cutoff = now - timedelta(days=RECENT_WINDOW_DAYS)
    return [
        a for a in activities
        if a.is_run and a.start_time is not None and a.start_time > cutoff
    ]


def _metric_rules(current: RunningMetrics, previous: RunningMetrics, now: datetime) -> List[AdaptationEntry]:
    entries: List[AdaptationEntry] = []

    if current.weekly_distance_km > previous.weekly_distance_km * VOLUME_INCREASE_RATIO:
        entries.append(AdaptationEntry(
            reason="Increased training volume",
            change="Added more distance to weekly plan",
            date=now,
        ))

    if current.average_pace_min_per_km < previous.average_pace_min_per_km - PACE_IMPROVEMENT_MIN_PER_KM:
        entries.append(AdaptationEntry(
            reason="Pace improvement detected",
            change="Adjusted training zones for faster paces",
            date=now,
        ))

    if current.consistency_score > previous.consistency_score + CONSISTENCY_INCREASE_POINTS:
        entries.append(AdaptationEntry(
            reason="Improved consistency",
            change="Increased workout intensity and frequency",
            date=now,
        ))
    return entries


def _recent_rules(recent: List[ActivityRecord], stored: RunningMetrics, now: datetime) -> List[AdaptationEntry]:
    entries: List[AdaptationEntry] = []

    paces = [p for p in (a.pace_min_per_km for a in recent) if p is not None]
    if paces:
        recent_pace = sum(paces) / len(paces)
        if recent_pace < stored.average_pace_min_per_km - RECENT_PACE_IMPROVEMENT_MIN_PER_KM:
            entries.append(AdaptationEntry(
                reason="Recent pace improvement",
                change="Increasing workout intensity by 5%",
                date=now,
            ))

    recent_km = sum(a.distance_km for a in recent)
    if recent_km > stored.weekly_distance_km * RECENT_VOLUME_RATIO:
        entries.append(AdaptationEntry(
            reason="Volume increase noted",
            change="Adjusting long run distance and recovery periods",
            date=now,
        ))

    if len(recent) >= CONSISTENT_WEEK_RUNS:
        entries.append(AdaptationEntry(
            reason="Excellent consistency",
            change="Adding a tempo workout to the weekly plan",
            date=now,
        ))
    elif len(recent) < LOW_ACTIVITY_RUNS:
        entries.append(AdaptationEntry(
            reason="Low activity detected",
            change="Focusing on easy runs to rebuild routine",
            date=now,
        ))
    return entries


def calculate_adaptations(
    current: RunningMetrics,
    previous: RunningMetrics,
    now: datetime,
) -> List[AdaptationEntry]:
    """Compare two metric snapshots. Never returns an empty list."""
    return _metric_rules(current, previous, now) or [_regular_update(now)]


def analyze_recent_activity(
    activities: Iterable[ActivityRecord],
    stored_metrics: RunningMetrics,
    now: datetime,
) -> List[AdaptationEntry]:
    """
    Check the trailing 7 days of runs against the plan's stored metrics.

    No runs in the window short-circuits to a single informational entry.
    Never returns an empty list.
    """
    recent = _recent_runs(activities, now)
    if not recent:
        return [AdaptationEntry(
            reason="No recent runs detected",
            change="Maintaining current plan intensity",
            date=now,
        )]
    return _recent_rules(recent, stored_metrics, now) or [_regular_update(now)]


def sync_adaptations(
    activities: List[ActivityRecord],
    previous: RunningMetrics,
    current: RunningMetrics,
    now: datetime,
) -> List[AdaptationEntry]:
    """
    Entries for one sync pass: metric diff plus recent-window checks.

    With no runs in the last 7 days only the informational entry is
    returned. Otherwise both rule sets fire, with one generic entry when
    neither matched.
    """
    recent = _recent_runs(activities, now)
    if not recent:
        return analyze_recent_activity(recent, previous, now)

    entries = _metric_rules(current, previous, now) + _recent_rules(recent, previous, now)
    return entries or [_regular_update(now)]


def append_adaptations(
    log: List[AdaptationEntry],
    entries: List[AdaptationEntry],
    limit: Optional[int] = None,
) -> List[AdaptationEntry]:
    """
    Return a new log with `entries` appended, keeping the newest `limit`.

    Oldest entries are dropped first. Inputs are not mutated.
    """
    if limit is None:
        limit = ADAPTATION_LOG_LIMIT
    combined = list(log) + list(entries)
    if len(combined) > limit:
        logger.debug(f"Dropping {len(combined) - limit} oldest adaptation entries")
    return combined[-limit:] if limit > 0 else []
