"""
Activity Cache

Keeps a local copy of the run history fetched from Strava so the activity
and stats views can be served without another upstream call.

Rows are keyed by (provider, external_activity_id). Re-syncing an activity
refreshes its numbers in place (Strava lets athletes edit name/distance).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from models import Athlete, Activity
from services.running_metrics import ActivityRecord, RUNNING_TYPES

PROVIDER = "strava"


@dataclass
class CacheUpsertResult:
    created: int
    updated: int
    skipped_non_runs: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped_non_runs": self.skipped_non_runs,
        }


def _as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def upsert_activity_records(athlete: Athlete, db: Session, records: List[ActivityRecord]) -> CacheUpsertResult:
    """
    Store running records for `athlete`. Caller commits.

    An id repeated within one batch (Strava paging can return an activity
    twice) updates the row created for its first occurrence; the last copy wins.
    """
    created = 0
    updated = 0
    skipped = 0
    batch_rows: Dict[str, Activity] = {}

    for rec in records or []:
        if rec.type not in RUNNING_TYPES:
            skipped += 1
            continue
        if not rec.id:
            continue

        row = batch_rows.get(rec.id)
        if row is None:
            row = (
                db.query(Activity)
                .filter(Activity.provider == PROVIDER, Activity.external_activity_id == rec.id)
                .first()
            )
        if row is None:
            row = Activity(athlete_id=athlete.id, provider=PROVIDER, external_activity_id=rec.id)
            db.add(row)
            created += 1
        elif rec.id not in batch_rows:
            updated += 1
        batch_rows[rec.id] = row

        row.name = rec.name
        row.sport = rec.type
        row.start_time = rec.start_time
        row.distance_m = rec.distance_meters
        row.moving_time_s = int(rec.moving_time_seconds)
        row.elapsed_time_s = int(rec.elapsed_time_seconds)
        row.total_elevation_gain = rec.elevation_gain_meters
        row.avg_hr = rec.average_heart_rate
        row.max_hr = rec.max_heart_rate

    db.flush()
    return CacheUpsertResult(created=created, updated=updated, skipped_non_runs=skipped)


def to_activity_record(row: Activity) -> ActivityRecord:
    return ActivityRecord(
        id=row.external_activity_id,
        type=row.sport,
        distance_meters=float(row.distance_m or 0),
        moving_time_seconds=float(row.moving_time_s or 0),
        elapsed_time_seconds=float(row.elapsed_time_s or 0),
        elevation_gain_meters=float(row.total_elevation_gain or 0),
        start_time=_as_utc(row.start_time),
        average_heart_rate=row.avg_hr,
        max_heart_rate=row.max_hr,
        name=row.name,
    )


def load_recent_runs(athlete: Athlete, db: Session, now: datetime, days: int) -> List[ActivityRecord]:
    """Cached runs that started in the last `days` days, newest first."""
    cutoff = now - timedelta(days=days)
    rows = (
        db.query(Activity)
        .filter(Activity.athlete_id == athlete.id, Activity.start_time > cutoff)
        .order_by(Activity.start_time.desc())
        .all()
    )
    return [to_activity_record(r) for r in rows]
