"""
Strava Activity Source

Reads an athlete's recent activities from the Strava API.

Token exchange and refresh are owned by the account service; this module
only uses the stored (encrypted) access token.

Failure model:
- Low-level calls raise StravaUnavailableError on timeout, connection
  error or any non-2xx response.
- StravaActivitySource.fetch_recent_activities() catches it and returns
  an empty list, so plan generation degrades to default metrics instead
  of failing the request. Nothing is retried here.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import requests

from core.config import settings
from services.running_metrics import ActivityRecord
from services.token_encryption import decrypt_token

logger = logging.getLogger(__name__)

MAX_PAGES = 5


class StravaUnavailableError(RuntimeError):
    """Strava timed out, refused the connection or answered with an error."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class StravaCredentials:
    access_token: str
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        if self.expires_at is None:
            return False
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return now >= expires


def credentials_for(athlete) -> Optional[StravaCredentials]:
    """Decrypted credentials for an athlete, or None when not connected."""
    if not getattr(athlete, "strava_access_token", None):
        return None
    access_token = decrypt_token(athlete.strava_access_token)
    if not access_token:
        logger.warning(f"Stored Strava token for athlete {athlete.id} could not be decrypted")
        return None
    return StravaCredentials(
        access_token=access_token,
        expires_at=getattr(athlete, "strava_token_expires_at", None),
    )


def get_activities_page(
    access_token: str,
    after_timestamp: Optional[int] = None,
    page: int = 1,
    per_page: Optional[int] = None,
    timeout: Optional[float] = None,
) -> List[Dict]:
    """
    Fetch ONE page of `/athlete/activities`.

    Raises:
        StravaUnavailableError: timeout, connection failure or HTTP error
    """
    params = {"page": int(page), "per_page": int(per_page or settings.STRAVA_PAGE_SIZE)}
    if after_timestamp is not None and after_timestamp > 0:
        params["after"] = int(after_timestamp)

    url = f"{settings.STRAVA_API_BASE}/athlete/activities"
    headers = {"Authorization": f"Bearer {access_token}"}

    try:
        r = requests.get(
            url,
            headers=headers,
            params=params,
            timeout=timeout or settings.STRAVA_TIMEOUT_SECONDS,
        )
    except requests.exceptions.Timeout as e:
        raise StravaUnavailableError(f"Strava request timed out: {e}") from e
    except requests.exceptions.RequestException as e:
        raise StravaUnavailableError(f"Strava request failed: {e}") from e

    if r.status_code >= 400:
        raise StravaUnavailableError(
            f"Strava returned HTTP {r.status_code} for /athlete/activities",
            status_code=r.status_code,
        )

    try:
        payload = r.json()
    except ValueError as e:
        raise StravaUnavailableError("Strava returned a non-JSON body") from e
    return payload if isinstance(payload, list) else []


def get_recent_activities(
    access_token: str,
    days: int,
    now: datetime,
    per_page: Optional[int] = None,
) -> List[Dict]:
    """
    All activities that started in the last `days` days (raw Strava dicts).

    Pages until a short page or MAX_PAGES. An activity that shows up on two
    pages (a new upload shifts the paging window) is kept once.
    """
    per_page = int(per_page or settings.STRAVA_PAGE_SIZE)
    after = int((now - timedelta(days=days)).timestamp())

    activities: List[Dict] = []
    seen_ids = set()
    for page in range(1, MAX_PAGES + 1):
        batch = get_activities_page(access_token, after_timestamp=after, page=page, per_page=per_page)
        for item in batch:
            activity_id = item.get("id") if isinstance(item, dict) else None
            if activity_id is not None:
                if activity_id in seen_ids:
                    continue
                seen_ids.add(activity_id)
            activities.append(item)
        if len(batch) < per_page:
            break
    return activities


class StravaActivitySource:
    """
    Activity source backed by the Strava API.

    Usage:
        source = StravaActivitySource()
        records = source.fetch_recent_activities(creds, window_days=30, now=now)
    """

    def fetch_recent_activities(
        self,
        credentials: StravaCredentials,
        window_days: int,
        now: datetime,
    ) -> List[ActivityRecord]:
        if credentials.is_expired(now):
            logger.warning("Strava access token is past its expiry; attempting fetch anyway")

        try:
            raw = get_recent_activities(credentials.access_token, window_days, now)
        except StravaUnavailableError as e:
            logger.warning(
                f"Strava unavailable, continuing with zero activities: {e}",
                extra={"extra_fields": {"status_code": e.status_code}},
            )
            return []

        records = [ActivityRecord.from_strava(item) for item in raw if isinstance(item, dict)]
        logger.info(f"Fetched {len(records)} Strava activities over the last {window_days} days")
        return records
