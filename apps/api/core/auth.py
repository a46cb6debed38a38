"""
Athlete and Strava connection dependencies.

Provides FastAPI dependencies for:
- Resolving the athlete named in the path (404 when unknown)
- Requiring a usable Strava connection (401 when missing)
- The activity source and reference clock used by plan endpoints

Session authentication is handled in front of this service; endpoints take
the athlete id from the path.
"""
from datetime import datetime, timezone
from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from core.exceptions import NotFoundError, UnauthorizedError
from models import Athlete
from services.strava_service import StravaActivitySource, StravaCredentials, credentials_for


def get_athlete(user_id: UUID, db: Session = Depends(get_db)) -> Athlete:
    """Load the athlete from the `user_id` path parameter."""
    athlete = db.query(Athlete).filter(Athlete.id == user_id).first()
    if not athlete:
        raise NotFoundError("Athlete", str(user_id))
    return athlete


def require_strava_credentials(athlete: Athlete = Depends(get_athlete)) -> StravaCredentials:
    """Decrypted Strava credentials, or 401 if the athlete never connected."""
    credentials = credentials_for(athlete)
    if credentials is None:
        raise UnauthorizedError()
    return credentials


def get_activity_source() -> StravaActivitySource:
    return StravaActivitySource()


def get_now() -> datetime:
    """Reference time for a request. Overridden in tests."""
    return datetime.now(timezone.utc)
