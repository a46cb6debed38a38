"""
Pytest configuration and fixtures

Tests run against an in-memory SQLite database. Tables are created once per
session and emptied after every test, so nothing leaks between tests.
"""
import pytest
import sys
import os
from uuid import uuid4

from cryptography.fernet import Fernet

# Configure before anything imports core.config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("TOKEN_ENCRYPTION_KEY", Fernet.generate_key().decode())
os.environ.setdefault("LOG_FORMAT", "text")

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import Base, SessionLocal, engine, init_db
from models import Athlete
from services.token_encryption import encrypt_token


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Session bound to the shared in-memory database.

    Every table is emptied when the test finishes.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())


@pytest.fixture
def test_athlete(db_session):
    """Athlete with a connected Strava account."""
    athlete = Athlete(
        email=f"test_{uuid4()}@example.com",
        display_name="Test Athlete",
        strava_athlete_id=12345,
        strava_access_token=encrypt_token("strava-access-token"),
    )
    db_session.add(athlete)
    db_session.commit()
    db_session.refresh(athlete)
    return athlete


@pytest.fixture
def unconnected_athlete(db_session):
    """Athlete who never connected Strava."""
    athlete = Athlete(
        email=f"test_{uuid4()}@example.com",
        display_name="No Strava",
    )
    db_session.add(athlete)
    db_session.commit()
    db_session.refresh(athlete)
    return athlete
