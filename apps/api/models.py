from sqlalchemy import Column, Integer, BigInteger, Float, DateTime, ForeignKey, Numeric, Text, Index, UniqueConstraint, JSON, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from core.database import Base
import uuid

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Athlete(Base):
    """
    The account owner. Profile and credential management live outside this
    service; only what the plan pipeline reads is mapped here.
    """
    __tablename__ = "athlete"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    email = Column(Text, unique=True, nullable=True)
    display_name = Column(Text, nullable=True)

    strava_athlete_id = Column(BigInteger, nullable=True)
    strava_access_token = Column(Text, nullable=True)  # Encrypted
    strava_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    last_strava_sync = Column(DateTime(timezone=True), nullable=True)

    activities = relationship("Activity", back_populates="athlete", lazy="dynamic")
    training_plan = relationship("TrainingPlan", back_populates="athlete", uselist=False)


class Activity(Base):
    """Cached copy of an activity fetched from Strava."""
    __tablename__ = "activity"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid, ForeignKey("athlete.id"), nullable=False, index=True)
    provider = Column(Text, default="strava", nullable=False)
    external_activity_id = Column(Text, nullable=False)
    name = Column(Text, nullable=True)  # e.g. "Morning Run"
    sport = Column(Text, nullable=False)  # Strava type: 'Run', 'VirtualRun', 'Ride', ...
    start_time = Column(DateTime(timezone=True), nullable=True, index=True)
    distance_m = Column(Float, nullable=True)
    moving_time_s = Column(Integer, nullable=True)
    elapsed_time_s = Column(Integer, nullable=True)
    total_elevation_gain = Column(Numeric, nullable=True)
    avg_hr = Column(Float, nullable=True)
    max_hr = Column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint('provider', 'external_activity_id', name='uq_activity_provider_external_id'),
    )

    athlete = relationship("Athlete", back_populates="activities")


class TrainingPlan(Base):
    """
    The athlete's single active training plan.

    Stored as one document: the weekly plan, goals, metrics snapshot, zones
    and adaptation log are JSON columns replaced wholesale on every save.
    """
    __tablename__ = "training_plan"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    athlete_id = Column(Uuid, ForeignKey("athlete.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    name = Column(Text, nullable=False)  # e.g. "10K Training Plan - Target 45:00"
    goals = Column(JSONDocument, nullable=False, default=dict)
    metrics = Column(JSONDocument, nullable=False, default=dict)
    training_zones = Column(JSONDocument, nullable=False, default=dict)
    weekly_plan = Column(JSONDocument, nullable=False, default=list)
    adaptations = Column(JSONDocument, nullable=False, default=list)

    athlete = relationship("Athlete", back_populates="training_plan")

    __table_args__ = (
        Index("ix_training_plan_athlete_id", "athlete_id", unique=True),
    )
