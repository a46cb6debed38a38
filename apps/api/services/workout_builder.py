"""
Workout Plan Builder

Builds the seven-day schedule from metrics + zones + goals.

The week is a fixed slot template starting on "today". Slots are offsets
from the start date, not weekdays:

    slot 0  long run if longest run > 8 km, else recovery
    slot 1  recovery
    slot 2  intervals when focus is speed, else tempo
    slot 3  easy
    slot 4  recovery
    slot 5  hills when weekly climbing > 100 m, else tempo
    slot 6  easy

The builder is pure: same (metrics, zones, goals, today) in, same plan out.
No ids, no clock reads, no randomness.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from services.plan_goals import FocusArea, TrainingGoals
from services.running_metrics import RunningMetrics
from services.training_zones import PaceBand, TrainingZones

DAYS_IN_PLAN = 7

WORKOUT_TYPES = ("easy", "tempo", "interval", "long", "recovery", "hill", "fartlek")
INTENSITIES = ("low", "medium", "high")

# Sizing
EASY_SHARE_OF_WEEKLY = 0.2
EASY_MIN_KM = 3.0
TEMPO_SHARE_OF_WEEKLY = 0.3
TEMPO_MIN_KM, TEMPO_MAX_KM = 3.0, 8.0
TEMPO_WARMUP_COOLDOWN_KM = 2.0
TEMPO_WARMUP_COOLDOWN_MIN = 20
INTERVAL_MIN_REPEATS, INTERVAL_MAX_REPEATS = 4, 8
LONG_RUN_GROWTH = 1.1
LONG_MIN_KM, LONG_MAX_KM = 8.0, 25.0
LONG_RUN_THRESHOLD_KM = 8.0
HILL_ELEVATION_THRESHOLD_M = 100.0


@dataclass(frozen=True)
class IntervalSpec:
    warmup_min: float
    work_min: float
    rest_min: float
    repeats: int
    cooldown_min: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "warmup_min": self.warmup_min,
            "work_min": self.work_min,
            "rest_min": self.rest_min,
            "repeats": self.repeats,
            "cooldown_min": self.cooldown_min,
        }


@dataclass(frozen=True)
class Workout:
    date: date
    type: str
    duration_minutes: int
    description: str
    intensity: str
    distance_km: Optional[float] = None
    target_pace: Optional[Tuple[float, float]] = None  # (min, max) min/km
    interval_spec: Optional[IntervalSpec] = None
    adaptation_tags: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "type": self.type,
            "duration_minutes": self.duration_minutes,
            "distance_km": self.distance_km,
            "description": self.description,
            "intensity": self.intensity,
            "target_pace": (
                {"min": self.target_pace[0], "max": self.target_pace[1]}
                if self.target_pace else None
            ),
            "interval_spec": self.interval_spec.to_dict() if self.interval_spec else None,
            "adaptation_tags": list(self.adaptation_tags),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Workout":
        pace = data.get("target_pace")
        spec = data.get("interval_spec")
        return cls(
            date=date.fromisoformat(data["date"]),
            type=data["type"],
            duration_minutes=int(data["duration_minutes"]),
            distance_km=data.get("distance_km"),
            description=data.get("description", ""),
            intensity=data.get("intensity", "low"),
            target_pace=(pace["min"], pace["max"]) if pace else None,
            interval_spec=IntervalSpec(**spec) if spec else None,
            adaptation_tags=tuple(data.get("adaptation_tags") or ()),
        )


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _band(band: PaceBand) -> Tuple[float, float]:
    return (band.min_pace, band.max_pace)


def determine_focus_area(metrics: RunningMetrics, goals: TrainingGoals) -> FocusArea:
    """Explicit focus wins; otherwise infer it from current training."""
    if goals.focus_area is not None:
        return goals.focus_area
    if metrics.weekly_distance_km < 20:
        return FocusArea.ENDURANCE
    if metrics.average_pace_min_per_km > 6.5:
        return FocusArea.GENERAL_FITNESS
    if metrics.longest_run_km < 10:
        return FocusArea.ENDURANCE
    return FocusArea.SPEED


# =============================================================================
# WORKOUT FACTORIES
# =============================================================================

def easy_run(day: date, metrics: RunningMetrics, zones: TrainingZones) -> Workout:
    distance = max(EASY_MIN_KM, metrics.weekly_distance_km * EASY_SHARE_OF_WEEKLY)
    return Workout(
        date=day,
        type="easy",
        duration_minutes=_round_half_up(distance * zones.easy.max_pace),
        distance_km=distance,
        description="Easy-paced run to build aerobic base. Keep effort conversational.",
        intensity="low",
        target_pace=_band(zones.easy),
        adaptation_tags=("Building aerobic base", "Active recovery"),
    )


def tempo_run(day: date, metrics: RunningMetrics, zones: TrainingZones) -> Workout:
    work_km = _clamp(metrics.weekly_distance_km * TEMPO_SHARE_OF_WEEKLY, TEMPO_MIN_KM, TEMPO_MAX_KM)
    return Workout(
        date=day,
        type="tempo",
        duration_minutes=_round_half_up(work_km * zones.tempo.max_pace + TEMPO_WARMUP_COOLDOWN_MIN),
        distance_km=work_km + TEMPO_WARMUP_COOLDOWN_KM,
        description=(
            "Tempo run at comfortably hard pace. 10min warmup, "
            f"{_round_half_up(work_km)}km at tempo pace, 10min cooldown."
        ),
        intensity="medium",
        target_pace=_band(zones.tempo),
        adaptation_tags=("Lactate threshold improvement", "Race pace practice"),
    )


def interval_session(day: date, metrics: RunningMetrics, zones: TrainingZones) -> Workout:
    repeats = int(_clamp(
        math.floor(metrics.weekly_distance_km / 5),
        INTERVAL_MIN_REPEATS,
        INTERVAL_MAX_REPEATS,
    ))
    return Workout(
        date=day,
        type="interval",
        duration_minutes=45,
        distance_km=6.0,
        description=f"{repeats}x400m intervals with 90s recovery. Focus on form and controlled speed.",
        intensity="high",
        target_pace=_band(zones.interval),
        interval_spec=IntervalSpec(
            warmup_min=15,
            work_min=2,
            rest_min=1.5,
            repeats=repeats,
            cooldown_min=10,
        ),
        adaptation_tags=("VO2 max improvement", "Speed development", "Running economy"),
    )


def long_run(day: date, metrics: RunningMetrics, zones: TrainingZones) -> Workout:
    distance = _clamp(metrics.longest_run_km * LONG_RUN_GROWTH, LONG_MIN_KM, LONG_MAX_KM)
    return Workout(
        date=day,
        type="long",
        duration_minutes=_round_half_up(distance * zones.easy.max_pace),
        distance_km=distance,
        description="Long steady run at easy pace. Focus on time on feet and endurance building.",
        intensity="medium",
        target_pace=_band(zones.easy),
        adaptation_tags=("Aerobic capacity", "Mental toughness", "Fat oxidation"),
    )


def hill_repeats(day: date, metrics: RunningMetrics, zones: TrainingZones) -> Workout:
    return Workout(
        date=day,
        type="hill",
        duration_minutes=40,
        distance_km=5.0,
        description="Hill repeats: 6x2min uphill at hard effort, easy jog down recovery.",
        intensity="high",
        target_pace=(zones.threshold.min_pace, zones.tempo.max_pace),
        adaptation_tags=("Leg strength", "Power development", "Running form"),
    )


def recovery_run(day: date) -> Workout:
    return Workout(
        date=day,
        type="recovery",
        duration_minutes=30,
        distance_km=3.0,
        description="Recovery run or cross-training. Light effort, focus on movement and recovery.",
        intensity="low",
        adaptation_tags=("Active recovery", "Injury prevention"),
    )


# =============================================================================
# WEEK
# =============================================================================

def build_weekly_workouts(
    metrics: RunningMetrics,
    zones: TrainingZones,
    goals: TrainingGoals,
    today: date,
) -> List[Workout]:
    """
    Build exactly seven workouts for `today` .. `today + 6 days`.

    Args:
        metrics: Current metrics snapshot
        zones: Pace bands (normally derived from the same metrics)
        goals: Validated goals; only focus_area steers the schedule
        today: First day of the plan

    Returns:
        Seven Workout entries in date order
    """
    focus = determine_focus_area(metrics, goals)
    workouts: List[Workout] = []

    for slot in range(DAYS_IN_PLAN):
        day = today + timedelta(days=slot)

        if slot == 0:
            if metrics.longest_run_km > LONG_RUN_THRESHOLD_KM:
                workouts.append(long_run(day, metrics, zones))
            else:
                workouts.append(recovery_run(day))
        elif slot in (1, 4):
            workouts.append(recovery_run(day))
        elif slot == 2:
            if focus == FocusArea.SPEED:
                workouts.append(interval_session(day, metrics, zones))
            else:
                workouts.append(tempo_run(day, metrics, zones))
        elif slot in (3, 6):
            workouts.append(easy_run(day, metrics, zones))
        else:  # slot 5
            if metrics.total_elevation_gain_m > HILL_ELEVATION_THRESHOLD_M:
                workouts.append(hill_repeats(day, metrics, zones))
            else:
                workouts.append(tempo_run(day, metrics, zones))

    return workouts


def weekly_volume_km(workouts: List[Workout]) -> float:
    return sum(w.distance_km or 0.0 for w in workouts)
