"""
Training Zone Calculator

Five pace bands derived as fixed offsets from the athlete's average pace
(minutes per km). Offsets are conservative: they are anchored to what the
athlete actually runs, not to a race result.

    recovery   avg + 1.5 .. avg + 2.5
    easy       avg + 0.5 .. avg + 1.5
    tempo      avg - 0.3 .. avg + 0.2
    threshold  avg - 0.8 .. avg - 0.3
    interval   avg - 1.5 .. avg - 0.8

No clamping happens here. The display helpers at the bottom are the only
place pace values are clamped, and only when rendering per-mile strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from services.running_metrics import RunningMetrics

KM_PER_MILE = 1.609344

# Offsets in min/km: (min, max)
ZONE_OFFSETS = {
    "recovery": (1.5, 2.5),
    "easy": (0.5, 1.5),
    "tempo": (-0.3, 0.2),
    "threshold": (-0.8, -0.3),
    "interval": (-1.5, -0.8),
}

# Plausible per-mile training paces for display
MIN_DISPLAY_PACE_PER_MILE = 5.0
MAX_DISPLAY_PACE_PER_MILE = 15.0


@dataclass(frozen=True)
class PaceBand:
    min_pace: float  # min/km, faster end
    max_pace: float  # min/km, slower end

    def to_dict(self) -> Dict[str, float]:
        return {"min_pace": self.min_pace, "max_pace": self.max_pace}


@dataclass(frozen=True)
class TrainingZones:
    recovery: PaceBand
    easy: PaceBand
    tempo: PaceBand
    threshold: PaceBand
    interval: PaceBand

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {name: getattr(self, name).to_dict() for name in ZONE_OFFSETS}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["TrainingZones"]:
        """Rehydrate stored zones; None if any band is missing."""
        if not data:
            return None
        try:
            return cls(**{
                name: PaceBand(float(data[name]["min_pace"]), float(data[name]["max_pace"]))
                for name in ZONE_OFFSETS
            })
        except (KeyError, TypeError, ValueError):
            return None


def calculate_training_zones(metrics: RunningMetrics) -> TrainingZones:
    """Derive the five pace bands from `metrics.average_pace_min_per_km`."""
    avg = metrics.average_pace_min_per_km
    bands = {
        name: PaceBand(min_pace=avg + lo, max_pace=avg + hi)
        for name, (lo, hi) in ZONE_OFFSETS.items()
    }
    return TrainingZones(**bands)


# =============================================================================
# DISPLAY
# =============================================================================

def zones_to_display(zones: TrainingZones) -> Dict[str, Dict[str, int]]:
    """
    Zones as whole seconds per km for the plan summary view.

    Recovery is omitted: recovery workouts carry no target pace.
    """
    return {
        name: {
            "min": int(round(getattr(zones, name).min_pace * 60)),
            "max": int(round(getattr(zones, name).max_pace * 60)),
        }
        for name in ("easy", "tempo", "threshold", "interval")
    }


def format_pace(pace_min_per_km: float, unit: str = "km") -> str:
    """
    Format a min/km pace as "M:SS/km" or "M:SS/mile".

    Per-mile output is clamped to 5-15 min/mile. Per-km output is only
    floored at zero.
    """
    if unit == "mile":
        pace = pace_min_per_km * KM_PER_MILE
        pace = max(MIN_DISPLAY_PACE_PER_MILE, min(MAX_DISPLAY_PACE_PER_MILE, pace))
    elif unit == "km":
        pace = max(0.0, pace_min_per_km)
    else:
        raise ValueError(f"Unsupported pace unit: {unit}")

    total_seconds = int(round(pace * 60))
    minutes = total_seconds // 60
    seconds = total_seconds % 60
    return f"{minutes}:{seconds:02d}/{unit}"
