"""
Training Goals

Goals arrive from the client as loosely shaped input (race type strings,
"H:MM" target times, optional dates). They are validated once here and
carried through the pipeline as a TrainingGoals value.

Focus area precedence:
1. explicit focus_area
2. race type lookup (marathon / half -> endurance, 5k / 10k -> speed,
   any other named race type -> general_fitness)
3. None: the workout builder derives it from metrics
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional


class FocusArea(str, Enum):
    ENDURANCE = "endurance"
    SPEED = "speed"
    STRENGTH = "strength"
    GENERAL_FITNESS = "general_fitness"


RACE_DISTANCES_KM: Dict[str, float] = {
    "5k": 5.0,
    "10k": 10.0,
    "half-marathon": 21.1,
    "marathon": 42.2,
}

RACE_FOCUS_AREAS: Dict[str, FocusArea] = {
    "5k": FocusArea.SPEED,
    "10k": FocusArea.SPEED,
    "half-marathon": FocusArea.ENDURANCE,
    "marathon": FocusArea.ENDURANCE,
}

# Races where a two-part "1:45" is far more likely H:MM than M:SS
_LONG_RACES = {"10k", "half-marathon", "marathon"}


def normalize_race_type(race_type: Optional[str]) -> Optional[str]:
    """'Half Marathon', 'half_marathon' and 'HALF-MARATHON' all map to 'half-marathon'."""
    if not race_type:
        return None
    key = str(race_type).strip().lower().replace("_", "-").replace(" ", "-")
    return key or None


def parse_target_time_minutes(value: Optional[str], race_type: Optional[str] = None) -> Optional[float]:
    """
    Parse a target finish time into minutes.

    Accepted:
    - "HH:MM:SS"
    - "MM:SS" (e.g. "24:30" for a 5k)
    - "H:MM" when the MM:SS reading would be under 10 minutes for a
      10k or longer race (e.g. "1:45" for a half marathon)
    - digits only, as minutes

    Returns None for anything else.
    """
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None

    if raw.isdigit():
        minutes = int(raw)
        return float(minutes) if minutes > 0 else None

    parts = raw.split(":")
    if len(parts) not in (2, 3):
        return None
    try:
        nums = [int(p) for p in parts]
    except ValueError:
        return None
    if any(n < 0 for n in nums):
        return None

    if len(nums) == 3:
        hh, mm, ss = nums
        if mm >= 60 or ss >= 60:
            return None
        total = hh * 60 + mm + ss / 60
        return total if total > 0 else None

    first, second = nums
    if second >= 60:
        return None
    as_mm_ss = first + second / 60
    if as_mm_ss < 10 and normalize_race_type(race_type) in _LONG_RACES and 0 < first <= 6:
        return float(first * 60 + second)
    return as_mm_ss if as_mm_ss > 0 else None


def _format_minutes(total_minutes: float) -> str:
    total_seconds = int(round(total_minutes * 60))
    hours, rem = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


@dataclass(frozen=True)
class TrainingGoals:
    focus_area: Optional[FocusArea] = None
    race_type: Optional[str] = None
    target_distance_km: Optional[float] = None
    target_time_min: Optional[float] = None
    race_date: Optional[date] = None
    weekly_goal_miles: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "focus_area": self.focus_area.value if self.focus_area else None,
            "race_type": self.race_type,
            "target_distance_km": self.target_distance_km,
            "target_time_min": self.target_time_min,
            "race_date": self.race_date.isoformat() if self.race_date else None,
            "weekly_goal_miles": self.weekly_goal_miles,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TrainingGoals":
        """Rehydrate stored goals. Unknown or malformed values are dropped."""
        d = data or {}
        focus = d.get("focus_area")
        try:
            focus_area = FocusArea(focus) if focus else None
        except ValueError:
            focus_area = None
        race_date = d.get("race_date")
        if isinstance(race_date, str):
            try:
                race_date = date.fromisoformat(race_date)
            except ValueError:
                race_date = None
        return cls(
            focus_area=focus_area,
            race_type=d.get("race_type"),
            target_distance_km=d.get("target_distance_km"),
            target_time_min=d.get("target_time_min"),
            race_date=race_date if isinstance(race_date, date) else None,
            weekly_goal_miles=d.get("weekly_goal_miles"),
        )


def build_goals(
    focus_area: Optional[FocusArea] = None,
    race_type: Optional[str] = None,
    target_time: Optional[str] = None,
    race_date: Optional[date] = None,
    weekly_miles: Optional[float] = None,
    target_distance_km: Optional[float] = None,
) -> TrainingGoals:
    """
    Validate raw goal fields into TrainingGoals.

    Raises:
        ValueError: target_time was given but could not be parsed
    """
    race_key = normalize_race_type(race_type)

    target_minutes = parse_target_time_minutes(target_time, race_key)
    if target_time and target_minutes is None:
        raise ValueError(f"Invalid target time: {target_time!r} (expected MM:SS or HH:MM:SS)")

    if focus_area is None and race_key is not None:
        focus_area = RACE_FOCUS_AREAS.get(race_key, FocusArea.GENERAL_FITNESS)

    if target_distance_km is None and race_key is not None:
        target_distance_km = RACE_DISTANCES_KM.get(race_key)

    return TrainingGoals(
        focus_area=focus_area,
        race_type=race_key,
        target_distance_km=target_distance_km,
        target_time_min=target_minutes,
        race_date=race_date,
        weekly_goal_miles=weekly_miles,
    )


def plan_name(goals: TrainingGoals) -> str:
    """e.g. "10K Training Plan - Target 45:00"."""
    if goals.race_type and goals.race_type in RACE_DISTANCES_KM:
        name = f"{goals.race_type.upper()} Training Plan"
        if goals.target_time_min:
            name += f" - Target {_format_minutes(goals.target_time_min)}"
        return name
    return "Personalized Running Plan"


def goals_for_display(goals: TrainingGoals) -> List[str]:
    formatted: List[str] = []
    if goals.race_type:
        formatted.append(f"Train for {goals.race_type.upper()}")
    if goals.target_time_min:
        formatted.append(f"Target time: {_format_minutes(goals.target_time_min)}")
    if goals.weekly_goal_miles:
        formatted.append(f"Weekly goal: {goals.weekly_goal_miles:g} miles")
    if goals.race_date:
        formatted.append(f"Race date: {goals.race_date.isoformat()}")
    return formatted or ["General fitness improvement"]
