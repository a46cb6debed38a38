"""
Training Zone Calculator Tests
"""

import pytest
import sys
import os
from dataclasses import replace

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.running_metrics import DEFAULT_METRICS
from services.training_zones import (
    TrainingZones,
    calculate_training_zones,
    format_pace,
    zones_to_display,
)


def _zones_for(avg_pace: float) -> TrainingZones:
    return calculate_training_zones(replace(DEFAULT_METRICS, average_pace_min_per_km=avg_pace))


class TestCalculateTrainingZones:
    def test_default_metrics_tempo_band(self):
        zones = calculate_training_zones(DEFAULT_METRICS)

        assert zones.tempo.min_pace == pytest.approx(5.7)
        assert zones.tempo.max_pace == pytest.approx(6.2)

    def test_offsets_from_average_pace(self):
        zones = _zones_for(5.0)

        assert (zones.recovery.min_pace, zones.recovery.max_pace) == pytest.approx((6.5, 7.5))
        assert (zones.easy.min_pace, zones.easy.max_pace) == pytest.approx((5.5, 6.5))
        assert (zones.tempo.min_pace, zones.tempo.max_pace) == pytest.approx((4.7, 5.2))
        assert (zones.threshold.min_pace, zones.threshold.max_pace) == pytest.approx((4.2, 4.7))
        assert (zones.interval.min_pace, zones.interval.max_pace) == pytest.approx((3.5, 4.2))

    @pytest.mark.parametrize("avg_pace", [3.0, 4.5, 6.0, 8.5, 12.0])
    def test_zone_ordering(self, avg_pace):
        zones = _zones_for(avg_pace)

        assert zones.interval.max_pace < zones.threshold.max_pace
        assert zones.threshold.max_pace < zones.tempo.max_pace
        assert zones.tempo.max_pace < zones.easy.max_pace
        assert zones.easy.max_pace < zones.recovery.max_pace
        for band in (zones.recovery, zones.easy, zones.tempo, zones.threshold, zones.interval):
            assert band.min_pace < band.max_pace

    def test_no_clamping_for_very_fast_average(self):
        zones = _zones_for(2.0)
        assert zones.interval.min_pace == pytest.approx(0.5)


class TestZonesSerialization:
    def test_from_dict_restores_zones(self):
        zones = _zones_for(5.5)
        assert TrainingZones.from_dict(zones.to_dict()) == zones

    def test_from_dict_missing_band_returns_none(self):
        data = _zones_for(5.5).to_dict()
        del data["threshold"]
        assert TrainingZones.from_dict(data) is None
        assert TrainingZones.from_dict({}) is None


class TestDisplay:
    def test_zones_to_display_seconds_per_km(self):
        display = zones_to_display(calculate_training_zones(DEFAULT_METRICS))

        assert set(display) == {"easy", "tempo", "threshold", "interval"}
        assert display["easy"] == {"min": 390, "max": 450}
        assert display["tempo"] == {"min": 342, "max": 372}
        assert display["threshold"] == {"min": 312, "max": 342}
        assert display["interval"] == {"min": 270, "max": 312}

    def test_format_pace_km(self):
        assert format_pace(6.0) == "6:00/km"
        assert format_pace(5.25) == "5:15/km"

    def test_format_pace_mile(self):
        assert format_pace(6.0, "mile") == "9:39/mile"

    def test_format_pace_mile_is_clamped(self):
        assert format_pace(2.0, "mile") == "5:00/mile"
        assert format_pace(12.0, "mile") == "15:00/mile"

    def test_format_pace_rejects_unknown_unit(self):
        with pytest.raises(ValueError):
            format_pace(6.0, "furlong")
