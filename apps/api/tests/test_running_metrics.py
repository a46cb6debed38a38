"""
Running Metrics Analyzer Tests

Covers the trailing-window summary: defaults for missing data, weekly
averaging, pace handling for malformed records and the improvement rate.
"""

import pytest
import sys
import os
from datetime import timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.running_metrics import (
    ActivityRecord,
    DEFAULT_METRICS,
    analyze_running_data,
    calculate_improvement_rate,
    default_metrics,
    filter_recent_runs,
)
from fixtures.activity_fixtures import NOW, make_run, make_strava_activity


class TestDefaults:
    def test_empty_activities_return_defaults(self):
        metrics = analyze_running_data([], NOW)

        assert metrics == DEFAULT_METRICS
        assert metrics.weekly_distance_km == 15
        assert metrics.weekly_run_count == 3
        assert metrics.average_pace_min_per_km == 6.0
        assert metrics.longest_run_km == 5
        assert metrics.total_elevation_gain_m == 50
        assert metrics.consistency_score == 50
        assert metrics.improvement_rate_percent == 0
        assert metrics.average_heart_rate is None

    def test_only_non_running_activities_return_defaults(self):
        ride = ActivityRecord.from_strava(make_strava_activity(activity_type="Ride", distance_m=40000))
        assert analyze_running_data([ride], NOW) == default_metrics()

    def test_runs_outside_window_return_defaults(self):
        old = make_run("old", 10.0, days_ago=40)
        assert analyze_running_data([old], NOW) == DEFAULT_METRICS


class TestWeeklySummary:
    def test_four_runs_in_window(self):
        runs = [make_run(str(i), 5.0, 6.0, days_ago=i * 5 + 1) for i in range(4)]
        ride = ActivityRecord.from_strava(make_strava_activity(99, "Ride", 30000, 3600, days_ago=2))
        old = make_run("old", 21.0, days_ago=40)

        metrics = analyze_running_data(runs + [ride, old], NOW)

        assert metrics.weekly_distance_km == pytest.approx(5.0)
        assert metrics.weekly_run_count == pytest.approx(1.0)
        assert metrics.average_pace_min_per_km == pytest.approx(6.0)
        assert metrics.longest_run_km == pytest.approx(5.0)
        assert metrics.total_elevation_gain_m == pytest.approx(10.0)
        assert metrics.consistency_score == pytest.approx(25.0)
        assert metrics.improvement_rate_percent == pytest.approx(0.0)

    def test_virtual_and_trail_runs_count_as_runs(self):
        runs = [
            make_run("a", 5.0, activity_type="VirtualRun"),
            make_run("b", 7.0, activity_type="TrailRun", days_ago=3),
        ]
        metrics = analyze_running_data(runs, NOW)

        assert metrics.weekly_run_count == pytest.approx(0.5)
        assert metrics.longest_run_km == pytest.approx(7.0)

    def test_run_exactly_at_window_start_is_excluded(self):
        edge = make_run("edge", 10.0, days_ago=28)
        inside = make_run("inside", 4.0, days_ago=27)

        recent = filter_recent_runs([edge, inside], NOW)

        assert [r.id for r in recent] == ["inside"]

    def test_consistency_is_capped_at_100(self):
        runs = [make_run(str(i), 5.0, days_ago=1 + i) for i in range(20)]
        assert analyze_running_data(runs, NOW).consistency_score == 100

    def test_average_heart_rate_ignores_runs_without_hr(self):
        runs = [
            make_run("a", heart_rate=150),
            make_run("b", heart_rate=160, days_ago=2),
            make_run("c", days_ago=3),
        ]
        assert analyze_running_data(runs, NOW).average_heart_rate == pytest.approx(155.0)


class TestMalformedRecords:
    def test_from_strava_coerces_bad_fields(self):
        record = ActivityRecord.from_strava({
            "id": 7,
            "type": "Run",
            "distance": "abc",
            "moving_time": None,
            "total_elevation_gain": float("nan"),
            "start_date": "not a date",
        })

        assert record.id == "7"
        assert record.distance_meters == 0.0
        assert record.moving_time_seconds == 0.0
        assert record.elevation_gain_meters == 0.0
        assert record.start_time is None
        assert record.pace_min_per_km is None

    def test_from_strava_parses_utc_start(self):
        record = ActivityRecord.from_strava(make_strava_activity(days_ago=1))
        assert record.start_time.tzinfo is not None
        assert record.start_time.astimezone(timezone.utc) == NOW.replace(day=18)

    def test_malformed_record_does_not_break_batch(self):
        bad = ActivityRecord.from_strava({"type": "Run", "distance": "abc", "start_date": "bad"})
        metrics = analyze_running_data([bad, make_run("ok", 8.0)], NOW)

        assert metrics.longest_run_km == pytest.approx(8.0)
        assert metrics.weekly_run_count == pytest.approx(0.25)

    def test_zero_distance_run_falls_back_to_default_pace(self):
        zero = ActivityRecord(
            id="z",
            type="Run",
            distance_meters=0,
            moving_time_seconds=600,
            elapsed_time_seconds=600,
            elevation_gain_meters=0,
            start_time=make_run().start_time,
        )
        metrics = analyze_running_data([zero], NOW)

        assert metrics.average_pace_min_per_km == 6.0
        assert metrics.weekly_distance_km == 0
        assert metrics.longest_run_km == 0
        assert metrics.consistency_score == pytest.approx(6.25)


class TestImprovementRate:
    def test_faster_second_half_is_positive(self):
        runs = [
            make_run("1", 5.0, 6.0, days_ago=20),
            make_run("2", 5.0, 6.0, days_ago=15),
            make_run("3", 5.0, 5.4, days_ago=10),
            make_run("4", 5.0, 5.4, days_ago=5),
        ]
        assert calculate_improvement_rate(runs) == pytest.approx(10.0)

    def test_order_of_input_does_not_matter(self):
        runs = [
            make_run("4", 5.0, 5.4, days_ago=5),
            make_run("1", 5.0, 6.0, days_ago=20),
            make_run("3", 5.0, 5.4, days_ago=10),
            make_run("2", 5.0, 6.0, days_ago=15),
        ]
        assert calculate_improvement_rate(runs) == pytest.approx(10.0)

    def test_slower_second_half_is_negative(self):
        runs = [
            make_run("1", 5.0, 5.0, days_ago=20),
            make_run("2", 5.0, 5.0, days_ago=15),
            make_run("3", 5.0, 5.5, days_ago=10),
            make_run("4", 5.0, 5.5, days_ago=5),
        ]
        assert calculate_improvement_rate(runs) == pytest.approx(-10.0)

    def test_fewer_than_four_runs_is_zero(self):
        runs = [make_run(str(i), 5.0, 6.0 - i * 0.2, days_ago=10 - i) for i in range(3)]
        assert calculate_improvement_rate(runs) == 0.0
