"""
Activity Cache Tests
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models import Activity
from services.activity_cache import load_recent_runs, upsert_activity_records
from fixtures.activity_fixtures import NOW, make_run


class TestUpsertActivityRecords:
    def test_stores_runs_and_skips_other_sports(self, db_session, test_athlete):
        records = [
            make_run("101", 5.0, days_ago=1),
            make_run("102", 8.0, days_ago=3),
            make_run("103", 30.0, activity_type="Ride", days_ago=2),
        ]

        result = upsert_activity_records(test_athlete, db_session, records)
        db_session.commit()

        assert result.created == 2
        assert result.updated == 0
        assert result.skipped_non_runs == 1
        assert db_session.query(Activity).filter(Activity.athlete_id == test_athlete.id).count() == 2

    def test_resync_updates_in_place(self, db_session, test_athlete):
        upsert_activity_records(test_athlete, db_session, [make_run("201", 5.0)])
        db_session.commit()

        result = upsert_activity_records(test_athlete, db_session, [make_run("201", 5.5)])
        db_session.commit()

        assert result.created == 0
        assert result.updated == 1
        row = db_session.query(Activity).filter(Activity.external_activity_id == "201").one()
        assert row.distance_m == pytest.approx(5500.0)

    def test_repeated_id_in_one_batch_is_stored_once(self, db_session, test_athlete):
        result = upsert_activity_records(test_athlete, db_session, [
            make_run("555", 5.0),
            make_run("555", 5.2),
        ])
        db_session.commit()

        assert result.created == 1
        assert result.updated == 0
        row = db_session.query(Activity).filter(Activity.external_activity_id == "555").one()
        assert row.distance_m == pytest.approx(5200.0)

    def test_repeated_id_of_cached_run_counts_one_update(self, db_session, test_athlete):
        upsert_activity_records(test_athlete, db_session, [make_run("556", 5.0)])
        db_session.commit()

        result = upsert_activity_records(test_athlete, db_session, [make_run("556"), make_run("556")])
        db_session.commit()

        assert result.created == 0
        assert result.updated == 1
        assert db_session.query(Activity).filter(Activity.external_activity_id == "556").count() == 1


class TestLoadRecentRuns:
    def test_newest_first_within_window(self, db_session, test_athlete):
        upsert_activity_records(test_athlete, db_session, [
            make_run("a", 5.0, days_ago=5),
            make_run("b", 6.0, days_ago=1),
            make_run("old", 10.0, days_ago=45),
        ])
        db_session.commit()

        runs = load_recent_runs(test_athlete, db_session, NOW, days=30)

        assert [r.id for r in runs] == ["b", "a"]
        assert runs[0].start_time.tzinfo is not None
        assert runs[0].distance_km == pytest.approx(6.0)
        assert runs[0].pace_min_per_km == pytest.approx(6.0)
