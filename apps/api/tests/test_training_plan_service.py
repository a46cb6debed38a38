"""
Training Plan Service Tests

Orchestration over an in-memory store and a fake activity source:
freshness reuse, regeneration, explicit goals and sync adaptation.
"""

import pytest
import sys
import os
import copy
from datetime import timedelta
from uuid import uuid4

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.plan_adaptation import ADAPTATION_LOG_LIMIT
from services.plan_goals import FocusArea, build_goals
from services.running_metrics import DEFAULT_METRICS
from services.strava_service import StravaCredentials
from services.training_plan_service import TrainingPlanService
from fixtures.activity_fixtures import NOW, FakeActivitySource, make_run, make_training_block

CREDS = StravaCredentials("tok")


class InMemoryPlanStore:
    """Stores copies so the service cannot mutate a saved plan behind our back."""

    def __init__(self):
        self.plans = {}
        self.saves = 0

    def get_plan(self, user_id):
        plan = self.plans.get(user_id)
        return copy.deepcopy(plan) if plan is not None else None

    def save_plan(self, user_id, plan):
        self.saves += 1
        self.plans[user_id] = copy.deepcopy(plan)


@pytest.fixture
def store():
    return InMemoryPlanStore()


@pytest.fixture
def user_id():
    return uuid4()


def _service(store, activities=None):
    source = FakeActivitySource(activities)
    return TrainingPlanService(store, source), source


class TestGetOrCreatePlan:
    def test_first_plan_is_created_and_saved(self, store, user_id):
        service, source = _service(store)

        view = service.get_or_create_plan(user_id, CREDS, NOW)

        assert view.regenerated is True
        assert source.calls == 1
        assert store.saves == 1
        assert [a.reason for a in view.plan.adaptations] == ["Initial plan creation"]
        assert len(view.upcoming_workouts) == 7
        assert view.upcoming_workouts[0].date == NOW.date()

    def test_no_activities_gives_default_plan(self, store, user_id):
        service, _ = _service(store)

        plan = service.get_or_create_plan(user_id, CREDS, NOW).plan

        assert plan.metrics == DEFAULT_METRICS
        assert plan.name == "Personalized Running Plan"
        assert plan.weekly_plan[2].type == "tempo"
        assert plan.weekly_plan[2].target_pace == pytest.approx((5.7, 6.2))

    def test_training_block_plan_opens_with_long_run(self, store, user_id):
        service, _ = _service(store, make_training_block())

        plan = service.get_or_create_plan(user_id, CREDS, NOW).plan

        assert plan.weekly_plan[0].type == "long"

    def test_fresh_plan_is_reused_without_fetch(self, store, user_id):
        service, source = _service(store, make_training_block())
        first = service.get_or_create_plan(user_id, CREDS, NOW)

        source.activities = []  # would change metrics if fetched
        second = service.get_or_create_plan(user_id, CREDS, NOW + timedelta(hours=3))

        assert source.calls == 1
        assert store.saves == 1
        assert second.regenerated is False
        assert second.plan.metrics == first.plan.metrics
        assert second.upcoming_workouts == first.upcoming_workouts

    def test_reused_plan_workouts_are_dated_from_today(self, store, user_id):
        service, source = _service(store)
        service.get_or_create_plan(user_id, CREDS, NOW)

        later = NOW + timedelta(days=3)
        view = service.get_or_create_plan(user_id, CREDS, later)

        assert source.calls == 1
        assert view.upcoming_workouts[0].date == later.date()
        assert view.plan.weekly_plan[0].date == NOW.date()

    def test_stale_plan_is_regenerated_in_place(self, store, user_id):
        service, source = _service(store)
        first = service.get_or_create_plan(user_id, CREDS, NOW).plan

        later = NOW + timedelta(days=8)
        view = service.get_or_create_plan(user_id, CREDS, later)

        assert source.calls == 2
        assert view.regenerated is True
        assert view.plan.id == first.id
        assert view.plan.created_at == later
        assert [a.reason for a in view.plan.adaptations] == ["Initial plan creation", "Regular plan update"]

    def test_current_week(self, store, user_id):
        service, _ = _service(store)
        workouts = service.current_week(user_id, CREDS, NOW)
        assert [w.date for w in workouts] == [NOW.date() + timedelta(days=i) for i in range(7)]


class TestGeneratePlan:
    def test_goals_drive_name_and_focus(self, store, user_id):
        service, _ = _service(store)
        goals = build_goals(race_type="10k", target_time="45:00")

        plan = service.generate_plan(user_id, CREDS, goals, NOW).plan

        assert plan.name == "10K Training Plan - Target 45:00"
        assert plan.goals.focus_area == FocusArea.SPEED
        assert plan.weekly_plan[2].type == "interval"
        assert store.plans[user_id].goals == goals

    def test_always_fetches_even_when_fresh(self, store, user_id):
        service, source = _service(store)
        service.get_or_create_plan(user_id, CREDS, NOW)

        service.generate_plan(user_id, CREDS, build_goals(race_type="marathon"), NOW + timedelta(hours=1))

        assert source.calls == 2
        assert store.plans[user_id].goals.race_type == "marathon"

    def test_goals_survive_stale_regeneration(self, store, user_id):
        service, _ = _service(store)
        service.generate_plan(user_id, CREDS, build_goals(race_type="5k", target_time="24:30"), NOW)

        plan = service.get_or_create_plan(user_id, CREDS, NOW + timedelta(days=10)).plan

        assert plan.goals.race_type == "5k"
        assert plan.name == "5K Training Plan - Target 24:30"


class TestSyncPlan:
    def test_sync_without_plan_saves_nothing(self, store, user_id):
        service, _ = _service(store, [make_run("1"), make_run("2", days_ago=3)])

        result = service.sync_plan(user_id, CREDS, NOW)

        assert result.activities_synced == 2
        assert result.plan is None
        assert result.adaptations == []
        assert store.saves == 0

    def test_sync_adapts_existing_plan(self, store, user_id):
        service, source = _service(store)
        created = service.get_or_create_plan(user_id, CREDS, NOW).plan

        source.activities = [make_run(str(i), 6.0, 5.5, days_ago=1 + i) for i in range(4)]
        synced_at = NOW + timedelta(days=2)
        result = service.sync_plan(user_id, CREDS, synced_at)

        saved = store.plans[user_id]
        assert result.activities_synced == 4
        assert result.synced_at == synced_at
        assert saved.created_at == created.created_at
        assert saved.updated_at == synced_at
        assert saved.metrics != created.metrics
        assert [a.reason for a in saved.adaptations][0] == "Initial plan creation"
        assert [a.reason for a in result.adaptations] == [a.reason for a in saved.adaptations[1:]]
        assert "Excellent consistency" in [a.reason for a in result.adaptations]

    def test_sync_with_no_recent_runs(self, store, user_id):
        service, _ = _service(store)
        service.get_or_create_plan(user_id, CREDS, NOW)

        result = service.sync_plan(user_id, CREDS, NOW + timedelta(days=1))

        assert [a.reason for a in result.adaptations] == ["No recent runs detected"]

    def test_adaptation_log_is_bounded(self, store, user_id):
        service, source = _service(store, [make_run("1", 5.0, 6.0)])
        service.get_or_create_plan(user_id, CREDS, NOW)

        for i in range(15):
            service.sync_plan(user_id, CREDS, NOW + timedelta(hours=i + 1))

        assert len(store.plans[user_id].adaptations) == ADAPTATION_LOG_LIMIT

    def test_upstream_failure_resets_metrics_to_defaults(self, store, user_id):
        service, source = _service(store, make_training_block())
        service.get_or_create_plan(user_id, CREDS, NOW)

        source.activities = []  # what the Strava source returns on timeout
        result = service.sync_plan(user_id, CREDS, NOW + timedelta(hours=1))

        assert result.activities_synced == 0
        assert store.plans[user_id].metrics == DEFAULT_METRICS
