"""Tests for scenario persistence and simulation runs against the database."""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from core.errors import EngineValidationError, NotFoundError, PersistenceError
from core.models import Athlete, DailyMetric, SimulationResult, Workout
from core.services.scenarios import (
    create_scenario,
    apply_scenario,
    delete_scenario,
    derive_baseline,
    get_scenario,
    list_scenarios,
    load_simulation_results,
    run_scenario,
)
from core.services.simulation import SCENARIO_PRESETS, Baseline, IdentityMode, ScenarioParams

TODAY = date(2026, 3, 29)
BALANCED = SCENARIO_PRESETS["balanced_progress"].params


def _create(db, athlete_id, weeks=4, params=BALANCED):
    with db.session_scope() as s:
        return create_scenario(s, athlete_id, "Spring build", weeks, params).id


def test_baseline_defaults_without_history(db, athlete_id):
    with db.session_scope() as s:
        baseline = derive_baseline(s, athlete_id, TODAY)
    assert baseline == Baseline.defaults()


def test_baseline_from_stored_history(db, athlete_id):
    with db.session_scope() as s:
        s.get(Athlete, athlete_id).identity_mode = "longevity"
        s.add(DailyMetric(athlete_id=athlete_id, day=TODAY - timedelta(days=3), ctl=55.0, atl=50.0, tsb=5.0,
                          readiness_score=60.0, burnout_risk=30.0))
        s.add(DailyMetric(athlete_id=athlete_id, day=TODAY - timedelta(days=1), ctl=60.0, atl=52.0, tsb=8.0,
                          readiness_score=80.0, burnout_risk=10.0))
        for offset in range(0, 28, 7):
            s.add(Workout(athlete_id=athlete_id, day=TODAY - timedelta(days=offset), planned=True,
                          completed=True, duration_min=90, tss=300.0))
        s.add(Workout(athlete_id=athlete_id, day=TODAY - timedelta(days=40), planned=True,
                      completed=True, duration_min=90, tss=999.0))

    with db.session_scope() as s:
        baseline = derive_baseline(s, athlete_id, TODAY)
    assert baseline.ctl == 60.0
    assert baseline.atl == 52.0
    assert baseline.tsb == 8.0
    assert baseline.avg_readiness == 70.0
    assert baseline.avg_burnout_risk == 20.0
    assert baseline.avg_weekly_tss == 300.0
    assert baseline.identity_mode == IdentityMode.LONGEVITY


def test_baseline_weekly_tss_estimates_missing_tss_from_duration(db, athlete_id):
    with db.session_scope() as s:
        for offset in range(28):
            s.add(Workout(athlete_id=athlete_id, day=TODAY - timedelta(days=offset), planned=True,
                          completed=True, duration_min=60, tss=None))

    with db.session_scope() as s:
        baseline = derive_baseline(s, athlete_id, TODAY)
    assert baseline.avg_weekly_tss == 336.0


@pytest.mark.parametrize("weeks", [1, 13])
def test_create_rejects_bad_duration(db, athlete_id, weeks):
    with db.session_scope() as s:
        with pytest.raises(EngineValidationError):
            create_scenario(s, athlete_id, "Too long", weeks, BALANCED)


def test_create_requires_name(db, athlete_id):
    with db.session_scope() as s:
        with pytest.raises(EngineValidationError):
            create_scenario(s, athlete_id, "  ", 4, BALANCED)


def test_results_empty_before_first_run(db, athlete_id):
    scenario_id = _create(db, athlete_id)
    with db.session_scope() as s:
        scenario, weeks, summary = load_simulation_results(s, athlete_id, scenario_id)
    assert scenario.name == "Spring build"
    assert weeks == []
    assert summary is None


def test_rerun_replaces_all_results(db, athlete_id):
    scenario_id = _create(db, athlete_id, weeks=6)
    with db.session_scope() as s:
        first = run_scenario(s, athlete_id, scenario_id, TODAY)
    with db.session_scope() as s:
        second = run_scenario(s, athlete_id, scenario_id, TODAY)

    with db.session_scope() as s:
        count = s.execute(select(func.count()).select_from(SimulationResult)).scalar_one()
        scenario, weeks, summary = load_simulation_results(s, athlete_id, scenario_id)
        last_run_at = scenario.last_run_at

    assert count == 6
    assert first == second
    assert [w.week_index for w in weeks] == list(range(6))
    assert weeks == second.weeks
    assert summary == second.summary
    assert last_run_at is not None


def test_failed_store_raises_persistence_error(db, athlete_id, monkeypatch):
    scenario_id = _create(db, athlete_id)

    def broken_flush(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk full"))

    with pytest.raises(PersistenceError):
        with db.session_scope() as s:
            monkeypatch.setattr(s, "flush", broken_flush)
            run_scenario(s, athlete_id, scenario_id, TODAY)

    with db.session_scope() as s:
        _, weeks, summary = load_simulation_results(s, athlete_id, scenario_id)
    assert weeks == []
    assert summary is None


def test_list_and_delete(db, athlete_id):
    first = _create(db, athlete_id)
    second = _create(db, athlete_id, params=ScenarioParams(volume_change_pct=-10))
    with db.session_scope() as s:
        run_scenario(s, athlete_id, first, TODAY)

    with db.session_scope() as s:
        assert {sc.id for sc in list_scenarios(s, athlete_id)} == {first, second}
        delete_scenario(s, athlete_id, first)

    with db.session_scope() as s:
        assert [sc.id for sc in list_scenarios(s, athlete_id)] == [second]
        assert s.execute(select(func.count()).select_from(SimulationResult)).scalar_one() == 0
        with pytest.raises(NotFoundError):
            get_scenario(s, athlete_id, first)


def test_scenario_scoped_to_athlete(db, athlete_id):
    scenario_id = _create(db, athlete_id)
    with db.session_scope() as s:
        other = Athlete(first_name="Other", last_name="Athlete", email="other@example.com")
        s.add(other)
        s.flush()
        with pytest.raises(NotFoundError):
            get_scenario(s, other.id, scenario_id)


def test_apply_requires_a_run(db, athlete_id):
    scenario_id = _create(db, athlete_id)
    with db.session_scope() as s:
        with pytest.raises(EngineValidationError):
            apply_scenario(s, athlete_id, scenario_id)
        assert get_scenario(s, athlete_id, scenario_id).applied is False


def test_apply_marks_scenario(db, athlete_id):
    scenario_id = _create(db, athlete_id)
    with db.session_scope() as s:
        run_scenario(s, athlete_id, scenario_id, TODAY)
    with db.session_scope() as s:
        apply_scenario(s, athlete_id, scenario_id)

    with db.session_scope() as s:
        scenario = get_scenario(s, athlete_id, scenario_id)
        assert scenario.applied is True
        assert scenario.applied_at is not None
