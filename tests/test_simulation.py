"""Tests for the what-if training simulation."""

from __future__ import annotations

from dataclasses import replace

import pytest

from core.errors import EngineValidationError
from core.services.simulation import (
    SCENARIO_PRESETS,
    Baseline,
    ComplianceAssumption,
    IdentityMode,
    RiskLevel,
    ScenarioParams,
    compare_scenarios,
    format_scenario_params,
    parse_scenario_params,
    risk_level,
    run_simulation,
    summarize_weeks,
    synthetic_diary,
    validate_duration,
)

BASELINE = Baseline(ctl=50, atl=40, tsb=10, avg_readiness=70, avg_burnout_risk=20, avg_weekly_tss=250)
FULL_300 = ScenarioParams(weekly_tss=300, compliance_assumption=ComplianceAssumption.FULL)


def test_four_week_projection_from_fixed_baseline():
    output = run_simulation(BASELINE, FULL_300, 4)
    weeks = output.weeks
    assert [w.week_index for w in weeks] == [0, 1, 2, 3]
    assert weeks[0].weekly_tss == 275.0
    assert any("capped" in w for w in weeks[0].warnings)
    assert any("Dangerous ramp" in w for w in weeks[0].warnings)
    assert [w.simulated_ctl for w in weeks] == pytest.approx([50.8, 52.2, 53.4, 54.4], abs=0.1)
    assert weeks[-1].simulated_atl == pytest.approx(59.5, abs=0.1)
    assert output.summary.final_tsb == pytest.approx(-5.1, abs=0.15)
    assert output.summary.ctl_change == pytest.approx(4.4, abs=0.1)
    assert output.summary.final_ctl == weeks[-1].simulated_ctl


def test_simulation_is_deterministic():
    params = SCENARIO_PRESETS["aggressive_build"].params
    assert run_simulation(BASELINE, params, 8) == run_simulation(BASELINE, params, 8)


@pytest.mark.parametrize("weeks", [1, 13, 0, True, 2.5])
def test_duration_outside_bounds_rejected(weeks):
    with pytest.raises(EngineValidationError):
        run_simulation(BASELINE, FULL_300, weeks)


def test_duration_bounds_accepted():
    assert validate_duration(2) == 2
    assert validate_duration(12) == 12


def test_comeback_mode_caps_ramp_tighter():
    params = SCENARIO_PRESETS["aggressive_build"].params
    competitive = run_simulation(BASELINE, params, 4)
    comeback = run_simulation(BASELINE, replace(params, identity_mode_override=IdentityMode.COMEBACK), 4)
    assert competitive.weeks[0].weekly_tss == 275.0
    assert comeback.weeks[0].weekly_tss == 262.5
    assert comeback.weeks[0].simulated_readiness_avg >= competitive.weeks[0].simulated_readiness_avg


def test_steady_load_is_safe():
    params = ScenarioParams(weekly_tss=250, compliance_assumption=ComplianceAssumption.FULL)
    output = run_simulation(BASELINE, params, 6)
    assert output.summary.total_warnings == 0
    assert output.summary.risk_level == RiskLevel.SAFE
    assert output.summary.recommendation.startswith("This scenario appears safe")


@pytest.mark.parametrize("key", sorted(SCENARIO_PRESETS))
def test_presets_stay_in_bounds(key):
    output = run_simulation(Baseline.defaults(), SCENARIO_PRESETS[key].params, 12)
    assert len(output.weeks) == 12
    for week in output.weeks:
        assert 0 <= week.simulated_readiness_avg <= 100
        assert 0 <= week.simulated_burnout_risk <= 100
        assert week.simulated_tsb == pytest.approx(week.simulated_ctl - week.simulated_atl, abs=0.11)


def test_risk_level_tiers():
    assert risk_level(49, 0) == RiskLevel.SAFE
    assert risk_level(50, 0) == RiskLevel.MODERATE
    assert risk_level(20, 2) == RiskLevel.MODERATE
    assert risk_level(20, 3) == RiskLevel.HIGH
    assert risk_level(70, 0) == RiskLevel.HIGH


def test_summarize_requires_weeks():
    with pytest.raises(EngineValidationError):
        summarize_weeks(BASELINE, [])


def test_compare_keeps_input_order():
    entries = [
        ("safe", SCENARIO_PRESETS["comeback_safe"].params, 6),
        ("push", SCENARIO_PRESETS["aggressive_build"].params, 6),
    ]
    results = compare_scenarios(BASELINE, entries)
    assert [r.name for r in results] == ["safe", "push"]
    assert results[1].final_ctl > results[0].final_ctl


def test_synthetic_diary_tracks_balance():
    fresh = synthetic_diary(ctl=50, atl=40, tsb=10)
    tired = synthetic_diary(ctl=50, atl=80, tsb=-30)
    assert fresh.mood == 4 and fresh.stress == 2 and fresh.soreness == 2
    assert tired.mood == 1 and tired.stress == 5 and tired.soreness == 4


def test_parse_scenario_params_defaults_and_errors():
    params = parse_scenario_params({})
    assert params == ScenarioParams()
    assert parse_scenario_params({"identity_mode_override": "longevity"}).identity_mode_override == IdentityMode.LONGEVITY
    with pytest.raises(EngineValidationError):
        parse_scenario_params({"volume_change_pct": 60})
    with pytest.raises(EngineValidationError):
        parse_scenario_params({"intensity_bias": "EXTREME"})
    with pytest.raises(EngineValidationError):
        parse_scenario_params({"weekly_tss": -1})


def test_params_round_trip_through_dict():
    params = SCENARIO_PRESETS["comeback_safe"].params
    assert parse_scenario_params(params.to_dict()) == params


def test_format_scenario_params():
    text = format_scenario_params(SCENARIO_PRESETS["balanced_progress"].params)
    assert text == "Volume: +10% | Intensity: BALANCED | Recovery: NORMAL | Compliance: REALISTIC"


def test_first_week_insight_reports_recent_readiness_and_burnout():
    output = run_simulation(replace(BASELINE, avg_readiness=62.4, avg_burnout_risk=37.6), FULL_300, 4)
    opening = output.weeks[0].insights[0]
    assert opening.startswith("Starting from CTL 50 (readiness ~62, burnout risk ~38%)")
    assert all("readiness ~" not in i for w in output.weeks[1:] for i in w.insights)
