"""Tests for burnout risk scoring and the recovery actions it suggests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from core.services.burnout import (
    RECOVERY_REASON,
    BurnoutActionType,
    BurnoutInputs,
    BurnoutStatus,
    RecoveryMicrocycle,
    burnout_status,
    compute_burnout_risk,
    driver_breakdown,
    lower_intensity,
    simplify_sessions,
)
from core.services.compliance import ComplianceStatus
from core.services.fatigue import FatigueType
from core.services.training_load import PlannedSession


def test_repeated_bad_diary_is_high_risk():
    inputs = BurnoutInputs(mood=1, stress=5, sleep_quality=1, low_mood_days=3, poor_sleep_days=3)
    result = compute_burnout_risk(inputs)
    assert result.risk == 90
    assert result.status == BurnoutStatus.HIGH
    assert [a.type for a in result.suggested_actions] == [
        BurnoutActionType.SIMPLIFY,
        BurnoutActionType.RECOVERY_MICROCYCLE,
    ]
    assert result.recommendation.startswith("Your mental energy is depleted")


def test_moderate_risk_suggests_simplify_only():
    inputs = BurnoutInputs(stress=4, soreness=4, compliance_status=ComplianceStatus.SLIPPING)
    result = compute_burnout_risk(inputs)
    assert result.risk == 33
    assert result.status == BurnoutStatus.MODERATE
    assert result.recommendation.startswith("Life stress is elevated")
    assert [a.type for a in result.suggested_actions] == [BurnoutActionType.SIMPLIFY]


def test_no_drivers_is_low():
    result = compute_burnout_risk(BurnoutInputs(mood=5, stress=1, sleep_quality=5))
    assert result.risk == 0
    assert result.status == BurnoutStatus.LOW
    assert result.drivers == []
    assert result.suggested_actions == []


def test_mood_triggers_are_exclusive():
    low = compute_burnout_risk(BurnoutInputs(mood=2))
    moderate = compute_burnout_risk(BurnoutInputs(mood=3))
    assert [d.driver for d in low.drivers] == ["low_mood"]
    assert low.risk == 25
    assert [d.driver for d in moderate.drivers] == ["moderate_mood"]
    assert moderate.risk == 10


def test_risk_capped_at_hundred_but_raw_kept():
    inputs = BurnoutInputs(
        mood=1,
        stress=5,
        sleep_quality=1,
        soreness=5,
        low_mood_days=5,
        poor_sleep_days=5,
        high_soreness_days=5,
        fatigue_type=FatigueType.PSYCHOLOGICAL,
        compliance_status=ComplianceStatus.FRAGILE,
        readiness_score=20,
    )
    result = compute_burnout_risk(inputs)
    assert result.raw_risk == 155
    assert result.risk == 100
    assert len(result.drivers) == 4
    assert result.drivers[0].driver == "low_mood"


STRESSED = BurnoutInputs(mood=4, stress=4, sleep_quality=4, soreness=2, readiness_score=70)
POOR_SLEEPER = BurnoutInputs(mood=4, stress=2, sleep_quality=2, soreness=2, readiness_score=70)

DRIVER_TRIGGERS = {
    "low_mood": {"mood": 2},
    "moderate_mood": {"mood": 3},
    "persistent_low_mood": {"low_mood_days": 3},
    "high_stress": {"stress": 4},
    "poor_sleep": {"sleep_quality": 2},
    "persistent_poor_sleep": {"poor_sleep_days": 3},
    "high_soreness": {"soreness": 4},
    "persistent_soreness": {"high_soreness_days": 3},
    "fatigue_type": {"fatigue_type": FatigueType.CNS},
    "fragile_compliance": {"compliance_status": ComplianceStatus.FRAGILE},
    "slipping_compliance": {"compliance_status": ComplianceStatus.SLIPPING},
    "low_readiness": {"readiness_score": 39},
}


@pytest.mark.parametrize("driver", sorted(DRIVER_TRIGGERS))
def test_adding_a_driver_never_lowers_risk(driver):
    base = POOR_SLEEPER if driver == "high_stress" else STRESSED
    before = compute_burnout_risk(base)
    after = compute_burnout_risk(replace(base, **DRIVER_TRIGGERS[driver]))
    assert before.risk > 0
    assert driver in {d.driver for d in after.drivers}
    assert after.risk > before.risk


def test_lower_mood_never_lowers_risk():
    moderate = compute_burnout_risk(replace(STRESSED, mood=3))
    low = compute_burnout_risk(replace(STRESSED, mood=2))
    assert low.risk > moderate.risk


CALM = BurnoutInputs(mood=5, stress=1, sleep_quality=5, soreness=1, readiness_score=100)
WORN_OUT = BurnoutInputs(
    mood=1, stress=5, sleep_quality=1, soreness=5, low_mood_days=7, poor_sleep_days=7, high_soreness_days=7,
    readiness_score=0,
)


@pytest.mark.parametrize("inputs", [CALM, WORN_OUT, BurnoutInputs()], ids=["calm", "worn_out", "empty"])
@pytest.mark.parametrize("status", [*ComplianceStatus, None])
@pytest.mark.parametrize("fatigue_type", list(FatigueType))
def test_risk_stays_within_bounds(inputs, status, fatigue_type):
    result = compute_burnout_risk(replace(inputs, compliance_status=status, fatigue_type=fatigue_type))
    assert 0 <= result.risk <= 100
    assert result.raw_risk >= result.risk


def test_muscular_fatigue_is_not_a_burnout_driver():
    assert compute_burnout_risk(BurnoutInputs(fatigue_type=FatigueType.MUSCULAR)).risk == 0
    assert compute_burnout_risk(BurnoutInputs(fatigue_type=FatigueType.CNS)).risk == 20


def test_driver_breakdown():
    result = compute_burnout_risk(BurnoutInputs(mood=1, stress=5))
    assert driver_breakdown(result.drivers) == {"low_mood": 25, "high_stress": 15}


def test_status_boundaries():
    assert burnout_status(29) == BurnoutStatus.LOW
    assert burnout_status(30) == BurnoutStatus.MODERATE
    assert burnout_status(50) == BurnoutStatus.HIGH


def test_simplify_sessions_shortens_and_softens():
    session = PlannedSession(day=date(2026, 3, 17), duration_min=60, tss=80, intensity="hard")
    (simplified,) = simplify_sessions([session])
    assert simplified.duration_min == 42
    assert simplified.intensity == "moderate"
    assert simplified.tss == 56.0
    assert session.duration_min == 60


def test_lower_intensity_floor():
    assert lower_intensity("easy") == "easy"
    assert lower_intensity(None) == "easy"
    assert lower_intensity("moderate") == "easy"


def test_recovery_microcycle_plan():
    command = RecoveryMicrocycle(athlete_id=1, week_start=date(2026, 3, 16), sport="cycling")
    plan = command.plan()
    assert [s.day.day for s in plan] == [16, 18, 20]
    assert all(s.intensity == "easy" for s in plan)
    assert all(s.reason == RECOVERY_REASON for s in plan)
    assert plan[0].title == "Easy Spin"
    assert command.week_end == date(2026, 3, 22)


def test_unknown_sport_falls_back_to_running():
    plan = RecoveryMicrocycle(athlete_id=1, week_start=date(2026, 3, 16), sport="rowing").plan()
    assert plan[0].title == "Easy Walk/Jog"
