"""Tests for fatigue type classification."""

from __future__ import annotations

from datetime import date, timedelta

from core.services.fatigue import (
    NO_FATIGUE_RECOMMENDATION,
    FatigueInputs,
    FatigueType,
    classify_fatigue,
    count_consecutive_training_days,
    count_high_intensity_sessions,
    count_low_energy_days,
    reason_breakdown,
)
from core.services.readiness import DiarySignals, LoadSignals
from core.services.training_load import WorkoutRecord

D = date(2026, 3, 16)


def test_no_signals_means_no_fatigue():
    result = classify_fatigue(FatigueInputs())
    assert result.type == FatigueType.NONE
    assert result.reasons == []
    assert result.recommendation == NO_FATIGUE_RECOMMENDATION


def test_cns_fatigue_from_sleep_and_persistent_low_energy():
    inputs = FatigueInputs(diary=DiarySignals(sleep_quality=1), persistent_low_energy_days=3)
    result = classify_fatigue(inputs)
    assert result.type == FatigueType.CNS
    assert result.severity == 55
    assert result.recommendation.startswith("Light activity only")


def test_tie_resolves_to_cns_over_muscular():
    inputs = FatigueInputs(
        diary=DiarySignals(energy=2, sleep_hours=8, soreness=4),
        persistent_low_energy_days=3,
        consecutive_training_days=5,
    )
    result = classify_fatigue(inputs)
    # CNS 30 + 20, muscular 35 + 15
    assert result.type == FatigueType.CNS


def test_muscular_fatigue_reasons_ordered_by_weight():
    inputs = FatigueInputs(diary=DiarySignals(soreness=5), consecutive_training_days=6)
    result = classify_fatigue(inputs)
    assert result.type == FatigueType.MUSCULAR
    assert [r.weight for r in result.reasons] == [35, 15]


def test_high_severity_psychological_recommendation():
    inputs = FatigueInputs(diary=DiarySignals(mood=1, stress=5, sleep_quality=2))
    result = classify_fatigue(inputs)
    assert result.type == FatigueType.PSYCHOLOGICAL
    assert result.severity == 70
    assert result.recommendation.startswith("Take a mental break")
    assert len(result.reasons) == 3


def test_metabolic_fatigue_from_load():
    inputs = FatigueInputs(load=LoadSignals(ctl=70, atl=85, tsb=-15.5))
    result = classify_fatigue(inputs)
    assert result.type == FatigueType.METABOLIC
    assert reason_breakdown(result.reasons) == {
        "Deep negative training balance": 30,
        "Very high acute training load": 20,
    }


def test_count_high_intensity_sessions():
    workouts = [
        WorkoutRecord(day=D, planned=True, completed=True, tss=95),
        WorkoutRecord(day=D - timedelta(days=2), planned=True, completed=True, intensity="hard"),
        WorkoutRecord(day=D - timedelta(days=3), planned=True, completed=False, intensity="hard"),
        WorkoutRecord(day=D - timedelta(days=9), planned=True, completed=True, intensity="hard"),
    ]
    assert count_high_intensity_sessions(workouts, D) == 2


def test_count_consecutive_training_days_stops_at_gap():
    workouts = [
        WorkoutRecord(day=D - timedelta(days=i), planned=True, completed=True, tss=40) for i in (0, 1, 2, 4)
    ]
    assert count_consecutive_training_days(workouts, D) == 3
    assert count_consecutive_training_days(workouts, D + timedelta(days=1)) == 0


def test_count_low_energy_days():
    assert count_low_energy_days([1, 2, 3, None, 5]) == 2
