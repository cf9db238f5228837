"""Tests for compliance tracking: completion rate, streaks, and status tiers."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from core.services.compliance import (
    ComplianceStatus,
    completion_rate,
    compliance_nudge,
    compliance_status,
    compute_compliance,
)
from core.services.training_load import WorkoutRecord

AS_OF = date(2026, 3, 29)


def _w(days_back: int, completed: bool = True, planned: bool = True, tss=40.0, title: str = ""):
    return WorkoutRecord(
        day=AS_OF - timedelta(days=days_back),
        planned=planned,
        completed=completed,
        tss=tss,
        title=title,
    )


def test_all_planned_sessions_completed():
    workouts = [_w(8), _w(6), _w(4), _w(2), _w(0)]
    result = compute_compliance(workouts, AS_OF)
    assert result.planned_workouts == 5
    assert result.completed_workouts == 5
    assert result.completion_rate == 100
    assert result.current_streak == 5
    assert result.score == 93
    assert result.status == ComplianceStatus.STRONG


def test_nothing_planned_is_full_completion():
    result = compute_compliance([], AS_OF)
    assert result.completion_rate == 100
    assert result.current_streak == 0
    assert 0 <= result.score <= 100


def test_missed_session_breaks_streak():
    workouts = [_w(1), _w(2), _w(3, completed=False), _w(4)]
    assert compute_compliance(workouts, AS_OF).current_streak == 2


def test_rest_days_do_not_break_streak():
    workouts = [_w(0), _w(3), _w(7), _w(10)]
    assert compute_compliance(workouts, AS_OF).current_streak == 4


def test_incomplete_today_is_pending():
    workouts = [_w(0, completed=False), _w(1)]
    assert compute_compliance(workouts, AS_OF).current_streak == 1


def test_missed_key_sessions_make_status_fragile():
    workouts = [
        _w(5),
        _w(4),
        _w(3, completed=False, tss=90),
        _w(2, completed=False, tss=30, title="Track Intervals"),
    ]
    result = compute_compliance(workouts, AS_OF)
    assert result.completion_rate == 50
    assert result.missed_key_sessions == 2
    assert result.current_streak == 0
    assert result.score == 40
    assert result.status == ComplianceStatus.FRAGILE
    assert result.reasons[0].impact == -10


def test_unplanned_completed_workout_counts_as_scheduled():
    result = compute_compliance([_w(1, planned=False)], AS_OF)
    assert result.planned_workouts == 1
    assert result.completed_workouts == 1


def test_window_excludes_older_workouts():
    result = compute_compliance([_w(14, completed=False), _w(13)], AS_OF)
    assert result.planned_workouts == 1


def test_completion_rate_guarded():
    assert completion_rate(0, 0) == 100.0
    assert completion_rate(4, 3) == 75.0


def test_status_tiers():
    assert compliance_status(70) == ComplianceStatus.STRONG
    assert compliance_status(45) == ComplianceStatus.SLIPPING
    assert compliance_status(44) == ComplianceStatus.FRAGILE


def test_nudges():
    slipping = compute_compliance([_w(1), _w(2, completed=False), _w(3)], AS_OF)
    assert slipping.status == ComplianceStatus.SLIPPING
    assert compliance_nudge(slipping, "competitive").startswith("A couple missed workouts")

    strong = compute_compliance([_w(d) for d in range(7)], AS_OF)
    assert compliance_nudge(strong, "longevity").startswith("Your consistency")
    short_streak = compute_compliance([_w(0)], AS_OF)
    assert compliance_nudge(short_streak, "competitive") is None


HISTORIES = {
    "every_day_done": [_w(d) for d in range(14)],
    "one_missed": [_w(1), _w(2, completed=False), _w(3)],
    "every_day_missed": [_w(d, completed=False, tss=90, title="Long Run") for d in range(1, 14)],
    "empty": [],
}


@pytest.mark.parametrize("name", sorted(HISTORIES))
def test_score_stays_within_bounds(name):
    result = compute_compliance(HISTORIES[name], AS_OF)
    assert 0 <= result.score <= 100
    assert 0 <= result.completion_rate <= 100


def test_bound_histories_cover_every_status():
    statuses = {compute_compliance(h, AS_OF).status for h in HISTORIES.values()}
    assert statuses == set(ComplianceStatus)
