"""Compliance tracking: planned vs completed sessions, streaks, and consistency status."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable

from core.config import DEFAULT_THRESHOLDS, EngineThresholds
from core.services.training_load import WorkoutRecord


class ComplianceStatus(str, Enum):
    STRONG = "STRONG"
    SLIPPING = "SLIPPING"
    FRAGILE = "FRAGILE"


@dataclass(frozen=True)
class ComplianceReason:
    reason: str
    impact: int


@dataclass(frozen=True)
class ComplianceResult:
    score: int
    status: ComplianceStatus
    reasons: list[ComplianceReason]
    planned_workouts: int
    completed_workouts: int
    completion_rate: int
    current_streak: int
    missed_key_sessions: int


def _is_scheduled(w: WorkoutRecord) -> bool:
    # Unplanned sessions that were completed still count toward the plan.
    return w.planned or w.completed


def compliance_status(score: float, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> ComplianceStatus:
    if score >= thresholds.compliance_strong_min:
        return ComplianceStatus.STRONG
    if score >= thresholds.compliance_slipping_min:
        return ComplianceStatus.SLIPPING
    return ComplianceStatus.FRAGILE


def completion_rate(planned: int, completed: int) -> float:
    """Percent of scheduled sessions completed; 100 when nothing was scheduled."""
    if planned <= 0:
        return 100.0
    return min(100.0, completed / planned * 100.0)


def compliance_streak(workouts: Iterable[WorkoutRecord], as_of: date, window_days: int) -> int:
    """Count compliant days walking backward from as_of.

    Days with nothing scheduled are skipped. A day whose scheduled sessions
    were all completed adds one. A day with a scheduled but incomplete
    session ends the streak, except as_of itself, which is still in progress.
    """
    by_day: dict[date, list[WorkoutRecord]] = defaultdict(list)
    for w in workouts:
        if _is_scheduled(w):
            by_day[w.day].append(w)

    streak = 0
    earliest = as_of - timedelta(days=window_days - 1)
    current = as_of
    while current >= earliest:
        sessions = by_day.get(current)
        if sessions:
            if all(w.completed for w in sessions):
                streak += 1
            elif current != as_of:
                break
        current -= timedelta(days=1)
    return streak


def _is_key_session(w: WorkoutRecord, thresholds: EngineThresholds) -> bool:
    if w.tss is not None and w.tss > thresholds.key_session_tss:
        return True
    return "intervals" in (w.discipline or "").lower() or "intervals" in (w.title or "").lower()


def compute_compliance(
    workouts: Iterable[WorkoutRecord],
    as_of: date,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> ComplianceResult:
    """Score training consistency over the rolling window ending at as_of."""
    window = thresholds.compliance_window_days
    start = as_of - timedelta(days=window - 1)
    recent = [w for w in workouts if start <= w.day <= as_of]

    planned = sum(1 for w in recent if _is_scheduled(w))
    completed = sum(1 for w in recent if w.completed)
    rate = completion_rate(planned, completed)
    streak = compliance_streak(recent, as_of, window)
    missed_key = sum(1 for w in recent if w.planned and not w.completed and _is_key_session(w, thresholds))

    reasons: list[ComplianceReason] = []
    score = 50

    if rate >= 90:
        reasons.append(ComplianceReason("Excellent completion rate", 30))
    elif rate >= 75:
        reasons.append(ComplianceReason("Good completion rate", 20))
    elif rate >= 50:
        reasons.append(ComplianceReason("Moderate completion rate", 5))
    else:
        reasons.append(ComplianceReason("Low completion rate", -15))

    if streak >= 7:
        reasons.append(ComplianceReason(f"Strong {streak}-day streak", 15))
    elif streak >= 3:
        reasons.append(ComplianceReason(f"{streak}-day streak building", 8))
    elif streak == 0:
        reasons.append(ComplianceReason("No recent training streak", -5))

    if missed_key == 0:
        reasons.append(ComplianceReason("All key sessions completed", 5))
    elif missed_key >= 2:
        reasons.append(ComplianceReason(f"Missed {missed_key} key sessions", -10))
    else:
        reasons.append(ComplianceReason("Missed 1 key session", -5))

    score = max(0, min(100, score + sum(r.impact for r in reasons)))
    reasons.sort(key=lambda r: abs(r.impact), reverse=True)

    return ComplianceResult(
        score=score,
        status=compliance_status(score, thresholds),
        reasons=reasons[:3],
        planned_workouts=planned,
        completed_workouts=completed,
        completion_rate=round(rate),
        current_streak=streak,
        missed_key_sessions=missed_key,
    )


def reason_breakdown(reasons: list[ComplianceReason]) -> dict[str, int]:
    return {r.reason: r.impact for r in reasons[:3]}


_NUDGES: dict[tuple[ComplianceStatus, str], str] = {
    (ComplianceStatus.STRONG, "competitive"): "Consistency on point. Keep the momentum: today's easy effort fuels tomorrow's gains.",
    (ComplianceStatus.STRONG, "longevity"): "Your consistency is building lasting fitness. Stay patient, stay consistent.",
    (ComplianceStatus.STRONG, "busy_pro"): "Great rhythm maintained. Short sessions, big results over time.",
    (ComplianceStatus.STRONG, "*"): "You're consistent. Keep it easy today to protect tomorrow's quality.",
    (ComplianceStatus.FRAGILE, "comeback"): "Life happens. Let's reset with something light and enjoyable today.",
    (ComplianceStatus.FRAGILE, "*"): "Training took a backseat lately. Let's start fresh with one small win today.",
}


def compliance_nudge(result: ComplianceResult, identity_mode: str) -> str | None:
    """Short nudge for notable compliance states; None when there is nothing to say."""
    if result.status == ComplianceStatus.SLIPPING:
        if result.missed_key_sessions >= 2:
            return "You've skipped a few sessions. Let's simplify the week to rebuild momentum."
        return "A couple missed workouts is okay. Let's focus on getting back on track today."
    if result.status == ComplianceStatus.STRONG and result.current_streak < 5:
        return None
    return _NUDGES.get((result.status, identity_mode)) or _NUDGES.get((result.status, "*"))
