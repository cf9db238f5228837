"""Fatigue type detection from diary signals, load, and recent training patterns.

Four indicator ladders (CNS, psychological, metabolic, muscular) accumulate
weighted evidence. The strongest ladder at or above the minimum score names
the fatigue type; equal scores resolve in a fixed severity order so that
CNS and psychological patterns out-rank isolated soreness.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Sequence

from core.config import DEFAULT_THRESHOLDS, EngineThresholds
from core.services.readiness import DiarySignals, LoadSignals
from core.services.training_load import WorkoutRecord, workout_intensity


class FatigueType(str, Enum):
    NONE = "NONE"
    CNS = "CNS"
    PSYCHOLOGICAL = "PSYCHOLOGICAL"
    METABOLIC = "METABOLIC"
    MUSCULAR = "MUSCULAR"


# Tie-break order: earlier wins.
FATIGUE_PRIORITY: tuple[FatigueType, ...] = (
    FatigueType.CNS,
    FatigueType.PSYCHOLOGICAL,
    FatigueType.METABOLIC,
    FatigueType.MUSCULAR,
)

_RECOMMENDATIONS: dict[tuple[FatigueType, bool], str] = {
    (FatigueType.CNS, True): "Rest day recommended. Avoid any high-intensity work. Focus on sleep and recovery.",
    (FatigueType.CNS, False): "Light activity only. No intervals or heavy lifting. Consider a nap.",
    (FatigueType.MUSCULAR, True): "Active recovery or rest. Foam rolling and stretching. Avoid loaded exercises.",
    (FatigueType.MUSCULAR, False): "Low-impact activity preferred. Swimming or easy cycling. Avoid running.",
    (FatigueType.METABOLIC, True): "Reduce training volume. Focus on nutrition and hydration. Consider a deload week.",
    (FatigueType.METABOLIC, False): "Shorter sessions at lower intensity. Ensure adequate fueling.",
    (FatigueType.PSYCHOLOGICAL, True): "Take a mental break from structured training. Do something enjoyable instead.",
    (FatigueType.PSYCHOLOGICAL, False): "Flexible training today. Skip anything that feels like a chore.",
}
NO_FATIGUE_RECOMMENDATION = "No significant fatigue detected. Continue training as planned."


@dataclass(frozen=True)
class FatigueInputs:
    diary: DiarySignals = field(default_factory=DiarySignals)
    load: LoadSignals = field(default_factory=LoadSignals)
    recent_high_intensity_sessions: int = 0
    consecutive_training_days: int = 0
    persistent_low_energy_days: int = 0


@dataclass(frozen=True)
class FatigueReason:
    reason: str
    weight: int
    category: FatigueType


@dataclass(frozen=True)
class FatigueResult:
    type: FatigueType
    reasons: list[FatigueReason]
    severity: int
    recommendation: str


def classify_fatigue(inputs: FatigueInputs, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> FatigueResult:
    """Label short-term fatigue and explain it with up to three weighted reasons."""
    d = inputs.diary
    load = inputs.load
    scores = {t: 0 for t in FATIGUE_PRIORITY}
    reasons: list[FatigueReason] = []

    def hit(category: FatigueType, weight: int, reason: str) -> None:
        scores[category] += weight
        reasons.append(FatigueReason(reason=reason, weight=weight, category=category))

    # CNS: poor sleep, persistent low energy, heavy intensity density
    if d.sleep_quality is not None and d.sleep_quality <= 2:
        hit(FatigueType.CNS, 25, "Poor sleep quality affecting neural recovery")
    if inputs.persistent_low_energy_days >= 3:
        hit(FatigueType.CNS, 30, "Persistent fatigue over multiple days")
    if d.energy is not None and d.energy <= 2 and d.sleep_hours is not None and d.sleep_hours >= 7:
        hit(FatigueType.CNS, 20, "Low energy despite adequate sleep")
    if inputs.recent_high_intensity_sessions >= 3:
        hit(FatigueType.CNS, 15, "Multiple high-intensity sessions recently")

    # Muscular
    if d.soreness is not None and d.soreness >= 4:
        hit(FatigueType.MUSCULAR, 35, "Significant muscle soreness")
    if load.atl is not None and load.ctl is not None and load.ctl > 0 and load.atl / load.ctl > 1.3:
        hit(FatigueType.MUSCULAR, 25, "High acute training load")
    if inputs.consecutive_training_days >= 5:
        hit(FatigueType.MUSCULAR, 15, "Many consecutive training days")

    # Metabolic
    if load.tsb is not None and load.tsb < -15:
        hit(FatigueType.METABOLIC, 30, "Deep negative training balance")
    if load.atl is not None and load.atl > 80:
        hit(FatigueType.METABOLIC, 20, "Very high acute training load")
    if d.energy is not None and d.energy <= 2:
        hit(FatigueType.METABOLIC, 15, "Low energy levels")

    # Psychological
    if d.mood is not None and d.mood <= 2:
        hit(FatigueType.PSYCHOLOGICAL, 30, "Low mood")
    if d.stress is not None and d.stress >= 4:
        hit(FatigueType.PSYCHOLOGICAL, 25, "High stress levels")
    if d.sleep_quality is not None and d.sleep_quality <= 2 and d.mood is not None and d.mood <= 3:
        hit(FatigueType.PSYCHOLOGICAL, 15, "Poor sleep affecting mental state")

    top_type = min(FATIGUE_PRIORITY, key=lambda t: (-scores[t], FATIGUE_PRIORITY.index(t)))
    top_score = scores[top_type]
    if top_score < thresholds.fatigue_min_score:
        return FatigueResult(type=FatigueType.NONE, reasons=[], severity=0, recommendation=NO_FATIGUE_RECOMMENDATION)

    severity = min(100, top_score)
    ordered = sorted(
        (r for r in reasons if r.weight >= 15),
        key=lambda r: (-r.weight, FATIGUE_PRIORITY.index(r.category)),
    )
    return FatigueResult(
        type=top_type,
        reasons=ordered[:3],
        severity=severity,
        recommendation=_RECOMMENDATIONS[(top_type, severity >= thresholds.fatigue_high_severity)],
    )


def reason_breakdown(reasons: list[FatigueReason]) -> dict[str, int]:
    return {r.reason[:50]: r.weight for r in reasons[:3]}


# ---------------------------------------------------------------------------
# Pattern counts derived from recent history
# ---------------------------------------------------------------------------

def count_high_intensity_sessions(
    workouts: Iterable[WorkoutRecord],
    as_of: date,
    days: int = 7,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> int:
    start = as_of - timedelta(days=days - 1)
    return sum(
        1
        for w in workouts
        if w.completed and start <= w.day <= as_of and workout_intensity(w, thresholds) == "hard"
    )


def count_consecutive_training_days(workouts: Iterable[WorkoutRecord], as_of: date) -> int:
    """Consecutive days, ending at as_of, with at least one completed workout."""
    trained = {w.day for w in workouts if w.completed}
    count = 0
    current = as_of
    while current in trained:
        count += 1
        current -= timedelta(days=1)
    return count


def count_low_energy_days(energy_by_day: Sequence[int | None], threshold: int = 2) -> int:
    return sum(1 for e in energy_by_day if e is not None and e <= threshold)
