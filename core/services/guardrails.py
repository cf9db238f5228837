"""Safety guardrails for an upcoming training week.

A pure validation pass over planned sessions: it scores risk, emits typed
warnings, and proposes (never applies) session adjustments. Callers decide
whether to act on them, for example by applying a deload.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from enum import Enum
from typing import Sequence

from core.config import DEFAULT_THRESHOLDS, EngineThresholds
from core.errors import EngineValidationError
from core.services.training_load import (
    INTENSITY_LEVELS,
    PlannedSession,
    WorkoutRecord,
    ramp_rate,
    workout_intensity,
)


class WarningType(str, Enum):
    RAMP_RATE = "RAMP_RATE"
    CONSECUTIVE_HARD = "CONSECUTIVE_HARD"
    NO_REST = "NO_REST"
    OVERREACHING = "OVERREACHING"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class GuardrailWarning:
    type: WarningType
    message: str
    severity: Severity
    recommendation: str


@dataclass(frozen=True)
class SessionAdjustment:
    day: date
    original_duration: int
    adjusted_duration: int
    original_intensity: str
    adjusted_intensity: str
    reason: str


@dataclass(frozen=True)
class GuardrailResult:
    is_within_limits: bool
    risk_score: int
    planned_load: float
    ramp_rate: float | None
    warnings: list[GuardrailWarning] = field(default_factory=list)
    adjustments: list[SessionAdjustment] = field(default_factory=list)


@dataclass(frozen=True)
class RampEvaluation:
    """Outcome of comparing a planned load with the previous week's."""
    rate: float | None
    severity: Severity | None
    risk: int
    no_baseline: bool


def evaluate_ramp(
    planned_load: float,
    previous_load: float,
    limit_pct: float | None = None,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> RampEvaluation:
    """Grade a week-over-week load change.

    Without a baseline week, severity follows the absolute planned load.
    Otherwise a ramp over ``limit_pct`` (the rising band by default) is medium
    and one over the spiking band is high.
    """
    limit = thresholds.ramp_rising_pct if limit_pct is None else limit_pct
    rate = ramp_rate(planned_load, previous_load)

    if rate is None:
        if planned_load <= 0:
            return RampEvaluation(rate=None, severity=None, risk=0, no_baseline=True)
        if planned_load > thresholds.no_baseline_high_load:
            return RampEvaluation(rate=None, severity=Severity.HIGH, risk=30, no_baseline=True)
        if planned_load > thresholds.no_baseline_medium_load:
            return RampEvaluation(rate=None, severity=Severity.MEDIUM, risk=15, no_baseline=True)
        return RampEvaluation(rate=None, severity=Severity.LOW, risk=5, no_baseline=True)

    if rate > max(limit, thresholds.ramp_spiking_pct):
        return RampEvaluation(rate=rate, severity=Severity.HIGH, risk=40, no_baseline=False)
    if rate > limit:
        return RampEvaluation(rate=rate, severity=Severity.MEDIUM, risk=25, no_baseline=False)
    return RampEvaluation(rate=rate, severity=None, risk=0, no_baseline=False)


def _intensity_rank(intensity: str) -> int:
    return INTENSITY_LEVELS.index(intensity) if intensity in INTENSITY_LEVELS else 0


def _ramp_adjustments(
    sessions: Sequence[PlannedSession],
    planned_load: float,
    target_load: float,
    thresholds: EngineThresholds,
) -> list[SessionAdjustment]:
    """Trim the hardest sessions first until the week fits under target_load."""
    adjustments: list[SessionAdjustment] = []
    remaining = planned_load - target_load
    ordered = sorted(sessions, key=lambda s: _intensity_rank(s.intensity), reverse=True)

    for s in ordered:
        if remaining <= 0:
            break
        load = s.load(thresholds)
        if load <= 0:
            continue
        reduction = min(remaining, load * 0.3)
        new_duration = int(round(s.duration_min * (1 - reduction / load)))
        new_intensity = s.intensity
        if s.intensity == "hard" and reduction > load * 0.2:
            new_intensity = "moderate"
        if new_duration == s.duration_min and new_intensity == s.intensity:
            continue
        adjustments.append(
            SessionAdjustment(
                day=s.day,
                original_duration=s.duration_min,
                adjusted_duration=max(20, new_duration),
                original_intensity=s.intensity,
                adjusted_intensity=new_intensity,
                reason="Guardrail: ramp rate capped",
            )
        )
        remaining -= reduction
    return adjustments


def _back_to_back_hard(
    planned: Sequence[PlannedSession],
    recent: Sequence[WorkoutRecord],
    thresholds: EngineThresholds,
) -> list[date]:
    hard_days = {w.day for w in recent if workout_intensity(w, thresholds) == "hard"}
    hard_days |= {s.day for s in planned if s.intensity == "hard"}
    return sorted(d for d in hard_days if d - timedelta(days=1) in hard_days)


def check_guardrails(
    planned: Sequence[PlannedSession],
    previous_week_load: float,
    recent: Sequence[WorkoutRecord] = (),
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> GuardrailResult:
    """Validate an upcoming week against ramp, recovery-spacing and rest rules."""
    warnings: list[GuardrailWarning] = []
    adjustments: list[SessionAdjustment] = []
    risk = 0

    planned_load = round(sum(s.load(thresholds) for s in planned), 1)
    ramp = evaluate_ramp(planned_load, previous_week_load, thresholds=thresholds)

    if ramp.no_baseline and ramp.severity is not None:
        risk += ramp.risk
        warnings.append(
            GuardrailWarning(
                type=WarningType.RAMP_RATE,
                message=f"No baseline last week. This week load: {planned_load:g}",
                severity=ramp.severity,
                recommendation="Load increased from 0 last week; be conservative and monitor how you feel.",
            )
        )
    elif ramp.severity is not None and ramp.rate is not None:
        limit = thresholds.ramp_rising_pct
        risk += ramp.risk
        warnings.append(
            GuardrailWarning(
                type=WarningType.RAMP_RATE,
                message=f"Weekly load increase of {round(ramp.rate)}% exceeds {limit:g}% threshold",
                severity=ramp.severity,
                recommendation=f"Reduce planned volume by {round(ramp.rate - limit)}% to stay within safe limits",
            )
        )
        target = previous_week_load * (1 + limit / 100)
        adjustments = _ramp_adjustments(planned, planned_load, target, thresholds)

    hard_repeats = _back_to_back_hard(planned, recent, thresholds)
    if hard_repeats:
        risk += 20
        warnings.append(
            GuardrailWarning(
                type=WarningType.CONSECUTIVE_HARD,
                message=f"{len(hard_repeats)} back-to-back hard sessions detected",
                severity=Severity.MEDIUM,
                recommendation="Add recovery day between hard sessions",
            )
        )

    if len({s.day for s in planned}) >= 7:
        risk += 15
        warnings.append(
            GuardrailWarning(
                type=WarningType.NO_REST,
                message="No rest days planned this week",
                severity=Severity.LOW,
                recommendation="Consider adding at least one complete rest day",
            )
        )

    hard_count = sum(1 for s in planned if s.intensity == "hard")
    if hard_count > thresholds.max_hard_sessions_per_week:
        risk += 15
        warnings.append(
            GuardrailWarning(
                type=WarningType.OVERREACHING,
                message=f"{hard_count} hard sessions planned this week",
                severity=Severity.MEDIUM,
                recommendation=f"Keep hard sessions to {thresholds.max_hard_sessions_per_week} or fewer per week",
            )
        )

    return GuardrailResult(
        is_within_limits=not any(w.severity != Severity.LOW for w in warnings),
        risk_score=min(100, risk),
        planned_load=planned_load,
        ramp_rate=round(ramp.rate, 1) if ramp.rate is not None else None,
        warnings=warnings,
        adjustments=adjustments,
    )


def risk_description(risk_score: float) -> str:
    if risk_score < 20:
        return "Low risk"
    if risk_score < 50:
        return "Moderate risk"
    if risk_score < 75:
        return "High risk"
    return "Very high risk"


def apply_deload(sessions: Sequence[PlannedSession], percent: float = 40) -> tuple[list[PlannedSession], str]:
    """Reduce volume by ``percent`` and lower each session's intensity one tier."""
    if not 0 < percent < 100:
        raise EngineValidationError("deload percent must be between 0 and 100")
    factor = 1 - percent / 100
    adjusted = [
        replace(
            s,
            duration_min=int(round(s.duration_min * factor)),
            intensity=INTENSITY_LEVELS[max(0, _intensity_rank(s.intensity) - 1)],
            tss=round(s.tss * factor * 0.8) if s.tss else None,
            reason="Deload",
        )
        for s in sessions
    ]
    removed = sum(s.duration_min for s in sessions) - sum(s.duration_min for s in adjusted)
    description = f"Deload applied: {percent:g}% volume reduction ({removed} min removed), intensities lowered"
    return adjusted, description
