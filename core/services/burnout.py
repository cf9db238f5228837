"""Burnout risk: additive weighted drivers, status tiers, and recovery actions.

Each triggered driver adds a fixed weight to the running risk. The raw sum is
kept uncapped for inspection; the reported risk is clamped to 100. Adding a
triggered driver can never lower the risk.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from enum import Enum
from typing import Sequence

from core.config import DEFAULT_THRESHOLDS, EngineThresholds
from core.services.compliance import ComplianceStatus
from core.services.fatigue import FatigueType
from core.services.training_load import INTENSITY_LEVELS, PlannedSession


class BurnoutStatus(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


class BurnoutActionType(str, Enum):
    SIMPLIFY = "simplify"
    RECOVERY_MICROCYCLE = "recovery_microcycle"


@dataclass(frozen=True)
class BurnoutInputs:
    mood: int | None = None
    stress: int | None = None
    sleep_quality: int | None = None
    soreness: int | None = None
    low_mood_days: int = 0
    poor_sleep_days: int = 0
    high_soreness_days: int = 0
    fatigue_type: FatigueType = FatigueType.NONE
    compliance_status: ComplianceStatus | None = None
    readiness_score: float | None = None


@dataclass(frozen=True)
class BurnoutDriver:
    driver: str
    weight: int
    description: str


@dataclass(frozen=True)
class BurnoutAction:
    type: BurnoutActionType
    label: str
    description: str


@dataclass(frozen=True)
class BurnoutResult:
    risk: int
    raw_risk: int
    status: BurnoutStatus
    drivers: list[BurnoutDriver] = field(default_factory=list)
    recommendation: str = ""
    suggested_actions: list[BurnoutAction] = field(default_factory=list)


SIMPLIFY_ACTION = BurnoutAction(
    type=BurnoutActionType.SIMPLIFY,
    label="Simplify Next 7 Days",
    description="Reduce intensity but keep the habit. Shorter, easier sessions.",
)
RECOVERY_ACTION = BurnoutAction(
    type=BurnoutActionType.RECOVERY_MICROCYCLE,
    label="Recovery Microcycle",
    description="2-3 easy sessions + mobility + rest. Full reset.",
)

_ACTIONS: dict[BurnoutStatus, tuple[BurnoutAction, ...]] = {
    BurnoutStatus.LOW: (),
    BurnoutStatus.MODERATE: (SIMPLIFY_ACTION,),
    BurnoutStatus.HIGH: (SIMPLIFY_ACTION, RECOVERY_ACTION),
}

_DRIVER_FAMILY = {
    "low_mood": "mood",
    "moderate_mood": "mood",
    "persistent_low_mood": "mood",
    "poor_sleep": "sleep",
    "persistent_poor_sleep": "sleep",
    "high_stress": "stress",
}

# (status, family of the top driver); "*" matches any family.
_RECOMMENDATIONS: dict[tuple[BurnoutStatus, str], str] = {
    (BurnoutStatus.HIGH, "mood"): (
        "Your mental energy is depleted. Consider a recovery break: fitness can wait, your wellbeing can't."
    ),
    (BurnoutStatus.HIGH, "sleep"): "Sleep debt is accumulating. Prioritize rest over training this week.",
    (BurnoutStatus.HIGH, "*"): "Multiple stress signals detected. It's time to ease back and recover properly.",
    (BurnoutStatus.MODERATE, "stress"): (
        "Life stress is elevated. Keep training light and enjoyable, don't add more pressure."
    ),
    (BurnoutStatus.MODERATE, "*"): "You're showing early signs of overload. A lighter week would be protective.",
    (BurnoutStatus.LOW, "*"): "You're in a good place. Stay consistent and listen to your body.",
}


def burnout_status(risk: float, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> BurnoutStatus:
    if risk >= thresholds.burnout_high_min:
        return BurnoutStatus.HIGH
    if risk >= thresholds.burnout_moderate_min:
        return BurnoutStatus.MODERATE
    return BurnoutStatus.LOW


def recommendation_for(status: BurnoutStatus, drivers: Sequence[BurnoutDriver]) -> str:
    family = _DRIVER_FAMILY.get(drivers[0].driver, "*") if drivers else "*"
    return _RECOMMENDATIONS.get((status, family)) or _RECOMMENDATIONS[(status, "*")]


def suggested_actions(status: BurnoutStatus) -> list[BurnoutAction]:
    return list(_ACTIONS[status])


def compute_burnout_risk(inputs: BurnoutInputs, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> BurnoutResult:
    """Sum the weights of every triggered driver and map the total to a status tier."""
    persistent = thresholds.persistent_pattern_days
    drivers: list[BurnoutDriver] = []

    if inputs.mood is not None:
        if inputs.mood <= 2:
            drivers.append(BurnoutDriver("low_mood", 25, "Low mood today"))
        elif inputs.mood <= 3:
            drivers.append(BurnoutDriver("moderate_mood", 10, "Mood could be better"))
    if inputs.low_mood_days >= persistent:
        drivers.append(
            BurnoutDriver("persistent_low_mood", 20, f"Low mood for {inputs.low_mood_days} of last 7 days")
        )

    if inputs.stress is not None and inputs.stress >= 4:
        drivers.append(BurnoutDriver("high_stress", 15, "High stress levels"))

    if inputs.sleep_quality is not None and inputs.sleep_quality <= 2:
        drivers.append(BurnoutDriver("poor_sleep", 15, "Poor sleep quality"))
    if inputs.poor_sleep_days >= persistent:
        drivers.append(
            BurnoutDriver("persistent_poor_sleep", 15, f"Poor sleep for {inputs.poor_sleep_days} of last 7 days")
        )

    if inputs.soreness is not None and inputs.soreness >= 4:
        drivers.append(BurnoutDriver("high_soreness", 10, "Significant muscle soreness"))
    if inputs.high_soreness_days >= persistent:
        drivers.append(
            BurnoutDriver(
                "persistent_soreness", 10, f"High soreness for {inputs.high_soreness_days} of last 7 days"
            )
        )

    if inputs.fatigue_type in (FatigueType.CNS, FatigueType.PSYCHOLOGICAL):
        drivers.append(
            BurnoutDriver("fatigue_type", 20, f"{inputs.fatigue_type.value} fatigue detected")
        )

    if inputs.compliance_status == ComplianceStatus.FRAGILE:
        drivers.append(BurnoutDriver("fragile_compliance", 15, "Training consistency has dropped"))
    elif inputs.compliance_status == ComplianceStatus.SLIPPING:
        drivers.append(BurnoutDriver("slipping_compliance", 8, "Consistency starting to slip"))

    if inputs.readiness_score is not None and inputs.readiness_score < thresholds.burnout_low_readiness_below:
        drivers.append(BurnoutDriver("low_readiness", 10, "Body not ready for training"))

    raw = sum(d.weight for d in drivers)
    risk = min(100, raw)
    status = burnout_status(risk, thresholds)
    # Stable sort keeps insertion order among equal weights.
    drivers.sort(key=lambda d: d.weight, reverse=True)

    return BurnoutResult(
        risk=risk,
        raw_risk=raw,
        status=status,
        drivers=drivers[: thresholds.burnout_max_drivers],
        recommendation=recommendation_for(status, drivers),
        suggested_actions=suggested_actions(status),
    )


def driver_breakdown(drivers: Sequence[BurnoutDriver], limit: int = 4) -> dict[str, int]:
    return {d.driver: d.weight for d in drivers[:limit]}


# ---------------------------------------------------------------------------
# Recovery actions
# ---------------------------------------------------------------------------

SIMPLIFY_REASON = "Simplified for recovery: keeping the habit, lowering the load"
RECOVERY_REASON = "Recovery microcycle: gentle movement for physical and mental reset"


def lower_intensity(intensity: str | None) -> str:
    """One tier down; easy stays easy."""
    if intensity not in INTENSITY_LEVELS:
        return "easy"
    return INTENSITY_LEVELS[max(0, INTENSITY_LEVELS.index(intensity) - 1)]


def simplify_sessions(sessions: Sequence[PlannedSession], factor: float = 0.7) -> list[PlannedSession]:
    """Shorter, easier versions of the given sessions. The inputs are left untouched."""
    return [
        replace(
            s,
            duration_min=int(round(s.duration_min * factor)),
            tss=round(s.tss * factor, 1) if s.tss is not None else None,
            intensity=lower_intensity(s.intensity),
            reason=SIMPLIFY_REASON,
        )
        for s in sessions
    ]


@dataclass(frozen=True)
class TemplateSession:
    title: str
    discipline: str
    duration_min: int


SPORT_TEMPLATES: dict[str, tuple[TemplateSession, ...]] = {
    "running": (
        TemplateSession("Easy Walk/Jog", "run", 25),
        TemplateSession("Mobility & Stretching", "other", 20),
        TemplateSession("Easy Recovery Run", "run", 30),
    ),
    "cycling": (
        TemplateSession("Easy Spin", "bike", 30),
        TemplateSession("Mobility & Core", "other", 20),
        TemplateSession("Recovery Ride", "bike", 35),
    ),
    "triathlon": (
        TemplateSession("Easy Swim", "swim", 25),
        TemplateSession("Mobility & Stretching", "other", 20),
        TemplateSession("Easy Spin or Walk", "bike", 30),
    ),
    "swimming": (
        TemplateSession("Easy Swim Drills", "swim", 25),
        TemplateSession("Mobility & Stretching", "other", 20),
        TemplateSession("Easy Swim", "swim", 30),
    ),
    "strength": (
        TemplateSession("Light Mobility", "other", 20),
        TemplateSession("Easy Walk", "other", 25),
        TemplateSession("Light Movement", "strength", 25),
    ),
}

RECOVERY_DAY_OFFSETS = (0, 2, 4)


@dataclass(frozen=True)
class RecoveryMicrocycle:
    """Command to replace a week's planned sessions with an easy template week.

    Applying it overwrites whatever was planned, so the caller has to opt in
    with ``confirm_overwrite``.
    """
    athlete_id: int
    week_start: date
    sport: str = "running"
    confirm_overwrite: bool = False

    @property
    def week_end(self) -> date:
        return self.week_start + timedelta(days=6)

    def plan(self) -> list[PlannedSession]:
        templates = SPORT_TEMPLATES.get(self.sport, SPORT_TEMPLATES["running"])
        return [
            PlannedSession(
                day=self.week_start + timedelta(days=offset),
                duration_min=t.duration_min,
                intensity="easy",
                discipline=t.discipline,
                title=t.title,
                reason=RECOVERY_REASON,
            )
            for offset, t in zip(RECOVERY_DAY_OFFSETS, templates)
        ]
