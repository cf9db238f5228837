"""What-if training simulation over 2-12 weeks.

Starting from a baseline fitness state, each simulated week turns the
scenario parameters into a weekly TSS, advances CTL/ATL with the same
exponential smoothing as the live load model, and re-scores readiness and
burnout against synthetic signals derived from the new load state. There is
no randomness: the same (baseline, params, duration) always produces the
same week-by-week trace.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Mapping, Sequence

from core.config import DEFAULT_THRESHOLDS, EngineThresholds
from core.errors import EngineValidationError
from core.services.burnout import BurnoutInputs, compute_burnout_risk
from core.services.compliance import ComplianceStatus
from core.services.fatigue import FatigueInputs, classify_fatigue
from core.services.readiness import DiarySignals, LoadSignals, compute_readiness
from core.services.training_load import ewma_alpha, ramp_rate


class IntensityBias(str, Enum):
    LOW = "LOW"
    BALANCED = "BALANCED"
    HIGH = "HIGH"


class RecoveryFocus(str, Enum):
    NORMAL = "NORMAL"
    EXTRA = "EXTRA"


class ComplianceAssumption(str, Enum):
    FULL = "FULL"
    OPTIMISTIC = "OPTIMISTIC"
    REALISTIC = "REALISTIC"
    CONSERVATIVE = "CONSERVATIVE"


class IdentityMode(str, Enum):
    COMPETITIVE = "competitive"
    LONGEVITY = "longevity"
    COMEBACK = "comeback"
    BUSY_PRO = "busy_pro"


class RiskLevel(str, Enum):
    SAFE = "safe"
    MODERATE = "moderate"
    HIGH = "high"


INTENSITY_MULTIPLIERS = {IntensityBias.LOW: 0.85, IntensityBias.BALANCED: 1.0, IntensityBias.HIGH: 1.15}
COMPLIANCE_RATES = {
    ComplianceAssumption.FULL: 1.0,
    ComplianceAssumption.OPTIMISTIC: 0.95,
    ComplianceAssumption.REALISTIC: 0.85,
    ComplianceAssumption.CONSERVATIVE: 0.75,
}
# Compliance tier the burnout model sees for each assumption.
IMPLIED_COMPLIANCE = {
    ComplianceAssumption.FULL: ComplianceStatus.STRONG,
    ComplianceAssumption.OPTIMISTIC: ComplianceStatus.STRONG,
    ComplianceAssumption.REALISTIC: ComplianceStatus.STRONG,
    ComplianceAssumption.CONSERVATIVE: ComplianceStatus.SLIPPING,
}
RECOVERY_BONUS = 10


@dataclass(frozen=True)
class IdentityModifier:
    ramp_limit_factor: float
    readiness_bonus: int


IDENTITY_MODIFIERS: dict[IdentityMode, IdentityModifier] = {
    IdentityMode.COMPETITIVE: IdentityModifier(1.0, 0),
    IdentityMode.LONGEVITY: IdentityModifier(0.7, 10),
    IdentityMode.COMEBACK: IdentityModifier(0.5, 15),
    IdentityMode.BUSY_PRO: IdentityModifier(0.8, 5),
}


@dataclass(frozen=True)
class ScenarioParams:
    volume_change_pct: float = 0.0
    intensity_bias: IntensityBias = IntensityBias.BALANCED
    recovery_focus: RecoveryFocus = RecoveryFocus.NORMAL
    compliance_assumption: ComplianceAssumption = ComplianceAssumption.REALISTIC
    weekly_tss: float | None = None
    identity_mode_override: IdentityMode | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "volume_change_pct": self.volume_change_pct,
            "intensity_bias": self.intensity_bias.value,
            "recovery_focus": self.recovery_focus.value,
            "compliance_assumption": self.compliance_assumption.value,
            "weekly_tss": self.weekly_tss,
            "identity_mode_override": self.identity_mode_override.value if self.identity_mode_override else None,
        }


@dataclass(frozen=True)
class Baseline:
    ctl: float
    atl: float
    tsb: float
    avg_readiness: float
    avg_burnout_risk: float
    identity_mode: IdentityMode = IdentityMode.COMPETITIVE
    avg_weekly_tss: float = DEFAULT_THRESHOLDS.default_weekly_tss

    @classmethod
    def defaults(
        cls,
        identity_mode: IdentityMode = IdentityMode.COMPETITIVE,
        thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
    ) -> "Baseline":
        return cls(
            ctl=thresholds.default_ctl,
            atl=thresholds.default_atl,
            tsb=thresholds.default_tsb,
            avg_readiness=thresholds.default_readiness,
            avg_burnout_risk=thresholds.default_burnout,
            identity_mode=identity_mode,
            avg_weekly_tss=thresholds.default_weekly_tss,
        )


@dataclass(frozen=True)
class WeeklySimulationResult:
    week_index: int
    weekly_tss: float
    simulated_ctl: float
    simulated_atl: float
    simulated_tsb: float
    simulated_readiness_avg: float
    simulated_burnout_risk: float
    insights: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SimulationSummary:
    final_ctl: float
    final_atl: float
    final_tsb: float
    ctl_change: float
    peak_burnout_risk: float
    total_warnings: int
    risk_level: RiskLevel
    recommendation: str


@dataclass(frozen=True)
class SimulationOutput:
    weeks: list[WeeklySimulationResult]
    summary: SimulationSummary

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScenarioPreset:
    key: str
    name: str
    description: str
    params: ScenarioParams


SCENARIO_PRESETS: dict[str, ScenarioPreset] = {
    p.key: p
    for p in (
        ScenarioPreset(
            "aggressive_build",
            "Aggressive Build",
            "Push hard for rapid fitness gains. Higher risk of overtraining.",
            ScenarioParams(25, IntensityBias.HIGH, RecoveryFocus.NORMAL, ComplianceAssumption.OPTIMISTIC),
        ),
        ScenarioPreset(
            "balanced_progress",
            "Balanced Progress",
            "Steady, sustainable progress with moderate risk.",
            ScenarioParams(10, IntensityBias.BALANCED, RecoveryFocus.NORMAL, ComplianceAssumption.REALISTIC),
        ),
        ScenarioPreset(
            "longevity_first",
            "Longevity First",
            "Prioritize health and consistency over rapid gains.",
            ScenarioParams(0, IntensityBias.LOW, RecoveryFocus.EXTRA, ComplianceAssumption.CONSERVATIVE),
        ),
        ScenarioPreset(
            "comeback_safe",
            "Comeback Safe",
            "Gentle return to training after break or injury.",
            ScenarioParams(
                -10,
                IntensityBias.LOW,
                RecoveryFocus.EXTRA,
                ComplianceAssumption.CONSERVATIVE,
                identity_mode_override=IdentityMode.COMEBACK,
            ),
        ),
    )
}

_RISK_RECOMMENDATIONS = {
    RiskLevel.SAFE: "This scenario appears safe and sustainable. Good balance of progress and recovery.",
    RiskLevel.MODERATE: "Moderate risk scenario. Monitor closely and adjust if fatigue accumulates.",
    RiskLevel.HIGH: "High risk scenario. Consider reducing volume or intensity to avoid overtraining.",
}


# ---------------------------------------------------------------------------
# Input parsing / validation
# ---------------------------------------------------------------------------

def validate_duration(duration_weeks: int, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> int:
    if isinstance(duration_weeks, bool) or not isinstance(duration_weeks, int):
        raise EngineValidationError("duration_weeks must be an integer")
    if not thresholds.sim_min_weeks <= duration_weeks <= thresholds.sim_max_weeks:
        raise EngineValidationError(
            f"duration_weeks must be between {thresholds.sim_min_weeks} and {thresholds.sim_max_weeks}"
        )
    return duration_weeks


def _enum_value(enum_cls: type[Enum], raw: Any, name: str) -> Any:
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(raw)
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise EngineValidationError(f"{name} must be one of: {allowed}") from exc


def parse_identity_mode(raw: Any) -> IdentityMode:
    return _enum_value(IdentityMode, raw, "identity_mode")


def parse_scenario_params(raw: Mapping[str, Any] | None) -> ScenarioParams:
    """Build ScenarioParams from stored or submitted JSON; missing keys take defaults."""
    raw = raw or {}
    volume = float(raw.get("volume_change_pct") or 0.0)
    if not -50 <= volume <= 50:
        raise EngineValidationError("volume_change_pct must be between -50 and 50")
    weekly_tss = raw.get("weekly_tss")
    if weekly_tss is not None:
        weekly_tss = float(weekly_tss)
        if weekly_tss < 0:
            raise EngineValidationError("weekly_tss must not be negative")
    override = raw.get("identity_mode_override")
    return ScenarioParams(
        volume_change_pct=volume,
        intensity_bias=_enum_value(IntensityBias, raw.get("intensity_bias", "BALANCED"), "intensity_bias"),
        recovery_focus=_enum_value(RecoveryFocus, raw.get("recovery_focus", "NORMAL"), "recovery_focus"),
        compliance_assumption=_enum_value(
            ComplianceAssumption, raw.get("compliance_assumption", "REALISTIC"), "compliance_assumption"
        ),
        weekly_tss=weekly_tss,
        identity_mode_override=parse_identity_mode(override) if override else None,
    )


def format_scenario_params(params: ScenarioParams) -> str:
    parts = [
        f"Volume: {params.volume_change_pct:+g}%",
        f"Intensity: {params.intensity_bias.value}",
        f"Recovery: {params.recovery_focus.value}",
        f"Compliance: {params.compliance_assumption.value}",
    ]
    if params.weekly_tss is not None:
        parts.append(f"Weekly TSS: {params.weekly_tss:g}")
    if params.identity_mode_override:
        parts.append(f"Mode: {params.identity_mode_override.value}")
    return " | ".join(parts)


# ---------------------------------------------------------------------------
# Synthetic signals
# ---------------------------------------------------------------------------

def _wellbeing_from_tsb(tsb: float) -> int:
    if tsb >= 5:
        return 4
    if tsb >= -10:
        return 3
    if tsb >= -25:
        return 2
    return 1


def _soreness_from_load(ctl: float, atl: float) -> int:
    ratio = atl / ctl if ctl > 0 else 1.0
    if ratio > 1.3:
        return 4
    if ratio > 1.1:
        return 3
    return 2


def synthetic_diary(ctl: float, atl: float, tsb: float) -> DiarySignals:
    """Check-in values an athlete would plausibly report at this load state."""
    wellbeing = _wellbeing_from_tsb(tsb)
    return DiarySignals(
        mood=wellbeing,
        energy=wellbeing,
        sleep_quality=wellbeing,
        stress=6 - wellbeing,
        soreness=_soreness_from_load(ctl, atl),
    )


def _advance(value: float, daily_load: float, alpha: float, days: int = 7) -> float:
    # Closed form of `days` EWMA steps at a constant daily load.
    return daily_load + (value - daily_load) * (1 - alpha) ** days


def _round1(value: float) -> float:
    return round(value, 1)


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------

def _target_weekly_tss(baseline: Baseline, params: ScenarioParams, week_index: int, duration_weeks: int) -> float:
    if params.weekly_tss is not None:
        base = params.weekly_tss
    else:
        progress = (week_index + 1) / duration_weeks
        base = baseline.avg_weekly_tss * (1 + params.volume_change_pct / 100 * progress)
    return base * INTENSITY_MULTIPLIERS[params.intensity_bias] * COMPLIANCE_RATES[params.compliance_assumption]


def run_simulation(
    baseline: Baseline,
    params: ScenarioParams,
    duration_weeks: int,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> SimulationOutput:
    """Project the baseline forward week by week under the scenario."""
    validate_duration(duration_weeks, thresholds)
    mode = params.identity_mode_override or baseline.identity_mode
    modifier = IDENTITY_MODIFIERS[mode]
    ramp_limit_pct = thresholds.sim_max_ramp_pct * modifier.ramp_limit_factor
    extra_recovery = params.recovery_focus == RecoveryFocus.EXTRA

    if baseline.ctl > 0 and baseline.avg_weekly_tss > 0:
        load_scale = baseline.ctl / baseline.avg_weekly_tss
    else:
        load_scale = 1 / 7
    ctl_alpha = ewma_alpha(thresholds.ctl_time_constant_days)
    atl_alpha = ewma_alpha(thresholds.atl_time_constant_days)

    ctl, atl = baseline.ctl, baseline.atl
    previous_tss = baseline.avg_weekly_tss
    previous_diary: DiarySignals | None = None
    weeks: list[WeeklySimulationResult] = []

    for week_index in range(duration_weeks):
        label = f"Week {week_index + 1}"
        insights: list[str] = []
        warnings: list[str] = []

        planned = _target_weekly_tss(baseline, params, week_index, duration_weeks)
        weekly_tss = planned
        rate = ramp_rate(planned, previous_tss)
        if rate is not None:
            cap = previous_tss * (1 + ramp_limit_pct / 100)
            if planned > cap:
                weekly_tss = cap
                warnings.append(
                    f"{label}: TSS capped from {round(planned)} to {round(cap)} (ramp limit {ramp_limit_pct:g}%)"
                )
            if rate > thresholds.sim_danger_ramp_pct:
                warnings.append(f"{label}: Dangerous ramp rate detected ({round(rate)}%)")

        daily_load = weekly_tss * load_scale
        new_ctl = min(_advance(ctl, daily_load, ctl_alpha), ctl + thresholds.sim_max_ctl_gain_per_week)
        new_atl = _advance(atl, daily_load, atl_alpha)
        new_tsb = new_ctl - new_atl
        if new_tsb < thresholds.sim_min_safe_tsb:
            warnings.append(f"{label}: TSB critically low ({round(new_tsb)}). High injury/overtraining risk.")

        diary = synthetic_diary(new_ctl, new_atl, new_tsb)
        load = LoadSignals(ctl=new_ctl, atl=new_atl, tsb=new_tsb)
        bonus = modifier.readiness_bonus + (RECOVERY_BONUS if extra_recovery else 0)
        readiness = compute_readiness(diary, load, thresholds).score
        readiness = max(0, min(100, readiness + bonus))

        def carried(condition) -> int:
            # A condition lasting two simulated weeks counts as a persistent pattern.
            if previous_diary is not None and condition(diary) and condition(previous_diary):
                return 7
            return 0

        fatigue = classify_fatigue(FatigueInputs(diary=diary, load=load), thresholds)
        burnout = compute_burnout_risk(
            BurnoutInputs(
                mood=diary.mood,
                stress=diary.stress,
                sleep_quality=diary.sleep_quality,
                soreness=diary.soreness,
                low_mood_days=carried(lambda d: d.mood <= 2),
                poor_sleep_days=carried(lambda d: d.sleep_quality <= 2),
                high_soreness_days=carried(lambda d: d.soreness >= 4),
                fatigue_type=fatigue.type,
                compliance_status=IMPLIED_COMPLIANCE[params.compliance_assumption],
                readiness_score=readiness,
            ),
            thresholds,
        ).risk
        burnout = max(0, min(100, burnout - (RECOVERY_BONUS if extra_recovery else 0)))
        if burnout > thresholds.sim_burnout_warning:
            warnings.append(f"{label}: Elevated burnout risk ({burnout}%). Consider reducing load.")

        if week_index == 0:
            insights.append(
                f"Starting from CTL {round(baseline.ctl)} (readiness ~{round(baseline.avg_readiness)}, "
                f"burnout risk ~{round(baseline.avg_burnout_risk)}%), "
                f"targeting {params.volume_change_pct:+g}% volume change"
            )
        if new_ctl > ctl + 3:
            insights.append(f"Strong fitness gain this week (+{new_ctl - ctl:.1f} CTL)")
        if readiness >= 70:
            insights.append("Good readiness: body adapting well")
        elif readiness < 50:
            insights.append("Low readiness: prioritize recovery")
        if week_index == duration_weeks - 1:
            gain = new_ctl - baseline.ctl
            insights.append(f"Final projection: {gain:+.1f} CTL over {duration_weeks} weeks")

        weeks.append(
            WeeklySimulationResult(
                week_index=week_index,
                weekly_tss=_round1(weekly_tss),
                simulated_ctl=_round1(new_ctl),
                simulated_atl=_round1(new_atl),
                simulated_tsb=_round1(new_tsb),
                simulated_readiness_avg=float(readiness),
                simulated_burnout_risk=float(burnout),
                insights=insights,
                warnings=warnings,
            )
        )
        ctl, atl = new_ctl, new_atl
        previous_tss = weekly_tss
        previous_diary = diary

    return SimulationOutput(weeks=weeks, summary=summarize_weeks(baseline, weeks, thresholds))


def risk_level(peak_burnout: float, total_warnings: int, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> RiskLevel:
    if total_warnings == 0 and peak_burnout < thresholds.sim_safe_peak_below:
        return RiskLevel.SAFE
    if total_warnings <= thresholds.sim_moderate_max_warnings and peak_burnout < thresholds.sim_moderate_peak_below:
        return RiskLevel.MODERATE
    return RiskLevel.HIGH


def summarize_weeks(
    baseline: Baseline,
    weeks: Sequence[WeeklySimulationResult],
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> SimulationSummary:
    """Terminal-state summary; also used to rebuild summaries from stored rows."""
    if not weeks:
        raise EngineValidationError("cannot summarize a simulation without weeks")
    final = weeks[-1]
    peak = max(w.simulated_burnout_risk for w in weeks)
    total_warnings = sum(len(w.warnings) for w in weeks)
    level = risk_level(peak, total_warnings, thresholds)
    return SimulationSummary(
        final_ctl=final.simulated_ctl,
        final_atl=final.simulated_atl,
        final_tsb=final.simulated_tsb,
        ctl_change=_round1(final.simulated_ctl - baseline.ctl),
        peak_burnout_risk=peak,
        total_warnings=total_warnings,
        risk_level=level,
        recommendation=_RISK_RECOMMENDATIONS[level],
    )


@dataclass(frozen=True)
class ScenarioComparison:
    name: str
    final_ctl: float
    ctl_change: float
    peak_burnout_risk: float
    total_warnings: int
    risk_level: RiskLevel


def compare_scenarios(
    baseline: Baseline,
    scenarios: Sequence[tuple[str, ScenarioParams, int]],
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> list[ScenarioComparison]:
    """Run each (name, params, duration_weeks) from the same baseline."""
    results = []
    for name, params, duration_weeks in scenarios:
        summary = run_simulation(baseline, params, duration_weeks, thresholds).summary
        results.append(
            ScenarioComparison(
                name=name,
                final_ctl=summary.final_ctl,
                ctl_change=summary.ctl_change,
                peak_burnout_risk=summary.peak_burnout_risk,
                total_warnings=summary.total_warnings,
                risk_level=summary.risk_level,
            )
        )
    return results

