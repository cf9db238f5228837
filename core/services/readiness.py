"""Readiness scoring from diary signals, training load, and optional HRV.

Each present signal adds a signed contribution to a neutral-good baseline of
70; absent signals contribute nothing and lower the confidence tier instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from core.config import DEFAULT_THRESHOLDS, EngineThresholds

BASELINE_SCORE = 70.0
EXPECTED_SIGNALS = 8  # six diary signals + TSB + load ratio


class ReadinessStatus(str, Enum):
    OPTIMAL = "OPTIMAL"
    CAUTION = "CAUTION"
    FATIGUED = "FATIGUED"


class ConfidenceTier(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class DiarySignals:
    """Numeric check-in fields on a 1-5 scale (sleep_hours in hours). Free text never enters here."""
    mood: int | None = None
    energy: int | None = None
    sleep_hours: float | None = None
    sleep_quality: int | None = None
    stress: int | None = None
    soreness: int | None = None
    hrv: float | None = None
    hrv_baseline: float | None = None

    @classmethod
    def from_checkin(
        cls,
        mood: int | None = None,
        energy: int | None = None,
        sleep_hours: float | None = None,
        sleep_quality: int | None = None,
        stress: int | None = None,
        soreness: int | None = None,
        physical_fatigue: int | None = None,
        mental_readiness: int | None = None,
        motivation: int | None = None,
        hrv: float | None = None,
        hrv_baseline: float | None = None,
    ) -> "DiarySignals":
        """Fill mood and energy from the check-in's secondary fields when the primary ones are blank."""
        if energy is None and physical_fatigue is not None:
            energy = 6 - physical_fatigue
        if mood is None:
            mood = mental_readiness if mental_readiness is not None else motivation
        return cls(
            mood=mood,
            energy=energy,
            sleep_hours=sleep_hours,
            sleep_quality=sleep_quality,
            stress=stress,
            soreness=soreness,
            hrv=hrv,
            hrv_baseline=hrv_baseline,
        )

    def is_empty(self) -> bool:
        return all(
            v is None
            for v in (self.mood, self.energy, self.sleep_hours, self.sleep_quality, self.stress, self.soreness)
        )


@dataclass(frozen=True)
class LoadSignals:
    ctl: float | None = None
    atl: float | None = None
    tsb: float | None = None


@dataclass(frozen=True)
class ReadinessFactor:
    factor: str
    impact: int
    description: str


@dataclass(frozen=True)
class ReadinessResult:
    score: int
    status: ReadinessStatus
    factors: list[ReadinessFactor] = field(default_factory=list)
    confidence_pct: int = 0
    confidence: ConfidenceTier = ConfidenceTier.LOW


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _band(value: float, high_at: float, low_at: float, high: str, low: str, mid: str) -> str:
    if value >= high_at:
        return high
    if value <= low_at:
        return low
    return mid


def readiness_status(score: float, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> ReadinessStatus:
    if score >= thresholds.readiness_optimal_min:
        return ReadinessStatus.OPTIMAL
    if score >= thresholds.readiness_caution_min:
        return ReadinessStatus.CAUTION
    return ReadinessStatus.FATIGUED


def confidence_tier(confidence_pct: float) -> ConfidenceTier:
    if confidence_pct >= 70:
        return ConfidenceTier.HIGH
    if confidence_pct >= 40:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def compute_readiness(
    diary: DiarySignals,
    load: LoadSignals | None = None,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> ReadinessResult:
    """Combine diary and load signals into a 0-100 readiness score.

    Returns the score, its status tier, the strongest contributing factors
    (sorted by absolute impact), and a confidence tier reflecting how many of
    the expected signals were present. Deterministic for fixed inputs.
    """
    load = load or LoadSignals()
    score = BASELINE_SCORE
    present = 0
    factors: list[ReadinessFactor] = []

    def add(name: str, impact: float, description: str) -> None:
        nonlocal score, present
        present += 1
        score += impact
        factors.append(ReadinessFactor(factor=name, impact=round(impact), description=description))

    if diary.sleep_quality is not None:
        add(
            "sleep_quality",
            (diary.sleep_quality - 3) * 8,
            _band(diary.sleep_quality, 4, 2, "Good sleep quality", "Poor sleep quality", "Average sleep"),
        )

    if diary.sleep_hours is not None:
        hours = float(diary.sleep_hours)
        add(
            "sleep_duration",
            _clamp((hours - 7.5) * 4, -12, 8),
            f"{hours:.1f}h sleep" if hours >= 7 else f"Only {hours:.1f}h sleep",
        )

    if diary.mood is not None:
        add("mood", (diary.mood - 3) * 6, _band(diary.mood, 4, 2, "Positive mood", "Low mood", "Neutral mood"))

    if diary.energy is not None:
        add("energy", (diary.energy - 3) * 6, _band(diary.energy, 4, 2, "High energy", "Low energy", "Normal energy"))

    if diary.stress is not None:
        add("stress", (3 - diary.stress) * 5, _band(diary.stress, 4, 2, "High stress", "Low stress", "Moderate stress"))

    if diary.soreness is not None:
        add(
            "soreness",
            (3 - diary.soreness) * 6,
            _band(diary.soreness, 4, 2, "Significant soreness", "Fresh muscles", "Some soreness"),
        )

    if load.tsb is not None:
        if load.tsb > 5:
            description = "Well recovered"
        elif load.tsb < -10:
            description = "Accumulated fatigue"
        else:
            description = "Normal training load"
        add("training_balance", _clamp(load.tsb * 0.8, -15, 15), description)

    if load.atl is not None and load.ctl is not None and load.ctl > 0:
        ratio = load.atl / load.ctl
        if ratio > 1.4:
            impact = -10
        elif ratio > 1.2:
            impact = -5
        elif ratio < 0.6:
            impact = -3
        else:
            impact = 3
        if ratio > 1.3:
            description = "High acute load"
        elif ratio < 0.7:
            description = "Low recent training"
        else:
            description = "Balanced load"
        add("load_ratio", impact, description)

    if diary.hrv is not None and diary.hrv_baseline is not None and diary.hrv_baseline > 0:
        hrv_pct = (diary.hrv - diary.hrv_baseline) / diary.hrv_baseline * 100
        if hrv_pct > 5:
            description = "HRV above baseline"
        elif hrv_pct < -10:
            description = "HRV below baseline"
        else:
            description = "HRV normal"
        add("hrv", _clamp(hrv_pct * 0.5, -15, 10), description)

    final_score = int(_clamp(round(score), 0, 100))
    confidence_pct = int(min(100, round(present / EXPECTED_SIGNALS * 100 + 20)))
    factors.sort(key=lambda f: abs(f.impact), reverse=True)

    return ReadinessResult(
        score=final_score,
        status=readiness_status(final_score, thresholds),
        factors=factors[: thresholds.readiness_max_factors],
        confidence_pct=confidence_pct,
        confidence=confidence_tier(confidence_pct),
    )


def factor_breakdown(factors: list[ReadinessFactor], limit: int = 3) -> dict[str, int]:
    """Compact {factor: impact} mapping for storage."""
    return {f.factor: f.impact for f in factors[:limit]}
