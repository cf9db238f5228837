"""Training load aggregation: weekly TSS totals, ramp rate, and the fitness/fatigue model.

Weekly load is the sum of Training Stress Score over completed workouts; a
workout logged without TSS is estimated from its duration. The ramp rate is
the week-over-week percentage change and is undefined (None) when the
previous week carried no load, which is reported as a stable ramp.

Chronic Training Load (CTL) and Acute Training Load (ATL) are exponential
moving averages of daily TSS with alpha = 1 - exp(-1/tau); TSB = CTL - ATL.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Sequence

import pandas as pd

from core.config import DEFAULT_THRESHOLDS, EngineThresholds

INTENSITY_LEVELS = ("easy", "moderate", "hard")


class RampStatus(str, Enum):
    STABLE = "stable"
    RISING = "rising"
    SPIKING = "spiking"


@dataclass(frozen=True)
class WorkoutRecord:
    """A single planned or completed workout as seen by the engine."""
    day: date
    planned: bool
    completed: bool
    duration_min: int = 0
    tss: float | None = None
    discipline: str = "run"
    intensity: str | None = None
    title: str = ""


@dataclass(frozen=True)
class PlannedSession:
    """A session on the upcoming plan; guardrail, simplify and deload operate on these."""
    day: date
    duration_min: int
    tss: float | None = None
    intensity: str = "easy"
    discipline: str = "run"
    title: str = ""
    reason: str | None = None

    def load(self, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> float:
        return estimate_tss(self.duration_min, self.tss, thresholds)

    def as_record(self) -> WorkoutRecord:
        return WorkoutRecord(
            day=self.day,
            planned=True,
            completed=False,
            duration_min=self.duration_min,
            tss=self.tss,
            discipline=self.discipline,
            intensity=self.intensity,
            title=self.title,
        )


@dataclass(frozen=True)
class LoadMetrics:
    """Week-over-week load comparison."""
    current_week_load: float
    previous_week_load: float
    ramp_rate: float | None   # percent, None when there is no baseline week
    status: RampStatus
    no_baseline: bool


@dataclass(frozen=True)
class FitnessFatiguePoint:
    """A single day's fitness/fatigue state."""
    day: date
    daily_load: float
    ctl: float
    atl: float
    tsb: float


def estimate_tss(duration_min: int | None, tss: float | None, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> float:
    """Return the logged TSS, or an estimate from duration when TSS is missing."""
    if tss is not None:
        return max(0.0, float(tss))
    return float(round(max(0, duration_min or 0) * thresholds.tss_per_minute_estimate))


def workout_intensity(workout: WorkoutRecord, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> str:
    """Declared intensity when present, otherwise inferred from TSS."""
    if workout.intensity in INTENSITY_LEVELS:
        return workout.intensity
    if workout.tss is None:
        return "easy"
    if workout.tss > thresholds.hard_session_tss:
        return "hard"
    if workout.tss > thresholds.moderate_session_tss:
        return "moderate"
    return "easy"


def weekly_load(workouts: Iterable[WorkoutRecord], thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> float:
    """Sum TSS over completed workouts."""
    total = sum(estimate_tss(w.duration_min, w.tss, thresholds) for w in workouts if w.completed)
    return round(total, 1)


def ramp_rate(current: float, previous: float) -> float | None:
    """Week-over-week change in percent; None when the previous week had no load."""
    if previous <= 0:
        return None
    return (current - previous) / previous * 100.0


def ramp_status(rate: float | None, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> RampStatus:
    if rate is None:
        return RampStatus.STABLE
    if rate > thresholds.ramp_spiking_pct:
        return RampStatus.SPIKING
    if rate >= thresholds.ramp_rising_pct:
        return RampStatus.RISING
    return RampStatus.STABLE


def display_ramp_rate(rate: float | None, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> float | None:
    """Clamp a ramp rate to the display band; the stored value stays unclamped."""
    if rate is None:
        return None
    bound = thresholds.ramp_display_clamp_pct
    return round(max(-bound, min(bound, rate)), 1)


def compute_load_metrics(
    current_week: Iterable[WorkoutRecord],
    previous_week: Iterable[WorkoutRecord],
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> LoadMetrics:
    """Compare this week's completed load against the previous week's."""
    current = weekly_load(current_week, thresholds)
    previous = weekly_load(previous_week, thresholds)
    rate = ramp_rate(current, previous)
    return LoadMetrics(
        current_week_load=current,
        previous_week_load=previous,
        ramp_rate=round(rate, 1) if rate is not None else None,
        status=ramp_status(rate, thresholds),
        no_baseline=previous <= 0,
    )


def rolling_week_windows(
    workouts: Sequence[WorkoutRecord], as_of: date
) -> tuple[list[WorkoutRecord], list[WorkoutRecord]]:
    """Split workouts into the 7 days ending at as_of and the 7 days before that."""
    current_start = as_of - timedelta(days=6)
    previous_start = as_of - timedelta(days=13)
    current = [w for w in workouts if current_start <= w.day <= as_of]
    previous = [w for w in workouts if previous_start <= w.day < current_start]
    return current, previous


# ---------------------------------------------------------------------------
# Fitness / Fatigue Model (CTL / ATL / TSB)
# ---------------------------------------------------------------------------

def ewma_alpha(time_constant_days: float) -> float:
    return 1.0 - math.exp(-1.0 / time_constant_days)


def daily_tss_series(
    workouts: Iterable[WorkoutRecord],
    start: date,
    end: date,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> pd.Series:
    """Daily completed TSS between start and end inclusive; days without training are 0."""
    index = pd.date_range(start, end, freq="D")
    rows = [
        {"day": pd.Timestamp(w.day), "tss": estimate_tss(w.duration_min, w.tss, thresholds)}
        for w in workouts
        if w.completed and start <= w.day <= end
    ]
    if not rows:
        return pd.Series(0.0, index=index, name="tss")
    df = pd.DataFrame(rows)
    series = df.groupby("day")["tss"].sum().reindex(index, fill_value=0.0)
    return series.astype(float).rename("tss")


def compute_fitness_fatigue(
    daily_loads: pd.Series,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> list[FitnessFatiguePoint]:
    """Compute the CTL/ATL/TSB series from a date-indexed daily TSS series.

    Both averages are seeded with the first day's load. Returns an empty list
    when no day carries any load.
    """
    if daily_loads.empty or not (daily_loads > 0).any():
        return []

    ctl = daily_loads.ewm(alpha=ewma_alpha(thresholds.ctl_time_constant_days), adjust=False).mean()
    atl = daily_loads.ewm(alpha=ewma_alpha(thresholds.atl_time_constant_days), adjust=False).mean()

    return [
        FitnessFatiguePoint(
            day=ts.date(),
            daily_load=float(load),
            ctl=round(float(c), 1),
            atl=round(float(a), 1),
            tsb=round(float(c - a), 1),
        )
        for ts, load, c, a in zip(daily_loads.index, daily_loads.to_numpy(), ctl.to_numpy(), atl.to_numpy())
    ]


def weekly_load_summary(workouts: Iterable[WorkoutRecord], thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> pd.DataFrame:
    """Aggregate completed workouts into weekly totals of load, duration, and session count.

    Returns a DataFrame with columns: week, load, duration_min, sessions.
    """
    rows = [
        {
            "day": pd.Timestamp(w.day),
            "load": estimate_tss(w.duration_min, w.tss, thresholds),
            "duration_min": w.duration_min,
        }
        for w in workouts
        if w.completed
    ]
    if not rows:
        return pd.DataFrame(columns=["week", "load", "duration_min", "sessions"])
    d = pd.DataFrame(rows)
    d["week"] = d["day"].dt.to_period("W").astype(str)
    out = d.groupby("week", as_index=False).agg(
        load=("load", "sum"), duration_min=("duration_min", "sum"), sessions=("day", "count")
    )
    return out.sort_values("week").reset_index(drop=True)
