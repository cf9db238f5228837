"""Daily recompute: read one athlete-day of signals, score it, upsert the DailyMetric row.

Reading and writing happen here; the scoring itself is the pure
``compute_daily_snapshot`` so that identical stored inputs always give an
identical row.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Any

import pandas as pd
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import DEFAULT_THRESHOLDS, EngineThresholds
from core.errors import NotFoundError, PersistenceError
from core.models import Athlete, DailyMetric, DiaryEntry, Workout
from core.services import burnout, compliance, fatigue, readiness
from core.services.training_load import (
    WorkoutRecord,
    compute_fitness_fatigue,
    compute_load_metrics,
    daily_tss_series,
    rolling_week_windows,
    weekly_load,
    weekly_load_summary,
)

logger = logging.getLogger(__name__)

HISTORY_DAYS = 7


@dataclass(frozen=True)
class DailyInputs:
    """Everything the daily scorers read for one athlete-day."""
    day: date
    diary: readiness.DiarySignals = field(default_factory=readiness.DiarySignals)
    history: list[readiness.DiarySignals] = field(default_factory=list)
    workouts: list[WorkoutRecord] = field(default_factory=list)


@dataclass(frozen=True)
class DailyMetricSnapshot:
    day: date
    readiness_score: float
    readiness_status: str
    readiness_confidence: str
    readiness_factors: dict[str, int]
    fatigue_type: str
    fatigue_reasons: dict[str, int]
    compliance_score: float
    compliance_status: str
    compliance_reasons: dict[str, int]
    planned_workouts: int
    completed_workouts: int
    current_streak: int
    burnout_risk: float
    burnout_status: str
    burnout_drivers: dict[str, int]
    weekly_load: float
    ramp_rate: float | None
    ramp_status: str
    ctl: float | None
    atl: float | None
    tsb: float | None

    def to_row(self) -> dict[str, Any]:
        row = asdict(self)
        row.pop("day")
        return row


def compute_daily_snapshot(inputs: DailyInputs, thresholds: EngineThresholds = DEFAULT_THRESHOLDS) -> DailyMetricSnapshot:
    day = inputs.day
    diary = inputs.diary
    history = inputs.history

    current_week, previous_week = rolling_week_windows(inputs.workouts, day)
    load_metrics = compute_load_metrics(current_week, previous_week, thresholds)

    start = day - timedelta(days=thresholds.fitness_lookback_days - 1)
    points = compute_fitness_fatigue(daily_tss_series(inputs.workouts, start, day, thresholds), thresholds)
    latest = points[-1] if points else None
    load = readiness.LoadSignals(
        ctl=latest.ctl if latest else None,
        atl=latest.atl if latest else None,
        tsb=latest.tsb if latest else None,
    )

    ready = readiness.compute_readiness(diary, load, thresholds)
    fatigue_result = fatigue.classify_fatigue(
        fatigue.FatigueInputs(
            diary=diary,
            load=load,
            recent_high_intensity_sessions=fatigue.count_high_intensity_sessions(
                inputs.workouts, day, thresholds=thresholds
            ),
            consecutive_training_days=fatigue.count_consecutive_training_days(inputs.workouts, day),
            persistent_low_energy_days=fatigue.count_low_energy_days([h.energy for h in history]),
        ),
        thresholds,
    )
    compliance_result = compliance.compute_compliance(inputs.workouts, day, thresholds)
    burnout_result = burnout.compute_burnout_risk(
        burnout.BurnoutInputs(
            mood=diary.mood,
            stress=diary.stress,
            sleep_quality=diary.sleep_quality,
            soreness=diary.soreness,
            low_mood_days=sum(1 for h in history if h.mood is not None and h.mood <= 2),
            poor_sleep_days=sum(1 for h in history if h.sleep_quality is not None and h.sleep_quality <= 2),
            high_soreness_days=sum(1 for h in history if h.soreness is not None and h.soreness >= 4),
            fatigue_type=fatigue_result.type,
            compliance_status=compliance_result.status,
            readiness_score=ready.score,
        ),
        thresholds,
    )

    return DailyMetricSnapshot(
        day=day,
        readiness_score=float(ready.score),
        readiness_status=ready.status.value,
        readiness_confidence=ready.confidence.value,
        readiness_factors=readiness.factor_breakdown(ready.factors),
        fatigue_type=fatigue_result.type.value,
        fatigue_reasons=fatigue.reason_breakdown(fatigue_result.reasons),
        compliance_score=float(compliance_result.score),
        compliance_status=compliance_result.status.value,
        compliance_reasons=compliance.reason_breakdown(compliance_result.reasons),
        planned_workouts=compliance_result.planned_workouts,
        completed_workouts=compliance_result.completed_workouts,
        current_streak=compliance_result.current_streak,
        burnout_risk=float(burnout_result.risk),
        burnout_status=burnout_result.status.value,
        burnout_drivers=burnout.driver_breakdown(burnout_result.drivers),
        weekly_load=load_metrics.current_week_load,
        ramp_rate=load_metrics.ramp_rate,
        ramp_status=load_metrics.status.value,
        ctl=load.ctl,
        atl=load.atl,
        tsb=load.tsb,
    )


# ---------------------------------------------------------------------------
# Data access
# ---------------------------------------------------------------------------

def require_athlete(s: Session, athlete_id: int) -> Athlete:
    athlete = s.get(Athlete, athlete_id)
    if athlete is None:
        raise NotFoundError(f"athlete {athlete_id} not found")
    return athlete


def load_workouts(s: Session, athlete_id: int, start: date, end: date) -> list[WorkoutRecord]:
    rows = s.execute(
        select(
            Workout.day,
            Workout.planned,
            Workout.completed,
            Workout.duration_min,
            Workout.tss,
            Workout.discipline,
            Workout.intensity,
            Workout.title,
        )
        .where(Workout.athlete_id == athlete_id, Workout.day >= start, Workout.day <= end)
        .order_by(Workout.day, Workout.id)
    ).all()
    return [
        WorkoutRecord(
            day=r.day,
            planned=bool(r.planned),
            completed=bool(r.completed),
            duration_min=r.duration_min or 0,
            tss=r.tss,
            discipline=r.discipline or "run",
            intensity=r.intensity,
            title=r.title or "",
        )
        for r in rows
    ]


def _load_diary(s: Session, athlete_id: int, start: date, end: date) -> dict[date, readiness.DiarySignals]:
    # Numeric columns only; notes never leave the diary table.
    rows = s.execute(
        select(
            DiaryEntry.day,
            DiaryEntry.mood,
            DiaryEntry.energy,
            DiaryEntry.sleep_hours,
            DiaryEntry.sleep_quality,
            DiaryEntry.stress,
            DiaryEntry.soreness,
            DiaryEntry.physical_fatigue,
            DiaryEntry.mental_readiness,
            DiaryEntry.motivation,
            DiaryEntry.hrv,
            DiaryEntry.hrv_baseline,
        ).where(DiaryEntry.athlete_id == athlete_id, DiaryEntry.day >= start, DiaryEntry.day <= end)
    ).all()
    return {
        r.day: readiness.DiarySignals.from_checkin(
            mood=r.mood,
            energy=r.energy,
            sleep_hours=r.sleep_hours,
            sleep_quality=r.sleep_quality,
            stress=r.stress,
            soreness=r.soreness,
            physical_fatigue=r.physical_fatigue,
            mental_readiness=r.mental_readiness,
            motivation=r.motivation,
            hrv=r.hrv,
            hrv_baseline=r.hrv_baseline,
        )
        for r in rows
    }


def collect_daily_inputs(
    s: Session,
    athlete_id: int,
    day: date,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> DailyInputs:
    require_athlete(s, athlete_id)
    diary_by_day = _load_diary(s, athlete_id, day - timedelta(days=HISTORY_DAYS - 1), day)
    lookback = max(thresholds.fitness_lookback_days, thresholds.compliance_window_days)
    workouts = load_workouts(s, athlete_id, day - timedelta(days=lookback - 1), day)
    return DailyInputs(
        day=day,
        diary=diary_by_day.get(day, readiness.DiarySignals()),
        history=[diary_by_day[d] for d in sorted(diary_by_day)],
        workouts=workouts,
    )


_UPSERT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def _upsert_statement(s: Session, athlete_id: int, day: date, values: dict[str, Any]):
    dialect = s.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)
    if insert is None:
        raise PersistenceError(f"daily metric upsert not supported on {dialect}")
    stmt = insert(DailyMetric).values(athlete_id=athlete_id, day=day, **values)
    # Conflicting writers resolve on the unique key; the last statement wins.
    return stmt.on_conflict_do_update(index_elements=["athlete_id", "day"], set_=values)


def recompute_daily_metric(
    s: Session,
    athlete_id: int,
    day: date,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> DailyMetricSnapshot:
    """Recompute and upsert the (athlete, day) metric row. Safe to call repeatedly."""
    inputs = collect_daily_inputs(s, athlete_id, day, thresholds)
    snapshot = compute_daily_snapshot(inputs, thresholds)
    try:
        s.execute(_upsert_statement(s, athlete_id, day, snapshot.to_row()))
    except SQLAlchemyError as exc:
        logger.exception(
            "daily_metric_recompute_failed",
            extra={"ctx_athlete_id": athlete_id, "ctx_day": day.isoformat()},
        )
        raise PersistenceError("failed to store daily metric") from exc

    logger.info(
        "daily_metric_recomputed",
        extra={
            "ctx_athlete_id": athlete_id,
            "ctx_day": day.isoformat(),
            "ctx_readiness": snapshot.readiness_score,
            "ctx_burnout_status": snapshot.burnout_status,
        },
    )
    return snapshot


def list_daily_metrics(
    s: Session,
    athlete_id: int,
    start: date,
    end: date,
    offset: int = 0,
    limit: int | None = None,
) -> list[DailyMetric]:
    require_athlete(s, athlete_id)
    q = (
        select(DailyMetric)
        .where(DailyMetric.athlete_id == athlete_id, DailyMetric.day >= start, DailyMetric.day <= end)
        .order_by(DailyMetric.day)
        .offset(offset)
        .limit(limit)
    )
    return list(s.execute(q).scalars())


def weekly_load_history(s: Session, athlete_id: int, start: date, end: date) -> pd.DataFrame:
    require_athlete(s, athlete_id)
    return weekly_load_summary(load_workouts(s, athlete_id, start, end))


# ---------------------------------------------------------------------------
# Dashboard trends
# ---------------------------------------------------------------------------

TREND_DAYS = 14
MONTH_DAYS = 30


@dataclass(frozen=True)
class TrendPoint:
    day: date
    ctl: float
    atl: float
    tsb: float


@dataclass(frozen=True)
class DashboardMetrics:
    """Current load state with week-over-week and fortnight deltas.

    Deltas are whole percentages and None when the earlier period has nothing to compare against.
    """
    day: date
    ctl: float | None
    atl: float | None
    tsb: float | None
    readiness: float | None
    weekly_tss: float | None
    last_week_tss: float | None
    weekly_tss_delta: int | None
    weekly_hours: float | None
    last_week_hours: float | None
    weekly_hours_delta: int | None
    monthly_hours: float | None
    workouts_this_week: int
    ctl_delta: int | None
    ctl_series: list[TrendPoint] = field(default_factory=list)


def percent_change(current: float | None, previous: float | None) -> int | None:
    if current is None or not previous or previous <= 0:
        return None
    return round((current - previous) / previous * 100)


def _hours(workouts: list[WorkoutRecord]) -> float | None:
    done = [w for w in workouts if w.completed]
    if not done:
        return None
    return round(sum(w.duration_min for w in done) / 60, 1)


def _tss(workouts: list[WorkoutRecord], thresholds: EngineThresholds) -> float | None:
    if not any(w.completed for w in workouts):
        return None
    return weekly_load(workouts, thresholds)


def dashboard_metrics(
    s: Session,
    athlete_id: int,
    day: date,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> DashboardMetrics:
    """Load trends as of ``day``.

    Stored DailyMetric rows drive the CTL/ATL/TSB values and the fortnight
    series when the latest one carries them; otherwise the series is computed
    from workouts over the fitness lookback.
    """
    require_athlete(s, athlete_id)
    lookback = max(thresholds.fitness_lookback_days, MONTH_DAYS)
    workouts = load_workouts(s, athlete_id, day - timedelta(days=lookback - 1), day)
    current_week, previous_week = rolling_week_windows(workouts, day)
    month = [w for w in workouts if w.day > day - timedelta(days=MONTH_DAYS)]

    trend_start = day - timedelta(days=TREND_DAYS - 1)
    stored = list_daily_metrics(s, athlete_id, trend_start, day)
    latest = stored[-1] if stored else None
    if latest is not None and None not in (latest.ctl, latest.atl, latest.tsb):
        series = [TrendPoint(m.day, m.ctl or 0.0, m.atl or 0.0, m.tsb or 0.0) for m in stored]
        ctl, atl, tsb = latest.ctl, latest.atl, latest.tsb
    else:
        start = day - timedelta(days=thresholds.fitness_lookback_days - 1)
        points = compute_fitness_fatigue(daily_tss_series(workouts, start, day, thresholds), thresholds)
        series = [TrendPoint(p.day, p.ctl, p.atl, p.tsb) for p in points if p.day >= trend_start]
        ctl, atl, tsb = (series[-1].ctl, series[-1].atl, series[-1].tsb) if series else (None, None, None)

    weekly_tss = _tss(current_week, thresholds)
    last_week_tss = _tss(previous_week, thresholds)
    weekly_hours = _hours(current_week)
    last_week_hours = _hours(previous_week)
    return DashboardMetrics(
        day=day,
        ctl=ctl,
        atl=atl,
        tsb=tsb,
        readiness=latest.readiness_score if latest is not None else None,
        weekly_tss=weekly_tss,
        last_week_tss=last_week_tss,
        weekly_tss_delta=percent_change(weekly_tss, last_week_tss),
        weekly_hours=weekly_hours,
        last_week_hours=last_week_hours,
        weekly_hours_delta=percent_change(weekly_hours, last_week_hours),
        monthly_hours=_hours(month),
        workouts_this_week=sum(1 for w in current_week if w.completed),
        ctl_delta=percent_change(series[-1].ctl, series[0].ctl) if series else None,
        ctl_series=series,
    )
