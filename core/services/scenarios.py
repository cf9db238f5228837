"""Scenario persistence: baseline derivation, simulation runs, and stored results."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import asdict
from datetime import date, timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import DEFAULT_THRESHOLDS, EngineThresholds
from core.errors import EngineValidationError, NotFoundError, PersistenceError
from core.models import DailyMetric, SimulationResult, SimulationScenario
from core.services.daily_metrics import load_workouts, require_athlete
from core.services.simulation import (
    Baseline,
    IdentityMode,
    ScenarioParams,
    SimulationOutput,
    SimulationSummary,
    WeeklySimulationResult,
    parse_scenario_params,
    run_simulation,
    summarize_weeks,
    validate_duration,
)
from core.services.training_load import weekly_load

logger = logging.getLogger(__name__)


def _identity_mode(raw: str | None) -> IdentityMode:
    try:
        return IdentityMode(raw)
    except ValueError:
        return IdentityMode.COMPETITIVE


def baseline_to_dict(baseline: Baseline) -> dict[str, Any]:
    data = asdict(baseline)
    data["identity_mode"] = baseline.identity_mode.value
    return data


def baseline_from_dict(data: dict[str, Any]) -> Baseline:
    return Baseline(**{**data, "identity_mode": _identity_mode(data.get("identity_mode"))})


def derive_baseline(
    s: Session,
    athlete_id: int,
    today: date,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> Baseline:
    """Current fitness state from the last few weeks of stored metrics and workouts.

    Each value falls back to its configured default when there is no history.
    """
    athlete = require_athlete(s, athlete_id)
    lookback = thresholds.baseline_lookback_days
    start = today - timedelta(days=lookback - 1)

    metrics = s.execute(
        select(DailyMetric)
        .where(DailyMetric.athlete_id == athlete_id, DailyMetric.day >= start, DailyMetric.day <= today)
        .order_by(DailyMetric.day.desc())
    ).scalars().all()

    latest = next((m for m in metrics if m.ctl is not None), None)
    if latest is not None:
        ctl = latest.ctl
        atl = latest.atl if latest.atl is not None else thresholds.default_atl
        tsb = latest.tsb if latest.tsb is not None else ctl - atl
    else:
        ctl, atl, tsb = thresholds.default_ctl, thresholds.default_atl, thresholds.default_tsb

    readiness_values = [m.readiness_score for m in metrics if m.readiness_score is not None]
    burnout_values = [m.burnout_risk for m in metrics if m.burnout_risk is not None]

    weekly_tss = weekly_load(load_workouts(s, athlete_id, start, today), thresholds) / (lookback / 7)

    return Baseline(
        ctl=round(float(ctl), 1),
        atl=round(float(atl), 1),
        tsb=round(float(tsb), 1),
        avg_readiness=round(sum(readiness_values) / len(readiness_values), 1)
        if readiness_values
        else thresholds.default_readiness,
        avg_burnout_risk=round(sum(burnout_values) / len(burnout_values), 1)
        if burnout_values
        else thresholds.default_burnout,
        identity_mode=_identity_mode(athlete.identity_mode),
        avg_weekly_tss=round(weekly_tss, 1) if weekly_tss > 0 else thresholds.default_weekly_tss,
    )


def create_scenario(
    s: Session,
    athlete_id: int,
    name: str,
    duration_weeks: int,
    params: ScenarioParams,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> SimulationScenario:
    require_athlete(s, athlete_id)
    if not name or not name.strip():
        raise EngineValidationError("scenario name is required")
    validate_duration(duration_weeks, thresholds)
    scenario = SimulationScenario(
        athlete_id=athlete_id,
        name=name.strip(),
        duration_weeks=duration_weeks,
        params=params.to_dict(),
    )
    s.add(scenario)
    s.flush()
    return scenario


def list_scenarios(
    s: Session, athlete_id: int, offset: int = 0, limit: int | None = None
) -> list[SimulationScenario]:
    require_athlete(s, athlete_id)
    q = (
        select(SimulationScenario)
        .where(SimulationScenario.athlete_id == athlete_id)
        .order_by(SimulationScenario.created_at.desc(), SimulationScenario.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(s.execute(q).scalars())


def get_scenario(s: Session, athlete_id: int, scenario_id: int) -> SimulationScenario:
    scenario = s.get(SimulationScenario, scenario_id)
    if scenario is None or scenario.athlete_id != athlete_id:
        raise NotFoundError(f"scenario {scenario_id} not found")
    return scenario


def run_scenario(
    s: Session,
    athlete_id: int,
    scenario_id: int,
    today: date,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> SimulationOutput:
    """Simulate a stored scenario and replace all of its weekly result rows."""
    scenario = get_scenario(s, athlete_id, scenario_id)
    params = parse_scenario_params(scenario.params)
    baseline = derive_baseline(s, athlete_id, today, thresholds)
    output = run_simulation(baseline, params, scenario.duration_weeks, thresholds)

    try:
        scenario.results.clear()
        s.flush()
        for week in output.weeks:
            scenario.results.append(
                SimulationResult(
                    athlete_id=athlete_id,
                    week_index=week.week_index,
                    simulated_ctl=week.simulated_ctl,
                    simulated_atl=week.simulated_atl,
                    simulated_tsb=week.simulated_tsb,
                    simulated_readiness_avg=week.simulated_readiness_avg,
                    simulated_burnout_risk=week.simulated_burnout_risk,
                    weekly_tss=week.weekly_tss,
                    insights=list(week.insights),
                    warnings=list(week.warnings),
                )
            )
        scenario.baseline = baseline_to_dict(baseline)
        scenario.last_run_at = dt.datetime.utcnow()
        s.flush()
    except SQLAlchemyError as exc:
        logger.exception(
            "simulation_run_failed",
            extra={"ctx_athlete_id": athlete_id, "ctx_scenario_id": scenario_id},
        )
        raise PersistenceError("failed to store simulation results") from exc

    logger.info(
        "simulation_run_succeeded",
        extra={
            "ctx_athlete_id": athlete_id,
            "ctx_scenario_id": scenario_id,
            "ctx_weeks": len(output.weeks),
            "ctx_risk_level": output.summary.risk_level.value,
        },
    )
    return output


def load_simulation_results(
    s: Session,
    athlete_id: int,
    scenario_id: int,
    thresholds: EngineThresholds = DEFAULT_THRESHOLDS,
) -> tuple[SimulationScenario, list[WeeklySimulationResult], SimulationSummary | None]:
    """Stored weekly rows plus a summary rebuilt from them; summary is None before the first run."""
    scenario = get_scenario(s, athlete_id, scenario_id)
    weeks = [
        WeeklySimulationResult(
            week_index=r.week_index,
            weekly_tss=r.weekly_tss,
            simulated_ctl=r.simulated_ctl,
            simulated_atl=r.simulated_atl,
            simulated_tsb=r.simulated_tsb,
            simulated_readiness_avg=r.simulated_readiness_avg,
            simulated_burnout_risk=r.simulated_burnout_risk,
            insights=list(r.insights or []),
            warnings=list(r.warnings or []),
        )
        for r in scenario.results
    ]
    if not weeks:
        return scenario, [], None
    if len(weeks) != scenario.duration_weeks:
        raise PersistenceError(f"scenario {scenario_id} has an incomplete result set; re-run it")
    baseline = baseline_from_dict(scenario.baseline) if scenario.baseline else Baseline.defaults(thresholds=thresholds)
    return scenario, weeks, summarize_weeks(baseline, weeks, thresholds)


def delete_scenario(s: Session, athlete_id: int, scenario_id: int) -> None:
    scenario = get_scenario(s, athlete_id, scenario_id)
    s.delete(scenario)
    s.flush()
    logger.info("scenario_deleted", extra={"ctx_athlete_id": athlete_id, "ctx_scenario_id": scenario_id})


def apply_scenario(s: Session, athlete_id: int, scenario_id: int) -> SimulationScenario:
    """Mark a scenario as the athlete's chosen plan. Refused until it has been run."""
    scenario = get_scenario(s, athlete_id, scenario_id)
    if not scenario.results:
        raise EngineValidationError("run the simulation before applying the scenario")
    try:
        scenario.applied = True
        scenario.applied_at = dt.datetime.utcnow()
        s.flush()
    except SQLAlchemyError as exc:
        logger.exception(
            "scenario_apply_failed",
            extra={"ctx_athlete_id": athlete_id, "ctx_scenario_id": scenario_id},
        )
        raise PersistenceError("failed to apply scenario") from exc
    logger.info("scenario_applied", extra={"ctx_athlete_id": athlete_id, "ctx_scenario_id": scenario_id})
    return scenario
