from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Query, Response, status

from api.schemas import (
    BurnoutResultOut,
    DailyMetricOut,
    DashboardOut,
    GuardrailResultOut,
    HealthOut,
    PlannedSessionOut,
    RecoveryMicrocycleOut,
    ScenarioComparisonOut,
    ScenarioOut,
    ScenarioPresetOut,
    ScenarioResultsOut,
    SessionsOut,
    SimulationRunOut,
    WeeklyLoadItem,
    WeeklySimulationOut,
    SimulationSummaryOut,
)
from core.config import get_settings
from core.db import session_scope
from core.services import daily_metrics, scenarios
from core.services.burnout import RecoveryMicrocycle, compute_burnout_risk, simplify_sessions
from core.services.guardrails import apply_deload, check_guardrails, risk_description
from core.services.recovery import apply_recovery_microcycle
from core.services.simulation import SCENARIO_PRESETS, Baseline, compare_scenarios
from core.validators import (
    BurnoutEvaluateInput,
    DeloadInput,
    GuardrailCheckInput,
    RecoveryMicrocycleInput,
    ScenarioCompareInput,
    ScenarioCreateInput,
    SessionsInput,
)

logger = logging.getLogger(__name__)
settings = get_settings()
router = APIRouter(prefix="/api/v1")


@router.get("/health", response_model=HealthOut, tags=["system"])
def health():
    return HealthOut(status="ok", app_env=settings.app_env)


# -- Daily metrics --

@router.post("/athletes/{athlete_id}/metrics/{day}/recompute", response_model=DailyMetricOut, tags=["metrics"])
def recompute_metrics(athlete_id: int, day: date):
    with session_scope() as s:
        snapshot = daily_metrics.recompute_daily_metric(s, athlete_id, day, settings.thresholds)
        return DailyMetricOut.model_validate(snapshot)


@router.get("/athletes/{athlete_id}/metrics", response_model=list[DailyMetricOut], tags=["metrics"])
def list_metrics(
    athlete_id: int,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    offset: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
):
    end = end or date.today()
    start = start or end - timedelta(days=27)
    with session_scope() as s:
        rows = daily_metrics.list_daily_metrics(s, athlete_id, start, end, offset, limit)
        return [DailyMetricOut.model_validate(r) for r in rows]


@router.get("/athletes/{athlete_id}/dashboard", response_model=DashboardOut, tags=["metrics"])
def dashboard(athlete_id: int, day: Optional[date] = Query(None)):
    with session_scope() as s:
        trends = daily_metrics.dashboard_metrics(s, athlete_id, day or date.today(), settings.thresholds)
    return DashboardOut.model_validate(trends)


@router.get("/athletes/{athlete_id}/load/weekly", response_model=list[WeeklyLoadItem], tags=["metrics"])
def weekly_load(athlete_id: int, weeks: int = Query(8, ge=1, le=52)):
    end = date.today()
    start = end - timedelta(days=weeks * 7 - 1)
    with session_scope() as s:
        df = daily_metrics.weekly_load_history(s, athlete_id, start, end)
    return [
        WeeklyLoadItem(week=r.week, load=float(r.load), duration_min=float(r.duration_min), sessions=int(r.sessions))
        for r in df.itertuples(index=False)
    ]


# -- Guardrails and session actions --

@router.post("/guardrails/check", response_model=GuardrailResultOut, tags=["guardrails"])
def guardrails_check(body: GuardrailCheckInput):
    result = check_guardrails(
        [p.to_domain() for p in body.planned],
        body.previous_week_load,
        [r.to_domain() for r in body.recent],
        settings.thresholds,
    )
    out = GuardrailResultOut.model_validate(result)
    out.risk_description = risk_description(result.risk_score)
    return out


@router.post("/sessions/simplify", response_model=SessionsOut, tags=["sessions"])
def simplify(body: SessionsInput):
    sessions = simplify_sessions([p.to_domain() for p in body.sessions])
    return SessionsOut(sessions=[PlannedSessionOut.model_validate(x) for x in sessions])


@router.post("/sessions/deload", response_model=SessionsOut, tags=["sessions"])
def deload(body: DeloadInput):
    sessions, description = apply_deload([p.to_domain() for p in body.sessions], body.percent)
    return SessionsOut(sessions=[PlannedSessionOut.model_validate(x) for x in sessions], description=description)


@router.post("/burnout/evaluate", response_model=BurnoutResultOut, tags=["burnout"])
def burnout_evaluate(body: BurnoutEvaluateInput):
    return BurnoutResultOut.model_validate(compute_burnout_risk(body.to_domain(), settings.thresholds))


@router.post("/athletes/{athlete_id}/recovery-microcycle", response_model=RecoveryMicrocycleOut, tags=["burnout"])
def recovery_microcycle(athlete_id: int, body: RecoveryMicrocycleInput):
    command = RecoveryMicrocycle(
        athlete_id=athlete_id,
        week_start=body.week_start,
        sport=body.sport,
        confirm_overwrite=body.confirm_overwrite,
    )
    with session_scope() as s:
        replaced = apply_recovery_microcycle(s, command)
    return RecoveryMicrocycleOut(
        replaced=replaced,
        sessions=[PlannedSessionOut.model_validate(x) for x in command.plan()],
    )


# -- Simulation --

@router.get("/scenario-presets", response_model=list[ScenarioPresetOut], tags=["simulation"])
def scenario_presets():
    return [
        ScenarioPresetOut(key=p.key, name=p.name, description=p.description, params=p.params.to_dict())
        for p in SCENARIO_PRESETS.values()
    ]


@router.post(
    "/athletes/{athlete_id}/scenarios",
    response_model=ScenarioOut,
    status_code=status.HTTP_201_CREATED,
    tags=["simulation"],
)
def create_scenario(athlete_id: int, body: ScenarioCreateInput):
    with session_scope() as s:
        scenario = scenarios.create_scenario(
            s, athlete_id, body.name, body.duration_weeks, body.scenario_params(), settings.thresholds
        )
        return ScenarioOut.model_validate(scenario)


@router.get("/athletes/{athlete_id}/scenarios", response_model=list[ScenarioOut], tags=["simulation"])
def list_scenarios(
    athlete_id: int,
    offset: int = Query(0, ge=0),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
):
    with session_scope() as s:
        return [ScenarioOut.model_validate(x) for x in scenarios.list_scenarios(s, athlete_id, offset, limit)]


@router.post(
    "/athletes/{athlete_id}/scenarios/{scenario_id}/run",
    response_model=SimulationRunOut,
    tags=["simulation"],
)
def run_scenario(athlete_id: int, scenario_id: int, as_of: Optional[date] = Query(None)):
    with session_scope() as s:
        output = scenarios.run_scenario(s, athlete_id, scenario_id, as_of or date.today(), settings.thresholds)
        baseline = scenarios.get_scenario(s, athlete_id, scenario_id).baseline or {}
    return SimulationRunOut(
        scenario_id=scenario_id,
        baseline=baseline,
        weeks=[WeeklySimulationOut.model_validate(w) for w in output.weeks],
        summary=SimulationSummaryOut.model_validate(output.summary),
    )


@router.post(
    "/athletes/{athlete_id}/scenarios/{scenario_id}/apply",
    response_model=ScenarioOut,
    tags=["simulation"],
)
def apply_scenario(athlete_id: int, scenario_id: int):
    with session_scope() as s:
        return ScenarioOut.model_validate(scenarios.apply_scenario(s, athlete_id, scenario_id))


@router.get(
    "/athletes/{athlete_id}/scenarios/{scenario_id}/results",
    response_model=ScenarioResultsOut,
    tags=["simulation"],
)
def scenario_results(athlete_id: int, scenario_id: int):
    with session_scope() as s:
        scenario, weeks, summary = scenarios.load_simulation_results(s, athlete_id, scenario_id, settings.thresholds)
        return ScenarioResultsOut(
            scenario=ScenarioOut.model_validate(scenario),
            weeks=[WeeklySimulationOut.model_validate(w) for w in weeks],
            summary=SimulationSummaryOut.model_validate(summary) if summary else None,
        )


@router.delete(
    "/athletes/{athlete_id}/scenarios/{scenario_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["simulation"],
)
def delete_scenario(athlete_id: int, scenario_id: int):
    with session_scope() as s:
        scenarios.delete_scenario(s, athlete_id, scenario_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/scenarios/compare", response_model=list[ScenarioComparisonOut], tags=["simulation"])
def compare(body: ScenarioCompareInput):
    if body.baseline is not None:
        baseline = body.baseline.to_domain()
    elif body.athlete_id is not None:
        with session_scope() as s:
            baseline = scenarios.derive_baseline(s, body.athlete_id, date.today(), settings.thresholds)
    else:
        baseline = Baseline.defaults(thresholds=settings.thresholds)
    entries = [(e.name, e.params.to_domain(), e.duration_weeks) for e in body.scenarios]
    return [ScenarioComparisonOut.model_validate(c) for c in compare_scenarios(baseline, entries, settings.thresholds)]
