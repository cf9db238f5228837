from __future__ import annotations

from datetime import date as dt_date
from datetime import datetime as dt_datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from core.services.burnout import BurnoutActionType, BurnoutStatus
from core.services.guardrails import Severity, WarningType
from core.services.simulation import RiskLevel


class HealthOut(BaseModel):
    status: str
    app_env: str


class DailyMetricOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: dt_date
    readiness_score: Optional[float] = None
    readiness_status: Optional[str] = None
    readiness_confidence: Optional[str] = None
    readiness_factors: dict[str, int] = {}
    fatigue_type: Optional[str] = None
    fatigue_reasons: dict[str, int] = {}
    compliance_score: Optional[float] = None
    compliance_status: Optional[str] = None
    compliance_reasons: dict[str, int] = {}
    planned_workouts: int = 0
    completed_workouts: int = 0
    current_streak: int = 0
    burnout_risk: Optional[float] = None
    burnout_status: Optional[str] = None
    burnout_drivers: dict[str, int] = {}
    weekly_load: float = 0
    ramp_rate: Optional[float] = None
    ramp_status: str = "stable"
    ctl: Optional[float] = None
    atl: Optional[float] = None
    tsb: Optional[float] = None


class TrendPointOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: dt_date
    ctl: float
    atl: float
    tsb: float


class DashboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: dt_date
    ctl: Optional[float] = None
    atl: Optional[float] = None
    tsb: Optional[float] = None
    readiness: Optional[float] = None
    weekly_tss: Optional[float] = None
    last_week_tss: Optional[float] = None
    weekly_tss_delta: Optional[int] = None
    weekly_hours: Optional[float] = None
    last_week_hours: Optional[float] = None
    weekly_hours_delta: Optional[int] = None
    monthly_hours: Optional[float] = None
    workouts_this_week: int = 0
    ctl_delta: Optional[int] = None
    ctl_series: list[TrendPointOut] = []


class WeeklyLoadItem(BaseModel):
    week: str
    load: float
    duration_min: float
    sessions: int


class PlannedSessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: dt_date
    duration_min: int
    tss: Optional[float] = None
    intensity: str
    discipline: str
    title: str
    reason: Optional[str] = None


class GuardrailWarningOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: WarningType
    message: str
    severity: Severity
    recommendation: str


class SessionAdjustmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    day: dt_date
    original_duration: int
    adjusted_duration: int
    original_intensity: str
    adjusted_intensity: str
    reason: str


class GuardrailResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    is_within_limits: bool
    risk_score: int
    risk_description: str = ""
    planned_load: float
    ramp_rate: Optional[float] = None
    warnings: list[GuardrailWarningOut]
    adjustments: list[SessionAdjustmentOut]


class SessionsOut(BaseModel):
    sessions: list[PlannedSessionOut]
    description: Optional[str] = None


class BurnoutDriverOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    driver: str
    weight: int
    description: str


class BurnoutActionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: BurnoutActionType
    label: str
    description: str


class BurnoutResultOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    risk: int
    raw_risk: int
    status: BurnoutStatus
    drivers: list[BurnoutDriverOut]
    recommendation: str
    suggested_actions: list[BurnoutActionOut]


class RecoveryMicrocycleOut(BaseModel):
    replaced: int
    sessions: list[PlannedSessionOut]


class ScenarioPresetOut(BaseModel):
    key: str
    name: str
    description: str
    params: dict[str, Any]


class ScenarioOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    athlete_id: int
    name: str
    duration_weeks: int
    params: dict[str, Any]
    applied: bool
    created_at: dt_datetime
    last_run_at: Optional[dt_datetime] = None
    applied_at: Optional[dt_datetime] = None


class WeeklySimulationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    week_index: int
    weekly_tss: float
    simulated_ctl: float
    simulated_atl: float
    simulated_tsb: float
    simulated_readiness_avg: float
    simulated_burnout_risk: float
    insights: list[str]
    warnings: list[str]


class SimulationSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    final_ctl: float
    final_atl: float
    final_tsb: float
    ctl_change: float
    peak_burnout_risk: float
    total_warnings: int
    risk_level: RiskLevel
    recommendation: str


class SimulationRunOut(BaseModel):
    scenario_id: int
    baseline: dict[str, Any]
    weeks: list[WeeklySimulationOut]
    summary: SimulationSummaryOut


class ScenarioResultsOut(BaseModel):
    scenario: ScenarioOut
    weeks: list[WeeklySimulationOut]
    summary: Optional[SimulationSummaryOut] = None


class ScenarioComparisonOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    final_ctl: float
    ctl_change: float
    peak_burnout_risk: float
    total_warnings: int
    risk_level: RiskLevel
