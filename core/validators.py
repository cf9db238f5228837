"""Pydantic validation models for all user-facing data entry points."""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from core.services.burnout import BurnoutInputs
from core.services.compliance import ComplianceStatus
from core.services.fatigue import FatigueType
from core.services.simulation import SCENARIO_PRESETS, Baseline, ScenarioParams, parse_identity_mode, parse_scenario_params
from core.services.training_load import PlannedSession, WorkoutRecord

Intensity = Literal["easy", "moderate", "hard"]
Sport = Literal["running", "cycling", "triathlon", "swimming", "strength"]
IdentityModeName = Literal["competitive", "longevity", "comeback", "busy_pro"]


class PlannedSessionInput(BaseModel):
    day: date
    duration_min: int = Field(ge=0, le=600)
    tss: Optional[float] = Field(default=None, ge=0, le=1000)
    intensity: Intensity = "easy"
    discipline: str = Field(default="run", min_length=1, max_length=40)
    title: str = Field(default="", max_length=120)

    def to_domain(self) -> PlannedSession:
        return PlannedSession(
            day=self.day,
            duration_min=self.duration_min,
            tss=self.tss,
            intensity=self.intensity,
            discipline=self.discipline,
            title=self.title,
        )


class RecentWorkoutInput(BaseModel):
    day: date
    duration_min: int = Field(default=0, ge=0, le=600)
    tss: Optional[float] = Field(default=None, ge=0, le=1000)
    intensity: Optional[Intensity] = None

    def to_domain(self) -> WorkoutRecord:
        return WorkoutRecord(
            day=self.day,
            planned=True,
            completed=True,
            duration_min=self.duration_min,
            tss=self.tss,
            intensity=self.intensity,
        )


class GuardrailCheckInput(BaseModel):
    planned: list[PlannedSessionInput] = Field(max_length=28)
    previous_week_load: float = Field(ge=0)
    recent: list[RecentWorkoutInput] = Field(default_factory=list, max_length=28)


class SessionsInput(BaseModel):
    sessions: list[PlannedSessionInput] = Field(max_length=28)


class DeloadInput(SessionsInput):
    percent: float = Field(default=40, gt=0, lt=100)


class BurnoutEvaluateInput(BaseModel):
    mood: Optional[int] = Field(default=None, ge=1, le=5)
    stress: Optional[int] = Field(default=None, ge=1, le=5)
    sleep_quality: Optional[int] = Field(default=None, ge=1, le=5)
    soreness: Optional[int] = Field(default=None, ge=1, le=5)
    low_mood_days: int = Field(default=0, ge=0, le=7)
    poor_sleep_days: int = Field(default=0, ge=0, le=7)
    high_soreness_days: int = Field(default=0, ge=0, le=7)
    fatigue_type: FatigueType = FatigueType.NONE
    compliance_status: Optional[ComplianceStatus] = None
    readiness_score: Optional[float] = Field(default=None, ge=0, le=100)

    def to_domain(self) -> BurnoutInputs:
        return BurnoutInputs(**self.model_dump())


class ScenarioParamsInput(BaseModel):
    volume_change_pct: float = Field(default=0, ge=-50, le=50)
    intensity_bias: Literal["LOW", "BALANCED", "HIGH"] = "BALANCED"
    recovery_focus: Literal["NORMAL", "EXTRA"] = "NORMAL"
    compliance_assumption: Literal["FULL", "OPTIMISTIC", "REALISTIC", "CONSERVATIVE"] = "REALISTIC"
    weekly_tss: Optional[float] = Field(default=None, ge=0, le=3000)
    identity_mode_override: Optional[IdentityModeName] = None

    def to_domain(self) -> ScenarioParams:
        return parse_scenario_params(self.model_dump())


class ScenarioCreateInput(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    duration_weeks: int = Field(ge=2, le=12)
    params: Optional[ScenarioParamsInput] = None
    preset: Optional[str] = None

    @field_validator("preset")
    @classmethod
    def known_preset(cls, v):
        if v is not None and v not in SCENARIO_PRESETS:
            raise ValueError(f"preset must be one of {sorted(SCENARIO_PRESETS)}")
        return v

    @model_validator(mode="after")
    def params_or_preset(self):
        if self.params is None and self.preset is None:
            raise ValueError("either params or preset is required")
        return self

    def scenario_params(self) -> ScenarioParams:
        if self.params is not None:
            return self.params.to_domain()
        return SCENARIO_PRESETS[self.preset].params


class BaselineInput(BaseModel):
    ctl: float = Field(ge=0, le=250)
    atl: float = Field(ge=0, le=300)
    tsb: float = Field(ge=-300, le=250)
    avg_readiness: float = Field(default=65, ge=0, le=100)
    avg_burnout_risk: float = Field(default=20, ge=0, le=100)
    identity_mode: IdentityModeName = "competitive"
    avg_weekly_tss: float = Field(default=250, gt=0, le=3000)

    def to_domain(self) -> Baseline:
        data = self.model_dump()
        data["identity_mode"] = parse_identity_mode(data["identity_mode"])
        return Baseline(**data)


class CompareEntryInput(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    duration_weeks: int = Field(ge=2, le=12)
    params: ScenarioParamsInput = Field(default_factory=ScenarioParamsInput)


class ScenarioCompareInput(BaseModel):
    athlete_id: Optional[int] = Field(default=None, gt=0)
    baseline: Optional[BaselineInput] = None
    scenarios: list[CompareEntryInput] = Field(min_length=1, max_length=5)


class RecoveryMicrocycleInput(BaseModel):
    week_start: date
    sport: Sport = "running"
    confirm_overwrite: bool = False
