from __future__ import annotations

import datetime as dt
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class Athlete(Base):
    __tablename__ = "athletes"
    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(80))
    last_name: Mapped[str] = mapped_column(String(80))
    email: Mapped[str] = mapped_column(String(200), unique=True)
    identity_mode: Mapped[str] = mapped_column(String(20), default="competitive")
    primary_sport: Mapped[str] = mapped_column(String(20), default="running")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)


class Workout(Base):
    __tablename__ = "workouts"
    id: Mapped[int] = mapped_column(primary_key=True)
    athlete_id: Mapped[int] = mapped_column(ForeignKey("athletes.id"), index=True)
    day: Mapped[dt.date] = mapped_column(Date)
    title: Mapped[str] = mapped_column(String(120), default="")
    discipline: Mapped[str] = mapped_column(String(40), default="run")
    planned: Mapped[bool] = mapped_column(Boolean, default=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    duration_min: Mapped[int] = mapped_column(Integer, default=0)
    tss: Mapped[float | None] = mapped_column(Float)
    intensity: Mapped[str | None] = mapped_column(String(12))
    __table_args__ = (
        Index("ix_workouts_athlete_day", "athlete_id", "day"),
        CheckConstraint("duration_min >= 0"),
    )


class DiaryEntry(Base):
    __tablename__ = "diary_entries"
    id: Mapped[int] = mapped_column(primary_key=True)
    athlete_id: Mapped[int] = mapped_column(ForeignKey("athletes.id"), index=True)
    day: Mapped[dt.date] = mapped_column(Date)
    mood: Mapped[int | None] = mapped_column(Integer)
    energy: Mapped[int | None] = mapped_column(Integer)
    sleep_hours: Mapped[float | None] = mapped_column(Float)
    sleep_quality: Mapped[int | None] = mapped_column(Integer)
    stress: Mapped[int | None] = mapped_column(Integer)
    soreness: Mapped[int | None] = mapped_column(Integer)
    physical_fatigue: Mapped[int | None] = mapped_column(Integer)
    mental_readiness: Mapped[int | None] = mapped_column(Integer)
    motivation: Mapped[int | None] = mapped_column(Integer)
    hrv: Mapped[float | None] = mapped_column(Float)
    hrv_baseline: Mapped[float | None] = mapped_column(Float)
    notes: Mapped[str | None] = mapped_column(Text)
    visibility: Mapped[str] = mapped_column(String(16), default="FULL_ACCESS")
    __table_args__ = (
        UniqueConstraint("athlete_id", "day", name="uq_diary_daily"),
        CheckConstraint("visibility in ('FULL_ACCESS', 'METRICS_ONLY', 'HIDDEN')"),
    )


class DailyMetric(Base):
    __tablename__ = "daily_metrics"
    id: Mapped[int] = mapped_column(primary_key=True)
    athlete_id: Mapped[int] = mapped_column(ForeignKey("athletes.id"), index=True)
    day: Mapped[dt.date] = mapped_column(Date)

    readiness_score: Mapped[float | None] = mapped_column(Float)
    readiness_status: Mapped[str | None] = mapped_column(String(16))
    readiness_confidence: Mapped[str | None] = mapped_column(String(8))
    readiness_factors: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    fatigue_type: Mapped[str | None] = mapped_column(String(16))
    fatigue_reasons: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    compliance_score: Mapped[float | None] = mapped_column(Float)
    compliance_status: Mapped[str | None] = mapped_column(String(16))
    compliance_reasons: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    planned_workouts: Mapped[int] = mapped_column(Integer, default=0)
    completed_workouts: Mapped[int] = mapped_column(Integer, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)

    burnout_risk: Mapped[float | None] = mapped_column(Float)
    burnout_status: Mapped[str | None] = mapped_column(String(16))
    burnout_drivers: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    weekly_load: Mapped[float] = mapped_column(Float, default=0)
    ramp_rate: Mapped[float | None] = mapped_column(Float)
    ramp_status: Mapped[str] = mapped_column(String(16), default="stable")

    ctl: Mapped[float | None] = mapped_column(Float)
    atl: Mapped[float | None] = mapped_column(Float)
    tsb: Mapped[float | None] = mapped_column(Float)
    __table_args__ = (
        UniqueConstraint("athlete_id", "day", name="uq_daily_metric"),
        CheckConstraint("readiness_score is null or readiness_score between 0 and 100"),
        CheckConstraint("compliance_score is null or compliance_score between 0 and 100"),
        CheckConstraint("burnout_risk is null or burnout_risk between 0 and 100"),
    )


class SimulationScenario(Base):
    __tablename__ = "simulation_scenarios"
    id: Mapped[int] = mapped_column(primary_key=True)
    athlete_id: Mapped[int] = mapped_column(ForeignKey("athletes.id"), index=True)
    name: Mapped[str] = mapped_column(String(120))
    duration_weeks: Mapped[int] = mapped_column(Integer)
    params: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    applied: Mapped[bool] = mapped_column(Boolean, default=False)
    baseline: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=dt.datetime.utcnow)
    last_run_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    applied_at: Mapped[dt.datetime | None] = mapped_column(DateTime)
    results: Mapped[list["SimulationResult"]] = relationship(
        back_populates="scenario",
        cascade="all, delete-orphan",
        order_by="SimulationResult.week_index",
    )
    __table_args__ = (CheckConstraint("duration_weeks between 2 and 12"),)


class SimulationResult(Base):
    __tablename__ = "simulation_results"
    id: Mapped[int] = mapped_column(primary_key=True)
    scenario_id: Mapped[int] = mapped_column(ForeignKey("simulation_scenarios.id", ondelete="CASCADE"), index=True)
    athlete_id: Mapped[int] = mapped_column(ForeignKey("athletes.id"), index=True)
    week_index: Mapped[int] = mapped_column(Integer)
    simulated_ctl: Mapped[float] = mapped_column(Float)
    simulated_atl: Mapped[float] = mapped_column(Float)
    simulated_tsb: Mapped[float] = mapped_column(Float)
    simulated_readiness_avg: Mapped[float] = mapped_column(Float)
    simulated_burnout_risk: Mapped[float] = mapped_column(Float)
    weekly_tss: Mapped[float] = mapped_column(Float)
    insights: Mapped[list[str]] = mapped_column(JSON, default=list)
    warnings: Mapped[list[str]] = mapped_column(JSON, default=list)
    scenario: Mapped[SimulationScenario] = relationship(back_populates="results")
    __table_args__ = (UniqueConstraint("scenario_id", "week_index", name="uq_simulation_week"),)
