"""Application configuration with environment-specific profiles.

Supports dev, staging, and production environments via APP_ENV.
All values can be overridden by environment variables. Engine cut points
live in ``EngineThresholds`` and are injected into every scoring function,
so callers and tests can exercise boundary values without touching globals.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace


@dataclass(frozen=True)
class EngineThresholds:
    """Tunable cut points for the load, readiness, fatigue, compliance, burnout and simulation models."""

    # Load aggregation / ramp bands (percent week-over-week)
    ramp_rising_pct: float = 10.0
    ramp_spiking_pct: float = 30.0
    ramp_display_clamp_pct: float = 200.0
    no_baseline_medium_load: float = 200.0
    no_baseline_high_load: float = 400.0
    tss_per_minute_estimate: float = 0.8

    # Fitness / fatigue model
    ctl_time_constant_days: int = 42
    atl_time_constant_days: int = 7
    fitness_lookback_days: int = 42

    # Readiness
    readiness_optimal_min: float = 70.0
    readiness_caution_min: float = 45.0
    readiness_max_factors: int = 5

    # Fatigue
    fatigue_min_score: float = 40.0
    fatigue_high_severity: float = 60.0
    hard_session_tss: float = 80.0
    moderate_session_tss: float = 50.0

    # Compliance
    compliance_window_days: int = 14
    compliance_strong_min: float = 70.0
    compliance_slipping_min: float = 45.0
    key_session_tss: float = 60.0

    # Burnout
    burnout_moderate_min: float = 30.0
    burnout_high_min: float = 50.0
    burnout_max_drivers: int = 4
    persistent_pattern_days: int = 3
    burnout_low_readiness_below: float = 40.0

    # Guardrails
    max_hard_sessions_per_week: int = 3

    # Simulation
    sim_min_weeks: int = 2
    sim_max_weeks: int = 12
    sim_max_ramp_pct: float = 10.0
    sim_danger_ramp_pct: float = 15.0
    sim_max_ctl_gain_per_week: float = 5.0
    sim_min_safe_tsb: float = -30.0
    sim_burnout_warning: float = 70.0
    sim_safe_peak_below: float = 50.0
    sim_moderate_peak_below: float = 70.0
    sim_moderate_max_warnings: int = 2
    baseline_lookback_days: int = 28

    # Default baseline when no history exists
    default_ctl: float = 50.0
    default_atl: float = 40.0
    default_tsb: float = 10.0
    default_readiness: float = 65.0
    default_burnout: float = 20.0
    default_weekly_tss: float = 250.0


DEFAULT_THRESHOLDS = EngineThresholds()


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    database_url: str
    app_env: str = "dev"
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)
    request_id_header_name: str = "X-Request-ID"
    thresholds: EngineThresholds = field(default_factory=EngineThresholds)

    # Pagination
    default_page_size: int = 50
    max_page_size: int = 200

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
    },
    "staging": {
        "log_level": "INFO",
    },
    "production": {
        "log_level": "WARNING",
        "thresholds": {"sim_burnout_warning": 65.0},
    },
}


def get_database_url() -> str:
    """Resolve database URL from the DATABASE_URL env var, falling back to a local default."""
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return "postgresql+psycopg2://localhost:5432/trainload"


def load_thresholds(profile_overrides: dict | None = None) -> EngineThresholds:
    """Build EngineThresholds from profile overrides, then ENGINE_<FIELD> env vars."""
    thresholds = replace(DEFAULT_THRESHOLDS, **(profile_overrides or {}))
    overrides: dict[str, float | int] = {}
    for f in fields(EngineThresholds):
        raw = os.getenv(f"ENGINE_{f.name.upper()}")
        if raw is None or raw.strip() == "":
            continue
        current = getattr(thresholds, f.name)
        try:
            overrides[f.name] = int(raw) if isinstance(current, int) else float(raw)
        except ValueError as exc:
            raise ValueError(f"ENGINE_{f.name.upper()} must be numeric, got {raw!r}") from exc
    return replace(thresholds, **overrides) if overrides else thresholds


def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])
    origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    return Settings(
        database_url=get_database_url(),
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        request_id_header_name=os.getenv("REQUEST_ID_HEADER", "X-Request-ID"),
        thresholds=load_thresholds(profile.get("thresholds")),
        default_page_size=int(os.getenv("DEFAULT_PAGE_SIZE", "50")),
        max_page_size=int(os.getenv("MAX_PAGE_SIZE", "200")),
    )
