"""Tests for configuration module."""

from __future__ import annotations

import pytest

from core.config import (
    DEFAULT_THRESHOLDS,
    EngineThresholds,
    Settings,
    _ENV_PROFILES,
    get_database_url,
    get_settings,
    load_thresholds,
)


def test_settings_dataclass():
    s = Settings(database_url="postgres://localhost/test")
    assert s.database_url == "postgres://localhost/test"
    assert s.app_env == "dev"
    assert s.default_page_size == 50
    assert s.thresholds == DEFAULT_THRESHOLDS


def test_settings_frozen():
    s = Settings(database_url="x")
    with pytest.raises(AttributeError):
        s.database_url = "y"


def test_settings_is_production():
    s = Settings(database_url="x", app_env="production")
    assert s.is_production is True
    assert s.is_dev is False


def test_get_database_url_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://from-env/db")
    assert get_database_url() == "postgres://from-env/db"


def test_get_database_url_default(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert "postgresql" in get_database_url()


def test_env_profiles_exist():
    assert set(_ENV_PROFILES) == {"dev", "staging", "production"}
    assert _ENV_PROFILES["dev"]["log_level"] == "DEBUG"


def test_production_profile_tightens_burnout_warning(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    s = get_settings()
    assert s.log_level == "WARNING"
    assert s.thresholds.sim_burnout_warning == 65.0
    assert s.thresholds.ramp_spiking_pct == 30.0


def test_unknown_env_falls_back_to_dev_profile(monkeypatch):
    monkeypatch.setenv("APP_ENV", "qa")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert get_settings().log_level == "DEBUG"


def test_cors_origins_split(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,")
    assert get_settings().cors_origins == ("http://a.test", "http://b.test")


def test_threshold_env_override(monkeypatch):
    monkeypatch.setenv("ENGINE_RAMP_SPIKING_PCT", "25")
    monkeypatch.setenv("ENGINE_SIM_MAX_WEEKS", "10")
    thresholds = load_thresholds()
    assert thresholds.ramp_spiking_pct == 25.0
    assert thresholds.sim_max_weeks == 10
    assert isinstance(thresholds.sim_max_weeks, int)


def test_threshold_env_override_beats_profile(monkeypatch):
    monkeypatch.setenv("ENGINE_SIM_BURNOUT_WARNING", "80")
    assert load_thresholds({"sim_burnout_warning": 65.0}).sim_burnout_warning == 80.0


def test_threshold_env_override_must_be_numeric(monkeypatch):
    monkeypatch.setenv("ENGINE_BURNOUT_HIGH_MIN", "high")
    with pytest.raises(ValueError, match="ENGINE_BURNOUT_HIGH_MIN"):
        load_thresholds()


def test_thresholds_are_immutable():
    with pytest.raises(AttributeError):
        EngineThresholds().ramp_rising_pct = 5
