"""Unit tests for configuration module."""

from datetime import timedelta

import pytest

from oneshot_jobs.config import OneShotConfig


def test_config_defaults():
    """Test constructor defaults."""
    config = OneShotConfig()

    assert config.db_dsn is None
    assert config.tick_seconds == 1
    assert config.history_retention == timedelta(days=7)
    assert config.reap_interval_seconds == 60
    assert config.reap_name_pattern is None
    assert config.cron_timezone == "GMT"
    assert config.disable_on_failure is False


def test_config_rejects_unsupported_tick():
    """Test that ticks outside 1-60 seconds are rejected."""
    with pytest.raises(ValueError, match="tick_seconds"):
        OneShotConfig(tick_seconds=0)
    with pytest.raises(ValueError, match="tick_seconds"):
        OneShotConfig(tick_seconds=61)


def test_config_from_env_minimal(monkeypatch):
    """Test creating config from minimal environment variables."""
    monkeypatch.setenv("ONESHOT_JOBS_DB_DSN", "postgresql://localhost/test")

    config = OneShotConfig.from_env()

    assert config.db_dsn == "postgresql://localhost/test"
    assert config.tick_seconds == 1
    assert config.history_retention == timedelta(days=7)


def test_config_from_env_with_overrides(monkeypatch):
    """Test creating config with all environment variables."""
    monkeypatch.setenv("ONESHOT_JOBS_DB_DSN", "postgresql://localhost/test")
    monkeypatch.setenv("ONESHOT_JOBS_TICK_SECONDS", "60")
    monkeypatch.setenv("ONESHOT_JOBS_HISTORY_RETENTION_SECONDS", "3600")
    monkeypatch.setenv("ONESHOT_JOBS_REAP_INTERVAL_SECONDS", "300")
    monkeypatch.setenv("ONESHOT_JOBS_REAP_NAME_PATTERN", "J1%")
    monkeypatch.setenv("ONESHOT_JOBS_CRON_TIMEZONE", "UTC")
    monkeypatch.setenv("ONESHOT_JOBS_DISABLE_ON_FAILURE", "true")

    config = OneShotConfig.from_env()

    assert config.tick_seconds == 60
    assert config.history_retention == timedelta(hours=1)
    assert config.reap_interval_seconds == 300
    assert config.reap_name_pattern == "J1%"
    assert config.cron_timezone == "UTC"
    assert config.disable_on_failure is True


def test_config_from_env_missing_dsn(monkeypatch):
    """Test that a missing DSN raises ValueError."""
    monkeypatch.delenv("ONESHOT_JOBS_DB_DSN", raising=False)
    with pytest.raises(ValueError, match="ONESHOT_JOBS_DB_DSN"):
        OneShotConfig.from_env()


def test_config_from_env_invalid_values(monkeypatch):
    """Test that malformed values name the offending variable."""
    monkeypatch.setenv("ONESHOT_JOBS_DB_DSN", "postgresql://localhost/test")

    monkeypatch.setenv("ONESHOT_JOBS_TICK_SECONDS", "fast")
    with pytest.raises(ValueError, match="ONESHOT_JOBS_TICK_SECONDS"):
        OneShotConfig.from_env()

    monkeypatch.setenv("ONESHOT_JOBS_TICK_SECONDS", "90")
    with pytest.raises(ValueError, match="ONESHOT_JOBS_TICK_SECONDS"):
        OneShotConfig.from_env()

    monkeypatch.setenv("ONESHOT_JOBS_TICK_SECONDS", "1")
    monkeypatch.setenv("ONESHOT_JOBS_DISABLE_ON_FAILURE", "maybe")
    with pytest.raises(ValueError, match="ONESHOT_JOBS_DISABLE_ON_FAILURE"):
        OneShotConfig.from_env()
