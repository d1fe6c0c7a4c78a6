"""Configuration for one-shot jobs."""

import os
from datetime import timedelta
from typing import Optional

DEFAULT_HISTORY_RETENTION_SECONDS = 7 * 24 * 3600


class OneShotConfig:
    """Configuration object for one-shot jobs."""

    def __init__(
        self,
        db_dsn: Optional[str] = None,
        tick_seconds: int = 1,
        history_retention: Optional[timedelta] = None,
        reap_interval_seconds: int = 60,
        reap_name_pattern: Optional[str] = None,
        cron_timezone: str = "GMT",
        disable_on_failure: bool = False,
    ):
        if not 1 <= tick_seconds <= 60:
            raise ValueError(f"tick_seconds must be between 1 and 60, got {tick_seconds}")

        self.db_dsn = db_dsn
        self.tick_seconds = tick_seconds
        if history_retention is None:
            history_retention = timedelta(seconds=DEFAULT_HISTORY_RETENTION_SECONDS)
        self.history_retention = history_retention
        self.reap_interval_seconds = reap_interval_seconds
        self.reap_name_pattern = reap_name_pattern
        self.cron_timezone = cron_timezone
        self.disable_on_failure = disable_on_failure

    @classmethod
    def from_env(cls) -> "OneShotConfig":
        """Create config from environment variables."""
        db_dsn = os.getenv("ONESHOT_JOBS_DB_DSN")
        if not db_dsn:
            raise ValueError("ONESHOT_JOBS_DB_DSN environment variable is required")

        tick_seconds = _int_from_env("ONESHOT_JOBS_TICK_SECONDS", 1)
        if not 1 <= tick_seconds <= 60:
            raise ValueError("ONESHOT_JOBS_TICK_SECONDS must be between 1 and 60")

        retention_seconds = _int_from_env(
            "ONESHOT_JOBS_HISTORY_RETENTION_SECONDS", DEFAULT_HISTORY_RETENTION_SECONDS
        )
        reap_interval_seconds = _int_from_env("ONESHOT_JOBS_REAP_INTERVAL_SECONDS", 60)

        disable_on_failure = os.getenv("ONESHOT_JOBS_DISABLE_ON_FAILURE", "false").lower()
        if disable_on_failure not in ("true", "false", "1", "0", "yes", "no"):
            raise ValueError(
                f"Invalid boolean in ONESHOT_JOBS_DISABLE_ON_FAILURE: {disable_on_failure}"
            )

        return cls(
            db_dsn=db_dsn,
            tick_seconds=tick_seconds,
            history_retention=timedelta(seconds=retention_seconds),
            reap_interval_seconds=reap_interval_seconds,
            reap_name_pattern=os.getenv("ONESHOT_JOBS_REAP_NAME_PATTERN") or None,
            cron_timezone=os.getenv("ONESHOT_JOBS_CRON_TIMEZONE", "GMT"),
            disable_on_failure=disable_on_failure in ("true", "1", "yes"),
        )


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"Invalid integer in {name}: {value}") from e
