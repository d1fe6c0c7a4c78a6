"""Unit tests for DDL module."""

from oneshot_jobs.ddl import DISABLE_FUNCTION_DDL, NAME_SEQUENCE, ONESHOT_DDL


def test_oneshot_ddl_contains_both_objects():
    """Test that the combined DDL creates the sequence and the function."""
    assert f"CREATE SEQUENCE IF NOT EXISTS {NAME_SEQUENCE}" in ONESHOT_DDL
    assert "CREATE OR REPLACE FUNCTION oneshot_disable" in ONESHOT_DDL


def test_disable_function_reads_history_and_reschedules():
    """Test that the disable function mirrors the Python trigger."""
    assert "cron.job_run_details" in DISABLE_FUNCTION_DDL
    assert "cron.schedule(" in DISABLE_FUNCTION_DDL
    assert "INTERVAL '1 minute'" in DISABLE_FUNCTION_DDL
    assert "'%s %s %s %s *'" in DISABLE_FUNCTION_DDL


def test_disable_function_tolerates_errors():
    """Test that failures inside the function only raise warnings."""
    assert "EXCEPTION WHEN others THEN" in DISABLE_FUNCTION_DDL
    assert "RAISE WARNING" in DISABLE_FUNCTION_DDL


def test_disable_function_reads_newest_run_by_runid():
    """Test that the latest command is picked by run id, not start time."""
    assert "ORDER BY d.runid DESC" in DISABLE_FUNCTION_DDL
    assert "start_time" not in DISABLE_FUNCTION_DDL
