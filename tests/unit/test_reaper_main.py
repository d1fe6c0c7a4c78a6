"""Unit tests for the reaper entrypoint."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from oneshot_jobs import reaper_main
from oneshot_jobs.config import OneShotConfig
from oneshot_jobs.ddl import ONESHOT_DDL
from oneshot_jobs.errors import SchedulerUnavailableError


def test_main_exits_without_config(monkeypatch):
    """Test that a missing DSN stops the process with status 1."""
    monkeypatch.delenv("ONESHOT_JOBS_DB_DSN", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        reaper_main.main()

    assert exc_info.value.code == 1


@pytest.mark.asyncio
async def test_create_db_pool_uses_dsn(monkeypatch):
    """Test that the pool is created from the configured DSN."""
    create_pool = AsyncMock(return_value="pool")
    monkeypatch.setattr(reaper_main.asyncpg, "create_pool", create_pool)

    pool = await reaper_main.create_db_pool(OneShotConfig(db_dsn="postgresql://x/y"))

    assert pool == "pool"
    assert create_pool.call_args[0][0] == "postgresql://x/y"


@pytest.mark.asyncio
async def test_serve_initializes_and_closes_pool(monkeypatch):
    """Test that serve applies the DDL, stops on shutdown and closes the pool."""
    conn = AsyncMock()
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    pool.acquire.return_value.__aexit__.return_value = False
    pool.close = AsyncMock()
    monkeypatch.setattr(reaper_main, "create_db_pool", AsyncMock(return_value=pool))

    shutdown_event = asyncio.Event()
    shutdown_event.set()

    await reaper_main.serve(OneShotConfig(db_dsn="postgresql://x/y"), shutdown_event)

    conn.execute.assert_awaited_once_with(ONESHOT_DDL)
    pool.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_serve_closes_pool_when_initialize_fails(monkeypatch):
    """Test that the pool is closed even if the DDL cannot be applied."""
    conn = AsyncMock()
    conn.execute.side_effect = OSError("connection reset")
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    pool.acquire.return_value.__aexit__.return_value = False
    pool.close = AsyncMock()
    monkeypatch.setattr(reaper_main, "create_db_pool", AsyncMock(return_value=pool))

    with pytest.raises(SchedulerUnavailableError):
        await reaper_main.serve(OneShotConfig(db_dsn="postgresql://x/y"), asyncio.Event())

    pool.close.assert_awaited_once()
