"""Integration tests against a PostgreSQL server with pg_cron.

Set ONESHOT_JOBS_TEST_DSN to a database where ``CREATE EXTENSION pg_cron``
has been run and ``cron.database_name`` points at it.
"""

import asyncio
import os

import asyncpg
import pytest
import pytest_asyncio

from oneshot_jobs.backends.pgcron import PgCronScheduler
from oneshot_jobs.config import OneShotConfig
from oneshot_jobs.models import ExecutionStatus
from oneshot_jobs.reaper import QueueReaper
from oneshot_jobs.schedules import is_past_dated
from oneshot_jobs.service import OneShotService

TEST_DSN = os.getenv("ONESHOT_JOBS_TEST_DSN")

pytestmark = pytest.mark.skipif(
    not TEST_DSN, reason="ONESHOT_JOBS_TEST_DSN not set; pg_cron database required"
)


@pytest_asyncio.fixture
async def db_pool():
    """Create a database connection pool with the demo table."""
    pool = await asyncpg.create_pool(TEST_DSN, min_size=1, max_size=4)

    async with pool.acquire() as conn:
        await conn.execute(
            "CREATE TABLE IF NOT EXISTS oneshot_demo (name TEXT NOT NULL)"
        )
        await conn.execute("TRUNCATE oneshot_demo")

    yield pool

    await pool.close()


@pytest.fixture
def config():
    """Create a test config."""
    return OneShotConfig(db_dsn=TEST_DSN, tick_seconds=1)


@pytest_asyncio.fixture
async def scheduler(db_pool, config):
    """Create an initialized pg_cron scheduler."""
    scheduler = PgCronScheduler(db_pool, config)
    await scheduler.initialize()
    return scheduler


async def _wait_for_run(scheduler, identifier, timeout=15):
    for _ in range(timeout * 2):
        records = await scheduler.list_executions(identifier)
        if records and records[0].status != ExecutionStatus.RUNNING:
            return records
        await asyncio.sleep(0.5)
    pytest.fail(f"Job {identifier} did not finish within {timeout}s")


@pytest.mark.asyncio
async def test_run_once_inserts_once_and_reaps(scheduler, config, db_pool):
    """Test the J1 flow end to end on pg_cron."""
    service = OneShotService(config, scheduler)
    identifier = await service.run_once(
        "INSERT INTO oneshot_demo (name) VALUES ('J1')", prefix="J1"
    )

    records = await _wait_for_run(scheduler, identifier)
    assert records[0].status == ExecutionStatus.SUCCEEDED

    descriptor = await scheduler.get_descriptor(identifier)
    assert is_past_dated(descriptor.schedule)

    await asyncio.sleep(3)
    async with db_pool.acquire() as conn:
        count = await conn.fetchval("SELECT count(*) FROM oneshot_demo WHERE name = 'J1'")
    assert count == 1

    reaper = QueueReaper(config, scheduler)
    assert await reaper.reap(name_pattern="J1$_EXECUTE_ONCE%") >= 1
    assert await scheduler.get_descriptor(identifier) is None
