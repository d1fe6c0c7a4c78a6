"""``oneshot-reaper`` console entrypoint.

Removes finished one-shot jobs from pg_cron and prunes their run history
every ``ONESHOT_JOBS_REAP_INTERVAL_SECONDS`` until SIGINT or SIGTERM.
"""

import asyncio
import logging
import os
import signal
import sys
from typing import Optional

import asyncpg

from oneshot_jobs.backends.pgcron import PgCronScheduler
from oneshot_jobs.config import OneShotConfig
from oneshot_jobs.reaper import run_reaper_loop

logger = logging.getLogger("oneshot_jobs.reaper")


def configure_logging(level: Optional[str] = None) -> None:
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def create_db_pool(config: OneShotConfig) -> asyncpg.Pool:
    """Open a small pool; the reaper issues one statement at a time."""
    return await asyncpg.create_pool(config.db_dsn, min_size=1, max_size=4)


async def serve(config: OneShotConfig, shutdown_event: asyncio.Event) -> None:
    """Run the reaper loop against pg_cron until ``shutdown_event`` is set."""
    db_pool = await create_db_pool(config)
    try:
        scheduler = PgCronScheduler(db_pool, config)
        await scheduler.initialize()
        logger.info(
            f"Reaping one-shot jobs every {config.reap_interval_seconds}s "
            f"(pattern={config.reap_name_pattern!r})"
        )
        await run_reaper_loop(config, scheduler, logger, shutdown_event)
    finally:
        await db_pool.close()


async def _serve_until_signalled(config: OneShotConfig) -> None:
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown_event.set)
    await serve(config, shutdown_event)


def main() -> None:
    configure_logging()

    try:
        config = OneShotConfig.from_env()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        asyncio.run(_serve_until_signalled(config))
    except Exception as e:
        logger.error(f"Reaper stopped: {e}", exc_info=True)
        sys.exit(1)
    logger.info("Reaper shut down")
