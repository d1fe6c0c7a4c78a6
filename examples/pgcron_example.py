"""Example: run one INSERT exactly once through pg_cron."""

import asyncio
import logging

import asyncpg

from oneshot_jobs import OneShotConfig, OneShotService, PgCronScheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("pgcron_example")


async def main():
    """Submit a one-shot insert and report how often it ran."""
    config = OneShotConfig.from_env()
    db_pool = await asyncpg.create_pool(config.db_dsn, min_size=1, max_size=4)

    try:
        async with db_pool.acquire() as conn:
            await conn.execute("CREATE TABLE IF NOT EXISTS demo (name TEXT PRIMARY KEY)")

        scheduler = PgCronScheduler(db_pool, config)
        await scheduler.initialize()
        service = OneShotService(config, scheduler, logger)

        # ON CONFLICT keeps the body idempotent across a second firing
        identifier = await service.run_once(
            "INSERT INTO demo (name) VALUES ('J1') ON CONFLICT DO NOTHING",
            prefix="J1",
        )

        await asyncio.sleep(5)

        audit = await service.audit(identifier)
        logger.info(f"Audit for {identifier}: {audit.to_dict()}")
    finally:
        await db_pool.close()


if __name__ == "__main__":
    asyncio.run(main())
