"""Simple standalone example on the in-memory scheduler."""

import asyncio
import logging

from oneshot_jobs import MemoryScheduler, OneShotConfig, OneShotService, QueueReaper

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

greeted = set()


async def say_hello():
    # idempotent: a second firing adds nothing
    greeted.add("World")
    logger.info("say hello to World")


async def main():
    """Main function to demonstrate the library."""
    config = OneShotConfig(tick_seconds=1)
    scheduler = MemoryScheduler(tick_seconds=config.tick_seconds)
    service = OneShotService(config, scheduler)
    reaper = QueueReaper(config, scheduler)

    await scheduler.start()
    try:
        identifier = await service.run_once(say_hello, prefix="HELLO")
        logger.info(f"Submitted {identifier}")

        await asyncio.sleep(3)

        audit = await service.audit(identifier)
        state = await service.get_state(identifier)
        logger.info(f"{identifier}: {audit.total_runs} run(s), state {state.value}")

        removed = await reaper.reap()
        logger.info(f"Reaped {removed} job(s)")
    finally:
        await scheduler.stop()


if __name__ == "__main__":
    asyncio.run(main())
