"""Queue reaper for completed one-shot jobs."""

import asyncio
import logging
from datetime import timedelta
from typing import Optional, Union

from oneshot_jobs.backends.base import RecurringScheduler
from oneshot_jobs.config import OneShotConfig
from oneshot_jobs.errors import SchedulerUnavailableError
from oneshot_jobs.models import ExecutionStatus, ReapResult
from oneshot_jobs.schedules import is_past_dated


class QueueReaper:
    """Deletes disabled one-shot descriptors and old execution history."""

    def __init__(
        self,
        config: OneShotConfig,
        scheduler: RecurringScheduler,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.scheduler = scheduler
        self.logger = logger or logging.getLogger(__name__)

    async def reap(
        self,
        status: Union[ExecutionStatus, str] = ExecutionStatus.SUCCEEDED,
        name_pattern: Optional[str] = None,
        force: bool = False,
    ) -> int:
        """
        Remove descriptors that were disabled and whose latest run has ``status``.

        Args:
            status: Required status of the latest execution
            name_pattern: Optional SQL LIKE pattern on the identifier
            force: Allow removing descriptors whose latest run is running or failed

        Returns:
            Number of descriptors removed
        """
        status = ExecutionStatus(status)
        if status != ExecutionStatus.SUCCEEDED and not force:
            self.logger.warning(
                f"Refusing to reap jobs with latest status {status.value} without force"
            )
            return 0

        removed = 0
        try:
            descriptors = await self.scheduler.list_descriptors(name_pattern)
            for descriptor in descriptors:
                if not is_past_dated(descriptor.schedule):
                    continue

                executions = await self.scheduler.list_executions(descriptor.identifier)
                if not executions or executions[0].status != status:
                    continue

                if await self.scheduler.unschedule(descriptor.identifier):
                    removed += 1
                    self.logger.debug(f"Reaped job {descriptor.identifier}")
        except SchedulerUnavailableError as e:
            self.logger.error(f"Error reaping jobs: {str(e)}", exc_info=True)

        if removed > 0:
            self.logger.info(f"Reaped {removed} disabled jobs")
        return removed

    async def prune_history(self, retention: Optional[timedelta] = None) -> int:
        """
        Delete finished execution records older than ``retention``.

        Returns:
            Number of records deleted
        """
        if retention is None:
            retention = self.config.history_retention
        try:
            older_than = await self.scheduler.now() - retention
            pruned = await self.scheduler.prune_executions(older_than)
        except SchedulerUnavailableError as e:
            self.logger.error(f"Error pruning execution history: {str(e)}", exc_info=True)
            return 0

        if pruned > 0:
            self.logger.info(f"Pruned {pruned} execution records older than {older_than}")
        return pruned

    async def run_maintenance(self) -> ReapResult:
        """Reap disabled jobs, then prune history."""
        removed = await self.reap(name_pattern=self.config.reap_name_pattern)
        pruned = await self.prune_history()
        return ReapResult(descriptors_removed=removed, records_pruned=pruned)


async def run_reaper_loop(
    config: OneShotConfig,
    scheduler: RecurringScheduler,
    logger: logging.Logger,
    shutdown_event: asyncio.Event = None,
) -> None:
    """
    Run the reaper periodically until ``shutdown_event`` is set.

    Args:
        config: One-shot jobs configuration
        scheduler: Recurring scheduler to clean up
        logger: Logger instance
        shutdown_event: Optional event to signal shutdown
    """
    reaper = QueueReaper(config, scheduler, logger)

    logger.info("Starting reaper loop")

    while True:
        # Check for shutdown signal
        if shutdown_event and shutdown_event.is_set():
            logger.info("Shutdown signal received, exiting reaper loop")
            break

        try:
            await reaper.run_maintenance()
        except Exception as e:
            logger.error(f"Error in reaper loop: {str(e)}", exc_info=True)

        await asyncio.sleep(config.reap_interval_seconds)
