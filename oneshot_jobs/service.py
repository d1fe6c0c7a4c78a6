"""High-level service layer for one-shot jobs."""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Optional

from oneshot_jobs.backends.base import RecurringScheduler
from oneshot_jobs.config import OneShotConfig
from oneshot_jobs.errors import IdentifierNotFoundError
from oneshot_jobs.models import ExecutionStatus, JobDescriptor, OneShotAudit, OneShotState
from oneshot_jobs.naming import NameGenerator
from oneshot_jobs.schedules import interval_schedule, is_past_dated
from oneshot_jobs.trigger import SelfCancellationTrigger


class OneShotService:
    """High-level API for running jobs exactly once on a recurring scheduler."""

    def __init__(
        self,
        config: OneShotConfig,
        scheduler: RecurringScheduler,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.scheduler = scheduler
        self.logger = logger or logging.getLogger(__name__)
        self.names = NameGenerator(scheduler)
        self.trigger = SelfCancellationTrigger(scheduler, self.logger)

    async def generate_name(self, prefix: Optional[str] = None) -> str:
        """Generate a unique job identifier."""
        return await self.names.generate(prefix)

    async def submit_immediate(self, identifier: str, body: Any) -> JobDescriptor:
        """
        Submit a job to run once, as soon as possible.

        The job is registered with the scheduler's shortest tick and disables
        itself after ``body`` completes. ``body`` must be idempotent: the
        scheduler may fire it again before the disable lands.

        Args:
            identifier: Job identifier, normally from ``generate_name``
            body: The work to run; SQL text for pg_cron, a zero-argument
                callable for the in-memory scheduler

        Returns:
            JobDescriptor: The created descriptor

        Raises:
            DuplicateIdentifierError: If ``identifier`` is already scheduled
            SchedulerUnavailableError: If the scheduler cannot accept the job
        """
        schedule = interval_schedule(self.config.tick_seconds)
        command = self.scheduler.bind_self_cancel(
            identifier,
            body,
            self.trigger,
            disable_on_failure=self.config.disable_on_failure,
        )

        descriptor = await self.scheduler.create_schedule(identifier, schedule, command)

        self.logger.info(
            f"Submitted one-shot job {identifier} (handle={descriptor.handle}, "
            f"schedule={schedule!r}) at {datetime.utcnow().isoformat()}"
        )
        return descriptor

    async def run_once(self, body: Any, prefix: Optional[str] = None) -> str:
        """Generate an identifier, submit ``body`` under it and return it."""
        identifier = await self.generate_name(prefix)
        await self.submit_immediate(identifier, body)
        return identifier

    async def disable(self, identifier: str) -> Optional[OneShotState]:
        """Disable a one-shot job from outside its body."""
        return await self.trigger.disable(identifier)

    async def get_state(self, identifier: str) -> OneShotState:
        """
        Derive the lifecycle state of a one-shot job.

        Raises:
            IdentifierNotFoundError: If the scheduler knows nothing about it
        """
        descriptor = await self.scheduler.get_descriptor(identifier)
        executions = await self.scheduler.list_executions(identifier)

        if descriptor is None:
            if executions:
                return OneShotState.REAPED
            raise IdentifierNotFoundError(identifier)

        # a racing second run still counts as running after the disable
        if executions and executions[0].status == ExecutionStatus.RUNNING:
            return OneShotState.RUNNING
        if is_past_dated(descriptor.schedule):
            return OneShotState.DISABLED
        if not executions:
            return OneShotState.PENDING
        # finished at least once but the schedule was never rewritten
        return OneShotState.DISABLING

    async def audit(self, identifier: str) -> OneShotAudit:
        """Count the runs of ``identifier`` and flag a second firing."""
        executions = await self.scheduler.list_executions(identifier)
        counts = Counter(record.status.value for record in executions)

        report = OneShotAudit(
            identifier=identifier,
            total_runs=len(executions),
            runs_by_status=dict(counts),
            race_detected=len(executions) > 1,
        )
        if report.race_detected:
            self.logger.warning(
                f"Job {identifier} ran {report.total_runs} times; "
                f"its body must tolerate repeated execution"
            )
        return report
