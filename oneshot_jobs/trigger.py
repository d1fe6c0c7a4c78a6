"""Self-cancellation for one-shot jobs.

A one-shot job is registered with a one-tick interval and would fire on every
tick forever. Its body therefore ends by calling ``disable``, which rewrites
the job's own schedule to a calendar minute that has already passed. The
scheduler only fires a schedule when its next fire time comes round, so the
rewritten job goes quiet.

Between the first fire and the disable call the scheduler may fire the job
again (at most once per tick of body runtime). Job bodies must be idempotent;
``OneShotService.audit`` reports when a second run happened.
"""

import logging
from typing import Optional

from oneshot_jobs.backends.base import RecurringScheduler
from oneshot_jobs.errors import IdentifierNotFoundError, SchedulerUnavailableError
from oneshot_jobs.models import OneShotState
from oneshot_jobs.schedules import past_dated_schedule


class SelfCancellationTrigger:
    """Disables a one-shot job from inside its own body."""

    def __init__(
        self,
        scheduler: RecurringScheduler,
        logger: Optional[logging.Logger] = None,
    ):
        self.scheduler = scheduler
        self.logger = logger or logging.getLogger(__name__)

    async def disable(
        self, identifier: str, raise_errors: bool = False
    ) -> Optional[OneShotState]:
        """
        Rewrite the schedule of ``identifier`` to a minute in the past.

        Args:
            identifier: Job identifier to disable
            raise_errors: Re-raise lookup and store errors instead of logging them

        Returns:
            DISABLED if the rewritten schedule reads back, DISABLING if it
            does not, None if the disable failed and the error was tolerated
        """
        self.logger.info(f"Job {identifier} is {OneShotState.DISABLING.value}")
        try:
            schedule = await self._reschedule_in_past(identifier)
            descriptor = await self.scheduler.get_descriptor(identifier)
        except (IdentifierNotFoundError, SchedulerUnavailableError) as e:
            if raise_errors:
                raise
            self.logger.warning(f"Failed to disable job {identifier}: {str(e)}")
            return None

        if descriptor is None or descriptor.schedule != schedule:
            self.logger.warning(
                f"Job {identifier} schedule did not read back as {schedule!r}, "
                f"it may fire again"
            )
            return OneShotState.DISABLING

        self.logger.info(f"Job {identifier} disabled with schedule {schedule!r}")
        return OneShotState.DISABLED

    async def _reschedule_in_past(self, identifier: str) -> str:
        executions = await self.scheduler.list_executions(identifier)
        if executions and executions[0].command is not None:
            command = executions[0].command
        else:
            descriptor = await self.scheduler.get_descriptor(identifier)
            if descriptor is None:
                raise IdentifierNotFoundError(identifier)
            command = descriptor.command

        schedule = past_dated_schedule(await self.scheduler.now())
        await self.scheduler.replace_schedule(identifier, schedule, command)
        return schedule
