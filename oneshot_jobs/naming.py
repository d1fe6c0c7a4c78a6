"""Job identifier generation."""

from typing import Optional

from oneshot_jobs.backends.base import RecurringScheduler

DEFAULT_PREFIX = "CRON_JOB$_"
EXECUTE_ONCE_MARKER = "$_EXECUTE_ONCE"


class NameGenerator:
    """Produces unique job identifiers from an atomically reserved counter.

    Each call reserves its own counter value, so names stay unique even when
    the submission that uses them happens later or never.
    """

    def __init__(self, scheduler: RecurringScheduler):
        self.scheduler = scheduler

    async def generate(self, prefix: Optional[str] = None) -> str:
        """
        Generate a job identifier.

        Args:
            prefix: Optional caller-supplied prefix

        Returns:
            ``CRON_JOB$_<n>`` without a prefix, ``<prefix>$_EXECUTE_ONCE<n>``
            with one

        Raises:
            SchedulerUnavailableError: If the counter cannot be read
        """
        suffix = await self.scheduler.next_counter_value()
        if prefix is None:
            return f"{DEFAULT_PREFIX}{suffix}"
        return f"{prefix}{EXECUTE_ONCE_MARKER}{suffix}"
