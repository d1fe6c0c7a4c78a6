"""Interface to the recurring scheduler that one-shot jobs run on."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional

from oneshot_jobs.models import ExecutionRecord, JobDescriptor


class RecurringScheduler(ABC):
    """
    A scheduler that only knows recurring schedules.

    Implementations own the job table, the execution history and the counter
    used for identifiers. Every mutating method must be a single atomic
    operation against the underlying store.
    """

    @abstractmethod
    async def now(self) -> datetime:
        """Current time on the scheduler's own clock."""

    @abstractmethod
    async def next_counter_value(self) -> int:
        """Atomically reserve and return the next counter value."""

    @abstractmethod
    async def create_schedule(
        self, identifier: str, schedule: str, command: Any
    ) -> JobDescriptor:
        """
        Register a new descriptor.

        Raises:
            DuplicateIdentifierError: If ``identifier`` is already scheduled
            SchedulerUnavailableError: If the store cannot accept it
        """

    @abstractmethod
    async def replace_schedule(
        self, identifier: str, schedule: str, command: Any
    ) -> JobDescriptor:
        """
        Rewrite the schedule and command of an existing descriptor.

        Raises:
            IdentifierNotFoundError: If no descriptor exists
            SchedulerUnavailableError: If the store cannot be reached
        """

    @abstractmethod
    async def get_descriptor(self, identifier: str) -> Optional[JobDescriptor]:
        """Return the descriptor for ``identifier`` or None."""

    @abstractmethod
    async def list_descriptors(
        self, name_pattern: Optional[str] = None
    ) -> List[JobDescriptor]:
        """List descriptors, optionally filtered by a SQL LIKE pattern."""

    @abstractmethod
    async def unschedule(self, identifier: str) -> bool:
        """Delete a descriptor. Returns False if it did not exist."""

    @abstractmethod
    async def list_executions(self, identifier: str) -> List[ExecutionRecord]:
        """Execution history for ``identifier``, newest first."""

    @abstractmethod
    async def prune_executions(self, older_than: datetime) -> int:
        """Delete finished execution records that ended before ``older_than``."""

    @abstractmethod
    def bind_self_cancel(
        self,
        identifier: str,
        body: Any,
        trigger: Any,
        disable_on_failure: bool = False,
    ) -> Any:
        """
        Build the command the scheduler will run for a one-shot job.

        The returned command runs ``body`` and then disables ``identifier``
        as its last action.
        """
