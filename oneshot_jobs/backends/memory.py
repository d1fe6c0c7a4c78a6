"""In-process recurring scheduler.

Behaves like pg_cron for the subset of schedules this library writes: an
interval of N seconds, or a five-field calendar pattern with minute
granularity. Job commands are zero-argument callables, sync or async.
"""

import asyncio
import inspect
import itertools
import logging
import re
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set

from oneshot_jobs.backends.base import RecurringScheduler
from oneshot_jobs.errors import DuplicateIdentifierError, IdentifierNotFoundError
from oneshot_jobs.models import ExecutionRecord, ExecutionStatus, JobDescriptor
from oneshot_jobs.schedules import cron_matches, parse_interval_seconds

logger = logging.getLogger(__name__)


class MemoryScheduler(RecurringScheduler):
    """
    Recurring scheduler that keeps its job table and history in memory.

    Call ``run_pending()`` to perform one poll, or ``start()`` to poll every
    tick in a background task.

    Example:
        ```python
        scheduler = MemoryScheduler(tick_seconds=1)
        await scheduler.start()
        ...
        await scheduler.stop()
        ```
    """

    def __init__(
        self,
        tick_seconds: int = 1,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            tick_seconds: Time in seconds between polls when started
            clock: Callable returning the current time (defaults to UTC now)
        """
        self.tick_seconds = tick_seconds
        self.clock = clock or datetime.utcnow
        self._descriptors: Dict[str, JobDescriptor] = {}
        self._last_fired: Dict[str, datetime] = {}
        self._history: List[ExecutionRecord] = []
        self._counter = itertools.count(1)
        self._handles = itertools.count(1)
        self._run_ids = itertools.count(1)
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    async def now(self) -> datetime:
        return self.clock()

    async def next_counter_value(self) -> int:
        return next(self._counter)

    async def create_schedule(
        self, identifier: str, schedule: str, command: Any
    ) -> JobDescriptor:
        if identifier in self._descriptors:
            raise DuplicateIdentifierError(identifier)

        descriptor = JobDescriptor(
            identifier=identifier,
            handle=next(self._handles),
            schedule=schedule,
            command=command,
            created_at=self.clock(),
        )
        self._descriptors[identifier] = descriptor
        self._last_fired.pop(identifier, None)
        return descriptor.model_copy()

    async def replace_schedule(
        self, identifier: str, schedule: str, command: Any
    ) -> JobDescriptor:
        descriptor = self._descriptors.get(identifier)
        if descriptor is None:
            raise IdentifierNotFoundError(identifier)

        descriptor.schedule = schedule
        descriptor.command = command
        return descriptor.model_copy()

    async def get_descriptor(self, identifier: str) -> Optional[JobDescriptor]:
        descriptor = self._descriptors.get(identifier)
        return descriptor.model_copy() if descriptor else None

    async def list_descriptors(
        self, name_pattern: Optional[str] = None
    ) -> List[JobDescriptor]:
        matcher = _like_to_regex(name_pattern) if name_pattern else None
        return [
            descriptor.model_copy()
            for identifier, descriptor in self._descriptors.items()
            if matcher is None or matcher.match(identifier)
        ]

    async def unschedule(self, identifier: str) -> bool:
        self._last_fired.pop(identifier, None)
        return self._descriptors.pop(identifier, None) is not None

    async def list_executions(self, identifier: str) -> List[ExecutionRecord]:
        records = [r for r in self._history if r.identifier == identifier]
        records.sort(key=lambda r: r.run_id, reverse=True)
        return [r.model_copy() for r in records]

    async def prune_executions(self, older_than: datetime) -> int:
        keep = [
            r
            for r in self._history
            if r.status == ExecutionStatus.RUNNING
            or r.end_time is None
            or r.end_time >= older_than
        ]
        pruned = len(self._history) - len(keep)
        self._history = keep
        return pruned

    def bind_self_cancel(
        self,
        identifier: str,
        body: Callable[[], Any],
        trigger: Any,
        disable_on_failure: bool = False,
    ) -> Callable[[], Any]:
        async def run_once() -> Any:
            try:
                result = body()
                if inspect.isawaitable(result):
                    result = await result
            except Exception:
                if disable_on_failure:
                    await trigger.disable(identifier)
                raise
            await trigger.disable(identifier)
            return result

        return run_once

    def executions(self) -> List[ExecutionRecord]:
        """All execution records still held, oldest first."""
        return [r.model_copy() for r in self._history]

    async def run_pending(self, wait: bool = True) -> List[ExecutionRecord]:
        """
        Perform one poll: fire every due descriptor.

        Args:
            wait: Wait for the fired runs to finish. With ``wait=False`` each
                run is left as a background task (see ``join``).

        Returns:
            The execution records started by this poll
        """
        now = self.clock()
        due = [
            descriptor
            for descriptor in list(self._descriptors.values())
            if descriptor.active and self._is_due(descriptor, now)
        ]

        started = []
        for descriptor in due:
            self._last_fired[descriptor.identifier] = now
            record = ExecutionRecord(
                identifier=descriptor.identifier,
                run_id=next(self._run_ids),
                start_time=now,
                status=ExecutionStatus.RUNNING,
                command=descriptor.command,
            )
            self._history.append(record)
            started.append((descriptor, record))

        if started:
            logger.debug(f"Firing {len(started)} jobs at {now.isoformat()}")
            tasks = [asyncio.create_task(self._execute(record)) for _, record in started]
            for task in tasks:
                self._in_flight.add(task)
                task.add_done_callback(self._in_flight.discard)
            if wait:
                await asyncio.gather(*tasks)

        return [record.model_copy() for _, record in started]

    async def join(self) -> None:
        """Wait until every run fired so far has finished."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    async def _execute(self, record: ExecutionRecord) -> None:
        try:
            result = record.command()
            if inspect.isawaitable(result):
                await result
            record.status = ExecutionStatus.SUCCEEDED
        except Exception as e:
            logger.error(f"Job {record.identifier} failed: {str(e)}", exc_info=True)
            record.status = ExecutionStatus.FAILED
            record.return_message = str(e)
        record.end_time = self.clock()

    def _is_due(self, descriptor: JobDescriptor, now: datetime) -> bool:
        last_fired = self._last_fired.get(descriptor.identifier)

        interval = parse_interval_seconds(descriptor.schedule)
        if interval is not None:
            return last_fired is None or (now - last_fired).total_seconds() >= interval

        if not cron_matches(descriptor.schedule, now):
            return False
        # calendar schedules fire at most once per minute
        return last_fired is None or _minute(last_fired) != _minute(now)

    async def _run(self) -> None:
        logger.info("Memory scheduler started")

        while self._running:
            try:
                await self.run_pending(wait=False)
                await asyncio.sleep(self.tick_seconds)
            except asyncio.CancelledError:
                logger.info("Memory scheduler cancelled")
                break
            except Exception as e:
                logger.error(f"Unexpected error in memory scheduler: {e}", exc_info=True)
                await asyncio.sleep(self.tick_seconds)

        logger.info("Memory scheduler stopped")

    async def start(self) -> None:
        """Start polling in a background task."""
        if self._running:
            logger.warning("Memory scheduler is already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background poller and wait for runs still in flight."""
        if not self._running:
            logger.warning("Memory scheduler is not running")
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        await self.join()


def _minute(moment: datetime) -> datetime:
    return moment.replace(second=0, microsecond=0)


def _like_to_regex(pattern: str) -> "re.Pattern[str]":
    parts = []
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            parts.append(re.escape(next(chars, "\\")))
        elif char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("^" + "".join(parts) + "$", re.DOTALL)
