"""pg_cron backend for one-shot jobs."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

import asyncpg

from oneshot_jobs.backends.base import RecurringScheduler
from oneshot_jobs.config import OneShotConfig
from oneshot_jobs.ddl import NAME_SEQUENCE, ONESHOT_DDL
from oneshot_jobs.errors import (
    DuplicateIdentifierError,
    IdentifierNotFoundError,
    SchedulerUnavailableError,
)
from oneshot_jobs.models import ExecutionRecord, ExecutionStatus, JobDescriptor

_DESCRIPTOR_COLUMNS = "jobid, jobname, schedule, command, active"


class PgCronScheduler(RecurringScheduler):
    """
    Recurring scheduler backed by the pg_cron extension.

    Commands are SQL text. Descriptors live in ``cron.job`` keyed by
    ``jobname``; history lives in ``cron.job_run_details``.

    Example:
        ```python
        pool = await asyncpg.create_pool(config.db_dsn)
        scheduler = PgCronScheduler(pool, config)
        await scheduler.initialize()
        ```
    """

    def __init__(self, db_pool: asyncpg.Pool, config: Optional[OneShotConfig] = None):
        self.db_pool = db_pool
        self.config = config or OneShotConfig()

    async def initialize(self) -> None:
        """Create the name sequence and the ``oneshot_disable`` function."""
        async with self._connection() as conn:
            await conn.execute(ONESHOT_DDL)

    async def now(self) -> datetime:
        async with self._connection() as conn:
            return await conn.fetchval(
                "SELECT now() AT TIME ZONE $1", self.config.cron_timezone
            )

    async def next_counter_value(self) -> int:
        async with self._connection() as conn:
            return await conn.fetchval(f"SELECT nextval('{NAME_SEQUENCE}')")

    async def create_schedule(self, identifier: str, schedule: str, command: str) -> JobDescriptor:
        async with self._connection() as conn:
            async with conn.transaction():
                await self._lock_identifier(conn, identifier)
                exists = await conn.fetchval(
                    "SELECT 1 FROM cron.job WHERE jobname = $1", identifier
                )
                if exists:
                    raise DuplicateIdentifierError(identifier)

                await conn.fetchval(
                    "SELECT cron.schedule($1, $2, $3)", identifier, schedule, command
                )
                row = await self._fetch_descriptor(conn, identifier)

        return self._row_to_descriptor(row)

    async def replace_schedule(self, identifier: str, schedule: str, command: str) -> JobDescriptor:
        async with self._connection() as conn:
            async with conn.transaction():
                await self._lock_identifier(conn, identifier)
                exists = await conn.fetchval(
                    "SELECT 1 FROM cron.job WHERE jobname = $1", identifier
                )
                if not exists:
                    raise IdentifierNotFoundError(identifier)

                await conn.fetchval(
                    "SELECT cron.schedule($1, $2, $3)", identifier, schedule, command
                )
                row = await self._fetch_descriptor(conn, identifier)

        return self._row_to_descriptor(row)

    async def get_descriptor(self, identifier: str) -> Optional[JobDescriptor]:
        async with self._connection() as conn:
            row = await self._fetch_descriptor(conn, identifier)

        return self._row_to_descriptor(row) if row else None

    async def list_descriptors(self, name_pattern: Optional[str] = None) -> List[JobDescriptor]:
        query = f"SELECT {_DESCRIPTOR_COLUMNS} FROM cron.job"
        params = []
        if name_pattern:
            query += " WHERE jobname LIKE $1"
            params.append(name_pattern)
        query += " ORDER BY jobid"

        async with self._connection() as conn:
            rows = await conn.fetch(query, *params)

        return [self._row_to_descriptor(row) for row in rows]

    async def unschedule(self, identifier: str) -> bool:
        async with self._connection() as conn:
            async with conn.transaction():
                await self._lock_identifier(conn, identifier)
                exists = await conn.fetchval(
                    "SELECT 1 FROM cron.job WHERE jobname = $1", identifier
                )
                if not exists:
                    return False
                return await conn.fetchval("SELECT cron.unschedule($1)", identifier)

    async def list_executions(self, identifier: str) -> List[ExecutionRecord]:
        async with self._connection() as conn:
            rows = await conn.fetch(
                """
                SELECT j.jobname, d.runid, d.command, d.status, d.return_message,
                       d.start_time, d.end_time
                FROM cron.job_run_details d
                JOIN cron.job j ON j.jobid = d.jobid
                WHERE j.jobname = $1
                ORDER BY d.runid DESC
                """,
                identifier,
            )

        return [self._row_to_execution(row) for row in rows]

    async def prune_executions(self, older_than: datetime) -> int:
        async with self._connection() as conn:
            result = await conn.execute(
                """
                DELETE FROM cron.job_run_details
                WHERE end_time < $1
                  AND status IN ('succeeded', 'failed')
                """,
                older_than,
            )

        # Extract count from result string like "DELETE 5"
        return int(result.split()[-1]) if result else 0

    def bind_self_cancel(
        self,
        identifier: str,
        body: str,
        trigger=None,
        disable_on_failure: bool = False,
    ) -> str:
        """Append a call to ``oneshot_disable`` to the SQL body.

        pg_cron runs a multi-statement command as one transaction, so a failing
        body never reaches the disable call; ``disable_on_failure`` has no
        effect here.
        """
        statement = body.strip().rstrip(";").strip()
        return f"{statement}; SELECT oneshot_disable({_quote_literal(identifier)});"

    @asynccontextmanager
    async def _connection(self):
        try:
            async with self.db_pool.acquire() as conn:
                yield conn
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            raise SchedulerUnavailableError(f"pg_cron store unavailable: {e}") from e

    async def _lock_identifier(self, conn: asyncpg.Connection, identifier: str) -> None:
        await conn.execute("SELECT pg_advisory_xact_lock(hashtext($1))", identifier)

    async def _fetch_descriptor(
        self, conn: asyncpg.Connection, identifier: str
    ) -> Optional[asyncpg.Record]:
        return await conn.fetchrow(
            f"SELECT {_DESCRIPTOR_COLUMNS} FROM cron.job WHERE jobname = $1",
            identifier,
        )

    def _row_to_descriptor(self, row: asyncpg.Record) -> JobDescriptor:
        """Convert a cron.job row to a JobDescriptor."""
        return JobDescriptor(
            identifier=row["jobname"],
            handle=row["jobid"],
            schedule=row["schedule"],
            command=row["command"],
            active=row["active"],
        )

    def _row_to_execution(self, row: asyncpg.Record) -> ExecutionRecord:
        """Convert a cron.job_run_details row to an ExecutionRecord."""
        return ExecutionRecord(
            identifier=row["jobname"],
            run_id=row["runid"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            status=ExecutionStatus.from_scheduler(row["status"]),
            command=row["command"],
            return_message=row["return_message"],
        )


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"
