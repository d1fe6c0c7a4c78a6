"""Run-once jobs on top of a recurring scheduler such as pg_cron."""

from oneshot_jobs.backends import MemoryScheduler, PgCronScheduler, RecurringScheduler
from oneshot_jobs.config import OneShotConfig
from oneshot_jobs.ddl import ONESHOT_DDL
from oneshot_jobs.errors import (
    DuplicateIdentifierError,
    IdentifierNotFoundError,
    OneShotJobsError,
    SchedulerUnavailableError,
)
from oneshot_jobs.models import (
    ExecutionRecord,
    ExecutionStatus,
    JobDescriptor,
    OneShotAudit,
    OneShotState,
    ReapResult,
)
from oneshot_jobs.naming import NameGenerator
from oneshot_jobs.reaper import QueueReaper, run_reaper_loop
from oneshot_jobs.service import OneShotService
from oneshot_jobs.trigger import SelfCancellationTrigger

__version__ = "0.1.0"

__all__ = [
    "MemoryScheduler",
    "PgCronScheduler",
    "RecurringScheduler",
    "OneShotConfig",
    "ONESHOT_DDL",
    "DuplicateIdentifierError",
    "IdentifierNotFoundError",
    "OneShotJobsError",
    "SchedulerUnavailableError",
    "ExecutionRecord",
    "ExecutionStatus",
    "JobDescriptor",
    "OneShotAudit",
    "OneShotState",
    "ReapResult",
    "NameGenerator",
    "QueueReaper",
    "run_reaper_loop",
    "OneShotService",
    "SelfCancellationTrigger",
]
