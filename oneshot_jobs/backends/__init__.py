"""Recurring scheduler backends."""

from oneshot_jobs.backends.base import RecurringScheduler
from oneshot_jobs.backends.memory import MemoryScheduler
from oneshot_jobs.backends.pgcron import PgCronScheduler

__all__ = [
    "RecurringScheduler",
    "MemoryScheduler",
    "PgCronScheduler",
]
