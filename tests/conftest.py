"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta

import pytest

from oneshot_jobs.backends.memory import MemoryScheduler
from oneshot_jobs.config import OneShotConfig
from oneshot_jobs.reaper import QueueReaper
from oneshot_jobs.service import OneShotService


class FakeClock:
    """Manually advanced clock for the in-memory scheduler."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    """Clock starting at a fixed mid-minute instant."""
    return FakeClock(datetime(2024, 5, 17, 12, 0, 30))


@pytest.fixture
def config():
    """Config with a one second tick."""
    return OneShotConfig(tick_seconds=1)


@pytest.fixture
def scheduler(clock):
    """In-memory recurring scheduler driven by the fake clock."""
    return MemoryScheduler(tick_seconds=1, clock=clock)


@pytest.fixture
def service(config, scheduler):
    """OneShotService on the in-memory scheduler."""
    return OneShotService(config, scheduler)


@pytest.fixture
def reaper(config, scheduler):
    """QueueReaper on the in-memory scheduler."""
    return QueueReaper(config, scheduler)


@pytest.fixture
def inserted():
    """Rows written by job bodies under test."""
    return []
