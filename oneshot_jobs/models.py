"""Data models for one-shot jobs."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class ExecutionStatus(str, Enum):
    """Status of one firing of a descriptor."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @classmethod
    def from_scheduler(cls, value: str) -> "ExecutionStatus":
        """Map a scheduler-native status onto running/succeeded/failed.

        pg_cron reports ``starting``, ``connecting`` and ``sending`` before a
        run settles; all of them count as running.
        """
        try:
            return cls(value)
        except ValueError:
            return cls.RUNNING


class OneShotState(str, Enum):
    """Lifecycle of a one-shot job."""

    PENDING = "pending"
    RUNNING = "running"
    DISABLING = "disabling"
    DISABLED = "disabled"
    REAPED = "reaped"


class JobDescriptor(BaseModel):
    """A schedulable job as persisted by the recurring scheduler."""

    identifier: str
    handle: Optional[int] = None
    schedule: str
    # SQL text for pg_cron, an async callable for the in-memory scheduler
    command: Any
    created_at: Optional[datetime] = None
    active: bool = True


class ExecutionRecord(BaseModel):
    """One firing of a descriptor."""

    identifier: str
    run_id: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: ExecutionStatus = ExecutionStatus.RUNNING
    command: Any = None
    return_message: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ExecutionStatus.from_scheduler(value)
        return value


class OneShotAudit(BaseModel):
    """Execution history summary for one identifier."""

    identifier: str
    total_runs: int = 0
    runs_by_status: Dict[str, int] = Field(default_factory=dict)
    race_detected: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert audit to dictionary for JSON serialization."""
        return self.model_dump()


class ReapResult(BaseModel):
    """Outcome of one maintenance pass."""

    descriptors_removed: int = 0
    records_pruned: int = 0
