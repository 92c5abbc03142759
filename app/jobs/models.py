"""Job record data model for async webset jobs."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
import uuid


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobRecord(BaseModel):
    """Tracks the lifecycle of one webset job.

    ``result`` holds the upstream payload only once the job completed;
    partial payloads seen while running go to ``snapshot``.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    external_job_id: Optional[str] = None
    status: JobStatus = JobStatus.PENDING
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    snapshot: Optional[Dict[str, Any]] = None
    progress: Optional[float] = None
    input_params: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass(frozen=True)
class JobUpdate:
    """Candidate state for a record, produced by either poll or webhook."""

    status: JobStatus
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    snapshot: Optional[Dict[str, Any]] = None
    progress: Optional[float] = None


@dataclass(frozen=True)
class RemoteJobState:
    """Typed projection of an upstream webset payload.

    ``status`` is the status of the webset's first search, or
    ``"not_started"`` when no search exists yet. ``payload`` is the full,
    untyped upstream object.
    """

    external_id: str
    status: str
    progress: Optional[float]
    canceled_reason: Optional[str]
    payload: Dict[str, Any]
