"""Job tracker interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from app.jobs.models import JobRecord


class JobTracker(ABC):
    """Abstract interface for submit/poll job tracking."""

    @abstractmethod
    async def submit(self, params: Dict[str, Any], api_key: Optional[str] = None) -> str:
        """Submit a job. Returns the local job_id without waiting on upstream."""
        ...

    @abstractmethod
    async def poll(self, job_id: str, api_key: Optional[str] = None) -> JobRecord:
        """Return the job's current state, refreshing it from upstream if needed."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the tracker."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the tracker gracefully."""
        ...
