"""Retention sweeper: periodic eviction of stale job records."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from app.jobs.models import JobStatus, utcnow
from app.jobs.registry import JobRegistry

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Evicts job records by age and status, on a timer or on demand.

    Completed jobs can be preserved past ``max_age`` (callers may fetch the
    results much later); failed jobs never are. ``max_records`` bounds the
    registry: past it, the oldest terminal records go first.
    """

    def __init__(
        self,
        registry: JobRegistry,
        interval_minutes: float = 60,
        max_age_minutes: float = 1440,
        preserve_completed: bool = True,
        max_records: Optional[int] = 10000,
        on_evict: Optional[Callable[[str], None]] = None,
    ):
        self._registry = registry
        self._interval = timedelta(minutes=interval_minutes)
        self._max_age = timedelta(minutes=max_age_minutes)
        self._preserve_completed = preserve_completed
        self._max_records = max_records
        self._on_evict = on_evict
        self._task: Optional[asyncio.Task] = None
        self._running = False

    def sweep(
        self,
        max_age: Optional[timedelta] = None,
        preserve_completed: Optional[bool] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Run one scan-and-delete pass. Returns the number of records removed."""
        max_age = self._max_age if max_age is None else max_age
        if preserve_completed is None:
            preserve_completed = self._preserve_completed
        now = now or utcnow()

        removed = 0
        for job in self._registry.snapshot():
            if now - job.updated_at <= max_age:
                continue
            if preserve_completed and job.status == JobStatus.COMPLETED:
                continue
            if self._evict(job.id):
                removed += 1

        if self._max_records is not None and len(self._registry) > self._max_records:
            overflow = len(self._registry) - self._max_records
            terminal = sorted(
                (job for job in self._registry.snapshot() if job.is_terminal),
                key=lambda job: job.updated_at,
            )
            for job in terminal[:overflow]:
                if self._evict(job.id):
                    removed += 1

        if removed:
            logger.info("Retention sweep removed %d job(s), %d remain", removed, len(self._registry))
        return removed

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _sweep_loop(self) -> None:
        """Sweep once per interval for as long as the process runs."""
        while self._running:
            await asyncio.sleep(self._interval.total_seconds())
            try:
                self.sweep()
            except Exception:
                logger.exception("Retention sweep failed")

    def _evict(self, job_id: str) -> bool:
        if not self._registry.remove(job_id):
            return False
        if self._on_evict is not None:
            self._on_evict(job_id)
        return True
