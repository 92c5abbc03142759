"""Webset job lifecycle: submit, poll and webhook reconciliation.

State machine: pending -> running -> {completed | failed}. The two
terminal states absorb every later update. Poll and webhook updates both
go through ``apply_update``, which checks the current status and writes the
new one without awaiting in between, so whichever channel observes a
terminal state first finalizes the record and the other becomes a no-op.
"""

import asyncio
import logging
from collections import Counter
from typing import TYPE_CHECKING, Any, Dict, Optional, Set

from app.jobs.dispatcher import JobTracker
from app.jobs.errors import UpstreamError, UpstreamRejected
from app.jobs.models import JobRecord, JobStatus, JobUpdate, utcnow
from app.jobs.reconcile import update_from_event, update_from_remote
from app.jobs.registry import JobRegistry

if TYPE_CHECKING:
    from app.upstream.websets_client import WebsetsClient
    from app.webhooks.ingress import WebhookEvent

logger = logging.getLogger(__name__)

# Upstream answers meaning the webset itself is gone
_GONE_STATUS = {404, 410}

_FORWARD = {
    JobStatus.PENDING: {JobStatus.RUNNING, JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.RUNNING: {JobStatus.RUNNING, JobStatus.COMPLETED, JobStatus.FAILED},
}


class WebsetJobManager(JobTracker):
    """Tracks webset jobs in a JobRegistry against the upstream Websets API."""

    def __init__(self, registry: JobRegistry, client: "WebsetsClient"):
        self._registry = registry
        self._client = client
        self._create_tasks: Set[asyncio.Task] = set()
        self._transitions: Counter = Counter()

    @property
    def registry(self) -> JobRegistry:
        return self._registry

    async def submit(self, params: Dict[str, Any], api_key: Optional[str] = None) -> str:
        job = self._registry.add(JobRecord(input_params=dict(params)))
        logger.info("Job %s: created (status: pending)", job.id)

        task = asyncio.create_task(self._create_remote(job.id, api_key))
        self._create_tasks.add(task)
        task.add_done_callback(self._create_tasks.discard)
        return job.id

    async def poll(self, job_id: str, api_key: Optional[str] = None) -> JobRecord:
        job = self._registry.require(job_id, phase="poll")

        if job.is_terminal:
            logger.debug("Job %s: returning stored status (%s)", job_id, job.status.value)
            return job.model_copy(deep=True)

        if not job.external_job_id:
            logger.debug("Job %s: no webset id yet, status %s", job_id, job.status.value)
            return job.model_copy(deep=True)

        external_id = job.external_job_id
        try:
            state = await self._client.fetch_remote_job_state(external_id, api_key)
        except UpstreamRejected as e:
            if e.status_code in _GONE_STATUS:
                self.apply_update(job_id, JobUpdate(
                    status=JobStatus.FAILED,
                    error=f"Webset {external_id} no longer exists upstream",
                ))
                return self._registry.require(job_id).model_copy(deep=True)
            logger.warning("Job %s: status check rejected: %s", job_id, e.message)
            raise e.with_context(job_id, "poll")
        except UpstreamError as e:
            logger.warning("Job %s: status check failed: %s", job_id, e.message)
            raise e.with_context(job_id, "poll")

        self.apply_update(job_id, update_from_remote(state))
        return self._registry.require(job_id, phase="poll").model_copy(deep=True)

    async def reconcile_from_webhook(self, event: "WebhookEvent") -> Optional[JobRecord]:
        """Apply a validated webhook event. Unmatched events are dropped."""
        job = self._registry.find_by_external_id(event.external_job_id)
        if job is None:
            logger.info(
                "Webhook %s for webset %s matches no local job, ignoring",
                event.event_type, event.external_job_id,
            )
            return None

        update = update_from_event(event.event_type, event.data)
        if update is None:
            logger.info(
                "Webhook %s for webset %s (job %s) carries no status, logged only",
                event.event_type, event.external_job_id, job.id,
            )
            return job.model_copy(deep=True)

        self.apply_update(job.id, update)
        return self._registry.require(job.id, phase="webhook").model_copy(deep=True)

    def apply_update(self, job_id: str, update: JobUpdate) -> bool:
        """Shared reconciliation step. Returns True when the record changed.

        Must stay free of awaits: the terminal check and the write below
        have to run as one uninterrupted step on the event loop.
        """
        job = self._registry.get(job_id)
        if job is None:
            logger.info("Job %s: update for unknown job dropped", job_id)
            return False

        if job.is_terminal:
            logger.debug(
                "Job %s: already %s, dropping %s update",
                job_id, job.status.value, update.status.value,
            )
            return False

        if update.status not in _FORWARD[job.status]:
            logger.debug(
                "Job %s: ignoring backward move %s -> %s",
                job_id, job.status.value, update.status.value,
            )
            return False

        previous = job.status
        now = utcnow()
        job.status = update.status
        job.updated_at = now
        if update.progress is not None:
            job.progress = update.progress

        if update.status == JobStatus.COMPLETED:
            job.result = update.result
            job.snapshot = None
            job.completed_at = now
        elif update.status == JobStatus.FAILED:
            job.error = update.error or "Job failed"
            job.completed_at = now
        elif update.snapshot is not None:
            job.snapshot = update.snapshot

        self._transitions[job_id] += 1
        if previous != job.status:
            logger.info("Job %s: %s -> %s", job_id, previous.value, job.status.value)
        return True

    def transition_count(self, job_id: str) -> int:
        """Number of updates committed to a job, for diagnostics."""
        return self._transitions[job_id]

    def forget(self, job_id: str) -> None:
        self._transitions.pop(job_id, None)

    async def start(self) -> None:
        logger.info("Webset job manager started")

    async def stop(self) -> None:
        tasks = list(self._create_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Webset job manager stopped (%d create call(s) abandoned)", len(tasks))

    async def wait_for_creates(self) -> None:
        """Wait until every in-flight create call has settled."""
        while self._create_tasks:
            await asyncio.gather(*list(self._create_tasks), return_exceptions=True)

    async def _create_remote(self, job_id: str, api_key: Optional[str]) -> None:
        """Call upstream create exactly once for a job and record the outcome."""
        job = self._registry.get(job_id)
        if job is None:
            return

        logger.info("Job %s: calling Exa create webset API", job_id)
        try:
            external_id = await self._client.create_remote_job(job.input_params, api_key)
        except UpstreamError as e:
            e.with_context(job_id, "create")
            logger.error("Job %s: failed during initiation - %s", job_id, e.message)
            self.apply_update(job_id, JobUpdate(status=JobStatus.FAILED, error=e.message))
            return
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Job %s: unexpected error during initiation", job_id)
            self.apply_update(job_id, JobUpdate(
                status=JobStatus.FAILED,
                error=f"{type(e).__name__}: {e}",
            ))
            return

        if job_id not in self._registry:
            logger.info("Job %s: evicted before webset %s was bound", job_id, external_id)
            return
        self._registry.bind_external_id(job_id, external_id)
        self.apply_update(job_id, JobUpdate(status=JobStatus.RUNNING))
