"""In-memory job registry, the single source of truth for job state."""

from typing import Dict, Iterator, List, Optional

from app.jobs.errors import JobNotFound
from app.jobs.models import JobRecord


class JobRegistry:
    """Keyed store of job records, plus an index from upstream id to local id.

    No method here awaits, so each call is atomic with respect to the
    event loop. Nothing is persisted: a restart clears all history.
    """

    def __init__(self):
        self._jobs: Dict[str, JobRecord] = {}
        self._by_external: Dict[str, str] = {}

    def add(self, job: JobRecord) -> JobRecord:
        if job.id in self._jobs:
            raise ValueError(f"Job {job.id} already registered")
        self._jobs[job.id] = job
        if job.external_job_id:
            self._by_external[job.external_job_id] = job.id
        return job

    def get(self, job_id: str) -> Optional[JobRecord]:
        return self._jobs.get(job_id)

    def require(self, job_id: str, phase: Optional[str] = None) -> JobRecord:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFound(job_id, phase=phase)
        return job

    def find_by_external_id(self, external_job_id: str) -> Optional[JobRecord]:
        job_id = self._by_external.get(external_job_id)
        if job_id is None:
            return None
        return self._jobs.get(job_id)

    def bind_external_id(self, job_id: str, external_job_id: str) -> JobRecord:
        """Attach the upstream id to a record. Set once, never changed."""
        job = self.require(job_id)
        if job.external_job_id == external_job_id:
            return job
        if job.external_job_id is not None:
            raise ValueError(
                f"Job {job_id} already bound to {job.external_job_id}, "
                f"refusing to rebind to {external_job_id}"
            )
        job.external_job_id = external_job_id
        self._by_external[external_job_id] = job_id
        return job

    def remove(self, job_id: str) -> bool:
        job = self._jobs.pop(job_id, None)
        if job is None:
            return False
        if job.external_job_id:
            self._by_external.pop(job.external_job_id, None)
        return True

    def snapshot(self) -> List[JobRecord]:
        """Records as of now; safe to iterate while removing."""
        return list(self._jobs.values())

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def __iter__(self) -> Iterator[JobRecord]:
        return iter(self.snapshot())
