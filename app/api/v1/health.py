"""Health check endpoint."""

from fastapi import APIRouter, Request
import platform
import sys

from app.jobs.models import JobStatus

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Service health and job tracker counters."""
    state = request.app.state
    manager = getattr(state, "job_manager", None)
    ingress = getattr(state, "webhook_ingress", None)

    jobs_by_status = {status.value: 0 for status in JobStatus}
    if manager is not None:
        for job in manager.registry.snapshot():
            jobs_by_status[job.status.value] += 1

    return {
        "status": "healthy" if manager is not None else "starting",
        "jobs_tracked": sum(jobs_by_status.values()),
        "jobs_by_status": jobs_by_status,
        "webhooks_pending": ingress.pending if ingress is not None else 0,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
