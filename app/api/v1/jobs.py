"""Job management API: submit webset jobs and poll their status."""

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from typing import Any, Dict, Optional

from app.api.deps import get_job_manager
from app.jobs.errors import JobNotFound, UpstreamUnavailable, UpstreamRejected
from app.jobs.lifecycle import WebsetJobManager
from app.jobs.models import JobRecord

router = APIRouter()


class JobSubmitRequest(BaseModel):
    params: Dict[str, Any]
    api_key: Optional[str] = None


class JobSubmitResponse(BaseModel):
    job_id: str
    status: str
    message: str


@router.post("/jobs", response_model=JobSubmitResponse, status_code=202)
async def submit_job(
    request: JobSubmitRequest,
    manager: WebsetJobManager = Depends(get_job_manager),
):
    """Submit a new webset job. Returns before the upstream call completes."""
    if not request.params:
        raise HTTPException(status_code=400, detail="params must not be empty")

    job_id = await manager.submit(request.params, api_key=request.api_key)
    job = manager.registry.require(job_id)
    return JobSubmitResponse(
        job_id=job_id,
        status=job.status.value,
        message="Job submitted successfully. Poll GET /api/v1/jobs/{id} for status.",
    )


@router.get("/jobs")
async def list_jobs(manager: WebsetJobManager = Depends(get_job_manager)):
    """List tracked jobs without their payloads."""
    jobs = sorted(manager.registry.snapshot(), key=lambda j: j.created_at)
    return {
        "jobs": [
            {
                "job_id": job.id,
                "external_job_id": job.external_job_id,
                "status": job.status.value,
                "created_at": job.created_at.isoformat(),
                "updated_at": job.updated_at.isoformat(),
            }
            for job in jobs
        ],
        "count": len(jobs),
    }


@router.get("/jobs/{job_id}")
async def get_job_status(
    job_id: str,
    x_api_key: Optional[str] = Header(None),
    manager: WebsetJobManager = Depends(get_job_manager),
):
    """Get the current status and results of a job, refreshing from upstream."""
    try:
        job = await manager.poll(job_id, api_key=x_api_key)
    except JobNotFound:
        raise HTTPException(status_code=404, detail="Job not found")
    except UpstreamUnavailable as e:
        raise HTTPException(status_code=503, detail=e.to_dict())
    except UpstreamRejected as e:
        raise HTTPException(status_code=502, detail=e.to_dict())

    return job_response(job)


def job_response(job: JobRecord) -> Dict[str, Any]:
    return {
        "job_id": job.id,
        "external_job_id": job.external_job_id,
        "status": job.status.value,
        "progress": job.progress,
        "result": job.result,
        "error": job.error,
        "created_at": job.created_at.isoformat(),
        "updated_at": job.updated_at.isoformat(),
        "completed_at": job.completed_at.isoformat() if job.completed_at else None,
    }
