"""Error taxonomy for job tracking.

Every error carries the local job id and the phase it was raised in
(``create``, ``poll`` or ``webhook``) when those are known, so callers can
tell a transient failure ("ask again later") from a finished-but-failed job.
"""

from typing import Any, Dict, Optional


class JobServiceError(Exception):
    """Base class for all job service errors."""

    def __init__(
        self,
        message: str,
        job_id: Optional[str] = None,
        phase: Optional[str] = None,
    ):
        self.message = message
        self.job_id = job_id
        self.phase = phase
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "job_id": self.job_id,
            "phase": self.phase,
        }


class UpstreamError(JobServiceError):
    """A call to the upstream Websets API failed."""

    retryable = False

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        job_id: Optional[str] = None,
        phase: Optional[str] = None,
    ):
        super().__init__(message, job_id=job_id, phase=phase)
        self.status_code = status_code

    def with_context(self, job_id: str, phase: str) -> "UpstreamError":
        """Attach job context, keeping anything already set."""
        self.job_id = self.job_id or job_id
        self.phase = self.phase or phase
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        data["retryable"] = self.retryable
        return data


class UpstreamUnavailable(UpstreamError):
    """Transport failure, timeout, rate limit or upstream 5xx. Retry later."""

    retryable = True


class UpstreamRejected(UpstreamError):
    """Upstream refused the request (bad params, auth, unknown resource)."""


class JobNotFound(JobServiceError):
    """No local job record matches the given id."""

    def __init__(self, job_id: str, phase: Optional[str] = None):
        super().__init__(f"Job with ID {job_id} not found.", job_id=job_id, phase=phase)


class MalformedWebhookPayload(JobServiceError):
    """Inbound webhook payload failed validation at ingress."""

    def __init__(self, message: str):
        super().__init__(message, phase="webhook")
