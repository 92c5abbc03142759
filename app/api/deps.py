"""FastAPI dependencies resolving the components built in lifespan."""

from fastapi import HTTPException, Request

from app.jobs.lifecycle import WebsetJobManager
from app.webhooks.ingress import WebhookIngress


def get_job_manager(request: Request) -> WebsetJobManager:
    manager = getattr(request.app.state, "job_manager", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="Job manager not initialized")
    return manager


def get_webhook_ingress(request: Request) -> WebhookIngress:
    ingress = getattr(request.app.state, "webhook_ingress", None)
    if ingress is None:
        raise HTTPException(status_code=503, detail="Webhook ingress not initialized")
    return ingress
