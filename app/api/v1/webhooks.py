"""Upstream webhook endpoint.

Acknowledges as soon as the payload validates; reconciliation runs in the
background so slow processing never makes the upstream retry.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.api.deps import get_webhook_ingress
from app.jobs.errors import MalformedWebhookPayload
from app.webhooks.ingress import WebhookIngress

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhooks/exa", status_code=202)
async def receive_exa_webhook(
    request: Request,
    ingress: WebhookIngress = Depends(get_webhook_ingress),
):
    """Receive an Exa Websets webhook."""
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Webhook body is not valid JSON")
        raise HTTPException(status_code=400, detail="Body must be valid JSON")

    try:
        ingress.accept(payload)
    except MalformedWebhookPayload as e:
        logger.warning("Rejected webhook: %s", e.message)
        raise HTTPException(status_code=400, detail=e.message)

    return {"received": True}
