"""Webhook ingress: validate, normalize and hand off upstream push events.

The sender only needs an acknowledgement, so ``accept`` validates the
payload synchronously and leaves reconciliation to a detached task.
"""

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional, Set

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from app.jobs.errors import MalformedWebhookPayload
from app.jobs.models import utcnow
from app.jobs.reconcile import first_search
from app.webhooks.events import WebhookEventType

if TYPE_CHECKING:
    from app.jobs.lifecycle import WebsetJobManager

logger = logging.getLogger(__name__)

_DATETIME = TypeAdapter(datetime)


class WebhookEvent(BaseModel):
    """Normalized webhook: (external_job_id, event_type, data) plus metadata."""
    event_id: str = "unknown"
    event_type: str
    known_type: WebhookEventType
    external_job_id: str
    data: Dict[str, Any]
    created_at: datetime = Field(default_factory=utcnow)


def parse_webhook(payload: Any) -> WebhookEvent:
    """Validate a raw webhook body. Raises MalformedWebhookPayload."""
    if not isinstance(payload, dict):
        raise MalformedWebhookPayload("Webhook payload is not an object")

    event_type = payload.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise MalformedWebhookPayload("Webhook payload missing required field 'type'")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise MalformedWebhookPayload("Webhook payload missing required field 'data'")

    external_id = data.get("id")
    if not isinstance(external_id, str) or not external_id:
        raise MalformedWebhookPayload("Webhook payload missing required field 'data.id'")

    known_type = WebhookEventType.normalize(event_type)
    if known_type is WebhookEventType.UNKNOWN:
        logger.info("Unknown webhook event type: %s", event_type)

    obj = data.get("object")
    if obj is not None and obj != "webset":
        # Item and export events describe a child object of the webset
        if not isinstance(data.get("websetId"), str):
            raise MalformedWebhookPayload(f"Invalid data object type: {obj}")
        external_id = data["websetId"]

    fields: Dict[str, Any] = {
        "event_type": event_type,
        "known_type": known_type,
        "external_job_id": external_id,
        "data": data,
    }
    if isinstance(payload.get("id"), str):
        fields["event_id"] = payload["id"]
    created_at = _parse_created_at(payload.get("createdAt"))
    if created_at is not None:
        fields["created_at"] = created_at
    try:
        return WebhookEvent(**fields)
    except ValueError as e:
        raise MalformedWebhookPayload(f"Invalid webhook payload: {e}") from e


def _parse_created_at(raw: Any) -> Optional[datetime]:
    """Parse the optional createdAt stamp. Unparseable values fall back to now."""
    if not raw:
        return None
    try:
        return _DATETIME.validate_python(raw)
    except ValidationError:
        logger.debug("Ignoring unparseable webhook createdAt: %r", raw)
        return None


class WebhookIngress:
    """Accepts webhook payloads and reconciles them in the background."""

    def __init__(self, manager: "WebsetJobManager"):
        self._manager = manager
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def accept(self, payload: Any) -> WebhookEvent:
        """Validate and enqueue. Never waits for reconciliation."""
        event = parse_webhook(payload)
        logger.info(
            "Received webhook %s (%s) for webset %s",
            event.event_id, event.event_type, event.external_job_id,
        )
        _log_details(event)

        task = asyncio.create_task(self._process(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return event

    async def drain(self) -> None:
        """Wait for every accepted event to finish processing."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _process(self, event: WebhookEvent) -> None:
        try:
            await self._manager.reconcile_from_webhook(event)
        except Exception:
            logger.exception(
                "Error processing webhook %s for webset %s",
                event.event_type, event.external_job_id,
            )


def _log_details(event: WebhookEvent) -> None:
    search = first_search(event.data)
    if search:
        progress = search.get("progress")
        completion = progress.get("completion") if isinstance(progress, dict) else None
        logger.debug("Search status: %s, progress: %s", search.get("status"), completion)
        if search.get("status") == "canceled":
            logger.debug("Cancellation reason: %s", search.get("canceledReason") or "Unknown")

    if "enrichment" in event.event_type:
        enrichments = event.data.get("enrichments")
        if not isinstance(enrichments, list):
            enrichments = []
        statuses = ", ".join(
            f"{e.get('id')}: {e.get('status')}" for e in enrichments if isinstance(e, dict)
        )
        if statuses:
            logger.debug("Enrichment statuses: %s", statuses)
