"""Status mapping shared by the poll and webhook channels.

Both channels end up here so that the same upstream data always yields the
same local (status, result, error), whichever channel observed it.
"""

from typing import Any, Dict, Optional

from app.jobs.models import JobStatus, JobUpdate, RemoteJobState
from app.webhooks.events import WebhookEventType

REMOTE_COMPLETED = "completed"
REMOTE_CANCELED = "canceled"
REMOTE_NOT_STARTED = "not_started"

# Event types whose name already states the search outcome
_EVENT_STATUS = {
    "webset.search.completed": REMOTE_COMPLETED,
    "webset.search.canceled": REMOTE_CANCELED,
}

# Event types that carry no job status (logged only). Export and item
# events describe child objects, not the webset itself.
PASSTHROUGH_EVENTS = frozenset({
    WebhookEventType.WEBSET_CREATED.value,
    WebhookEventType.WEBSET_DELETED.value,
    WebhookEventType.WEBSET_EXPORT_CREATED.value,
    WebhookEventType.WEBSET_EXPORT_COMPLETED.value,
    WebhookEventType.WEBSET_ITEM_CREATED.value,
    WebhookEventType.WEBSET_ITEM_ENRICHED.value,
})


def first_search(payload: Dict[str, Any]) -> Dict[str, Any]:
    """The payload's first search object, or an empty dict when there is none."""
    searches = payload.get("searches")
    if isinstance(searches, list) and searches and isinstance(searches[0], dict):
        return searches[0]
    return {}


def remote_state_from_payload(payload: Dict[str, Any]) -> RemoteJobState:
    """Project the fields reconciliation needs out of a raw webset payload.

    Wrongly shaped fields read as absent, so an odd payload maps to running.
    """
    search = first_search(payload)

    progress = None
    raw_progress = search.get("progress")
    if isinstance(raw_progress, dict):
        completion = raw_progress.get("completion")
        if isinstance(completion, (int, float)) and not isinstance(completion, bool):
            progress = float(completion)

    status = search.get("status")
    reason = search.get("canceledReason")
    return RemoteJobState(
        external_id=str(payload.get("id", "")),
        status=status if isinstance(status, str) and status else REMOTE_NOT_STARTED,
        progress=progress,
        canceled_reason=reason if isinstance(reason, str) else None,
        payload=payload,
    )


def canceled_message(reason: Optional[str]) -> str:
    return f"Webset creation was canceled (Reason: {reason or 'Unknown'})"


def update_from_remote(state: RemoteJobState) -> JobUpdate:
    """Map an upstream state to a candidate local update."""
    if state.status == REMOTE_COMPLETED:
        return JobUpdate(
            status=JobStatus.COMPLETED,
            result=state.payload,
            progress=state.progress,
        )
    if state.status == REMOTE_CANCELED:
        return JobUpdate(
            status=JobStatus.FAILED,
            error=canceled_message(state.canceled_reason),
            progress=state.progress,
        )
    return JobUpdate(
        status=JobStatus.RUNNING,
        snapshot=state.payload,
        progress=state.progress,
    )


def update_from_event(event_type: str, data: Dict[str, Any]) -> Optional[JobUpdate]:
    """Map a webhook event to a candidate update, or None for passthrough events.

    Unknown event types are passthrough as well: the upstream vocabulary
    may grow, and an event we don't understand must not move a job.
    """
    if event_type in PASSTHROUGH_EVENTS:
        return None
    if WebhookEventType.normalize(event_type) is WebhookEventType.UNKNOWN:
        return None
    if data.get("object", "webset") != "webset":
        return None

    state = remote_state_from_payload(data)
    forced = _EVENT_STATUS.get(event_type)
    if forced is not None and forced != state.status:
        state = RemoteJobState(
            external_id=state.external_id,
            status=forced,
            progress=state.progress,
            canceled_reason=state.canceled_reason,
            payload=state.payload,
        )
    return update_from_remote(state)
