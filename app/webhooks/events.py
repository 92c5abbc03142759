"""Webhook event vocabulary of the upstream Websets API."""

from enum import Enum


class WebhookEventType(str, Enum):
    WEBSET_CREATED = "webset.created"
    WEBSET_UPDATED = "webset.updated"
    WEBSET_DELETED = "webset.deleted"
    WEBSET_PAUSED = "webset.paused"
    WEBSET_IDLE = "webset.idle"
    WEBSET_SEARCH_CREATED = "webset.search.created"
    WEBSET_SEARCH_RUNNING = "webset.search.running"
    WEBSET_SEARCH_UPDATED = "webset.search.updated"
    WEBSET_SEARCH_COMPLETED = "webset.search.completed"
    WEBSET_SEARCH_CANCELED = "webset.search.canceled"
    WEBSET_ENRICHMENT_CREATED = "webset.enrichment.created"
    WEBSET_ENRICHMENT_COMPLETED = "webset.enrichment.completed"
    WEBSET_ENRICHMENT_CANCELED = "webset.enrichment.canceled"
    WEBSET_EXPORT_CREATED = "webset.export.created"
    WEBSET_EXPORT_COMPLETED = "webset.export.completed"
    WEBSET_ITEM_CREATED = "webset.item.created"
    WEBSET_ITEM_ENRICHED = "webset.item.enriched"
    UNKNOWN = "unknown"

    @classmethod
    def normalize(cls, raw: str) -> "WebhookEventType":
        """Map a raw event type string to the enum, UNKNOWN if unrecognized."""
        try:
            member = cls(raw)
        except ValueError:
            return cls.UNKNOWN
        return member
