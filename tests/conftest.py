"""Shared fixtures: an in-memory fake of the upstream Websets API."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from app.jobs.lifecycle import WebsetJobManager
from app.jobs.models import RemoteJobState
from app.jobs.reconcile import remote_state_from_payload
from app.jobs.registry import JobRegistry
from app.webhooks.ingress import WebhookIngress


def webset_payload(
    webset_id: str = "ws_1",
    search_status: Optional[str] = "running",
    completion: float = 0.0,
    canceled_reason: Optional[str] = None,
    items: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Build an upstream webset object in the shape the API returns."""
    searches = []
    if search_status is not None:
        searches.append({
            "id": "search_1",
            "object": "webset_search",
            "status": search_status,
            "query": "x",
            "progress": {"found": len(items or []), "completion": completion},
            "canceledReason": canceled_reason,
        })
    payload = {
        "id": webset_id,
        "object": "webset",
        "status": "idle" if search_status in ("completed", "canceled") else "running",
        "searches": searches,
        "enrichments": [],
        "metadata": None,
    }
    if items is not None:
        payload["items"] = items
    return payload


class FakeWebsetsClient:
    """Records calls and answers from scripted state.

    ``create_gate`` / ``fetch_gate`` hold a call open until set, to put the
    manager in the middle of an upstream call.
    """

    def __init__(self):
        self.create_calls: List[Dict[str, Any]] = []
        self.fetch_calls: List[str] = []
        self.states: Dict[str, Dict[str, Any]] = {}
        self.create_error: Optional[Exception] = None
        self.fetch_error: Optional[Exception] = None
        self.create_gate: Optional[asyncio.Event] = None
        self.fetch_gate: Optional[asyncio.Event] = None
        self.closed = False
        self._next_id = 0

    async def create_remote_job(self, params: Dict[str, Any], api_key: Optional[str] = None) -> str:
        self.create_calls.append(params)
        if self.create_gate is not None:
            await self.create_gate.wait()
        if self.create_error is not None:
            raise self.create_error
        self._next_id += 1
        webset_id = f"ws_{self._next_id}"
        self.states[webset_id] = webset_payload(webset_id, search_status="created")
        return webset_id

    async def fetch_remote_job_state(self, external_job_id: str, api_key: Optional[str] = None) -> RemoteJobState:
        self.fetch_calls.append(external_job_id)
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fetch_error is not None:
            raise self.fetch_error
        return remote_state_from_payload(self.states[external_job_id])

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_client():
    return FakeWebsetsClient()


@pytest.fixture
def registry():
    return JobRegistry()


@pytest.fixture
def manager(registry, fake_client):
    return WebsetJobManager(registry, fake_client)


@pytest.fixture
def ingress(manager):
    return WebhookIngress(manager)
