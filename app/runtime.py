"""Process-wide job tracking components, built once and wired explicitly."""

import logging
from dataclasses import dataclass
from typing import Optional

from app.config import Settings
from app.jobs.lifecycle import WebsetJobManager
from app.jobs.registry import JobRegistry
from app.jobs.retention import RetentionSweeper
from app.upstream.websets_client import WebsetsClient
from app.webhooks.ingress import WebhookIngress

logger = logging.getLogger(__name__)


@dataclass
class JobRuntime:
    registry: JobRegistry
    client: WebsetsClient
    manager: WebsetJobManager
    ingress: WebhookIngress
    sweeper: RetentionSweeper

    async def start(self) -> None:
        await self.manager.start()
        await self.sweeper.start()
        logger.info("Job runtime started")

    async def stop(self) -> None:
        await self.sweeper.stop()
        await self.ingress.drain()
        await self.manager.stop()
        await self.client.aclose()
        logger.info("Job runtime stopped")


def build_runtime(settings: Settings, client: Optional[WebsetsClient] = None) -> JobRuntime:
    """Build the registry and everything that shares it."""
    registry = JobRegistry()
    if client is None:
        client = WebsetsClient(
            base_url=settings.exa_base_url,
            api_key=settings.exa_api_key,
            timeout=settings.upstream_timeout_seconds,
        )
    manager = WebsetJobManager(registry, client)
    sweeper = RetentionSweeper(
        registry,
        interval_minutes=settings.job_sweep_interval_minutes,
        max_age_minutes=settings.job_max_age_minutes,
        preserve_completed=settings.job_preserve_completed,
        max_records=settings.job_max_records,
        on_evict=manager.forget,
    )
    return JobRuntime(
        registry=registry,
        client=client,
        manager=manager,
        ingress=WebhookIngress(manager),
        sweeper=sweeper,
    )
