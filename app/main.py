"""Websets Job Service - FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, settings as default_settings
from app.api.v1.health import router as health_router
from app.api.v1.jobs import router as jobs_router
from app.api.v1.webhooks import router as webhooks_router
from app.runtime import build_runtime
from app.upstream.websets_client import WebsetsClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    client: Optional[WebsetsClient] = None,
) -> FastAPI:
    """Build the application. ``client`` replaces the upstream client (tests)."""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown logic."""
        logger.info("Starting Websets Job Service on port %s", settings.service_port)
        logger.info("Upstream: %s", settings.exa_base_url)
        logger.info(
            "Retention: sweep every %s min, max age %s min, preserve completed=%s",
            settings.job_sweep_interval_minutes,
            settings.job_max_age_minutes,
            settings.job_preserve_completed,
        )

        runtime = build_runtime(settings, client=client)
        await runtime.start()

        app.state.runtime = runtime
        app.state.job_manager = runtime.manager
        app.state.webhook_ingress = runtime.ingress

        yield

        logger.info("Shutting down Websets Job Service")
        app.state.job_manager = None
        app.state.webhook_ingress = None
        await runtime.stop()

    app = FastAPI(
        title="Websets Job Service",
        description="Async webset job tracking with poll and webhook reconciliation",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router, tags=["health"])  # GET /health at root
    app.include_router(webhooks_router, tags=["webhooks"])  # POST /webhooks/exa
    app.include_router(jobs_router, prefix="/api/v1", tags=["jobs"])
    return app


logging.basicConfig(level=default_settings.log_level)
app = create_app()
