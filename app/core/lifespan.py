"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (shared HTTP client, tenant
rate limiter, telemetry, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from app.core.config import get_settings
from app.core.limiter import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup: shared HTTP client, tenant sync limiter, telemetry (if enabled).
    Shutdown: HTTP client close, telemetry shutdown, SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    # Shared HTTP client for provider, token, detection and directory calls.
    app.state.oauth_http_client = httpx.AsyncClient(timeout=30.0)
    app.state.tenant_sync_limiter = SlidingWindowRateLimiter(
        settings.sync_tenant_requests_per_window,
        settings.sync_tenant_window_seconds,
    )

    from app.shared.telemetry.telemetry import setup_from_settings

    telemetry = setup_from_settings(settings)
    if telemetry is not None:
        telemetry.instrument_fastapi(app)
        logger.info("Telemetry initialized")

    yield

    # ---- Shutdown ----
    if getattr(app.state, "oauth_http_client", None) is not None:
        await app.state.oauth_http_client.aclose()
        app.state.oauth_http_client = None
        logger.info("Shared HTTP client closed")

    from app.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
        logger.info("Telemetry shutdown complete")

    from app.infrastructure.persistence.database import dispose_engine

    await dispose_engine()
    logger.info("Database engine disposed")
