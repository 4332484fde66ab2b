"""Run one email sync pass from the command line.

Usage:
    uv run python -m scripts.run_email_sync [tenant_id]
Without tenant_id this is the same pass the cron endpoint runs (due
integrations only). With tenant_id it syncs every enabled integration of
that tenant. Prints the run summary as JSON; exits 1 if discovery fails.
"""

import asyncio
import json
import sys

import httpx

import app.infrastructure.persistence.database as database
from app.core.config import get_settings
from app.domain.exceptions import DiscoveryError, SqlNotConfiguredException
from app.infrastructure.composition import build_sync_scheduler, new_run_deadline
from app.schemas.sync import SyncRunResponse
from app.shared.telemetry.logging import setup_logging
from app.shared.telemetry.telemetry import get_telemetry, setup_from_settings


async def main() -> int:
    settings = get_settings()
    setup_logging()
    setup_from_settings(settings)
    try:
        session_factory = database.get_session_factory()
    except SqlNotConfiguredException as e:
        print(e.message, file=sys.stderr)
        return 1

    tenant_id = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        async with httpx.AsyncClient(timeout=30.0) as http_client:
            scheduler = build_sync_scheduler(
                settings, http_client=http_client, session_factory=session_factory
            )
            deadline = new_run_deadline(settings)
            if tenant_id:
                summary = await scheduler.run_for_tenant(tenant_id, deadline)
            else:
                summary = await scheduler.run(deadline)
    except DiscoveryError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        await database.dispose_engine()
        telemetry = get_telemetry()
        if telemetry is not None:
            telemetry.shutdown()

    body = SyncRunResponse.from_summary(summary).model_dump(
        mode="json", by_alias=True, exclude_none=True
    )
    print(json.dumps(body, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
