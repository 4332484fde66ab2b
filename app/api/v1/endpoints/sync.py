"""Sync trigger endpoints: periodic cron run and tenant on-demand run.

Both return the run summary with 200 even when individual integrations
failed; only a discovery failure turns the whole run into a 500.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.v1.dependencies.sync import (
    SessionClaims,
    enforce_tenant_rate_limit,
    get_run_deadline,
    get_sync_scheduler,
    verify_cron_secret,
)
from app.application.use_cases.sync.deadline import Deadline
from app.application.use_cases.sync.scheduler import IntegrationScheduler
from app.core.limiter import limit_cron
from app.schemas.sync import SyncRunResponse
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

cron_router = APIRouter()
router = APIRouter()


@cron_router.api_route(
    "/sync-emails",
    methods=["GET", "POST"],
    response_model=SyncRunResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_cron_secret)],
)
@limit_cron
async def sync_emails(
    request: Request,
    scheduler: Annotated[IntegrationScheduler, Depends(get_sync_scheduler)],
    deadline: Annotated[Deadline, Depends(get_run_deadline)],
) -> SyncRunResponse:
    """Periodic sync pass over due integrations. Requires the cron bearer secret."""
    logger.info("Cron sync triggered")
    summary = await scheduler.run(deadline)
    return SyncRunResponse.from_summary(summary)


@router.post(
    "",
    response_model=SyncRunResponse,
    response_model_by_alias=True,
    response_model_exclude_none=True,
)
async def sync_tenant(
    principal: Annotated[SessionClaims, Depends(enforce_tenant_rate_limit)],
    scheduler: Annotated[IntegrationScheduler, Depends(get_sync_scheduler)],
    deadline: Annotated[Deadline, Depends(get_run_deadline)],
) -> SyncRunResponse:
    """On-demand sync of the caller's tenant. Rate-limited per tenant."""
    logger.info("On-demand sync for tenant %s by %s", principal.tenant_id, principal.user_id)
    summary = await scheduler.run_for_tenant(principal.tenant_id, deadline)
    return SyncRunResponse.from_summary(summary)
