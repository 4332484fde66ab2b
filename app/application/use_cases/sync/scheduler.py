"""Integration scheduler: discovery, auto-heal and fan-out of sync passes."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from app.application.dtos.sync import RunSummary
from app.application.services.error_classifier import classify_error
from app.application.use_cases.sync.aggregator import ResultAggregator, boundary_error
from app.domain.enums import ProviderType
from app.domain.exceptions import DiscoveryError
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_attributes, set_span_error, traced
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import generate_worker_id

if TYPE_CHECKING:
    from app.application.interfaces.sync import IConnectionDirectory, IIntegrationStore
    from app.application.use_cases.sync.deadline import Deadline
    from app.application.use_cases.sync.sync_loop import SyncLoop
    from app.domain.entities.integration import Integration

logger = get_logger(__name__)


class IntegrationScheduler:
    """Runs one sync pass across eligible integrations within a shared deadline.

    Sequential when max_concurrency is 1; otherwise a bounded pool. Each
    integration is claimed with a lease before its pass so two workers never
    sync the same integration, and the pass runs on the row the claim
    returns. No single integration's failure stops the run.
    """

    def __init__(
        self,
        store: IIntegrationStore,
        sync_loop: SyncLoop,
        connections: IConnectionDirectory | None,
        *,
        provider_config_keys: dict[ProviderType, str],
        max_integrations: int = 5,
        min_interval: timedelta = timedelta(minutes=5),
        integration_budget_seconds: float = 50.0,
        max_concurrency: int = 1,
        lease_ttl: timedelta = timedelta(seconds=85),
        clock: Callable[[], datetime] = utc_now,
        worker_id: str | None = None,
    ) -> None:
        self._store = store
        self._sync_loop = sync_loop
        self._connections = connections
        self._provider_keys = provider_config_keys
        self._max_integrations = max_integrations
        self._min_interval = min_interval
        self._integration_budget = integration_budget_seconds
        self._max_concurrency = max(1, max_concurrency)
        self._lease_ttl = lease_ttl
        self._clock = clock
        self._worker_id = worker_id or generate_worker_id()

    async def discover_eligible(self, max_count: int) -> list[Integration]:
        """Eligible integrations, oldest watermark first, after auto-heal.

        Raises:
            DiscoveryError: If the store query fails.
        """
        try:
            candidates = await self._store.discover_eligible(
                max_count, self._min_interval, self._clock()
            )
        except Exception as e:
            logger.error("Integration discovery failed: %s", e, exc_info=True)
            raise DiscoveryError(str(e)) from e
        return await self.heal(candidates)

    async def discover_for_tenant(self, tenant_id: str) -> list[Integration]:
        """All enabled integrations of one tenant, including ones in error.

        Raises:
            DiscoveryError: If the store query fails.
        """
        try:
            candidates = await self._store.list_for_tenant(tenant_id)
        except Exception as e:
            logger.error("Tenant integration lookup failed: %s", e, exc_info=True)
            raise DiscoveryError(str(e)) from e
        return await self.heal(candidates)

    async def heal(self, integrations: list[Integration]) -> list[Integration]:
        """Backfill missing connection references from the live connection listing.

        Integrations that cannot be matched are left out of this run without
        a status change. A failing directory call is logged, never raised.
        """
        broken = [i for i in integrations if i.needs_heal]
        if not broken:
            return integrations

        live: dict[tuple[str, str], str] = {}
        if self._connections is not None:
            try:
                for conn in await self._connections.list_connections():
                    if conn.end_user_id:
                        live[(conn.provider_config_key, conn.end_user_id)] = conn.connection_id
            except Exception as e:
                logger.warning("Auto-heal connection listing failed: %s", e)
                live = {}

        healed: list[Integration] = []
        for integration in integrations:
            if not integration.needs_heal:
                healed.append(integration)
                continue
            key = self._provider_keys.get(integration.provider_type, "")
            connection_id = live.get((key, integration.match_key))
            if connection_id is None:
                logger.info(
                    "Integration %s has no connection reference and no live match; skipping",
                    integration.id,
                )
                continue
            try:
                await self._store.backfill_connection(integration.id, connection_id)
            except Exception as e:
                logger.warning("Auto-heal backfill failed for %s: %s", integration.id, e)
                continue
            logger.info("Auto-healed integration %s -> %s", integration.id, connection_id)
            healed.append(integration.with_connection(connection_id))
        return healed

    @traced("sync.run")
    async def run(self, deadline: Deadline) -> RunSummary:
        """Periodic run over discovered integrations.

        Raises:
            DiscoveryError: If eligible integrations cannot be discovered.
        """
        integrations = await self.discover_eligible(self._max_integrations)
        return await self._fan_out(integrations, deadline)

    @traced("sync.run_for_tenant")
    async def run_for_tenant(self, tenant_id: str, deadline: Deadline) -> RunSummary:
        """On-demand run scoped to one tenant's integrations.

        Capped at max_integrations like the periodic run, oldest watermark first.
        """
        integrations = (await self.discover_for_tenant(tenant_id))[: self._max_integrations]
        return await self._fan_out(integrations, deadline)

    async def _fan_out(self, integrations: list[Integration], deadline: Deadline) -> RunSummary:
        started = deadline.now()
        aggregator = ResultAggregator()
        semaphore = asyncio.Semaphore(self._max_concurrency)
        run_timed_out = False

        async def run_one(integration: Integration) -> None:
            nonlocal run_timed_out
            async with semaphore:
                if deadline.expired():
                    run_timed_out = True
                    return
                await self._run_claimed(integration, deadline, aggregator)

        if self._max_concurrency == 1:
            for integration in integrations:
                await run_one(integration)
        else:
            await asyncio.gather(*(run_one(i) for i in integrations))

        summary = aggregator.summarize(
            total=len(integrations),
            duration_ms=int((deadline.now() - started) * 1000),
            run_timed_out=run_timed_out,
        )
        add_span_attributes(
            **{
                "sync.total": summary.total,
                "sync.synced": summary.synced,
                "sync.timed_out": summary.timed_out,
            }
        )
        logger.info(
            "Sync run finished: synced=%d/%d processed=%d threats=%d timed_out=%s",
            summary.synced,
            summary.total,
            summary.total_emails_processed,
            summary.total_threats_found,
            summary.timed_out,
        )
        return summary

    async def _run_claimed(
        self,
        integration: Integration,
        deadline: Deadline,
        aggregator: ResultAggregator,
    ) -> None:
        lease_until = self._clock() + self._lease_ttl
        try:
            claimed = await self._store.try_claim(integration.id, self._worker_id, lease_until)
        except Exception as e:
            logger.warning("Could not claim integration %s: %s", integration.id, e)
            aggregator.add_boundary_error(
                integration.tenant_id, boundary_error(integration.id, e, classify_error(e))
            )
            return
        if claimed is None:
            logger.info("Integration %s is leased by another worker; skipping", integration.id)
            return

        try:
            attempt = await self._sync_loop.run(
                claimed, deadline.child(self._integration_budget)
            )
            aggregator.add(attempt)
        except Exception as e:
            logger.error(
                "Unexpected error syncing integration %s: %s",
                integration.id,
                e,
                exc_info=True,
            )
            set_span_error(e)
            aggregator.add_boundary_error(
                integration.tenant_id, boundary_error(integration.id, e, classify_error(e))
            )
            try:
                await self._store.mark_error(integration.id, str(e) or type(e).__name__)
            except Exception as mark_exc:
                logger.warning(
                    "Could not mark integration %s as error: %s", integration.id, mark_exc
                )
        finally:
            try:
                await self._store.release(integration.id, self._worker_id)
            except Exception as e:
                logger.warning("Could not release lease on %s: %s", integration.id, e)
