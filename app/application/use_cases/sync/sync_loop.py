"""Sync loop: one integration's incremental pass.

States: init -> credential_check -> listing -> processing_items ->
finalizing -> done, with aborted reachable on integration-level errors.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from app.application.dtos.sync import SyncAttempt, SyncError
from app.application.services.error_classifier import classify_error
from app.domain.enums import SyncErrorCategory, SyncState
from app.domain.exceptions import ListMessagesError, TokenRefreshError
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_attributes, traced
from app.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from app.application.interfaces.sync import (
        IAuditSink,
        IIntegrationStore,
        IProviderClientFactory,
        IVerdictStore,
    )
    from app.application.services.message_pipeline import MessagePipelineAdapter
    from app.application.services.token_lifecycle import TokenLifecycleManager
    from app.application.use_cases.sync.deadline import Deadline
    from app.domain.entities.integration import Integration
    from app.infrastructure.external.email.protocols import IMailProviderClient, MessageRef

logger = get_logger(__name__)


class SyncLoop:
    """Runs one pass for one integration within a deadline.

    Item errors are recorded and skipped; token and listing errors abort the
    pass and mark the integration error. The deadline is checked before each
    item only; an in-flight fetch is never interrupted.
    """

    def __init__(
        self,
        tokens: TokenLifecycleManager,
        providers: IProviderClientFactory,
        pipeline: MessagePipelineAdapter,
        verdicts: IVerdictStore,
        store: IIntegrationStore,
        audit: IAuditSink,
        *,
        max_messages: int = 20,
        default_lookback: timedelta = timedelta(hours=24),
        threat_threshold: float = 30.0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._tokens = tokens
        self._providers = providers
        self._pipeline = pipeline
        self._verdicts = verdicts
        self._store = store
        self._audit = audit
        self._max_messages = max_messages
        self._default_lookback = default_lookback
        self._threat_threshold = threat_threshold
        self._clock = clock

    @traced("sync.integration_pass")
    async def run(self, integration: Integration, deadline: Deadline) -> SyncAttempt:
        started = deadline.now()
        attempt = SyncAttempt(integration=integration)
        add_span_attributes(
            **{
                "integration.id": integration.id,
                "integration.provider": integration.provider_type.value,
            }
        )
        try:
            await self._run_states(attempt, deadline)
        finally:
            attempt.duration_ms = int((deadline.now() - started) * 1000)
            await self._audit.record_sync_pass(attempt)
        add_span_attributes(
            **{
                "sync.state": attempt.state.value,
                "sync.emails_processed": attempt.emails_processed,
                "sync.emails_skipped": attempt.emails_skipped,
                "sync.timed_out": attempt.timed_out,
            }
        )
        return attempt

    async def _run_states(self, attempt: SyncAttempt, deadline: Deadline) -> None:
        integration = attempt.integration

        # init
        attempt.started_at = self._clock()
        attempt.since = integration.sync_since(attempt.started_at, self._default_lookback)

        # credential_check
        attempt.state = SyncState.CREDENTIAL_CHECK
        try:
            access_token = await self._tokens.ensure_fresh_credential(integration)
        except TokenRefreshError as e:
            await self._abort(attempt, SyncErrorCategory.TOKEN_REFRESH_FAILED, e)
            return

        # listing
        attempt.state = SyncState.LISTING
        try:
            provider, refs = await self._list(integration, access_token, attempt.since)
        except ListMessagesError as e:
            await self._abort(attempt, SyncErrorCategory.LIST_FAILED, e)
            return

        # processing_items
        attempt.state = SyncState.PROCESSING_ITEMS
        for ref in refs:
            if deadline.expired():
                attempt.timed_out = True
                logger.info(
                    "Budget exhausted for integration %s after %d items",
                    integration.id,
                    attempt.emails_processed + attempt.emails_skipped + len(attempt.errors),
                )
                break
            try:
                if await self._verdicts.exists(integration.tenant_id, ref.id):
                    attempt.emails_skipped += 1
                    continue
                raw = await provider.fetch_full(access_token, ref)
                verdict = await self._pipeline.process(raw, integration.tenant_id)
            except Exception as e:
                logger.warning(
                    "Message %s failed for integration %s: %s",
                    ref.id,
                    integration.id,
                    e,
                )
                attempt.errors.append(
                    SyncError(
                        message=str(e),
                        category=classify_error(e),
                        integration_id=integration.id,
                        message_id=ref.id,
                    )
                )
                continue
            attempt.emails_processed += 1
            if verdict.is_threat(self._threat_threshold):
                attempt.threats_found += 1

        # finalizing
        attempt.state = SyncState.FINALIZING
        await self._store.complete_pass(integration.id, attempt.started_at)
        attempt.state = SyncState.DONE

    async def _list(
        self, integration: Integration, access_token: str, since: datetime
    ) -> tuple[IMailProviderClient, list[MessageRef]]:
        try:
            provider = self._providers.create(integration.provider_type)
            refs = await provider.list_since(access_token, since, self._max_messages)
        except Exception as e:
            raise ListMessagesError(integration.id, str(e)) from e
        return provider, refs

    async def _abort(
        self,
        attempt: SyncAttempt,
        stage: SyncErrorCategory,
        error: Exception,
    ) -> None:
        integration = attempt.integration
        message = str(error)
        logger.warning(
            "Sync aborted for integration %s at %s: %s",
            integration.id,
            attempt.state.value,
            message,
        )
        attempt.errors.append(
            SyncError(
                message=message,
                category=classify_error(error),
                stage=stage,
                integration_id=integration.id,
            )
        )
        attempt.state = SyncState.ABORTED
        await self._store.mark_error(integration.id, message)
