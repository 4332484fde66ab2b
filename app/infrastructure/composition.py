"""Sync worker wiring: builds the scheduler from settings and shared clients.

Used by the API dependencies and by the command-line runner so both paths
assemble the worker identically.
"""

from datetime import timedelta

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.services.message_pipeline import MessagePipelineAdapter
from app.application.services.token_lifecycle import TokenLifecycleManager
from app.application.use_cases.sync.deadline import Deadline
from app.application.use_cases.sync.scheduler import IntegrationScheduler
from app.application.use_cases.sync.sync_loop import SyncLoop
from app.core.config import Settings
from app.domain.enums import ProviderType
from app.infrastructure.external.connections.client import ConnectionDirectoryClient
from app.infrastructure.external.detection.client import HttpDetectionPipeline
from app.infrastructure.external.email.encryption import CredentialEncryptor
from app.infrastructure.external.email.factory import ProviderClientFactory
from app.infrastructure.external.email.oauth_drivers import OAuthDriverRegistry
from app.infrastructure.external.email.parsers import parse_raw_message
from app.infrastructure.services.audit_sink import SqlAuditSink
from app.infrastructure.services.integration_store import SqlIntegrationStore
from app.infrastructure.services.verdict_store import SqlVerdictStore


def _secret(value) -> str | None:
    return value.get_secret_value() if value is not None else None


def build_sync_scheduler(
    settings: Settings,
    *,
    http_client: httpx.AsyncClient,
    session_factory: async_sessionmaker[AsyncSession],
) -> IntegrationScheduler:
    store = SqlIntegrationStore(session_factory, CredentialEncryptor())
    verdicts = SqlVerdictStore(session_factory)
    tokens = TokenLifecycleManager(
        OAuthDriverRegistry(settings, http_client),
        store,
        skew=timedelta(seconds=settings.sync_token_refresh_skew_seconds),
    )
    pipeline = MessagePipelineAdapter(
        parse_raw_message,
        HttpDetectionPipeline(
            settings.detection_service_url,
            http_client=http_client,
            token=_secret(settings.detection_service_token),
            timeout_seconds=settings.detection_timeout_seconds,
        ),
        verdicts,
    )
    sync_loop = SyncLoop(
        tokens,
        ProviderClientFactory(http_client=http_client),
        pipeline,
        verdicts,
        store,
        SqlAuditSink(session_factory),
        max_messages=settings.sync_max_messages_per_integration,
        default_lookback=timedelta(hours=settings.sync_default_lookback_hours),
        threat_threshold=settings.sync_threat_score_threshold,
    )
    connections = None
    if settings.connection_service_secret_key is not None:
        connections = ConnectionDirectoryClient(
            settings.connection_service_url,
            http_client=http_client,
            secret_key=_secret(settings.connection_service_secret_key),
        )
    return IntegrationScheduler(
        store,
        sync_loop,
        connections,
        provider_config_keys={
            ProviderType.GMAIL: settings.connection_provider_key_gmail,
            ProviderType.O365: settings.connection_provider_key_o365,
        },
        max_integrations=settings.sync_max_integrations_per_run,
        min_interval=timedelta(minutes=settings.sync_min_interval_minutes),
        integration_budget_seconds=settings.sync_integration_budget_seconds,
        max_concurrency=settings.sync_max_concurrency,
        lease_ttl=timedelta(
            seconds=settings.sync_run_budget_seconds + settings.sync_lease_margin_seconds
        ),
    )


def new_run_deadline(settings: Settings) -> Deadline:
    return Deadline(settings.sync_run_budget_seconds)
