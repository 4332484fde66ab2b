"""Audit sink: one append-only audit row per integration sync pass."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.sync import SyncAttempt
from app.infrastructure.persistence.database import session_scope
from app.infrastructure.persistence.repositories.audit_log_repo import AuditLogRepository
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

SYNC_AUDIT_ACTION = "email.sync"
SYNC_AUDIT_RESOURCE = "integration"


class SqlAuditSink:
    """Fire-and-forget: failures are logged and never reach the sync loop."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = session_factory

    async def record_sync_pass(self, attempt: SyncAttempt) -> None:
        integration = attempt.integration
        last_fatal = next((e for e in reversed(attempt.errors) if e.is_fatal), None)
        try:
            async with session_scope(self._factory) as session:
                await AuditLogRepository(session).append(
                    tenant_id=integration.tenant_id,
                    action=SYNC_AUDIT_ACTION,
                    resource_type=SYNC_AUDIT_RESOURCE,
                    resource_id=integration.id,
                    new_values=attempt.audit_values(),
                    success=not attempt.aborted,
                    error_message=last_fatal.message if last_fatal else None,
                )
        except Exception as e:
            logger.warning(
                "Audit append failed for integration %s: %s", integration.id, e
            )
