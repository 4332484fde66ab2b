"""Integration store: SQL-backed implementation of IIntegrationStore.

Each method opens its own short transaction so concurrent sync passes never
share a session, and each write is one UPDATE on the integration row.
"""

from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.entities.integration import CredentialSet, Integration
from app.domain.enums import IntegrationStatus, ProviderType
from app.domain.exceptions import CredentialException
from app.infrastructure.external.email.encryption import CredentialEncryptor
from app.infrastructure.persistence.database import session_scope
from app.infrastructure.persistence.models.integration import IntegrationModel
from app.infrastructure.persistence.repositories.integration_repo import (
    IntegrationRepository,
)
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import ensure_utc, utc_now

logger = get_logger(__name__)

# Error messages are shown in the dashboard; keep them short.
MAX_ERROR_MESSAGE_LENGTH = 500


class SqlIntegrationStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        encryptor: CredentialEncryptor,
    ) -> None:
        self._factory = session_factory
        self._encryptor = encryptor

    def _to_entity(self, row: IntegrationModel) -> Integration:
        """Map a row to the domain entity.

        Undecryptable credentials map to an empty set so the pass fails at
        the credential check for this integration only.
        """
        try:
            credentials = self._encryptor.decrypt_credentials(row.credentials_encrypted)
        except CredentialException as e:
            logger.warning("Unreadable credentials on integration %s: %s", row.id, e)
            credentials = CredentialSet(access_token="", refresh_token=None, expires_at=None)
        return Integration(
            id=row.id,
            tenant_id=row.tenant_id,
            provider_type=ProviderType(row.provider_type),
            credentials=credentials,
            status=IntegrationStatus(row.status),
            sync_enabled=row.sync_enabled,
            watermark=ensure_utc(row.watermark),
            connection_id=row.connection_id,
            external_user_id=row.external_user_id,
            email_address=row.email_address,
            last_error_message=row.last_error_message,
        )

    async def discover_eligible(
        self, max_count: int, min_interval: timedelta, now: datetime
    ) -> list[Integration]:
        async with session_scope(self._factory) as session:
            rows = await IntegrationRepository(session).get_due(now - min_interval, max_count)
            return [self._to_entity(r) for r in rows]

    async def list_for_tenant(self, tenant_id: str) -> list[Integration]:
        async with session_scope(self._factory) as session:
            rows = await IntegrationRepository(session).get_by_tenant(tenant_id)
            return [self._to_entity(r) for r in rows]

    async def save_credentials(self, integration_id: str, credentials: CredentialSet) -> None:
        encrypted = self._encryptor.encrypt_credentials(credentials)
        async with session_scope(self._factory) as session:
            await IntegrationRepository(session).update_credentials(
                integration_id, encrypted, credentials.expires_at
            )

    async def backfill_connection(self, integration_id: str, connection_id: str) -> None:
        async with session_scope(self._factory) as session:
            await IntegrationRepository(session).set_connection_id(integration_id, connection_id)

    async def complete_pass(self, integration_id: str, watermark: datetime) -> None:
        async with session_scope(self._factory) as session:
            await IntegrationRepository(session).complete_pass(integration_id, watermark)

    async def mark_error(self, integration_id: str, message: str) -> None:
        async with session_scope(self._factory) as session:
            await IntegrationRepository(session).mark_error(
                integration_id, message[:MAX_ERROR_MESSAGE_LENGTH]
            )

    async def try_claim(
        self, integration_id: str, owner: str, lease_until: datetime
    ) -> Integration | None:
        async with session_scope(self._factory) as session:
            row = await IntegrationRepository(session).try_claim(
                integration_id, owner, lease_until, utc_now()
            )
            return self._to_entity(row) if row is not None else None

    async def release(self, integration_id: str, owner: str) -> None:
        async with session_scope(self._factory) as session:
            await IntegrationRepository(session).release(integration_id, owner)
