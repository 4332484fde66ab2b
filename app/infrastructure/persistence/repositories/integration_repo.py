"""Integration repository. Every mutation is a single UPDATE statement."""

from datetime import datetime

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.enums import IntegrationStatus
from app.infrastructure.persistence.models.integration import IntegrationModel
from app.infrastructure.persistence.repositories.base import BaseRepository


class IntegrationRepository(BaseRepository[IntegrationModel]):
    """Queries and atomic updates over the integration table."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, IntegrationModel)

    async def get_due(
        self, due_before: datetime, limit: int
    ) -> list[IntegrationModel]:
        """Connected, enabled rows never synced or synced before due_before.

        Ordered oldest watermark first, never-synced rows leading.
        """
        stmt = (
            select(IntegrationModel)
            .where(
                IntegrationModel.status == IntegrationStatus.CONNECTED.value,
                IntegrationModel.sync_enabled.is_(True),
                or_(
                    IntegrationModel.watermark.is_(None),
                    IntegrationModel.watermark < due_before,
                ),
            )
            .order_by(IntegrationModel.watermark.asc().nulls_first())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_by_tenant(self, tenant_id: str) -> list[IntegrationModel]:
        """Enabled rows of one tenant in connected or error status."""
        stmt = (
            select(IntegrationModel)
            .where(
                IntegrationModel.tenant_id == tenant_id,
                IntegrationModel.sync_enabled.is_(True),
                IntegrationModel.status.in_(
                    [IntegrationStatus.CONNECTED.value, IntegrationStatus.ERROR.value]
                ),
            )
            .order_by(IntegrationModel.watermark.asc().nulls_first())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def update_credentials(
        self,
        integration_id: str,
        credentials_encrypted: str,
        expires_at: datetime | None,
    ) -> None:
        await self.db.execute(
            update(IntegrationModel)
            .where(IntegrationModel.id == integration_id)
            .values(
                credentials_encrypted=credentials_encrypted,
                credential_expires_at=expires_at,
            )
        )

    async def set_connection_id(self, integration_id: str, connection_id: str) -> bool:
        """Backfill connection_id only where it is still missing."""
        return await self._updated(
            update(IntegrationModel)
            .where(
                IntegrationModel.id == integration_id,
                IntegrationModel.connection_id.is_(None),
            )
            .values(connection_id=connection_id)
        )

    async def complete_pass(self, integration_id: str, watermark: datetime) -> None:
        """Advance watermark monotonically, set connected and clear the last error."""
        await self.db.execute(
            update(IntegrationModel)
            .where(IntegrationModel.id == integration_id)
            .values(
                watermark=func.greatest(
                    func.coalesce(IntegrationModel.watermark, watermark), watermark
                ),
                status=IntegrationStatus.CONNECTED.value,
                last_error_message=None,
            )
        )

    async def mark_error(self, integration_id: str, message: str) -> None:
        await self.db.execute(
            update(IntegrationModel)
            .where(IntegrationModel.id == integration_id)
            .values(status=IntegrationStatus.ERROR.value, last_error_message=message)
        )

    async def try_claim(
        self, integration_id: str, owner: str, lease_until: datetime, now: datetime
    ) -> IntegrationModel | None:
        """Take the sync lease when free, expired or already ours.

        Returns the row as it stands after the claim, or None when another
        worker holds a live lease.
        """
        result = await self.db.execute(
            update(IntegrationModel)
            .where(
                IntegrationModel.id == integration_id,
                or_(
                    IntegrationModel.sync_lease_owner.is_(None),
                    IntegrationModel.sync_lease_owner == owner,
                    IntegrationModel.sync_lease_expires_at < now,
                ),
            )
            .values(sync_lease_owner=owner, sync_lease_expires_at=lease_until)
            .returning(IntegrationModel)
        )
        return result.scalar_one_or_none()

    async def release(self, integration_id: str, owner: str) -> None:
        await self.db.execute(
            update(IntegrationModel)
            .where(
                IntegrationModel.id == integration_id,
                IntegrationModel.sync_lease_owner == owner,
            )
            .values(sync_lease_owner=None, sync_lease_expires_at=None)
        )
