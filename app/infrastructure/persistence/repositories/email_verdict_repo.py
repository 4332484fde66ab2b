"""Email verdict repository: dedup lookup and verdict upsert."""

from typing import Any

from sqlalchemy import literal, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.models.email_verdict import EmailVerdict
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.utils.generators import generate_cuid


class EmailVerdictRepository(BaseRepository[EmailVerdict]):
    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, EmailVerdict)

    async def exists(self, tenant_id: str, message_id: str) -> bool:
        stmt = (
            select(literal(1))
            .select_from(EmailVerdict)
            .where(
                EmailVerdict.tenant_id == tenant_id,
                EmailVerdict.message_id == message_id,
            )
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def upsert(self, tenant_id: str, message_id: str, values: dict[str, Any]) -> None:
        """Insert or overwrite the verdict for (tenant_id, message_id)."""
        stmt = insert(EmailVerdict).values(
            id=generate_cuid(), tenant_id=tenant_id, message_id=message_id, **values
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_email_verdict_tenant_message",
            set_={key: stmt.excluded[key] for key in values},
        )
        await self.db.execute(stmt)
