"""Verdict store: SQL-backed dedup lookup and verdict persistence."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.domain.value_objects.email import ParsedEmail, Verdict
from app.infrastructure.persistence.database import session_scope
from app.infrastructure.persistence.repositories.email_verdict_repo import (
    EmailVerdictRepository,
)


class SqlVerdictStore:
    """store_verdict commits before returning, so exists() sees it immediately."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = session_factory

    async def exists(self, tenant_id: str, message_id: str) -> bool:
        async with session_scope(self._factory) as session:
            return await EmailVerdictRepository(session).exists(tenant_id, message_id)

    async def store_verdict(
        self,
        tenant_id: str,
        message_id: str,
        verdict: Verdict,
        email: ParsedEmail | None = None,
    ) -> None:
        values = {
            "classification": verdict.classification.value,
            "overall_score": verdict.overall_score,
            "confidence": verdict.confidence,
            "signals": verdict.signals,
        }
        if email is not None:
            values.update(
                internet_message_id=email.message_id,
                subject=email.subject,
                from_address=email.from_.address,
                received_at=email.date,
            )
        async with session_scope(self._factory) as session:
            await EmailVerdictRepository(session).upsert(tenant_id, message_id, values)
