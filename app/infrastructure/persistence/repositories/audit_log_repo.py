"""Audit log repository. Append-only."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.models.audit_log import AuditLog
from app.shared.utils.generators import generate_cuid


class AuditLogRepository:
    """Append-only audit log repository. No update/delete."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def append(
        self,
        *,
        tenant_id: str,
        action: str,
        resource_type: str,
        resource_id: str | None,
        new_values: dict[str, Any] | None,
        success: bool = True,
        error_message: str | None = None,
        user_id: str | None = None,
    ) -> None:
        """Append one audit log entry."""
        self.db.add(
            AuditLog(
                id=generate_cuid(),
                tenant_id=tenant_id,
                user_id=user_id,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                new_values=new_values,
                success=success,
                error_message=error_message,
            )
        )
        await self.db.flush()
