"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.audit_log_repo import AuditLogRepository
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.email_verdict_repo import (
    EmailVerdictRepository,
)
from app.infrastructure.persistence.repositories.integration_repo import (
    IntegrationRepository,
)

__all__ = [
    "AuditLogRepository",
    "BaseRepository",
    "EmailVerdictRepository",
    "IntegrationRepository",
]
