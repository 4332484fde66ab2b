"""ORM models for the sync worker tables. Imported by Alembic env for metadata."""

from app.infrastructure.persistence.models.audit_log import AuditLog
from app.infrastructure.persistence.models.email_verdict import EmailVerdict
from app.infrastructure.persistence.models.integration import IntegrationModel

__all__ = [
    "AuditLog",
    "EmailVerdict",
    "IntegrationModel",
]
