"""Infrastructure services: SQL-backed stores and sinks used by the sync worker."""

from app.infrastructure.services.audit_sink import SqlAuditSink
from app.infrastructure.services.integration_store import SqlIntegrationStore
from app.infrastructure.services.verdict_store import SqlVerdictStore

__all__ = [
    "SqlAuditSink",
    "SqlIntegrationStore",
    "SqlVerdictStore",
]
