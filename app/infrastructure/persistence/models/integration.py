"""Integration ORM model. One tenant's connection to one mail provider."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import TenantScopedModel


class IntegrationModel(TenantScopedModel, Base):
    """Integration credentials and sync control state. Table: integration.

    credentials_encrypted holds a Fernet-encrypted CredentialSet payload;
    credential_expires_at mirrors its expiry for querying.
    """

    __tablename__ = "integration"
    __table_args__ = (
        UniqueConstraint("tenant_id", "provider_type", name="uq_integration_tenant_provider"),
        Index("ix_integration_sync_due", "status", "sync_enabled", "watermark"),
    )

    provider_type: Mapped[str] = mapped_column(String(16), nullable=False)
    email_address: Mapped[str | None] = mapped_column(String, nullable=True)
    credentials_encrypted: Mapped[str] = mapped_column(Text, nullable=False)
    credential_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    connection_id: Mapped[str | None] = mapped_column(String, nullable=True)
    external_user_id: Mapped[str | None] = mapped_column(String, nullable=True)
    sync_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    watermark: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default="connected", index=True
    )
    last_error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    sync_lease_owner: Mapped[str | None] = mapped_column(String, nullable=True)
    sync_lease_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
