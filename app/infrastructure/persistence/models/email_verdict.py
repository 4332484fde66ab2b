"""EmailVerdict ORM model. One detection verdict per (tenant, provider message id)."""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Float, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import TenantScopedModel


class EmailVerdict(TenantScopedModel, Base):
    """Stored verdict. Its existence is the sync worker's dedup marker. Table: email_verdict."""

    __tablename__ = "email_verdict"
    __table_args__ = (
        UniqueConstraint("tenant_id", "message_id", name="uq_email_verdict_tenant_message"),
    )

    message_id: Mapped[str] = mapped_column(String, nullable=False)
    internet_message_id: Mapped[str | None] = mapped_column(String, nullable=True)
    subject: Mapped[str | None] = mapped_column(Text, nullable=True)
    from_address: Mapped[str | None] = mapped_column(String, nullable=True)
    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    classification: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    overall_score: Mapped[float] = mapped_column(Float, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    signals: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)
