"""Column mixins shared by the tenant-scoped tables (integration, email_verdict)."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from app.shared.utils.generators import generate_cuid


class TenantScopedMixin:
    """CUID primary key and tenant_id. Tenants live in the account service, so no FK."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)

    @declared_attr
    def tenant_id(cls) -> Mapped[str]:
        return mapped_column(String, nullable=False, index=True)


class TimestampMixin:
    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )


class TenantScopedModel(TenantScopedMixin, TimestampMixin):
    __abstract__ = True
