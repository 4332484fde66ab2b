"""Create sync worker tables

Revision ID: a1c2e3g4i5k6
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates integration (credentials, watermark, lease), email_verdict
(dedup marker + detection result) and the append-only audit_log.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c2e3g4i5k6"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create integration, email_verdict and audit_log."""
    op.create_table(
        "integration",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("provider_type", sa.String(length=16), nullable=False),
        sa.Column("email_address", sa.String(), nullable=True),
        sa.Column("credentials_encrypted", sa.Text(), nullable=False),
        sa.Column("credential_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("connection_id", sa.String(), nullable=True),
        sa.Column("external_user_id", sa.String(), nullable=True),
        sa.Column("sync_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("watermark", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="connected"),
        sa.Column("last_error_message", sa.Text(), nullable=True),
        sa.Column("sync_lease_owner", sa.String(), nullable=True),
        sa.Column("sync_lease_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "provider_type", name="uq_integration_tenant_provider"),
    )
    op.create_index("ix_integration_tenant_id", "integration", ["tenant_id"])
    op.create_index("ix_integration_status", "integration", ["status"])
    # Due-integration scan: status + enabled, oldest watermark first
    op.create_index(
        "ix_integration_sync_due", "integration", ["status", "sync_enabled", "watermark"]
    )

    op.create_table(
        "email_verdict",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("message_id", sa.String(), nullable=False),
        sa.Column("internet_message_id", sa.String(), nullable=True),
        sa.Column("subject", sa.Text(), nullable=True),
        sa.Column("from_address", sa.String(), nullable=True),
        sa.Column("received_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("classification", sa.String(length=16), nullable=False),
        sa.Column("overall_score", sa.Float(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False, server_default="0"),
        sa.Column("signals", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "message_id", name="uq_email_verdict_tenant_message"),
    )
    op.create_index("ix_email_verdict_tenant_id", "email_verdict", ["tenant_id"])
    op.create_index("ix_email_verdict_classification", "email_verdict", ["classification"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("tenant_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=True),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("resource_type", sa.String(), nullable=False),
        sa.Column("resource_id", sa.String(), nullable=True),
        sa.Column("new_values", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_tenant_id", "audit_log", ["tenant_id"])
    op.create_index(
        "ix_audit_log_resource", "audit_log", ["resource_type", "resource_id", "timestamp"]
    )


def downgrade() -> None:
    """Drop sync worker tables."""
    op.drop_index("ix_audit_log_resource", table_name="audit_log")
    op.drop_index("ix_audit_log_tenant_id", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_index("ix_email_verdict_classification", table_name="email_verdict")
    op.drop_index("ix_email_verdict_tenant_id", table_name="email_verdict")
    op.drop_table("email_verdict")
    op.drop_index("ix_integration_sync_due", table_name="integration")
    op.drop_index("ix_integration_status", table_name="integration")
    op.drop_index("ix_integration_tenant_id", table_name="integration")
    op.drop_table("integration")
