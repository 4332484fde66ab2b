"""Response schemas for the sync trigger endpoints."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.application.dtos.sync import IntegrationRunResult, RunSummary
from app.domain.enums import SyncState


class IntegrationRunResponse(BaseModel):
    """Outcome of one integration pass within a run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    integration_id: str
    tenant_id: str
    state: SyncState
    duration: int = Field(..., description="Pass duration in milliseconds")
    emails_processed: int
    emails_skipped: int
    threats_found: int
    error_count: int

    @classmethod
    def from_result(cls, result: IntegrationRunResult) -> "IntegrationRunResponse":
        return cls(
            integration_id=result.integration_id,
            tenant_id=result.tenant_id,
            state=result.state,
            duration=result.duration_ms,
            emails_processed=result.emails_processed,
            emails_skipped=result.emails_skipped,
            threats_found=result.threats_found,
            error_count=result.error_count,
        )


class SyncRunResponse(BaseModel):
    """Summary of one sync run (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    synced: int
    total: int
    total_emails_processed: int
    total_emails_skipped: int
    total_threats_found: int
    duration: int = Field(..., description="Run duration in milliseconds")
    timed_out: bool
    errors: list[str] | None = None
    error_categories: dict[str, int] = Field(default_factory=dict)
    error_samples: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Up to 3 distinct error messages per category",
    )
    integrations: list[IntegrationRunResponse] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: RunSummary) -> "SyncRunResponse":
        return cls(
            synced=summary.synced,
            total=summary.total,
            total_emails_processed=summary.total_emails_processed,
            total_emails_skipped=summary.total_emails_skipped,
            total_threats_found=summary.total_threats_found,
            duration=summary.duration_ms,
            timed_out=summary.timed_out,
            errors=summary.errors or None,
            error_categories=summary.error_histogram,
            error_samples=summary.error_samples,
            integrations=[IntegrationRunResponse.from_result(r) for r in summary.integrations],
        )
