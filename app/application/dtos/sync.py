"""DTOs for sync passes and run summaries."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.domain.entities.integration import Integration
from app.domain.enums import SyncErrorCategory, SyncState


@dataclass(frozen=True)
class SyncError:
    """One error from a sync pass.

    category is the advisory label (rate_limit, authentication, network,
    timeout, unknown). stage is TOKEN_REFRESH_FAILED or LIST_FAILED for
    integration-level errors, UNKNOWN for unexpected failures caught at the
    integration boundary, and None for per-item errors, which also carry
    the provider message_id.
    """

    message: str
    category: SyncErrorCategory
    stage: SyncErrorCategory | None = None
    integration_id: str | None = None
    message_id: str | None = None

    @property
    def is_fatal(self) -> bool:
        return self.stage is not None


@dataclass
class SyncAttempt:
    """Unit of work for one integration in one run. Not persisted."""

    integration: Integration
    since: datetime | None = None
    started_at: datetime | None = None
    state: SyncState = SyncState.INIT
    emails_processed: int = 0
    emails_skipped: int = 0
    threats_found: int = 0
    timed_out: bool = False
    errors: list[SyncError] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def aborted(self) -> bool:
        return self.state == SyncState.ABORTED

    @property
    def succeeded(self) -> bool:
        """Pass reached Done (item-level errors do not count as failure)."""
        return self.state == SyncState.DONE

    def audit_values(self) -> dict[str, Any]:
        return {
            "emails_processed": self.emails_processed,
            "emails_skipped": self.emails_skipped,
            "threats_found": self.threats_found,
            "errors": len(self.errors),
            "timed_out": self.timed_out,
            "state": self.state.value,
        }


@dataclass(frozen=True)
class IntegrationRunResult:
    integration_id: str
    tenant_id: str
    state: SyncState
    duration_ms: int
    emails_processed: int
    emails_skipped: int
    threats_found: int
    error_count: int


@dataclass(frozen=True)
class RunSummary:
    """Aggregated result of one run. Built fresh per invocation, never persisted."""

    synced: int
    total: int
    total_emails_processed: int
    total_emails_skipped: int
    total_threats_found: int
    duration_ms: int
    timed_out: bool
    errors: list[str]
    error_histogram: dict[str, int]
    error_samples: dict[str, list[str]]
    integrations: list[IntegrationRunResult]
