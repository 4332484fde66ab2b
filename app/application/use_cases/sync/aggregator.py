"""Result aggregator: merge integration passes into a RunSummary."""

from collections import Counter

from app.application.dtos.sync import IntegrationRunResult, RunSummary, SyncAttempt, SyncError
from app.domain.enums import SyncErrorCategory

MAX_SAMPLES_PER_CATEGORY = 3
MAX_FLAT_ERRORS = 50


class ResultAggregator:
    """Collects attempts and boundary errors for one run.

    Samples are deduplicated by message and capped per category so the
    summary size does not grow with the number of integrations.
    """

    def __init__(self, max_samples_per_category: int = MAX_SAMPLES_PER_CATEGORY) -> None:
        self._max_samples = max_samples_per_category
        self._attempts: list[SyncAttempt] = []
        self._boundary_errors: list[tuple[str, SyncError]] = []

    def add(self, attempt: SyncAttempt) -> None:
        self._attempts.append(attempt)

    def add_boundary_error(self, tenant_id: str, error: SyncError) -> None:
        """Error caught at the integration boundary (no attempt produced)."""
        self._boundary_errors.append((tenant_id, error))

    def _all_errors(self) -> list[tuple[str, SyncError]]:
        errors = [
            (a.integration.tenant_id, e) for a in self._attempts for e in a.errors
        ]
        return errors + self._boundary_errors

    def summarize(self, *, total: int, duration_ms: int, run_timed_out: bool) -> RunSummary:
        errors = self._all_errors()
        histogram: Counter[str] = Counter()
        samples: dict[str, list[str]] = {}
        for _, error in errors:
            key = error.category.value
            histogram[key] += 1
            bucket = samples.setdefault(key, [])
            if error.message not in bucket and len(bucket) < self._max_samples:
                bucket.append(error.message)

        flat = [f"{tenant_id}: {error.message}" for tenant_id, error in errors][
            :MAX_FLAT_ERRORS
        ]
        return RunSummary(
            synced=sum(1 for a in self._attempts if a.succeeded),
            total=total,
            total_emails_processed=sum(a.emails_processed for a in self._attempts),
            total_emails_skipped=sum(a.emails_skipped for a in self._attempts),
            total_threats_found=sum(a.threats_found for a in self._attempts),
            duration_ms=duration_ms,
            timed_out=run_timed_out or any(a.timed_out for a in self._attempts),
            errors=flat,
            error_histogram=dict(histogram),
            error_samples=samples,
            integrations=[
                IntegrationRunResult(
                    integration_id=a.integration.id,
                    tenant_id=a.integration.tenant_id,
                    state=a.state,
                    duration_ms=a.duration_ms,
                    emails_processed=a.emails_processed,
                    emails_skipped=a.emails_skipped,
                    threats_found=a.threats_found,
                    error_count=len(a.errors),
                )
                for a in self._attempts
            ],
        )


def boundary_error(integration_id: str, error: Exception, category: SyncErrorCategory) -> SyncError:
    """SyncError for an exception caught outside the sync loop."""
    return SyncError(
        message=str(error) or type(error).__name__,
        category=category,
        stage=SyncErrorCategory.UNKNOWN,
        integration_id=integration_id,
    )
