"""Presentation-layer dependency injection (composition root).

Routes depend only on these providers, never on infrastructure directly.
"""

from app.api.v1.dependencies.sync import (
    SessionClaims,
    enforce_tenant_rate_limit,
    get_current_principal,
    get_run_deadline,
    get_sync_scheduler,
    get_tenant_sync_limiter,
    verify_cron_secret,
)

__all__ = [
    "SessionClaims",
    "enforce_tenant_rate_limit",
    "get_current_principal",
    "get_run_deadline",
    "get_sync_scheduler",
    "get_tenant_sync_limiter",
    "verify_cron_secret",
]
