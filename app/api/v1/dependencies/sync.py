"""Sync trigger dependencies: cron secret, tenant session, scheduler, limiter."""

from __future__ import annotations

import hmac
from typing import Annotated

import httpx
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.application.use_cases.sync.deadline import Deadline
from app.application.use_cases.sync.scheduler import IntegrationScheduler
from app.core.config import Settings, get_settings
from app.core.limiter import SlidingWindowRateLimiter
from app.domain.exceptions import AuthenticationException, RateLimitExceededException
from app.infrastructure.composition import build_sync_scheduler, new_run_deadline
from app.infrastructure.persistence.database import get_session_factory
from app.infrastructure.security.jwt import SessionClaims, verify_session_token

_http_bearer = HTTPBearer(auto_error=False)


def verify_cron_secret(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> None:
    """Require `Authorization: Bearer <CRON_SECRET>`. An unset secret rejects every call."""
    expected = settings.cron_secret.get_secret_value()
    if not expected or credentials is None:
        raise AuthenticationException()
    if not hmac.compare_digest(
        credentials.credentials.encode("utf-8"), expected.encode("utf-8")
    ):
        raise AuthenticationException()


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_http_bearer)],
) -> SessionClaims:
    """Resolve the session JWT into (user_id, tenant_id). 401 when missing or invalid."""
    if credentials is None:
        raise AuthenticationException("Not authenticated")
    try:
        return verify_session_token(credentials.credentials)
    except ValueError as e:
        raise AuthenticationException("Could not validate credentials") from e


def get_tenant_sync_limiter(request: Request) -> SlidingWindowRateLimiter:
    """Per-tenant limiter created at startup (see lifespan)."""
    limiter = getattr(request.app.state, "tenant_sync_limiter", None)
    if limiter is None:
        settings = get_settings()
        limiter = SlidingWindowRateLimiter(
            settings.sync_tenant_requests_per_window,
            settings.sync_tenant_window_seconds,
        )
        request.app.state.tenant_sync_limiter = limiter
    return limiter


def enforce_tenant_rate_limit(
    principal: Annotated[SessionClaims, Depends(get_current_principal)],
    limiter: Annotated[SlidingWindowRateLimiter, Depends(get_tenant_sync_limiter)],
) -> SessionClaims:
    """Raise RateLimitExceededException (429) when the tenant is over its window."""
    retry_after = limiter.hit(principal.tenant_id)
    if retry_after:
        raise RateLimitExceededException(principal.tenant_id, retry_after)
    return principal


def get_sync_scheduler(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> IntegrationScheduler:
    """Scheduler wired against the shared HTTP client and SQL stores (composition root)."""
    http_client: httpx.AsyncClient | None = getattr(
        request.app.state, "oauth_http_client", None
    )
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=30.0)
        request.app.state.oauth_http_client = http_client
    return build_sync_scheduler(
        settings,
        http_client=http_client,
        session_factory=get_session_factory(),
    )


def get_run_deadline(settings: Annotated[Settings, Depends(get_settings)]) -> Deadline:
    """Fresh run deadline starting now."""
    return new_run_deadline(settings)
