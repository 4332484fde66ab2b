"""Session JWTs for the on-demand sync endpoint.

The account service issues sessions; the worker only verifies them. Every
session must name the tenant it acts for. `issue_session_token` exists for
scripts and tests.
"""

from dataclasses import dataclass
from datetime import timedelta

from jose import JWTError, jwt

from app.core.config import get_settings
from app.shared.utils.datetime import utc_now


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    tenant_id: str


def issue_session_token(
    user_id: str,
    tenant_id: str,
    ttl: timedelta | None = None,
) -> str:
    """Signed session for (user_id, tenant_id); TTL defaults to access_token_expire_minutes."""
    settings = get_settings()
    ttl = ttl or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {"sub": user_id, "tenant_id": tenant_id, "exp": utc_now() + ttl}
    return str(
        jwt.encode(claims, settings.secret_key.get_secret_value(), algorithm=settings.algorithm)
    )


def verify_session_token(token: str) -> SessionClaims:
    """Decode a session, requiring exp, sub and tenant_id.

    Raises:
        ValueError: If the signature, expiry or claims are invalid.
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key.get_secret_value(),
            algorithms=[settings.algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        raise ValueError(f"Invalid token: {e!s}") from e
    tenant_id = payload.get("tenant_id")
    if not tenant_id:
        raise ValueError("Token missing required claim: tenant_id")
    return SessionClaims(user_id=str(payload["sub"]), tenant_id=str(tenant_id))
