"""Security: session JWT verification."""

from app.infrastructure.security.jwt import (
    SessionClaims,
    issue_session_token,
    verify_session_token,
)

__all__ = [
    "SessionClaims",
    "issue_session_token",
    "verify_session_token",
]
