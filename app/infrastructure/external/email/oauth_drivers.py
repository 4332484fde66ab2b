"""OAuth provider drivers: token exchange and refresh against provider token endpoints."""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, ClassVar

import httpx

from app.domain.enums import ProviderType
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)


@dataclass
class OAuthTokens:
    """Normalized OAuth token response."""

    access_token: str
    refresh_token: str | None
    token_type: str
    expires_in: int
    expires_at: datetime
    scope: str


class OAuthDriver(ABC):
    """Token endpoint client for one provider family.

    Uses the caller's shared httpx.AsyncClient so connection pools are reused
    across integrations in a run.
    """

    PROVIDER_NAME: ClassVar[str]
    PROVIDER_TYPE: ClassVar[ProviderType]
    DEFAULT_SCOPES: ClassVar[list[str]] = []

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        http_client: httpx.AsyncClient,
        scopes: list[str] | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = scopes if scopes is not None else list(self.DEFAULT_SCOPES)
        self._http = http_client

    @property
    def token_endpoint(self) -> str:
        raise NotImplementedError

    def _extra_token_params(self) -> dict[str, str]:
        """Provider-specific form fields added to every token request."""
        return {}

    async def _post_token(self, data: dict[str, str], operation: str) -> dict[str, Any]:
        response = await self._http.post(
            self.token_endpoint,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                **self._extra_token_params(),
                **data,
            },
        )
        if response.status_code != 200:
            logger.error(
                "%s token %s failed: status=%d",
                self.PROVIDER_NAME,
                operation,
                response.status_code,
            )
            detail = _error_detail(response)
            raise ValueError(
                f"Token {operation} failed with status {response.status_code}"
                + (f": {detail}" if detail else "")
            )
        return response.json()

    async def exchange_code_for_tokens(self, code: str) -> OAuthTokens:
        """Exchange an authorization code for tokens."""
        token_data = await self._post_token(
            {
                "code": code,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            },
            "exchange",
        )
        return self._normalize_token_response(token_data)

    async def refresh_access_token(self, refresh_token: str) -> OAuthTokens:
        """Refresh the access token.

        Providers that do not rotate refresh tokens omit it from the response;
        the original refresh token is carried over in that case.
        """
        token_data = await self._post_token(
            {"refresh_token": refresh_token, "grant_type": "refresh_token"},
            "refresh",
        )
        tokens = self._normalize_token_response(token_data)
        if not tokens.refresh_token:
            tokens.refresh_token = refresh_token
        return tokens

    def _normalize_token_response(self, token_data: dict[str, Any]) -> OAuthTokens:
        if "access_token" not in token_data:
            raise ValueError("Token response missing access_token")
        expires_in = int(token_data.get("expires_in", 3600))
        return OAuthTokens(
            access_token=token_data["access_token"],
            refresh_token=token_data.get("refresh_token"),
            token_type=token_data.get("token_type", "Bearer"),
            expires_in=expires_in,
            expires_at=utc_now() + timedelta(seconds=expires_in),
            scope=token_data.get("scope", " ".join(self.scopes)),
        )


def _error_detail(response: httpx.Response) -> str:
    """OAuth error code from a failed token response (never the body itself)."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return str(body.get("error") or "")
    return ""


class GmailDriver(OAuthDriver):
    """Google OAuth driver."""

    PROVIDER_NAME = "Gmail"
    PROVIDER_TYPE = ProviderType.GMAIL
    DEFAULT_SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]

    @property
    def token_endpoint(self) -> str:
        return "https://oauth2.googleapis.com/token"


class OutlookDriver(OAuthDriver):
    """Microsoft 365 OAuth driver. Microsoft requires scope on refresh."""

    PROVIDER_NAME = "Microsoft 365"
    PROVIDER_TYPE = ProviderType.O365
    DEFAULT_SCOPES = ["offline_access", "Mail.Read", "User.Read"]

    def __init__(self, *args: Any, tenant: str = "common", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.tenant = tenant or "common"

    @property
    def token_endpoint(self) -> str:
        return f"https://login.microsoftonline.com/{self.tenant}/oauth2/v2.0/token"

    def _extra_token_params(self) -> dict[str, str]:
        return {"scope": " ".join(self.scopes)}


class OAuthDriverRegistry:
    """Registry for OAuth drivers by provider type."""

    _drivers: ClassVar[dict[ProviderType, type[OAuthDriver]]] = {
        ProviderType.GMAIL: GmailDriver,
        ProviderType.O365: OutlookDriver,
    }

    def __init__(self, settings: Any, http_client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http_client

    def get_driver(self, provider_type: ProviderType | str) -> OAuthDriver:
        """Build the driver for a provider with client credentials from settings."""
        try:
            provider = ProviderType(provider_type)
        except ValueError:
            raise ValueError(
                f"Unsupported provider: {provider_type}. "
                f"Supported: {', '.join(p.value for p in self._drivers)}"
            ) from None
        s = self._settings
        if provider == ProviderType.GMAIL:
            return GmailDriver(
                s.google_client_id,
                s.google_client_secret.get_secret_value(),
                s.oauth_redirect_uri,
                http_client=self._http,
            )
        return OutlookDriver(
            s.microsoft_client_id,
            s.microsoft_client_secret.get_secret_value(),
            s.oauth_redirect_uri,
            http_client=self._http,
            tenant=s.microsoft_tenant,
        )

    @classmethod
    def list_providers(cls) -> list[str]:
        return [p.value for p in cls._drivers]
