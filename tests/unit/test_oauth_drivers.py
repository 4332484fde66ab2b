"""OAuth token endpoint drivers and the driver registry."""

from types import SimpleNamespace
from urllib.parse import parse_qs

import httpx
import pytest
from pydantic import SecretStr

from app.domain.enums import ProviderType
from app.infrastructure.external.email.oauth_drivers import (
    GmailDriver,
    OAuthDriverRegistry,
    OutlookDriver,
)


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def _token_handler(seen: list[httpx.Request], body: dict, status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(status, json=body)

    return handler


async def test_gmail_refresh_keeps_refresh_token_when_not_rotated() -> None:
    seen: list[httpx.Request] = []
    handler = _token_handler(seen, {"access_token": "new-access", "expires_in": 3599})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        driver = GmailDriver("cid", "csecret", "https://app.test/cb", http_client=client)
        tokens = await driver.refresh_access_token("refresh-1")

    assert str(seen[0].url) == "https://oauth2.googleapis.com/token"
    form = _form(seen[0])
    assert form["grant_type"] == "refresh_token"
    assert form["refresh_token"] == "refresh-1"
    assert form["client_id"] == "cid"
    assert "scope" not in form
    assert tokens.access_token == "new-access"
    assert tokens.refresh_token == "refresh-1"
    assert tokens.expires_in == 3599


async def test_outlook_refresh_sends_scope_to_tenant_endpoint() -> None:
    seen: list[httpx.Request] = []
    handler = _token_handler(
        seen,
        {"access_token": "a2", "refresh_token": "rotated", "expires_in": 3600},
    )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        driver = OutlookDriver(
            "cid", "csecret", "https://app.test/cb", http_client=client, tenant="contoso"
        )
        tokens = await driver.refresh_access_token("refresh-1")

    assert str(seen[0].url) == "https://login.microsoftonline.com/contoso/oauth2/v2.0/token"
    assert _form(seen[0])["scope"] == "offline_access Mail.Read User.Read"
    assert tokens.refresh_token == "rotated"


async def test_refresh_error_reports_status_and_oauth_error_code() -> None:
    handler = _token_handler(
        [], {"error": "invalid_grant", "error_description": "Token has been revoked."}, 400
    )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        driver = GmailDriver("cid", "csecret", "https://app.test/cb", http_client=client)
        with pytest.raises(ValueError) as exc_info:
            await driver.refresh_access_token("refresh-1")

    assert str(exc_info.value) == "Token refresh failed with status 400: invalid_grant"


async def test_response_without_access_token_is_rejected() -> None:
    handler = _token_handler([], {"token_type": "Bearer"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        driver = GmailDriver("cid", "csecret", "https://app.test/cb", http_client=client)
        with pytest.raises(ValueError, match="missing access_token"):
            await driver.refresh_access_token("refresh-1")


async def test_registry_builds_drivers_from_settings() -> None:
    settings = SimpleNamespace(
        google_client_id="g-id",
        google_client_secret=SecretStr("g-secret"),
        microsoft_client_id="m-id",
        microsoft_client_secret=SecretStr("m-secret"),
        microsoft_tenant="organizations",
        oauth_redirect_uri="https://app.test/cb",
    )
    async with httpx.AsyncClient() as client:
        registry = OAuthDriverRegistry(settings, client)

        gmail = registry.get_driver("gmail")
        outlook = registry.get_driver(ProviderType.O365)

        assert isinstance(gmail, GmailDriver)
        assert gmail.client_secret == "g-secret"
        assert isinstance(outlook, OutlookDriver)
        assert outlook.tenant == "organizations"
        with pytest.raises(ValueError, match="Unsupported provider"):
            registry.get_driver("imap")

    assert OAuthDriverRegistry.list_providers() == ["gmail", "o365"]
