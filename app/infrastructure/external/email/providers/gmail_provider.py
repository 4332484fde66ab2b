"""Gmail provider client using the Gmail API (google-api-python-client)."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from app.domain.enums import ProviderType
from app.domain.exceptions import ProviderAPIError
from app.infrastructure.external.email.protocols import MessageRef, RawMessage
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import to_unix_seconds

logger = get_logger(__name__)

# Gmail caps maxResults at 500 per page.
GMAIL_PAGE_LIMIT = 500


def build_gmail_service(access_token: str) -> Any:
    """Build a Gmail API resource for one access token (static discovery, no network)."""
    creds = Credentials(token=access_token)
    return build("gmail", "v1", credentials=creds, cache_discovery=False)


class GmailProvider:
    """Gmail client: `after:` search for listing, messages.get(format=full) for fetch.

    googleapiclient is blocking; every request.execute runs in a worker thread.
    """

    def __init__(
        self,
        *,
        service_factory: Callable[[str], Any] = build_gmail_service,
    ) -> None:
        self._service_factory = service_factory
        self._services: dict[str, Any] = {}

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.GMAIL

    async def _service(self, access_token: str) -> Any:
        service = self._services.get(access_token)
        if service is None:
            service = await asyncio.to_thread(self._service_factory, access_token)
            # One token per integration pass; drop older services.
            self._services = {access_token: service}
        return service

    async def _execute(self, request: Any) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(request.execute)
        except HttpError as e:
            status = getattr(e.resp, "status", 0)
            raise ProviderAPIError(
                "Gmail", int(status or 0), _http_error_reason(e)
            ) from e

    async def list_since(
        self, access_token: str, since: datetime, max_results: int
    ) -> list[MessageRef]:
        """List inbox message ids received after `since` (second precision)."""
        service = await self._service(access_token)
        request = service.users().messages().list(
            userId="me",
            q=f"after:{to_unix_seconds(since)}",
            labelIds=["INBOX"],
            maxResults=min(max_results, GMAIL_PAGE_LIMIT),
        )
        result = await self._execute(request)
        refs = [
            MessageRef(id=m["id"], thread_id=m.get("threadId"))
            for m in result.get("messages", [])
        ]
        logger.debug("Gmail listed %d messages since %s", len(refs), since.isoformat())
        return refs[:max_results]

    async def fetch_full(self, access_token: str, ref: MessageRef) -> RawMessage:
        service = await self._service(access_token)
        request = service.users().messages().get(userId="me", id=ref.id, format="full")
        payload = await self._execute(request)
        return RawMessage(provider_type=ProviderType.GMAIL, id=ref.id, payload=payload)


def _http_error_reason(error: HttpError) -> str:
    reason = getattr(error, "reason", None)
    if reason:
        return str(reason)
    return str(error)
