"""Outlook/Office 365 provider client using Microsoft Graph API."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import httpx

from app.domain.enums import ProviderType
from app.domain.exceptions import ProviderAPIError
from app.infrastructure.external.email.protocols import MessageRef, RawMessage
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import parse_iso_utc, to_iso_z

logger = get_logger(__name__)

GRAPH_URL = "https://graph.microsoft.com/v1.0"

LIST_SELECT = "id,receivedDateTime,conversationId"
FETCH_SELECT = (
    "id,internetMessageId,subject,from,replyTo,toRecipients,ccRecipients,"
    "receivedDateTime,body,internetMessageHeaders,hasAttachments"
)
# Graph caps $top at 1000 for messages.
GRAPH_PAGE_LIMIT = 1000


class OutlookProvider:
    """Graph client: $filter on receivedDateTime for listing, /me/messages/{id} for fetch."""

    def __init__(self, *, http_client: httpx.AsyncClient | None = None) -> None:
        self._graph_url = GRAPH_URL
        self._shared_http = http_client

    @property
    def provider_type(self) -> ProviderType:
        return ProviderType.O365

    @asynccontextmanager
    async def _http_cm(self):
        """Yield shared HTTP client or a short-lived one (connection reuse when shared)."""
        if self._shared_http is not None:
            yield self._shared_http
            return
        async with httpx.AsyncClient(timeout=30.0) as client:
            yield client

    async def _get(
        self, access_token: str, path: str, params: dict[str, Any]
    ) -> dict[str, Any]:
        async with self._http_cm() as client:
            response = await client.get(
                f"{self._graph_url}{path}",
                headers={"Authorization": f"Bearer {access_token}"},
                params=params,
            )
        if response.status_code >= 400:
            raise ProviderAPIError(
                "Microsoft Graph", response.status_code, _graph_error_message(response)
            )
        return response.json()

    async def list_since(
        self, access_token: str, since: datetime, max_results: int
    ) -> list[MessageRef]:
        """List inbox messages with receivedDateTime >= since, newest first."""
        since_iso = to_iso_z(since)
        data = await self._get(
            access_token,
            "/me/mailFolders/inbox/messages",
            {
                "$filter": f"receivedDateTime ge {since_iso}",
                "$orderby": "receivedDateTime desc",
                "$top": min(max_results, GRAPH_PAGE_LIMIT),
                "$select": LIST_SELECT,
            },
        )
        refs = [
            MessageRef(
                id=item["id"],
                received_at=parse_iso_utc(item.get("receivedDateTime")),
                thread_id=item.get("conversationId"),
            )
            for item in data.get("value", [])
        ]
        logger.debug("Graph listed %d messages since %s", len(refs), since_iso)
        return refs[:max_results]

    async def fetch_full(self, access_token: str, ref: MessageRef) -> RawMessage:
        payload = await self._get(
            access_token,
            f"/me/messages/{ref.id}",
            {"$select": FETCH_SELECT, "$expand": "attachments($select=name,contentType,size)"},
        )
        return RawMessage(provider_type=ProviderType.O365, id=ref.id, payload=payload)


def _graph_error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or error.get("code") or response.reason_phrase)
    return response.reason_phrase
