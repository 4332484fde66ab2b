"""Client for the OAuth connection directory.

The directory brokers provider OAuth sessions; each live connection records
which provider config it belongs to and the end user (tenant) it was made for.
"""

from dataclasses import dataclass
from typing import Any

import httpx

from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LiveConnection:
    connection_id: str
    provider_config_key: str
    end_user_id: str | None


class ConnectionDirectoryClient:
    """Lists live connections via GET {base_url}/connection."""

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.AsyncClient,
        secret_key: str | None = None,
    ) -> None:
        self._url = f"{base_url.rstrip('/')}/connection"
        self._http = http_client
        self._headers = {"Authorization": f"Bearer {secret_key}"} if secret_key else {}

    async def list_connections(self) -> list[LiveConnection]:
        """Return all live connections.

        Raises:
            httpx.HTTPStatusError: On a non-success response.
        """
        response = await self._http.get(self._url, headers=self._headers)
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        connections = []
        for item in data.get("connections", []):
            end_user = item.get("end_user") or {}
            connection_id = item.get("connection_id")
            if not connection_id:
                continue
            connections.append(
                LiveConnection(
                    connection_id=connection_id,
                    provider_config_key=item.get("provider_config_key", ""),
                    end_user_id=end_user.get("id") or end_user.get("end_user_id"),
                )
            )
        logger.debug("Connection directory returned %d connections", len(connections))
        return connections
