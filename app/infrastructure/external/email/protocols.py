"""Mail provider client protocol and data structures (provider-agnostic)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from app.domain.enums import ProviderType


@dataclass(frozen=True)
class MessageRef:
    """Identifier of one message returned by an incremental listing.

    `id` is the provider's message id; it is also the dedup key.
    """

    id: str
    received_at: datetime | None = None
    thread_id: str | None = None


@dataclass
class RawMessage:
    """Provider-native message JSON as returned by the full fetch."""

    provider_type: ProviderType
    id: str
    payload: dict[str, Any] = field(default_factory=dict)


class IMailProviderClient(Protocol):
    """Incremental listing and full fetch for one provider family.

    Errors are not caught here; they propagate to the sync loop.
    """

    @property
    def provider_type(self) -> ProviderType: ...

    async def list_since(
        self, access_token: str, since: datetime, max_results: int
    ) -> list[MessageRef]:
        """Inbox messages received after `since`, at most `max_results`."""
        ...

    async def fetch_full(self, access_token: str, ref: MessageRef) -> RawMessage:
        """Full message (headers, body, attachment metadata)."""
        ...
