"""Ports used by the sync use cases.

Protocols define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Protocol

from app.domain.entities.integration import CredentialSet, Integration
from app.domain.enums import ProviderType
from app.domain.value_objects.email import ParsedEmail, Verdict

if TYPE_CHECKING:
    from app.application.dtos.sync import SyncAttempt
    from app.infrastructure.external.connections.client import LiveConnection
    from app.infrastructure.external.email.oauth_drivers import OAuthTokens
    from app.infrastructure.external.email.protocols import (
        IMailProviderClient,
        RawMessage,
    )


class IIntegrationStore(Protocol):
    """Reads and writes integration rows. Every write is one atomic update."""

    async def discover_eligible(
        self, max_count: int, min_interval: timedelta, now: datetime
    ) -> list[Integration]:
        """Connected, enabled integrations not synced within min_interval, oldest watermark first."""

    async def list_for_tenant(self, tenant_id: str) -> list[Integration]:
        """Enabled connected-or-error integrations of one tenant."""

    async def save_credentials(
        self, integration_id: str, credentials: CredentialSet
    ) -> None: ...

    async def backfill_connection(self, integration_id: str, connection_id: str) -> None: ...

    async def complete_pass(self, integration_id: str, watermark: datetime) -> None:
        """Advance watermark (never backwards), set connected, clear last error."""

    async def mark_error(self, integration_id: str, message: str) -> None: ...

    async def try_claim(
        self, integration_id: str, owner: str, lease_until: datetime
    ) -> Integration | None:
        """Claim the integration for one worker and return its current row.

        None when another lease is live. Credentials and watermark come from
        the claimed row, not the discovery snapshot.
        """

    async def release(self, integration_id: str, owner: str) -> None: ...


class IVerdictStore(Protocol):
    """Verdict storage keyed by (tenant_id, provider message id)."""

    async def exists(self, tenant_id: str, message_id: str) -> bool: ...

    async def store_verdict(
        self,
        tenant_id: str,
        message_id: str,
        verdict: Verdict,
        email: ParsedEmail | None = None,
    ) -> None:
        """Persist (upsert) the verdict; visible to exists() once this returns."""


class IAuditSink(Protocol):
    async def record_sync_pass(self, attempt: SyncAttempt) -> None:
        """Append one audit entry for a pass. Must not raise."""


class IDetectionPipeline(Protocol):
    async def analyze(
        self,
        email: ParsedEmail,
        tenant_id: str,
        *,
        skip_expensive_analysis: bool = False,
    ) -> Verdict: ...


class ITokenRefresher(Protocol):
    async def refresh_access_token(self, refresh_token: str) -> OAuthTokens: ...


class ITokenDriverRegistry(Protocol):
    def get_driver(self, provider_type: ProviderType) -> ITokenRefresher: ...


class IProviderClientFactory(Protocol):
    def create(self, provider_type: ProviderType) -> IMailProviderClient: ...


class IConnectionDirectory(Protocol):
    async def list_connections(self) -> list[LiveConnection]: ...


class IMessageParser(Protocol):
    def __call__(self, raw: RawMessage) -> ParsedEmail: ...
