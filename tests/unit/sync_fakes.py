"""In-memory fakes for the sync worker ports (imported by the unit tests).

Each fake records what it was asked to do so tests can assert on effects
(watermarks, error marks, stored verdicts) without a database.
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta

from app.domain.entities.integration import CredentialSet, Integration
from app.domain.enums import IntegrationStatus, ProviderType, VerdictClassification
from app.domain.value_objects.email import EmailAddress, EmailBody, ParsedEmail, Verdict
from app.infrastructure.external.email.protocols import MessageRef, RawMessage

NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Monotonic seconds; advance() moves it forward."""

    def __init__(self, start: float = 0.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakeWallClock:
    """UTC wall clock for watermarks and token expiry."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_integration(
    integration_id: str = "int1",
    tenant_id: str = "t1",
    *,
    provider_type: ProviderType = ProviderType.GMAIL,
    status: IntegrationStatus = IntegrationStatus.CONNECTED,
    watermark: datetime | None = None,
    connection_id: str | None = "conn-1",
    external_user_id: str | None = None,
    access_token: str = "access-ok",
    refresh_token: str | None = "refresh-ok",
    expires_at: datetime | None = NOW + timedelta(hours=1),
) -> Integration:
    return Integration(
        id=integration_id,
        tenant_id=tenant_id,
        provider_type=provider_type,
        credentials=CredentialSet(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        ),
        status=status,
        watermark=watermark,
        connection_id=connection_id,
        external_user_id=external_user_id,
    )


def make_email(message_id: str = "<m1@example.com>") -> ParsedEmail:
    return ParsedEmail(
        message_id=message_id,
        subject="Invoice",
        from_=EmailAddress("billing@example.com", "Billing"),
        to=[EmailAddress("user@tenant.test")],
        date=NOW,
        headers={"subject": "Invoice"},
        body=EmailBody(text="Please pay"),
    )


class FakeIntegrationStore:
    def __init__(self, integrations: list[Integration] | None = None) -> None:
        self.integrations = {i.id: i for i in integrations or []}
        self.watermarks: dict[str, datetime | None] = {
            i.id: i.watermark for i in integrations or []
        }
        self.statuses: dict[str, IntegrationStatus] = {
            i.id: i.status for i in integrations or []
        }
        self.errors: dict[str, str] = {}
        self.saved_credentials: dict[str, CredentialSet] = {}
        self.backfilled: dict[str, str] = {}
        self.leases: dict[str, str] = {}
        self.released: list[str] = []
        self.discover_error: Exception | None = None
        self.discover_calls: list[tuple[int, timedelta, datetime]] = []

    async def discover_eligible(
        self, max_count: int, min_interval: timedelta, now: datetime
    ) -> list[Integration]:
        self.discover_calls.append((max_count, min_interval, now))
        if self.discover_error is not None:
            raise self.discover_error
        return list(self.integrations.values())[:max_count]

    async def list_for_tenant(self, tenant_id: str) -> list[Integration]:
        if self.discover_error is not None:
            raise self.discover_error
        return [i for i in self.integrations.values() if i.tenant_id == tenant_id]

    async def save_credentials(self, integration_id: str, credentials: CredentialSet) -> None:
        self.saved_credentials[integration_id] = credentials

    async def backfill_connection(self, integration_id: str, connection_id: str) -> None:
        self.backfilled[integration_id] = connection_id

    async def complete_pass(self, integration_id: str, watermark: datetime) -> None:
        current = self.watermarks.get(integration_id)
        self.watermarks[integration_id] = (
            watermark if current is None else max(current, watermark)
        )
        self.statuses[integration_id] = IntegrationStatus.CONNECTED
        self.errors.pop(integration_id, None)

    async def mark_error(self, integration_id: str, message: str) -> None:
        self.statuses[integration_id] = IntegrationStatus.ERROR
        self.errors[integration_id] = message

    async def try_claim(
        self, integration_id: str, owner: str, lease_until: datetime
    ) -> Integration | None:
        holder = self.leases.get(integration_id)
        if holder is not None and holder != owner:
            return None
        self.leases[integration_id] = owner
        return self.current(integration_id)

    def current(self, integration_id: str) -> Integration:
        """The row as stored now, with every recorded write applied."""
        row = replace(
            self.integrations[integration_id],
            watermark=self.watermarks.get(integration_id),
            status=self.statuses[integration_id],
        )
        if integration_id in self.backfilled:
            row = row.with_connection(self.backfilled[integration_id])
        if integration_id in self.saved_credentials:
            row = row.with_credentials(self.saved_credentials[integration_id])
        return row

    async def release(self, integration_id: str, owner: str) -> None:
        if self.leases.get(integration_id) == owner:
            del self.leases[integration_id]
        self.released.append(integration_id)


class FakeVerdictStore:
    def __init__(self) -> None:
        self.verdicts: dict[tuple[str, str], Verdict] = {}

    async def exists(self, tenant_id: str, message_id: str) -> bool:
        return (tenant_id, message_id) in self.verdicts

    async def store_verdict(
        self,
        tenant_id: str,
        message_id: str,
        verdict: Verdict,
        email: ParsedEmail | None = None,
    ) -> None:
        self.verdicts[(tenant_id, message_id)] = verdict


class FakeAuditSink:
    def __init__(self) -> None:
        self.passes = []

    async def record_sync_pass(self, attempt) -> None:
        self.passes.append(attempt.audit_values())


class FakeProvider:
    """Serves a fixed inbox. fetch_cost advances a FakeClock per fetch."""

    def __init__(
        self,
        message_ids: list[str] | None = None,
        *,
        provider_type: ProviderType = ProviderType.GMAIL,
        clock: FakeClock | None = None,
        fetch_cost: float = 0.0,
    ) -> None:
        self.message_ids = list(message_ids or [])
        self._provider_type = provider_type
        self.clock = clock
        self.fetch_cost = fetch_cost
        self.list_error: Exception | None = None
        self.fetch_errors: dict[str, Exception] = {}
        self.list_calls: list[tuple[str, datetime, int]] = []
        self.fetched: list[str] = []

    @property
    def provider_type(self) -> ProviderType:
        return self._provider_type

    async def list_since(
        self, access_token: str, since: datetime, max_results: int
    ) -> list[MessageRef]:
        self.list_calls.append((access_token, since, max_results))
        if self.list_error is not None:
            raise self.list_error
        return [MessageRef(id=m) for m in self.message_ids[:max_results]]

    async def fetch_full(self, access_token: str, ref: MessageRef) -> RawMessage:
        if self.clock is not None:
            self.clock.advance(self.fetch_cost)
        self.fetched.append(ref.id)
        if ref.id in self.fetch_errors:
            raise self.fetch_errors[ref.id]
        return RawMessage(provider_type=self._provider_type, id=ref.id, payload={})


class FakeProviderFactory:
    def __init__(self, provider: FakeProvider) -> None:
        self.provider = provider

    def create(self, provider_type: ProviderType | str) -> FakeProvider:
        return self.provider


class FakeDetector:
    def __init__(self, verdict: Verdict | None = None) -> None:
        self.verdict = verdict or Verdict(VerdictClassification.PASS, 5.0, 0.9)
        self.by_message_id: dict[str, Verdict] = {}
        self.calls: list[tuple[str, bool]] = []

    async def analyze(
        self, email: ParsedEmail, tenant_id: str, *, skip_expensive_analysis: bool = False
    ) -> Verdict:
        self.calls.append((email.message_id, skip_expensive_analysis))
        return self.by_message_id.get(email.message_id, self.verdict)


def fake_parser(raw: RawMessage) -> ParsedEmail:
    return make_email(message_id=raw.id)
