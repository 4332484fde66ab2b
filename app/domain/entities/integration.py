"""Integration domain entity.

One tenant's connection to one mail provider: credentials, connection
reference and sync control state. Independent of persistence; the
repository maps ORM rows to this shape.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from app.domain.enums import IntegrationStatus, ProviderType
from app.domain.exceptions import ValidationException

CREDENTIAL_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class CredentialSet:
    """Versioned OAuth credential payload stored encrypted on the integration.

    version lets readers reject payloads written by a newer layout instead of
    silently misreading them.
    """

    access_token: str
    refresh_token: str | None
    expires_at: datetime | None
    scope: str | None = None
    version: int = CREDENTIAL_SCHEMA_VERSION

    def is_fresh(self, now: datetime, skew: timedelta) -> bool:
        """True when the access token is usable at `now` with `skew` margin.

        A credential without a known expiry is treated as expired.
        """
        if not self.access_token or self.expires_at is None:
            return False
        return now < self.expires_at - skew

    def rotated(
        self,
        access_token: str,
        refresh_token: str | None,
        expires_at: datetime,
    ) -> "CredentialSet":
        """Return a new set after refresh; keeps the old refresh token if none was issued."""
        return replace(
            self,
            access_token=access_token,
            refresh_token=refresh_token or self.refresh_token,
            expires_at=expires_at,
            version=CREDENTIAL_SCHEMA_VERSION,
        )

    def to_payload(self) -> dict:
        return {
            "version": self.version,
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "scope": self.scope,
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "CredentialSet":
        """Build from a decrypted payload. Raises ValidationException on unknown versions."""
        version = int(payload.get("version", CREDENTIAL_SCHEMA_VERSION))
        if version > CREDENTIAL_SCHEMA_VERSION:
            raise ValidationException(
                f"Unsupported credential version {version}", field="credentials"
            )
        raw_expiry = payload.get("expires_at")
        return cls(
            access_token=payload.get("access_token") or "",
            refresh_token=payload.get("refresh_token"),
            expires_at=datetime.fromisoformat(raw_expiry) if raw_expiry else None,
            scope=payload.get("scope"),
            version=version,
        )


@dataclass(frozen=True)
class Integration:
    """Snapshot of an integration row.

    The scheduler re-reads it when it takes the sync lease, and the sync loop
    works on that snapshot; every mutation goes through the
    integration store as a single atomic update.
    """

    id: str
    tenant_id: str
    provider_type: ProviderType
    credentials: CredentialSet
    status: IntegrationStatus
    sync_enabled: bool = True
    watermark: datetime | None = None
    connection_id: str | None = None
    external_user_id: str | None = None
    email_address: str | None = None
    last_error_message: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValidationException("Integration ID is required", field="id")
        if not self.tenant_id:
            raise ValidationException("Tenant ID is required", field="tenant_id")

    @property
    def needs_heal(self) -> bool:
        """True when the provider connection reference is missing."""
        return not self.connection_id

    @property
    def match_key(self) -> str:
        """Stable identifier used to find this integration's live connection."""
        return self.external_user_id or self.tenant_id

    def sync_since(self, now: datetime, default_lookback: timedelta) -> datetime:
        """Start of the incremental window: the watermark, or a bounded lookback."""
        return self.watermark if self.watermark is not None else now - default_lookback

    def with_credentials(self, credentials: CredentialSet) -> "Integration":
        return replace(self, credentials=credentials)

    def with_connection(self, connection_id: str) -> "Integration":
        return replace(self, connection_id=connection_id)
