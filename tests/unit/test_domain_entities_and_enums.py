"""Domain entities, value objects and enums."""

from datetime import UTC, datetime, timedelta

import pytest

from app.domain.entities.integration import CredentialSet, Integration
from app.domain.enums import IntegrationStatus, ProviderType, VerdictClassification
from app.domain.exceptions import ValidationException
from app.domain.value_objects.email import EmailAddress, Verdict

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
SKEW = timedelta(seconds=60)


def _creds(**kwargs) -> CredentialSet:
    defaults = {"access_token": "a", "refresh_token": "r", "expires_at": NOW + timedelta(hours=1)}
    defaults.update(kwargs)
    return CredentialSet(**defaults)


def test_credential_fresh_outside_skew() -> None:
    assert _creds().is_fresh(NOW, SKEW) is True


def test_credential_inside_skew_is_expired() -> None:
    assert _creds(expires_at=NOW + timedelta(seconds=30)).is_fresh(NOW, SKEW) is False


def test_credential_without_expiry_or_token_is_expired() -> None:
    assert _creds(expires_at=None).is_fresh(NOW, SKEW) is False
    assert _creds(access_token="").is_fresh(NOW, SKEW) is False


def test_rotated_keeps_refresh_token_when_not_reissued() -> None:
    rotated = _creds().rotated("a2", None, NOW + timedelta(hours=2))
    assert rotated.access_token == "a2"
    assert rotated.refresh_token == "r"

    assert _creds().rotated("a3", "r3", NOW).refresh_token == "r3"


def test_payload_round_trip_preserves_expiry() -> None:
    creds = _creds(scope="Mail.Read")
    assert CredentialSet.from_payload(creds.to_payload()) == creds


def test_payload_from_newer_layout_is_rejected() -> None:
    payload = _creds().to_payload() | {"version": 2}
    with pytest.raises(ValidationException):
        CredentialSet.from_payload(payload)


def test_integration_requires_ids() -> None:
    with pytest.raises(ValidationException):
        Integration(
            id="",
            tenant_id="t1",
            provider_type=ProviderType.GMAIL,
            credentials=_creds(),
            status=IntegrationStatus.CONNECTED,
        )


def test_integration_window_and_heal_key() -> None:
    integration = Integration(
        id="i1",
        tenant_id="t1",
        provider_type=ProviderType.O365,
        credentials=_creds(),
        status=IntegrationStatus.CONNECTED,
    )
    assert integration.needs_heal is True
    assert integration.match_key == "t1"
    assert integration.sync_since(NOW, timedelta(hours=24)) == NOW - timedelta(hours=24)

    healed = integration.with_connection("c1")
    assert healed.needs_heal is False
    assert integration.connection_id is None

    synced = Integration(**{**integration.__dict__, "watermark": NOW - timedelta(minutes=7)})
    assert synced.sync_since(NOW, timedelta(hours=24)) == NOW - timedelta(minutes=7)


@pytest.mark.parametrize(
    ("classification", "score", "threat"),
    [
        (VerdictClassification.PASS, 95.0, False),
        (VerdictClassification.SUSPICIOUS, 29.9, False),
        (VerdictClassification.SUSPICIOUS, 30.0, True),
        (VerdictClassification.BLOCK, 99.0, True),
    ],
)
def test_verdict_threat_threshold(classification, score, threat) -> None:
    assert Verdict(classification, score).is_threat(30.0) is threat


def test_verdict_from_dict() -> None:
    verdict = Verdict.from_dict(
        {"classification": "quarantine", "overall_score": 71, "confidence": 0.8, "signals": None}
    )
    assert verdict.classification == VerdictClassification.QUARANTINE
    assert verdict.overall_score == 71.0
    assert verdict.signals == []


def test_email_address_domain_is_lowercased() -> None:
    assert EmailAddress("Alice@Example.COM").domain == "example.com"


def test_enum_values() -> None:
    assert ProviderType.values() == ["gmail", "o365"]
    assert "error" in IntegrationStatus.values()
