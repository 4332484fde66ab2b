"""CredentialEncryptor: Fernet round trip and failure modes."""

from datetime import UTC, datetime

import pytest

from app.domain.entities.integration import CredentialSet
from app.domain.exceptions import CredentialException
from app.infrastructure.external.email.encryption import CredentialEncryptor


@pytest.fixture
def encryptor() -> CredentialEncryptor:
    return CredentialEncryptor(secret="unit-test-secret", salt="unit-test-salt")


def test_credentials_round_trip(encryptor: CredentialEncryptor) -> None:
    creds = CredentialSet(
        access_token="ya29.token",
        refresh_token="1//refresh",
        expires_at=datetime(2025, 3, 1, 13, 0, tzinfo=UTC),
        scope="https://www.googleapis.com/auth/gmail.readonly",
    )
    encrypted = encryptor.encrypt_credentials(creds)
    assert "ya29.token" not in encrypted
    assert encryptor.decrypt_credentials(encrypted) == creds


def test_wrong_key_raises_credential_exception(encryptor: CredentialEncryptor) -> None:
    other = CredentialEncryptor(secret="another-secret", salt="unit-test-salt")
    encrypted = other.encrypt({"access_token": "x"})
    with pytest.raises(CredentialException):
        encryptor.decrypt_credentials(encrypted)


def test_non_dict_payload_is_rejected(encryptor: CredentialEncryptor) -> None:
    encrypted = encryptor._fernet.encrypt(b"[1, 2]").decode()
    with pytest.raises(ValueError, match="dictionary"):
        encryptor.decrypt(encrypted)


def test_newer_payload_version_is_rejected(encryptor: CredentialEncryptor) -> None:
    encrypted = encryptor.encrypt({"version": 9, "access_token": "x"})
    with pytest.raises(CredentialException):
        encryptor.decrypt_credentials(encrypted)
