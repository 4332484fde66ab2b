"""Credential encryption for integration OAuth credentials (Fernet)."""

import base64
import json
from typing import Any, cast

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from app.core.config import get_settings
from app.domain.entities.integration import CredentialSet
from app.domain.exceptions import CredentialException, ValidationException

DECRYPTION_ERROR_MSG = "Failed to decrypt credentials - invalid or corrupted data"


class CredentialEncryptor:
    """Encrypt/decrypt integration credentials using Fernet.

    The key is derived from CREDENTIAL_ENCRYPTION_SECRET (falls back to
    SECRET_KEY) and ENCRYPTION_SALT. Pass secret/salt explicitly in tests.
    """

    def __init__(self, secret: str | None = None, salt: str | None = None) -> None:
        self._fernet = Fernet(self._derive_key(secret, salt))

    @staticmethod
    def _derive_key(secret: str | None, salt: str | None) -> bytes:
        """Derive 32-byte key via PBKDF2-HMAC-SHA256."""
        if secret is None or salt is None:
            settings = get_settings()
            if secret is None:
                source = settings.credential_encryption_secret or settings.secret_key
                secret = source.get_secret_value()
            if salt is None:
                salt = settings.encryption_salt.get_secret_value()
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt.encode(),
            iterations=100_000,
        )
        return base64.urlsafe_b64encode(kdf.derive(secret.encode()))

    def encrypt(self, credentials: dict[str, Any]) -> str:
        """Encrypt credentials dict to a string safe for storage."""
        json_str = json.dumps(credentials)
        return self._fernet.encrypt(json_str.encode()).decode()

    def decrypt(self, encrypted_str: str) -> dict[str, Any]:
        """Decrypt stored string back to credentials dict.

        Raises:
            ValueError: If invalid or not valid JSON.
        """
        try:
            result = json.loads(self._fernet.decrypt(encrypted_str.encode()).decode())
        except InvalidToken as e:
            raise ValueError(DECRYPTION_ERROR_MSG) from e
        except json.JSONDecodeError as e:
            raise ValueError("Decrypted credentials are not valid JSON") from e
        if not isinstance(result, dict):
            raise ValueError("Decrypted credentials must be a dictionary")
        return cast(dict[str, Any], result)

    def encrypt_credentials(self, credentials: CredentialSet) -> str:
        return self.encrypt(credentials.to_payload())

    def decrypt_credentials(self, encrypted_str: str) -> CredentialSet:
        """Decrypt into a CredentialSet.

        Raises:
            CredentialException: If the payload cannot be decrypted or read.
        """
        try:
            return CredentialSet.from_payload(self.decrypt(encrypted_str))
        except (ValueError, ValidationException) as e:
            raise CredentialException(str(e)) from e
