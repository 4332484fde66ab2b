"""Mail provider integration: protocols, factory, encryption, OAuth drivers, parsers."""

from app.infrastructure.external.email.encryption import CredentialEncryptor
from app.infrastructure.external.email.factory import ProviderClientFactory
from app.infrastructure.external.email.oauth_drivers import (
    GmailDriver,
    OAuthDriver,
    OAuthDriverRegistry,
    OAuthTokens,
    OutlookDriver,
)
from app.infrastructure.external.email.parsers import parse_raw_message
from app.infrastructure.external.email.protocols import (
    IMailProviderClient,
    MessageRef,
    RawMessage,
)

__all__ = [
    "CredentialEncryptor",
    "GmailDriver",
    "IMailProviderClient",
    "MessageRef",
    "OAuthDriver",
    "OAuthDriverRegistry",
    "OAuthTokens",
    "OutlookDriver",
    "ProviderClientFactory",
    "RawMessage",
    "parse_raw_message",
]
