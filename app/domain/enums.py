"""Domain enumerations for the email sync worker.

Enums represent fixed sets of domain values (e.g. integration status).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class ProviderType(_ValuesMixin, str, Enum):
    """Mail provider family an integration is connected to."""

    GMAIL = "gmail"
    O365 = "o365"


class IntegrationStatus(_ValuesMixin, str, Enum):
    """Integration connection status.

    Only CONNECTED integrations are picked up by the periodic run.
    DISCONNECTED is owned by the connect/disconnect flow; the worker never
    sets it.
    """

    CONNECTED = "connected"
    ERROR = "error"
    DISCONNECTED = "disconnected"


class SyncState(_ValuesMixin, str, Enum):
    """States of one integration pass."""

    INIT = "init"
    CREDENTIAL_CHECK = "credential_check"
    LISTING = "listing"
    PROCESSING_ITEMS = "processing_items"
    FINALIZING = "finalizing"
    DONE = "done"
    ABORTED = "aborted"


class SyncErrorCategory(_ValuesMixin, str, Enum):
    """Error categories reported in sync results.

    TOKEN_REFRESH_FAILED and LIST_FAILED are integration-level (abort the
    pass). The rest are advisory labels derived from error content.
    """

    TOKEN_REFRESH_FAILED = "token_refresh_failed"
    LIST_FAILED = "list_failed"
    RATE_LIMIT = "rate_limit"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class VerdictClassification(_ValuesMixin, str, Enum):
    """Detection pipeline classification for one message."""

    PASS = "pass"
    SUSPICIOUS = "suspicious"
    QUARANTINE = "quarantine"
    BLOCK = "block"
