"""Mail provider clients: Gmail, Microsoft 365."""

from app.infrastructure.external.email.providers.gmail_provider import GmailProvider
from app.infrastructure.external.email.providers.outlook_provider import OutlookProvider

__all__ = [
    "GmailProvider",
    "OutlookProvider",
]
