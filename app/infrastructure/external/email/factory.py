"""Mail provider client factory: creates the Gmail or Microsoft 365 client by provider type."""

from typing import ClassVar

import httpx

from app.domain.enums import ProviderType
from app.infrastructure.external.email.protocols import IMailProviderClient
from app.infrastructure.external.email.providers.gmail_provider import GmailProvider
from app.infrastructure.external.email.providers.outlook_provider import OutlookProvider
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class ProviderClientFactory:
    """Creates one provider client per provider type and reuses it for the run."""

    _providers: ClassVar[dict[ProviderType, type]] = {
        ProviderType.GMAIL: GmailProvider,
        ProviderType.O365: OutlookProvider,
    }

    def __init__(self, *, http_client: httpx.AsyncClient | None = None) -> None:
        self._http = http_client
        self._instances: dict[ProviderType, IMailProviderClient] = {}

    def create(self, provider_type: ProviderType | str) -> IMailProviderClient:
        """Return the client for provider_type.

        Raises:
            ValueError: If provider_type is not supported.
        """
        try:
            provider = ProviderType(provider_type)
        except ValueError:
            raise ValueError(
                f"Unsupported provider: {provider_type}. "
                f"Supported: {self.list_supported_providers()}"
            ) from None
        client = self._instances.get(provider)
        if client is None:
            provider_class = self._providers[provider]
            logger.debug("Creating %s", provider_class.__name__)
            if provider_class is OutlookProvider:
                client = OutlookProvider(http_client=self._http)
            else:
                client = provider_class()
            self._instances[provider] = client
        return client

    @classmethod
    def list_supported_providers(cls) -> list[str]:
        return [p.value for p in cls._providers]
