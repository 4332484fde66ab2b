"""Token lifecycle: keep an integration's access token usable for one pass."""

from collections.abc import Callable
from datetime import datetime, timedelta

from app.application.interfaces.sync import IIntegrationStore, ITokenDriverRegistry
from app.domain.entities.integration import Integration
from app.domain.exceptions import TokenRefreshError
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_attributes, traced
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class TokenLifecycleManager:
    """Returns a fresh access token, refreshing through the provider when expired.

    A refreshed credential set is persisted in one update before the token is
    returned, so a crash after refresh never loses a rotated refresh token.
    """

    def __init__(
        self,
        drivers: ITokenDriverRegistry,
        store: IIntegrationStore,
        *,
        skew: timedelta = timedelta(seconds=60),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._drivers = drivers
        self._store = store
        self._skew = skew
        self._clock = clock

    @traced("sync.ensure_fresh_credential")
    async def ensure_fresh_credential(self, integration: Integration) -> str:
        """Return a usable access token for integration.

        Raises:
            TokenRefreshError: If the credential is expired and cannot be refreshed.
        """
        credentials = integration.credentials
        if credentials.is_fresh(self._clock(), self._skew):
            add_span_attributes(**{"token.refreshed": False})
            return credentials.access_token

        if not credentials.refresh_token:
            raise TokenRefreshError(integration.id, "no refresh token stored")

        driver = self._drivers.get_driver(integration.provider_type)
        try:
            tokens = await driver.refresh_access_token(credentials.refresh_token)
        except Exception as e:
            logger.warning(
                "Token refresh failed for integration %s (%s): %s",
                integration.id,
                integration.provider_type.value,
                e,
            )
            raise TokenRefreshError(integration.id, str(e)) from e

        rotated = credentials.rotated(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=tokens.expires_at,
        )
        await self._store.save_credentials(integration.id, rotated)
        add_span_attributes(**{"token.refreshed": True})
        logger.info(
            "Refreshed %s token for integration %s",
            integration.provider_type.value,
            integration.id,
        )
        return rotated.access_token
