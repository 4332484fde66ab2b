"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Required fields (e.g. DATABASE_URL, SECRET_KEY) are
validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings are optional with defaults except those validated in
    validate_required (database_url, secret_key, encryption_salt).
    Sync tuning values exist only to stay under the invoking scheduler's
    execution ceiling; changing them never affects correctness.
    """

    # App
    app_name: str = "mailguard-sync"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = ""
    database_echo: bool = False
    # Optional pool/driver overrides (None = use defaults in database.py)
    db_pool_size: int | None = None
    db_max_overflow: int | None = None
    db_command_timeout: int | None = None
    db_disable_jit: bool = True

    # Security
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 hours
    encryption_salt: SecretStr = SecretStr("")
    # Credential storage: separate secret so JWT key rotation does not break stored credentials.
    credential_encryption_secret: SecretStr | None = None
    # Shared bearer secret for the periodic scheduler trigger. Empty = trigger disabled (401).
    cron_secret: SecretStr = SecretStr("")

    # OAuth providers (refresh only; the connect flow lives elsewhere)
    google_client_id: str = ""
    google_client_secret: SecretStr = SecretStr("")
    microsoft_client_id: str = ""
    microsoft_client_secret: SecretStr = SecretStr("")
    microsoft_tenant: str = "common"
    oauth_redirect_uri: str = ""

    # Detection pipeline (consumed)
    detection_service_url: str = "http://localhost:8100"
    detection_service_token: SecretStr | None = None
    detection_timeout_seconds: float = 20.0

    # Connection directory used for auto-heal (consumed)
    connection_service_url: str = "https://api.nango.dev"
    connection_service_secret_key: SecretStr | None = None
    connection_provider_key_gmail: str = "google-mail"
    connection_provider_key_o365: str = "outlook"

    # Sync tuning
    sync_run_budget_seconds: float = 55.0
    sync_integration_budget_seconds: float = 50.0
    sync_max_integrations_per_run: int = 5
    sync_max_messages_per_integration: int = 20
    sync_min_interval_minutes: int = 5
    sync_default_lookback_hours: int = 24
    sync_threat_score_threshold: float = 30.0
    sync_token_refresh_skew_seconds: int = 60
    sync_max_concurrency: int = 1
    sync_lease_margin_seconds: int = 30
    # On-demand tenant sync: N requests per window per tenant.
    sync_tenant_requests_per_window: int = 3
    sync_tenant_window_seconds: int = 60

    # Request / middleware
    request_timeout_seconds: int = 60
    request_id_header: str = "X-Request-ID"

    # OpenTelemetry
    telemetry_enabled: bool = True
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Validate required env and sync tuning bounds."""
        if not self.database_url:
            raise ValueError(
                "DATABASE_URL is required. Set in environment or .env file."
            )
        if not self.secret_key.get_secret_value():
            raise ValueError(
                "SECRET_KEY is required. Generate with: openssl rand -hex 32."
            )
        if not self.encryption_salt.get_secret_value():
            raise ValueError(
                "ENCRYPTION_SALT is required. Generate with: openssl rand -hex 16."
            )
        if not 1 <= self.sync_max_concurrency <= 4:
            raise ValueError(
                f"sync_max_concurrency must be between 1 and 4, got: {self.sync_max_concurrency}"
            )
        if self.sync_integration_budget_seconds > self.sync_run_budget_seconds:
            raise ValueError(
                "sync_integration_budget_seconds cannot exceed sync_run_budget_seconds"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
