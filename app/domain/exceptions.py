"""Domain exceptions for the email sync worker.

Defines domain-level exceptions that represent business rule violations
and collaborator failures. Presentation layer maps them to HTTP responses
in exception handlers.
"""

from typing import Any


class SyncWorkerException(Exception):
    """Base exception for all sync worker errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. integration_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error bodies."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(SyncWorkerException):
    """Raised when input validation fails (e.g. invalid format or range)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(SyncWorkerException):
    """Raised when the caller cannot be authenticated (bad session or cron secret)."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class RateLimitExceededException(SyncWorkerException):
    """Raised when a tenant exceeds the on-demand sync rate limit."""

    def __init__(self, tenant_id: str, retry_after_seconds: int) -> None:
        super().__init__(
            "Too many sync requests; try again later",
            "RATE_LIMITED",
            {"tenant_id": tenant_id, "retry_after": retry_after_seconds},
        )


class ResourceNotFoundException(SyncWorkerException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type.capitalize()} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class CredentialException(SyncWorkerException):
    """Raised when stored credentials cannot be decrypted or are malformed."""

    def __init__(self, message: str = "Credential error") -> None:
        super().__init__(message, "CREDENTIAL_ERROR")


class TokenRefreshError(SyncWorkerException):
    """Raised when an access token cannot be refreshed.

    Fatal for the current integration pass; the integration is marked
    error and retried on the next scheduled run.
    """

    def __init__(self, integration_id: str, reason: str) -> None:
        super().__init__(
            f"Token refresh failed: {reason}",
            "TOKEN_REFRESH_FAILED",
            {"integration_id": integration_id},
        )


class ListMessagesError(SyncWorkerException):
    """Raised when the provider message listing fails for an integration."""

    def __init__(self, integration_id: str, reason: str) -> None:
        super().__init__(
            f"Listing messages failed: {reason}",
            "LIST_FAILED",
            {"integration_id": integration_id},
        )


class ProviderAPIError(SyncWorkerException):
    """Raised when a mail provider API call returns a non-success status."""

    def __init__(self, provider: str, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(
            f"{provider} API error {status_code}: {message}",
            "PROVIDER_API_ERROR",
            {"provider": provider, "status_code": status_code},
        )


class DetectionPipelineError(SyncWorkerException):
    """Raised when the detection pipeline rejects or fails to analyze a message."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(
            message,
            "DETECTION_FAILED",
            {"status_code": status_code} if status_code else {},
        )


class MessageParseError(SyncWorkerException):
    """Raised when a provider-native message cannot be converted to a ParsedEmail."""

    def __init__(self, message_id: str, reason: str) -> None:
        super().__init__(
            f"Could not parse message {message_id}: {reason}",
            "MESSAGE_PARSE_ERROR",
            {"message_id": message_id},
        )


class DiscoveryError(SyncWorkerException):
    """Raised when eligible integrations cannot be discovered (run cannot start)."""

    def __init__(self, reason: str) -> None:
        super().__init__(
            f"Failed to discover integrations: {reason}", "DISCOVERY_FAILED"
        )


class SqlNotConfiguredException(SyncWorkerException):
    """Raised when the database is required but DATABASE_URL is not set."""

    def __init__(self) -> None:
        super().__init__(
            "Database is not configured. Set DATABASE_URL.",
            "SQL_NOT_CONFIGURED",
        )
