"""Domain layer: entities, value objects, enums, and exceptions.

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.entities import CredentialSet, Integration
from app.domain.enums import (
    IntegrationStatus,
    ProviderType,
    SyncErrorCategory,
    SyncState,
    VerdictClassification,
)
from app.domain.exceptions import (
    AuthenticationException,
    ListMessagesError,
    ResourceNotFoundException,
    SyncWorkerException,
    TokenRefreshError,
    ValidationException,
)
from app.domain.value_objects import ParsedEmail, Verdict

__all__ = [
    # Entities
    "CredentialSet",
    "Integration",
    # Enums
    "IntegrationStatus",
    "ProviderType",
    "SyncErrorCategory",
    "SyncState",
    "VerdictClassification",
    # Exceptions
    "AuthenticationException",
    "ListMessagesError",
    "ResourceNotFoundException",
    "SyncWorkerException",
    "TokenRefreshError",
    "ValidationException",
    # Value objects
    "ParsedEmail",
    "Verdict",
]
