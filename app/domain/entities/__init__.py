"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from app.domain.entities.integration import CredentialSet, Integration

__all__ = [
    "CredentialSet",
    "Integration",
]
