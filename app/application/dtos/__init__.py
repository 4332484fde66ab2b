"""Application DTOs (data transfer between layers)."""

from app.application.dtos.sync import (
    IntegrationRunResult,
    RunSummary,
    SyncAttempt,
    SyncError,
)

__all__ = [
    "IntegrationRunResult",
    "RunSummary",
    "SyncAttempt",
    "SyncError",
]
