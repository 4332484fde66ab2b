"""Application use cases: one entry point per workflow."""

from app.application.use_cases.sync import IntegrationScheduler, SyncLoop

__all__ = [
    "IntegrationScheduler",
    "SyncLoop",
]
