"""Pydantic request/response schemas for the API."""

from app.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
)
from app.schemas.sync import SyncRunResponse

__all__ = [
    "HealthResponse",
    "ReadinessErrorResponse",
    "ReadinessResponse",
    "SyncRunResponse",
]
