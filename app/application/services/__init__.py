"""Application services: token lifecycle, message pipeline, error classification."""

from app.application.services.error_classifier import classify_error
from app.application.services.message_pipeline import MessagePipelineAdapter
from app.application.services.token_lifecycle import TokenLifecycleManager

__all__ = [
    "MessagePipelineAdapter",
    "TokenLifecycleManager",
    "classify_error",
]
