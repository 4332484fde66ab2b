"""Detection pipeline client."""

from app.infrastructure.external.detection.client import HttpDetectionPipeline

__all__ = ["HttpDetectionPipeline"]
