"""Core: config, limiter, and application bootstrap.

Single place for settings.
"""

from app.core.config import get_settings

__all__ = ["get_settings"]
