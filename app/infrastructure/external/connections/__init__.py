"""Connection directory client (live OAuth connections, used for auto-heal)."""

from app.infrastructure.external.connections.client import (
    ConnectionDirectoryClient,
    LiveConnection,
)

__all__ = ["ConnectionDirectoryClient", "LiveConnection"]
