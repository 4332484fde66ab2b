"""Application interfaces (ports) for the sync use cases.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure.
"""

from app.application.interfaces.sync import (
    IAuditSink,
    IConnectionDirectory,
    IDetectionPipeline,
    IIntegrationStore,
    IMessageParser,
    IProviderClientFactory,
    ITokenDriverRegistry,
    ITokenRefresher,
    IVerdictStore,
)

__all__ = [
    "IAuditSink",
    "IConnectionDirectory",
    "IDetectionPipeline",
    "IIntegrationStore",
    "IMessageParser",
    "IProviderClientFactory",
    "ITokenDriverRegistry",
    "ITokenRefresher",
    "IVerdictStore",
]
