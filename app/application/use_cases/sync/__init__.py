"""Email sync use cases: sync loop, scheduler, result aggregation."""

from app.application.use_cases.sync.aggregator import ResultAggregator
from app.application.use_cases.sync.deadline import Deadline
from app.application.use_cases.sync.scheduler import IntegrationScheduler
from app.application.use_cases.sync.sync_loop import SyncLoop

__all__ = [
    "Deadline",
    "IntegrationScheduler",
    "ResultAggregator",
    "SyncLoop",
]
