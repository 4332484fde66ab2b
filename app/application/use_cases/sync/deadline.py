"""Monotonic wall-clock budget shared by a run and its integration passes."""

from __future__ import annotations

import time
from collections.abc import Callable


class Deadline:
    """A time budget measured on a monotonic clock.

    A child deadline has its own budget but also expires when its parent
    does, so every integration pass honors the shared run budget.
    """

    def __init__(
        self,
        budget_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        parent: Deadline | None = None,
    ) -> None:
        self._clock = clock
        self._budget = budget_seconds
        self._parent = parent
        self._started = clock()

    def now(self) -> float:
        return self._clock()

    def elapsed(self) -> float:
        return self._clock() - self._started

    def remaining(self) -> float:
        own = self._budget - self.elapsed()
        if self._parent is not None:
            own = min(own, self._parent.remaining())
        return max(own, 0.0)

    def expired(self) -> bool:
        """True once elapsed >= budget (or the parent has expired)."""
        if self._parent is not None and self._parent.expired():
            return True
        return self.elapsed() >= self._budget

    def child(self, budget_seconds: float) -> Deadline:
        return Deadline(budget_seconds, clock=self._clock, parent=self)
