"""Rate limiting: SlowAPI limiter instance and a per-key sliding-window limiter.

The SlowAPI limiter is shared so both main (app.state.limiter) and route
modules can use the same instance without circular imports. The
sliding-window limiter is constructed per app (see lifespan) and injected,
so tests can build isolated instances.
"""

import time
from collections.abc import Callable
from threading import Lock

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

# Single source of truth for rate limit strings and decorators.
CRON_TRIGGER_LIMIT = "30/minute"

limit_cron = limiter.limit(CRON_TRIGGER_LIMIT)


class SlidingWindowRateLimiter:
    """At most `max_requests` hits per key within `window_seconds`.

    Keys with no hits inside the window are dropped by sweep(), which also
    runs every `sweep_every` hits so memory stays bounded by active keys.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 256,
    ) -> None:
        self._max = max_requests
        self._window = window_seconds
        self._clock = clock
        self._sweep_every = sweep_every
        self._hits: dict[str, list[float]] = {}
        self._calls = 0
        self._lock = Lock()

    def hit(self, key: str) -> int:
        """Record one request for key.

        Returns:
            0 when allowed; otherwise seconds until the oldest hit leaves the window.
        """
        now = self._clock()
        cutoff = now - self._window
        with self._lock:
            self._calls += 1
            if self._calls % self._sweep_every == 0:
                self._sweep_locked(cutoff)
            hits = [t for t in self._hits.get(key, []) if t > cutoff]
            if len(hits) >= self._max:
                self._hits[key] = hits
                return max(1, int(hits[0] - cutoff + 0.999))
            hits.append(now)
            self._hits[key] = hits
            return 0

    def sweep(self) -> int:
        """Drop keys with no hits inside the window. Returns number of keys removed."""
        with self._lock:
            return self._sweep_locked(self._clock() - self._window)

    def _sweep_locked(self, cutoff: float) -> int:
        stale = [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]
        for k in stale:
            del self._hits[k]
        return len(stale)

    def __len__(self) -> int:
        return len(self._hits)
