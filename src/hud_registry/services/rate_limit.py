"""Fixed-window per-source rate limiting."""

from __future__ import annotations

import heapq
import logging
import math
from dataclasses import dataclass
from threading import Lock

from hud_registry.core.errors import TooManyRequests

logger = logging.getLogger(__name__)


@dataclass
class RateBucket:
    """Request count for one source inside its current window."""

    count: int
    window_start: float


class FixedWindowRateLimiter:
    """Count requests per source key inside fixed windows.

    A window resets once more than ``window_seconds`` have passed since it
    opened. Rejected calls still increment the counter. Buckets whose window
    has expired are evicted by ``sweep``, which ``admit`` runs every
    ``sweep_interval`` seconds. At most ``max_buckets`` sources are tracked:
    a new source arriving at the cap first evicts expired buckets and, if that
    frees nothing, the buckets with the oldest windows.
    """

    def __init__(
        self,
        limit: int,
        *,
        window_seconds: float = 60.0,
        max_buckets: int = 10_000,
        sweep_interval: float = 300.0,
        name: str = "default",
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = int(limit)
        self.window_seconds = float(window_seconds)
        self.max_buckets = int(max_buckets)
        self.sweep_interval = float(sweep_interval)
        self.name = name
        self._buckets: dict[str, RateBucket] = {}
        self._lock = Lock()
        self._last_sweep: float | None = None

    def admit(self, source: str, now: float) -> int:
        """Count one request from ``source`` and return the remaining budget.

        Raises:
            TooManyRequests: The source exceeded ``limit`` inside the current window.
        """
        with self._lock:
            self._maybe_sweep(now)
            bucket = self._buckets.get(source)
            if bucket is None:
                if len(self._buckets) >= self.max_buckets:
                    self._make_room(now)
                bucket = RateBucket(count=0, window_start=now)
                self._buckets[source] = bucket
            elif now - bucket.window_start > self.window_seconds:
                bucket.count = 0
                bucket.window_start = now
            bucket.count += 1
            count = bucket.count
            window_start = bucket.window_start

        if count > self.limit:
            retry_after = math.ceil(window_start + self.window_seconds - now)
            logger.info(
                "Rate limit %s exceeded for %s (%d/%d)", self.name, source, count, self.limit
            )
            raise TooManyRequests(retry_after=retry_after)
        return self.limit - count

    def reset(self, source: str | None = None) -> None:
        """Forget one source's bucket, or every bucket when ``source`` is None."""
        with self._lock:
            if source is None:
                self._buckets.clear()
            else:
                self._buckets.pop(source, None)

    def sweep(self, now: float) -> int:
        """Evict buckets whose window has expired and return how many were removed."""
        with self._lock:
            return self._sweep_locked(now)

    def snapshot(self, source: str) -> RateBucket | None:
        """Return a copy of the bucket tracked for ``source``."""
        with self._lock:
            bucket = self._buckets.get(source)
            if bucket is None:
                return None
            return RateBucket(count=bucket.count, window_start=bucket.window_start)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _maybe_sweep(self, now: float) -> None:
        if self._last_sweep is None:
            self._last_sweep = now
            return
        if now - self._last_sweep >= self.sweep_interval:
            self._sweep_locked(now)

    def _sweep_locked(self, now: float) -> int:
        expired = [
            key
            for key, bucket in self._buckets.items()
            if now - bucket.window_start > self.window_seconds
        ]
        for key in expired:
            del self._buckets[key]
        self._last_sweep = now
        if expired:
            logger.debug("Rate limiter %s evicted %d stale buckets", self.name, len(expired))
        return len(expired)

    def _make_room(self, now: float) -> None:
        # Free a tenth of the cap at once so the next arrivals skip this scan.
        self._sweep_locked(now)
        target = self.max_buckets - max(1, self.max_buckets // 10)
        excess = len(self._buckets) - max(0, target)
        if excess <= 0:
            return
        oldest = heapq.nsmallest(
            excess, self._buckets.items(), key=lambda item: item[1].window_start
        )
        for key, _ in oldest:
            del self._buckets[key]
        logger.warning(
            "Rate limiter %s at capacity (%d); evicted %d active buckets",
            self.name,
            self.max_buckets,
            len(oldest),
        )
