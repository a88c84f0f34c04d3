"""
In-memory fixed-window rate limiting keyed by client address.

State lives in the limiter instance and is lost on restart. Instances
are built once per process by the application factory and handed to the
API layer; nothing here is module-level state.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitPolicy:
    """At most max_requests per key in every window_seconds span."""

    window_seconds: float
    max_requests: int

    def __post_init__(self) -> None:
        if self.window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if self.max_requests < 1:
            raise ValueError("max_requests must be at least 1")


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: float


@dataclass
class _Window:
    started_at: float
    count: int


class FixedWindowRateLimiter:
    """
    Counts hits per key inside fixed windows.

    A key's window opens on its first hit and closes window_seconds later;
    the next hit after that opens a fresh window with a zero count. Hits
    beyond the limit are still rejected but not counted, so a blocked
    client regains access exactly when its window closes.
    """

    def __init__(
        self,
        policy: RateLimitPolicy,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.policy = policy
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + policy.window_seconds

    def hit(self, key: str) -> RateLimitDecision:
        """Record one request for key and decide whether it may proceed."""
        now = self._clock()
        window_seconds = self.policy.window_seconds
        limit = self.policy.max_requests

        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)

            window = self._windows.get(key)
            if window is None or now - window.started_at >= window_seconds:
                window = _Window(started_at=now, count=0)
                self._windows[key] = window

            reset_after = window.started_at + window_seconds - now
            if window.count >= limit:
                return RateLimitDecision(False, limit, 0, reset_after)

            window.count += 1
            return RateLimitDecision(True, limit, limit - window.count, reset_after)

    def reset(self, key: str | None = None) -> None:
        """Forget one key, or every key when key is None."""
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._windows)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock.
        window_seconds = self.policy.window_seconds
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= window_seconds
        ]
        for key in expired:
            del self._windows[key]
        self._next_sweep = now + window_seconds
