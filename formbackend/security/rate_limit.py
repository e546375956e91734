"""In-memory rate limiter for public form submissions."""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int = 0


class SlidingWindowRateLimiter:
    """Sliding-window limiter: at most ``max_points`` admissions per key per window.

    Denied attempts are not recorded, so a key becomes admissible again as soon
    as its oldest admission ages out of the window. State is per process and is
    lost on restart.
    """

    def __init__(
        self,
        window_seconds: float,
        max_points: int,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 1000,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_points < 1:
            raise ValueError("max_points must be at least 1")
        self.window_seconds = window_seconds
        self.max_points = max_points
        self._clock = clock
        self._events: dict[str, deque[float]] = {}
        self._sweep_every = sweep_every
        self._calls = 0
        self._lock = threading.Lock()

    def admit(self, key: str) -> RateLimitDecision:
        now = self._clock()
        cutoff = now - self.window_seconds

        with self._lock:
            self._calls += 1
            if self._calls % self._sweep_every == 0:
                self._sweep_locked(cutoff)

            events = self._events.get(key)
            if events is None:
                events = self._events[key] = deque()
            while events and events[0] <= cutoff:
                events.popleft()

            if len(events) >= self.max_points:
                retry_after = max(1, math.ceil(events[0] + self.window_seconds - now))
                return RateLimitDecision(allowed=False, retry_after=retry_after)

            events.append(now)
            return RateLimitDecision(allowed=True)

    def prune(self) -> int:
        """Drop keys whose whole window has expired. Returns the number removed."""
        cutoff = self._clock() - self.window_seconds
        with self._lock:
            return self._sweep_locked(cutoff)

    def _sweep_locked(self, cutoff: float) -> int:
        stale = [k for k, ev in self._events.items() if not ev or ev[-1] <= cutoff]
        for key in stale:
            del self._events[key]
        return len(stale)

    def reset(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
