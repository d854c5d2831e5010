"""In-process fixed-window rate limiter keyed by an arbitrary identifier."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: int  # epoch milliseconds


class RateLimiter:
    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._requests: dict[str, tuple[int, int]] = {}
        self._lock = threading.Lock()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def check_rate_limit(
        self, identifier: str, limit: int, window_ms: int
    ) -> RateLimitResult:
        now = self._now_ms()
        with self._lock:
            current = self._requests.get(identifier)
            if current is None or now > current[1]:
                reset_time = now + window_ms
                self._requests[identifier] = (1, reset_time)
                return RateLimitResult(True, limit - 1, reset_time)

            count, reset_time = current
            if count >= limit:
                return RateLimitResult(False, 0, reset_time)

            count += 1
            self._requests[identifier] = (count, reset_time)
            return RateLimitResult(True, limit - count, reset_time)

    def cleanup(self) -> int:
        """Drop expired windows; returns how many were removed."""
        now = self._now_ms()
        with self._lock:
            expired = [k for k, (_, reset) in self._requests.items() if now > reset]
            for key in expired:
                del self._requests[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._requests)
