"""
Usage Value Objects - Results of quota and rate-limit checks.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class DailyLimitStatus:
    allowed: bool
    current: int
    limit: int
    resets_at: datetime

    @property
    def remaining_after_send(self) -> int:
        return max(0, self.limit - self.current - 1)


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    current: int
    limit: int
    resets_at: datetime

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.current)
