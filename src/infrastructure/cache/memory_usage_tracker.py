"""
In-process UsageTracker.

Used in development and tests, or when Redis is not configured. Counters
live in dicts guarded by an asyncio lock and vanish on restart.
"""

import asyncio
import logging
import time
from collections import defaultdict
from datetime import datetime
from typing import Callable, Optional

from src.domain.ports.usage_tracker import UsageTracker
from src.domain.value_objects.service_tier import SubscriptionTier
from src.domain.value_objects.usage import DailyLimitStatus, RateLimitStatus
from src.infrastructure.cache.usage_windows import (
    daily_key,
    daily_limit_for,
    day_key,
    feature_key,
    next_utc_midnight,
    rate_key,
    rate_limit_for,
    rate_window,
    rate_window_seconds,
    tier_cache_ttl,
    tier_key,
    token_key,
    utc_now,
)

logger = logging.getLogger(__name__)


class InMemoryUsageTracker(UsageTracker):
    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._clock = clock or utc_now
        self._monotonic = monotonic
        self._counters: dict[str, int] = defaultdict(int)
        self._hashes: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._tiers: dict[str, tuple[SubscriptionTier, float]] = {}
        self._lock = asyncio.Lock()

    async def get_cached_tier(self, user_id: str) -> Optional[SubscriptionTier]:
        cached = self._tiers.get(tier_key(user_id))
        if cached is None:
            return None
        tier, expires = cached
        if self._monotonic() >= expires:
            self._tiers.pop(tier_key(user_id), None)
            return None
        return tier

    async def cache_tier(self, user_id: str, tier: SubscriptionTier) -> None:
        self._tiers[tier_key(user_id)] = (tier, self._monotonic() + tier_cache_ttl())

    async def check_rate_limit(
        self, user_id: str, tier: SubscriptionTier
    ) -> RateLimitStatus:
        start, resets_at = rate_window(self._clock(), rate_window_seconds())
        limit = rate_limit_for(tier)
        key = rate_key(user_id, start)
        async with self._lock:
            prefix = f"rate_limit:{user_id}:"
            for stale in [k for k in self._counters if k.startswith(prefix) and k != key]:
                del self._counters[stale]
            if self._counters[key] >= limit:
                return RateLimitStatus(False, self._counters[key], limit, resets_at)
            self._counters[key] += 1
            return RateLimitStatus(True, self._counters[key], limit, resets_at)

    async def check_daily_message_limit(
        self, user_id: str, tier: SubscriptionTier
    ) -> DailyLimitStatus:
        now = self._clock()
        limit = daily_limit_for(tier)
        current = self._counters.get(daily_key(user_id, day_key(now)), 0)
        return DailyLimitStatus(current < limit, current, limit, next_utc_midnight(now))

    async def increment_message_count(
        self, user_id: str, tier: SubscriptionTier
    ) -> int:
        key = daily_key(user_id, day_key(self._clock()))
        async with self._lock:
            self._counters[key] += 1
            return self._counters[key]

    async def track_token_usage(
        self,
        user_id: str,
        tier: SubscriptionTier,
        prompt_tokens: int,
        completion_tokens: int,
        model: str,
    ) -> None:
        usage = self._hashes[token_key(user_id, day_key(self._clock()))]
        usage["prompt"] += prompt_tokens
        usage["completion"] += completion_tokens
        usage["total"] += prompt_tokens + completion_tokens
        usage[f"model:{model}"] += prompt_tokens + completion_tokens

    async def track_feature_usage(
        self, user_id: str, feature: str, tier: SubscriptionTier
    ) -> None:
        self._hashes[feature_key(day_key(self._clock()))][f"{tier.value}:{feature}"] += 1

    def token_usage(self, user_id: str) -> dict[str, int]:
        return dict(self._hashes.get(token_key(user_id, day_key(self._clock())), {}))

    def feature_usage(self) -> dict[str, int]:
        return dict(self._hashes.get(feature_key(day_key(self._clock())), {}))
