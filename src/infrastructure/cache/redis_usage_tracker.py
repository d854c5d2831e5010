"""
Redis-backed UsageTracker.

Key layout (all strings unless noted):
- user_tier:{user_id}                    -> JSON {"tier": ...}, SETEX TIER_CACHE_TTL
- rate_limit:{user_id}:{window_start}    -> INCR, EXPIRE window length
- daily_messages:{user_id}:{YYYY-MM-DD}  -> INCR, EXPIRE at next UTC midnight (+1h)
- token_usage:{user_id}:{YYYY-MM-DD}     -> HASH prompt/completion/total/model:*
- feature_usage:{YYYY-MM-DD}             -> HASH "{tier}:{feature}" -> count

Error Handling:
- Redis failures must not block chat: they are logged, counted, and the
  check answers "allowed"
"""

import json
import logging
from datetime import datetime
from typing import Callable, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

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
from src.observability.metrics import MetricsErrorType, increment_error

logger = logging.getLogger(__name__)

USAGE_HISTORY_TTL = 35 * 24 * 3600
DAILY_KEY_GRACE = 3600


class RedisUsageTracker(UsageTracker):
    def __init__(self, redis: Redis, clock: Optional[Callable[[], datetime]] = None):
        self._redis = redis
        self._clock = clock or utc_now

    def _failed(self, operation: str, error: Exception) -> None:
        logger.warning("[Usage] Redis %s failed: %s", operation, error)
        increment_error(MetricsErrorType.USAGE_BACKEND_FAILED)

    async def get_cached_tier(self, user_id: str) -> Optional[SubscriptionTier]:
        try:
            raw = await self._redis.get(tier_key(user_id))
        except RedisError as e:
            self._failed("get_cached_tier", e)
            return None
        if not raw:
            return None
        try:
            return SubscriptionTier(json.loads(raw)["tier"])
        except (ValueError, KeyError, TypeError):
            logger.warning("[Usage] Ignoring malformed tier cache for %s", user_id)
            return None

    async def cache_tier(self, user_id: str, tier: SubscriptionTier) -> None:
        try:
            await self._redis.setex(
                tier_key(user_id), tier_cache_ttl(), json.dumps({"tier": tier.value})
            )
        except RedisError as e:
            self._failed("cache_tier", e)

    async def check_rate_limit(
        self, user_id: str, tier: SubscriptionTier
    ) -> RateLimitStatus:
        window = rate_window_seconds()
        start, resets_at = rate_window(self._clock(), window)
        limit = rate_limit_for(tier)
        key = rate_key(user_id, start)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, window)
                current, _ = await pipe.execute()
        except RedisError as e:
            self._failed("check_rate_limit", e)
            return RateLimitStatus(True, 0, limit, resets_at)
        current = int(current)
        # The rejected request still counted; report the cap, not the overflow
        if current > limit:
            return RateLimitStatus(False, limit, limit, resets_at)
        return RateLimitStatus(True, current, limit, resets_at)

    async def check_daily_message_limit(
        self, user_id: str, tier: SubscriptionTier
    ) -> DailyLimitStatus:
        now = self._clock()
        limit = daily_limit_for(tier)
        resets_at = next_utc_midnight(now)
        try:
            raw = await self._redis.get(daily_key(user_id, day_key(now)))
        except RedisError as e:
            self._failed("check_daily_message_limit", e)
            return DailyLimitStatus(True, 0, limit, resets_at)
        current = int(raw or 0)
        return DailyLimitStatus(current < limit, current, limit, resets_at)

    async def increment_message_count(
        self, user_id: str, tier: SubscriptionTier
    ) -> int:
        now = self._clock()
        key = daily_key(user_id, day_key(now))
        ttl = int((next_utc_midnight(now) - now).total_seconds()) + DAILY_KEY_GRACE
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, ttl)
                count, _ = await pipe.execute()
        except RedisError as e:
            self._failed("increment_message_count", e)
            return 0
        return int(count)

    async def track_token_usage(
        self,
        user_id: str,
        tier: SubscriptionTier,
        prompt_tokens: int,
        completion_tokens: int,
        model: str,
    ) -> None:
        key = token_key(user_id, day_key(self._clock()))
        total = prompt_tokens + completion_tokens
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hincrby(key, "prompt", prompt_tokens)
                pipe.hincrby(key, "completion", completion_tokens)
                pipe.hincrby(key, "total", total)
                pipe.hincrby(key, f"model:{model}", total)
                pipe.expire(key, USAGE_HISTORY_TTL)
                await pipe.execute()
        except RedisError as e:
            self._failed("track_token_usage", e)

    async def track_feature_usage(
        self, user_id: str, feature: str, tier: SubscriptionTier
    ) -> None:
        key = feature_key(day_key(self._clock()))
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hincrby(key, f"{tier.value}:{feature}", 1)
                pipe.expire(key, USAGE_HISTORY_TTL)
                await pipe.execute()
        except RedisError as e:
            self._failed("track_feature_usage", e)
