"""
Usage Tracker Port - Counters behind rate limits, daily quotas and tier caching.
Implementations: src/infrastructure/cache/
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.domain.value_objects.service_tier import SubscriptionTier
from src.domain.value_objects.usage import DailyLimitStatus, RateLimitStatus


class UsageTracker(ABC):
    @abstractmethod
    async def get_cached_tier(self, user_id: str) -> Optional[SubscriptionTier]: ...

    @abstractmethod
    async def cache_tier(self, user_id: str, tier: SubscriptionTier) -> None: ...

    @abstractmethod
    async def check_rate_limit(
        self, user_id: str, tier: SubscriptionTier
    ) -> RateLimitStatus:
        """Count this request against the per-minute window and report."""
        ...

    @abstractmethod
    async def check_daily_message_limit(
        self, user_id: str, tier: SubscriptionTier
    ) -> DailyLimitStatus: ...

    @abstractmethod
    async def increment_message_count(
        self, user_id: str, tier: SubscriptionTier
    ) -> int: ...

    @abstractmethod
    async def track_token_usage(
        self,
        user_id: str,
        tier: SubscriptionTier,
        prompt_tokens: int,
        completion_tokens: int,
        model: str,
    ) -> None: ...

    @abstractmethod
    async def track_feature_usage(
        self, user_id: str, feature: str, tier: SubscriptionTier
    ) -> None: ...
