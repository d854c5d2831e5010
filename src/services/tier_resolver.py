"""Resolve a user's service tier, preferring the usage tracker's cached copy."""

import logging
from typing import Optional

from src.domain.entities.user import UserProfile
from src.domain.ports.repositories import UserRepository
from src.domain.ports.usage_tracker import UsageTracker
from src.domain.value_objects.service_tier import UserServiceTier
from src.services.subscription_service import determine_user_tier, tier_config

logger = logging.getLogger(__name__)


class TierResolver:
    def __init__(self, users: UserRepository, usage: UsageTracker):
        self._users = users
        self._usage = usage

    async def resolve(self, user_id: str) -> UserServiceTier:
        cached = await self._usage.get_cached_tier(user_id)
        if cached is not None:
            logger.debug("[TierResolver] Cache hit for %s: %s", user_id, cached.value)
            return tier_config(cached)

        profile = await self._users.get_profile(user_id)
        service_tier = determine_user_tier(profile.subscription_status if profile else "Free")
        await self._usage.cache_tier(user_id, service_tier.tier)
        return service_tier

    async def profile(self, user_id: str) -> Optional[UserProfile]:
        return await self._users.get_profile(user_id)
