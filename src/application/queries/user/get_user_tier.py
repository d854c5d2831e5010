"""GetUserTier Query - The caller's plan, features and limits."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from src.application.common.interfaces import Query, QueryHandler
from src.domain.entities.user import UserProfile
from src.domain.value_objects.service_tier import UserServiceTier
from src.services.subscription_service import determine_user_tier
from src.services.tier_resolver import TierResolver

logger = logging.getLogger(__name__)


@dataclass
class UserTierResult:
    service_tier: UserServiceTier
    profile: Optional[UserProfile] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        tier = self.service_tier
        data = {
            "tier": tier.tier.value,
            "serviceTier": tier.to_dict(),
            "userProfile": {
                "firstName": self.profile.first_name if self.profile else None,
                "subscriptionStatus": (
                    self.profile.subscription_status if self.profile else "Free"
                ),
            },
            "features": tier.features.to_dict(),
            "limits": tier.limits.to_dict(),
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class GetUserTierQuery(Query[UserTierResult]):
    user_id: str


class GetUserTierHandler(QueryHandler[UserTierResult]):
    def __init__(self, tiers: TierResolver):
        self._tiers = tiers

    async def execute(self, query: GetUserTierQuery) -> UserTierResult:
        try:
            profile = await self._tiers.profile(query.user_id)
        except Exception as e:
            logger.error("[UserTier] Could not fetch user data for %s: %s", query.user_id, e)
            return UserTierResult(
                service_tier=determine_user_tier("Free"),
                error="Could not fetch user data, using default tier",
            )
        service_tier = determine_user_tier(profile.subscription_status if profile else "Free")
        return UserTierResult(service_tier=service_tier, profile=profile)
