"""
Service Tier Value Objects - Subscription level and what it unlocks.
"""

from dataclasses import dataclass
from enum import Enum


class SubscriptionTier(str, Enum):
    FREE = "Free"
    PREMIUM = "Premium"
    FOUNDER = "Founder Club"


@dataclass(frozen=True)
class TierFeatures:
    opportunities: bool
    matches: bool
    resources: bool
    full_memory: bool
    personalized_greeting: bool
    web_search: bool
    smart_routing: bool

    def to_dict(self) -> dict[str, bool]:
        return {
            "opportunities": self.opportunities,
            "matches": self.matches,
            "resources": self.resources,
            "fullMemory": self.full_memory,
            "personalizedGreeting": self.personalized_greeting,
            "webSearch": self.web_search,
            "smartRouting": self.smart_routing,
        }

    def enabled(self) -> list[str]:
        """Names of enabled features, in declaration order."""
        return [name for name, on in self.to_dict().items() if on]


@dataclass(frozen=True)
class TierLimits:
    messages_per_day: int
    conversation_history: int
    max_tokens: int

    def __post_init__(self):
        if self.messages_per_day < 0 or self.conversation_history < 0:
            raise ValueError("Tier limits cannot be negative")
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be positive")

    def to_dict(self) -> dict[str, int]:
        return {
            "messagesPerDay": self.messages_per_day,
            "conversationHistory": self.conversation_history,
            "maxTokens": self.max_tokens,
        }


@dataclass(frozen=True)
class UserServiceTier:
    tier: SubscriptionTier
    has_full_access: bool
    model_to_use: str
    features: TierFeatures
    limits: TierLimits

    @property
    def is_free(self) -> bool:
        return self.tier == SubscriptionTier.FREE

    def to_dict(self) -> dict:
        return {
            "tier": self.tier.value,
            "hasFullAccess": self.has_full_access,
            "modelToUse": self.model_to_use,
            "features": self.features.to_dict(),
            "limits": self.limits.to_dict(),
        }
