"""
VALUE OBJECTS - Immutable domain types

Each value object:
- Has no identity (compared by value, not by ID)
- Is immutable (frozen dataclass)
- Validates itself on creation
- Pure Python (no framework dependencies)
"""

from src.domain.value_objects.user_email import UserEmail
from src.domain.value_objects.conversation_id import ConversationId
from src.domain.value_objects.service_tier import (
    SubscriptionTier,
    TierFeatures,
    TierLimits,
    UserServiceTier,
)
from src.domain.value_objects.search_intent import BlockedFeatures, SearchIntent
from src.domain.value_objects.usage import DailyLimitStatus, RateLimitStatus

__all__ = [
    "UserEmail",
    "ConversationId",
    "SubscriptionTier",
    "TierFeatures",
    "TierLimits",
    "UserServiceTier",
    "BlockedFeatures",
    "SearchIntent",
    "DailyLimitStatus",
    "RateLimitStatus",
]
