"""
Subscription tiers: what each plan unlocks, upsell copy and model cost info.

Tier resolution works off the raw `Subscription_Status` text stored in
Airtable. Only the exact strings "Premium" and "Founder Club" unlock paid
features; anything else is treated as Free.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.config.settings import Config
from src.domain.value_objects.service_tier import (
    SubscriptionTier,
    TierFeatures,
    TierLimits,
    UserServiceTier,
)

logger = logging.getLogger(__name__)

ALL_FEATURES = TierFeatures(
    opportunities=True,
    matches=True,
    resources=True,
    full_memory=True,
    personalized_greeting=True,
    web_search=True,
    smart_routing=True,
)

FREE_FEATURES = TierFeatures(
    opportunities=False,
    matches=False,
    resources=True,
    full_memory=False,
    personalized_greeting=False,
    web_search=False,
    smart_routing=False,
)

TIERS: dict[SubscriptionTier, UserServiceTier] = {
    SubscriptionTier.FOUNDER: UserServiceTier(
        tier=SubscriptionTier.FOUNDER,
        has_full_access=True,
        model_to_use="gpt-4o-mini",
        features=ALL_FEATURES,
        limits=TierLimits(messages_per_day=1000, conversation_history=25, max_tokens=2000),
    ),
    SubscriptionTier.PREMIUM: UserServiceTier(
        tier=SubscriptionTier.PREMIUM,
        has_full_access=True,
        model_to_use="gpt-4o-mini",
        features=ALL_FEATURES,
        limits=TierLimits(messages_per_day=500, conversation_history=20, max_tokens=1500),
    ),
    SubscriptionTier.FREE: UserServiceTier(
        tier=SubscriptionTier.FREE,
        has_full_access=False,
        model_to_use="gpt-3.5-turbo",
        features=FREE_FEATURES,
        limits=TierLimits(messages_per_day=50, conversation_history=3, max_tokens=500),
    ),
}


def determine_user_tier(subscription_status: Optional[str]) -> UserServiceTier:
    status = (subscription_status or "").strip() or "Free"
    logger.debug("Determining tier for subscription status: %r", status)
    if status == SubscriptionTier.FOUNDER.value:
        return TIERS[SubscriptionTier.FOUNDER]
    if status == SubscriptionTier.PREMIUM.value:
        return TIERS[SubscriptionTier.PREMIUM]
    return TIERS[SubscriptionTier.FREE]


def tier_config(tier: SubscriptionTier) -> UserServiceTier:
    return TIERS[tier]


def _upsell_messages(upgrade_url: str) -> dict[str, str]:
    footer = f"\n\n💎 [Upgrade to Premium →]({upgrade_url})"
    return {
        "opportunities": (
            "\n\n💼 **Looking for Opportunities?** \nUpgrade to Premium to access:\n"
            "• Personalized job matching from VADIY's database\n"
            "• Government contract opportunities\n"
            "• Real-time opportunity alerts\n"
            "• Enhanced AI responses with GPT-4o-mini" + footer
        ),
        "matches": (
            "\n\n🎯 **Want Personalized Matches?** \nPremium members get:\n"
            "• Custom opportunity recommendations\n"
            "• Profile-based job matching\n"
            "• Priority application support\n"
            "• Advanced AI with GPT-4o-mini" + footer
        ),
        "webSearch": (
            "\n\n🌐 **Need Real-Time Information?** \nPremium features include:\n"
            "• Live veteran benefits updates\n"
            "• Current VA policy changes\n"
            "• Real-time opportunity alerts\n"
            "• Smart web research with GPT-4o-mini" + footer
        ),
        "advanced": (
            "\n\n🚀 **Want Advanced AI Features?** \nUpgrade for:\n"
            "• GPT-4o-mini powered responses (15x more efficient than GPT-4)\n"
            "• Unlimited conversation memory\n"
            "• Priority support\n"
            "• Advanced research capabilities" + footer
        ),
    }


def get_feature_upsell_message(requested_feature: str, tier: SubscriptionTier) -> str:
    """Upsell copy for Free users; unknown features get the generic pitch."""
    if tier != SubscriptionTier.FREE:
        return ""
    messages = _upsell_messages(Config.UPGRADE_URL)
    return messages.get(requested_feature, messages["advanced"])


@dataclass(frozen=True)
class TierCostInfo:
    model: str
    input_cost_per_1m: float
    output_cost_per_1m: float
    efficiency: str

    def to_dict(self) -> dict:
        return {
            "model": self.model,
            "inputCostPer1M": self.input_cost_per_1m,
            "outputCostPer1M": self.output_cost_per_1m,
            "efficiency": self.efficiency,
        }


_COST_INFO = {
    SubscriptionTier.FOUNDER: TierCostInfo(
        "GPT-4o-mini", 0.15, 0.60, "Premium model with founder-level service and limits"
    ),
    SubscriptionTier.PREMIUM: TierCostInfo(
        "GPT-4o-mini", 0.15, 0.60, "15x more cost-efficient than GPT-4 with similar performance"
    ),
    SubscriptionTier.FREE: TierCostInfo(
        "GPT-3.5-turbo", 0.50, 1.50, "Reliable and cost-effective for basic tasks"
    ),
}


def get_tier_cost_info(tier: SubscriptionTier) -> TierCostInfo:
    return _COST_INFO[tier]


def chat_rate_limit(tier: SubscriptionTier) -> int:
    """Chat requests allowed per rate window for the tier."""
    return {
        SubscriptionTier.FREE: Config.CHAT_RATE_LIMIT_FREE,
        SubscriptionTier.PREMIUM: Config.CHAT_RATE_LIMIT_PREMIUM,
        SubscriptionTier.FOUNDER: Config.CHAT_RATE_LIMIT_FOUNDER,
    }[tier]
