"""Window and key helpers shared by the usage tracker backends."""

from datetime import datetime, timedelta, timezone

from src.config.settings import Config
from src.domain.value_objects.service_tier import SubscriptionTier
from src.services.subscription_service import chat_rate_limit, tier_config


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_utc_midnight(now: datetime) -> datetime:
    tomorrow = (now.astimezone(timezone.utc) + timedelta(days=1)).date()
    return datetime(tomorrow.year, tomorrow.month, tomorrow.day, tzinfo=timezone.utc)


def day_key(now: datetime) -> str:
    return now.astimezone(timezone.utc).date().isoformat()


def rate_window(now: datetime, window_seconds: int) -> tuple[int, datetime]:
    """(window start epoch, window end) for a fixed window containing `now`."""
    epoch = int(now.timestamp())
    start = epoch - (epoch % window_seconds)
    return start, datetime.fromtimestamp(start + window_seconds, tz=timezone.utc)


def rate_limit_for(tier: SubscriptionTier) -> int:
    return chat_rate_limit(tier)


def daily_limit_for(tier: SubscriptionTier) -> int:
    return tier_config(tier).limits.messages_per_day


def rate_window_seconds() -> int:
    return Config.CHAT_RATE_WINDOW_SECONDS


def tier_cache_ttl() -> int:
    return Config.TIER_CACHE_TTL


def rate_key(user_id: str, window_start: int) -> str:
    return f"rate_limit:{user_id}:{window_start}"


def daily_key(user_id: str, day: str) -> str:
    return f"daily_messages:{user_id}:{day}"


def tier_key(user_id: str) -> str:
    return f"user_tier:{user_id}"


def token_key(user_id: str, day: str) -> str:
    return f"token_usage:{user_id}:{day}"


def feature_key(day: str) -> str:
    return f"feature_usage:{day}"


__all__ = [
    "utc_now",
    "next_utc_midnight",
    "day_key",
    "rate_window",
    "rate_limit_for",
    "daily_limit_for",
    "rate_window_seconds",
    "tier_cache_ttl",
    "rate_key",
    "daily_key",
    "tier_key",
    "token_key",
    "feature_key",
]
