"""
Cache Layer - Usage counters and tier cache.

Contains the async Redis client factory and both UsageTracker backends.
"""

from src.infrastructure.cache.redis_client import create_redis_client, close_redis_client
from src.infrastructure.cache.redis_usage_tracker import RedisUsageTracker
from src.infrastructure.cache.memory_usage_tracker import InMemoryUsageTracker

__all__ = [
    "create_redis_client",
    "close_redis_client",
    "RedisUsageTracker",
    "InMemoryUsageTracker",
]
