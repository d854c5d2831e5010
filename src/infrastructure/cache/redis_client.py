"""
Async Redis Client Factory.

Creates the Redis client backing the usage tracker (rate limits, daily
quotas, tier cache). Uses redis.asyncio so calls never block the loop.
"""

import logging
import redis.asyncio as redis
from redis.asyncio import Redis
from src.config.settings import Config

logger = logging.getLogger(__name__)


async def create_redis_client(url: str | None = None) -> Redis:
    """
    Create async Redis client with connection pool.

    Raises:
        redis.ConnectionError: If Redis is not reachable

    Note:
        - decode_responses=True so counters come back as str
        - Tests connection with ping() before returning
    """
    url = url or Config.REDIS_URL
    client = redis.from_url(
        url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
    )

    await client.ping()
    logger.info("[Redis] Connected to %s", url)

    return client


async def close_redis_client(client: Redis) -> None:
    """Close Redis client connection. Called on container shutdown."""
    if client:
        await client.aclose()
        logger.info("[Redis] Connection closed")
