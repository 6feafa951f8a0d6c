"""
Module for caching computed results (dashboard statistics) in Redis.
Caching is disabled silently when Redis is unreachable.
"""
import json
import logging
import time
from typing import Any, Dict, Optional

import redis

from api.common.config import REDIS_URL, DEFAULT_CACHE_TTL, REDIS_RETRY_INTERVAL

logger = logging.getLogger(__name__)

# Global Redis client
redis_client = None
# monotonic time of the last failed connection attempt
last_failure = None


def get_redis_client():
    """
    Get or create a Redis client instance.
    After a failed connection no new attempt is made for REDIS_RETRY_INTERVAL seconds.
    """
    global redis_client, last_failure
    if redis_client is None:
        if last_failure is not None and time.monotonic() - last_failure < REDIS_RETRY_INTERVAL:
            return None
        try:
            redis_client = redis.Redis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True
            )
            # Ping Redis to ensure connection works
            redis_client.ping()
            last_failure = None
        except redis.exceptions.ConnectionError as e:
            logger.warning("Redis connection failed: %s. Caching disabled.", e)
            redis_client = None
            last_failure = time.monotonic()
        except redis.exceptions.RedisError as e:
            logger.warning("Redis initialization error: %s. Caching disabled.", e)
            redis_client = None
            last_failure = time.monotonic()

    return redis_client


async def get_cache(key: str) -> Optional[Any]:
    """
    Get a value from cache by key.

    Args:
        key: The cache key to retrieve

    Returns:
        The cached value if found, otherwise None
    """
    client = get_redis_client()
    if not client:
        return None

    try:
        data = client.get(key)
        if data:
            return json.loads(data)
        return None
    except (redis.exceptions.RedisError, ValueError) as e:
        logger.warning("Cache get error for %s: %s", key, e)
        return None


async def set_cache(key: str, value: Any, ttl: int = DEFAULT_CACHE_TTL) -> bool:
    """
    Set a value in cache with a TTL.

    Args:
        key: The cache key
        value: The value to cache (must be JSON serializable)
        ttl: Time to live in seconds

    Returns:
        True if successful, False otherwise
    """
    client = get_redis_client()
    if not client:
        return False

    try:
        return bool(client.set(key, json.dumps(value, default=str), ex=ttl))
    except (redis.exceptions.RedisError, TypeError) as e:
        logger.warning("Cache set error for %s: %s", key, e)
        return False


async def delete_pattern(pattern: str) -> int:
    """
    Delete all keys matching a pattern.

    Args:
        pattern: The pattern to match (e.g., "stats:*")

    Returns:
        Number of keys deleted
    """
    client = get_redis_client()
    if not client:
        return 0

    try:
        keys = list(client.scan_iter(match=pattern))
        if not keys:
            return 0
        return client.delete(*keys)
    except redis.exceptions.RedisError as e:
        logger.warning("Cache delete error for %s: %s", pattern, e)
        return 0


async def invalidate_stats_cache() -> int:
    """Drop every cached dashboard statistic."""
    return await delete_pattern("stats:*")


def generate_cache_key(prefix: str, params: Dict[str, Any]) -> str:
    """
    Generate a cache key from a prefix and parameters.

    Args:
        prefix: The prefix for the key (e.g., "stats:dashboard")
        params: Dictionary of parameters to include in the key

    Returns:
        A cache key string
    """
    sorted_params = sorted((k, v) for k, v in params.items() if v is not None)
    param_str = ":".join(f"{k}={v}" for k, v in sorted_params)
    return f"{prefix}:{param_str}" if param_str else prefix
