"""
Redis-based caching service for TimeHatch.

Cache access is best effort: every Redis failure is logged and reported as a
miss so callers fall back to computing the value.
"""

import json
from typing import Any, Optional

import redis

from ..config import get_config
from ..logging import get_logger

logger = get_logger(__name__)

DEFAULT_PREFIX = "timehatch:cache:"


class RedisCache:
    """Redis-based caching service."""

    def __init__(self, key_prefix: str = DEFAULT_PREFIX) -> None:
        """
        Initialize Redis cache service.

        Args:
            key_prefix: Prefix for all cache keys
        """
        config = get_config()
        self.redis_client = redis.Redis(
            host=config.redis.host,
            port=config.redis.port,
            password=config.redis.password,
            db=config.redis.db,
            decode_responses=True,
            socket_timeout=config.redis.socket_timeout,
            socket_connect_timeout=config.redis.socket_connect_timeout,
            retry_on_timeout=config.redis.retry_on_timeout,
            max_connections=config.redis.max_connections,
        )
        self.key_prefix = key_prefix
        logger.info("Redis cache service initialized")

    def _get_key(self, key: str) -> str:
        """Get the full Redis key with prefix."""
        return f"{self.key_prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get a value from the cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        try:
            value = self.redis_client.get(self._get_key(key))

            if value is None:
                return None

            try:
                return json.loads(value)
            except (json.JSONDecodeError, TypeError):
                return value

        except Exception as e:
            logger.error(f"Error getting cache value for key {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set a value in the cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds (None for no expiration)

        Returns:
            True if successful, False otherwise
        """
        try:
            full_key = self._get_key(key)
            serialized_value = value if isinstance(value, str) else json.dumps(value)

            if ttl is not None:
                redis_result = self.redis_client.setex(full_key, ttl, serialized_value)
            else:
                redis_result = self.redis_client.set(full_key, serialized_value)

            return bool(redis_result)

        except Exception as e:
            logger.error(f"Error setting cache value for key {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """
        Delete a value from the cache.

        Returns:
            True if a key was removed, False otherwise
        """
        try:
            return bool(self.redis_client.delete(self._get_key(key)))

        except Exception as e:
            logger.error(f"Error deleting cache value for key {key}: {e}")
            return False

    def clear_pattern(self, pattern: str) -> int:
        """
        Clear all keys matching a pattern.

        Args:
            pattern: Pattern to match (without prefix)

        Returns:
            Number of keys deleted
        """
        try:
            keys = list(self.redis_client.scan_iter(match=self._get_key(pattern)))
            if not keys:
                return 0
            return int(self.redis_client.delete(*keys))

        except Exception as e:
            logger.error(f"Error clearing cache pattern {pattern}: {e}")
            return 0

    def health_check(self) -> bool:
        """
        Check if Redis connection is healthy.

        Returns:
            True if Redis is accessible, False otherwise
        """
        try:
            self.redis_client.ping()
            return True
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            return False


# Global cache instance
_cache_instance: Optional[RedisCache] = None


def get_cache() -> RedisCache:
    """Get the global cache instance."""
    global _cache_instance
    if _cache_instance is None:
        _cache_instance = RedisCache()
    return _cache_instance
