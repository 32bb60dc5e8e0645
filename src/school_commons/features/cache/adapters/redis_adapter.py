"""Redis cache backend adapter for school-commons."""

import logging
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    RedisError,
    TimeoutError as RedisTimeoutError,
)

from ..entities.config import CacheSettings
from ..entities.protocols import CacheBackend
from ....core.exceptions.infrastructure import (
    CacheConnectionError,
    CacheError,
    CacheTimeoutError,
)

logger = logging.getLogger(__name__)


def _translate_error(operation: str, error: Exception) -> CacheError:
    """Map a redis-py exception onto the cache error hierarchy."""
    if isinstance(error, RedisTimeoutError):
        return CacheTimeoutError(f"Redis {operation} timed out: {error}")
    if isinstance(error, RedisConnectionError):
        return CacheConnectionError(f"Redis {operation} connection error: {error}")
    return CacheError(f"Redis {operation} error: {error}")


class RedisAdapter:
    """Redis cache backend adapter.

    Values are stored as plain strings (the client decodes responses).
    Pattern operations walk the keyspace with SCAN so a large namespace
    never blocks the server the way KEYS would.
    """

    def __init__(self, settings: Optional[CacheSettings] = None, client: Optional[Redis] = None):
        self.settings = settings or CacheSettings()
        self.redis_client: Optional[Redis] = client
        self._owns_client = client is None
        self._connected = False

    @property
    def backend_type(self) -> CacheBackend:
        return CacheBackend.REDIS

    async def connect(self) -> None:
        """Connect to Redis."""
        if self._connected:
            return

        try:
            if self.redis_client is None:
                self.redis_client = redis.from_url(
                    self.settings.redis_url,
                    **self.settings.to_redis_kwargs(),
                )

            # Test connection
            await self.redis_client.ping()
            self._connected = True
            logger.info(f"Connected to Redis: {self._safe_url()}")

        except Exception as e:
            if self._owns_client and self.redis_client is not None:
                try:
                    await self.redis_client.aclose()
                except Exception as close_error:
                    logger.debug(f"Error closing failed Redis client: {close_error}")
                self.redis_client = None
            raise CacheConnectionError(
                f"Failed to connect to Redis: {e}",
                details={"url": self._safe_url()},
            )

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.redis_client and self._owns_client:
            try:
                await self.redis_client.aclose()
            except Exception as e:
                logger.error(f"Error closing Redis connection: {e}")
            finally:
                self.redis_client = None
        self._connected = False

    async def get(self, key: str) -> Optional[str]:
        """Get value by key."""
        await self._ensure_connected()

        try:
            return await self.redis_client.get(key)
        except RedisError as e:
            raise _translate_error(f"get for key {key}", e)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Set key-value pair with optional TTL."""
        await self._ensure_connected()

        try:
            await self.redis_client.set(key, value, ex=ttl if ttl and ttl > 0 else None)
        except RedisError as e:
            raise _translate_error(f"set for key {key}", e)

    async def delete(self, key: str) -> bool:
        """Delete key and return whether it existed."""
        await self._ensure_connected()

        try:
            result = await self.redis_client.delete(key)
            return result > 0
        except RedisError as e:
            raise _translate_error(f"delete for key {key}", e)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching pattern.

        Keys are collected with SCAN MATCH before anything is removed, then
        deleted in DEL batches of `redis_scan_count`. Every batch is
        attempted; if any of them fails a CacheError is raised at the end.

        Args:
            pattern: Redis key pattern (e.g., "class:*", "class:school:7:*")

        Returns:
            Number of keys deleted
        """
        matching_keys = await self.keys(pattern)

        batch_size = self.settings.redis_scan_count
        deleted_count = 0
        failed_batches = 0

        for start in range(0, len(matching_keys), batch_size):
            deleted, failed = await self._delete_batch(matching_keys[start:start + batch_size])
            deleted_count += deleted
            failed_batches += failed

        if failed_batches:
            raise CacheError(
                f"Redis delete pattern {pattern} failed for {failed_batches} batch(es)",
                details={"pattern": pattern, "deleted": deleted_count, "failed_batches": failed_batches},
            )

        return deleted_count

    async def keys(self, pattern: str = "*") -> List[str]:
        """Get keys matching pattern; SCAN may repeat keys, duplicates are dropped."""
        await self._ensure_connected()

        try:
            scanned = [
                key async for key in self.redis_client.scan_iter(
                    match=pattern, count=self.settings.redis_scan_count
                )
            ]
            return list(dict.fromkeys(scanned))
        except RedisError as e:
            raise _translate_error(f"keys for pattern {pattern}", e)

    async def count(self, pattern: str = "*") -> int:
        """Count keys matching pattern."""
        if pattern == "*":
            await self._ensure_connected()
            try:
                return await self.redis_client.dbsize()
            except RedisError as e:
                raise _translate_error("dbsize", e)

        return len(await self.keys(pattern))

    async def health_check(self) -> bool:
        """Check Redis health."""
        try:
            if not self._connected:
                return False

            await self.redis_client.ping()
            return True
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def info(self) -> Dict[str, Any]:
        """Get cache backend information."""
        await self._ensure_connected()

        try:
            info = await self.redis_client.info()
            return {
                "backend_type": self.backend_type.value,
                "url": self._safe_url(),
                "redis_version": info.get("redis_version"),
                "connected_clients": info.get("connected_clients"),
                "used_memory_human": info.get("used_memory_human"),
                "keyspace_hits": info.get("keyspace_hits", 0),
                "keyspace_misses": info.get("keyspace_misses", 0),
                "connected": self._connected,
            }
        except RedisError as e:
            raise _translate_error("info", e)

    async def _delete_batch(self, batch: List[str]) -> tuple:
        """Delete one batch of keys, returning (deleted, failed_batches)."""
        try:
            return await self.redis_client.delete(*batch), 0
        except RedisError as e:
            logger.error(f"Redis batch delete of {len(batch)} keys failed: {e}")
            return 0, 1

    async def _ensure_connected(self) -> None:
        """Ensure Redis connection is active."""
        if not self._connected:
            await self.connect()

    def _safe_url(self) -> str:
        """Redis URL without credentials."""
        url = self.settings.redis_url
        if "@" in url:
            scheme, _, rest = url.partition("://")
            return f"{scheme}://***@{rest.split('@', 1)[1]}"
        return url
