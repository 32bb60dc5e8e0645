"""Cache service - JSON values over a Redis or in-memory backend."""

import json
import logging
import time
import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, TypeVar
from uuid import UUID

from ..adapters.memory_adapter import MemoryAdapter
from ..adapters.redis_adapter import RedisAdapter
from ..entities.config import CacheSettings
from ..entities.protocols import CacheBackend, CacheBackendAdapter
from ....core.exceptions.infrastructure import (
    CacheConnectionError,
    CacheKeyError,
    CacheSerializationError,
)

logger = logging.getLogger(__name__)
T = TypeVar('T')

HEALTH_CHECK_PREFIX = "health_check"
HEALTH_CHECK_TTL = 10


def _json_default(value: Any) -> Any:
    """Encode the non-JSON types that show up in entity snapshots."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_value(value: Any) -> str:
    """Serialize a value for storage."""
    try:
        return json.dumps(value, default=_json_default)
    except (TypeError, ValueError) as e:
        raise CacheSerializationError(f"Cannot serialize cache value: {e}")


def deserialize_value(raw: str) -> Any:
    """Deserialize a stored value."""
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise CacheSerializationError(f"Cannot deserialize cache value: {e}")


class CacheService:
    """Keyed TTL cache with a single active backend.

    Every operation catches backend failures, logs them and returns a benign
    value, so a broken cache degrades into cache misses instead of failed
    requests.
    """

    def __init__(self,
                 adapter: CacheBackendAdapter,
                 settings: Optional[CacheSettings] = None):
        self.adapter = adapter
        self.settings = settings or CacheSettings()
        self._initialized = False
        self._fell_back = False
        self._hits = 0
        self._misses = 0
        self._errors = 0

    @property
    def backend_type(self) -> CacheBackend:
        return self.adapter.backend_type

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Initialize the cache service.

        When the remote backend cannot be reached and `fallback_to_memory`
        is enabled, the service switches to an in-memory adapter instead
        of failing startup.
        """
        if self._initialized:
            return

        try:
            await self.adapter.connect()
        except Exception as e:
            if self.adapter.backend_type == CacheBackend.MEMORY or not self.settings.fallback_to_memory:
                raise CacheConnectionError(f"Failed to initialize cache service: {e}")

            logger.warning(
                f"Cache backend {self.adapter.backend_type.value} unavailable ({e}), "
                f"falling back to in-memory cache"
            )
            self.adapter = MemoryAdapter(cleanup_interval=self.settings.memory_cleanup_interval)
            await self.adapter.connect()
            self._fell_back = True

        self._initialized = True
        logger.info(f"Cache service initialized with {self.adapter.backend_type.value} backend")

    async def shutdown(self) -> None:
        """Shutdown the cache service."""
        if not self._initialized:
            return

        try:
            await self.adapter.disconnect()
            logger.info("Cache service shutdown completed")
        except Exception as e:
            logger.error(f"Error during cache service shutdown: {e}")
        finally:
            self._initialized = False

    # High-level cache operations

    async def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        """Get value from cache, `default` on miss or backend failure."""
        try:
            await self._ensure_initialized()
            self._validate_key(key)

            raw = await self.adapter.get(key)
            if raw is None:
                self._misses += 1
                logger.debug(f"Cache miss: {key}")
                return default

            self._hits += 1
            logger.debug(f"Cache hit: {key}")
            return deserialize_value(raw)

        except Exception as e:
            self._errors += 1
            logger.error(f"Cache get failed for key {key}: {e}")
            return default

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in cache; `ttl` defaults to `default_ttl_seconds`."""
        try:
            await self._ensure_initialized()
            self._validate_key(key)

            payload = serialize_value(value)
            effective_ttl = self.settings.default_ttl_seconds if ttl is None else ttl
            await self.adapter.set(key, payload, effective_ttl)
            logger.debug(f"Cache set: {key} (ttl={effective_ttl}s)")
            return True

        except Exception as e:
            self._errors += 1
            logger.error(f"Cache set failed for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete value from cache. Deleting an absent key succeeds."""
        try:
            await self._ensure_initialized()
            self._validate_key(key)
            await self.adapter.delete(key)
            return True

        except Exception as e:
            self._errors += 1
            logger.error(f"Cache delete failed for key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> bool:
        """Delete keys matching pattern; True only if every delete succeeded."""
        try:
            await self._ensure_initialized()
            self._validate_key(pattern)
            deleted = await self.adapter.delete_pattern(pattern)
            logger.debug(f"Cache delete pattern {pattern}: {deleted} keys")
            return True

        except Exception as e:
            self._errors += 1
            logger.error(f"Cache delete pattern failed for {pattern}: {e}")
            return False

    async def clear(self, namespace: Optional[str] = None) -> bool:
        """Delete every key in a namespace (the configured one by default)."""
        return await self.delete_pattern(f"{namespace or self.settings.namespace}:*")

    # Health and monitoring

    async def health_check(self) -> Dict[str, Any]:
        """Write, read back and delete a sentinel key, reporting each step."""
        report: Dict[str, Any] = {
            "healthy": False,
            "backend": self.adapter.backend_type.value,
            "fallback": self._fell_back,
            "write": False,
            "read": False,
            "delete": False,
        }
        sentinel_key = f"{HEALTH_CHECK_PREFIX}:{uuid.uuid4().hex}"
        sentinel_value = str(time.time())
        started = time.perf_counter()

        try:
            await self._ensure_initialized()
            report["backend"] = self.adapter.backend_type.value

            await self.adapter.set(sentinel_key, sentinel_value, HEALTH_CHECK_TTL)
            report["write"] = True

            report["read"] = await self.adapter.get(sentinel_key) == sentinel_value

            await self.adapter.delete(sentinel_key)
            report["delete"] = True

        except Exception as e:
            logger.error(f"Cache health check failed: {e}")
            report["error"] = str(e)

        report["healthy"] = report["write"] and report["read"] and report["delete"]
        report["response_time_ms"] = round((time.perf_counter() - started) * 1000, 2)
        return report

    async def stats(self, namespace: Optional[str] = None) -> Dict[str, Any]:
        """Get cache statistics, optionally scoped to one namespace."""
        result: Dict[str, Any] = {
            "backend": self.adapter.backend_type.value,
            "initialized": self._initialized,
            "fallback": self._fell_back,
            "namespace": namespace,
            "hits": self._hits,
            "misses": self._misses,
            "errors": self._errors,
        }

        try:
            await self._ensure_initialized()
            pattern = f"{namespace}:*" if namespace else "*"
            result["key_count"] = await self.adapter.count(pattern)
            result["backend_info"] = await self.adapter.info()
        except Exception as e:
            logger.error(f"Failed to get cache stats: {e}")
            result["error"] = str(e)

        return result

    async def _ensure_initialized(self) -> None:
        if not self._initialized:
            await self.initialize()

    @staticmethod
    def _validate_key(key: str) -> None:
        if not isinstance(key, str) or not key:
            raise CacheKeyError(f"Invalid cache key: {key!r}")


def create_cache_adapter(settings: CacheSettings) -> CacheBackendAdapter:
    """Build the adapter selected by `settings.backend`."""
    if settings.backend == CacheBackend.REDIS:
        return RedisAdapter(settings)
    return MemoryAdapter(cleanup_interval=settings.memory_cleanup_interval)


def create_cache_service(settings: Optional[CacheSettings] = None) -> CacheService:
    """Build a cache service for the configured backend without connecting it."""
    settings = settings or CacheSettings()
    return CacheService(create_cache_adapter(settings), settings)


async def configure_cache(settings: Optional[CacheSettings] = None) -> CacheService:
    """Build and initialize the process cache service.

    Called once at startup; the backend stays fixed for the life of the
    returned service.
    """
    service = create_cache_service(settings)
    await service.initialize()
    return service
