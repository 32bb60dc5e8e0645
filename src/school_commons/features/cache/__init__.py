"""Cache feature for school-commons.

Feature-First architecture with Redis and in-memory cache support:
- entities/: Cache protocols and configuration
- services/: Cache service and backend selection
- adapters/: Redis and in-memory cache implementations
"""

# Core cache protocols and configuration
from .entities.protocols import CacheBackend, CacheBackendAdapter
from .entities.config import CacheSettings

# Cache service orchestration
from .services.cache_service import (
    CacheService,
    configure_cache,
    create_cache_adapter,
    create_cache_service,
)

# Cache adapters
from .adapters.redis_adapter import RedisAdapter
from .adapters.memory_adapter import MemoryAdapter

__all__ = [
    # Core protocols
    "CacheBackend",
    "CacheBackendAdapter",

    # Configuration
    "CacheSettings",

    # Services
    "CacheService",
    "configure_cache",
    "create_cache_adapter",
    "create_cache_service",

    # Adapters
    "RedisAdapter",
    "MemoryAdapter",
]
