"""School-Commons - shared caching layer for the school administration backend.

This library provides the key-namespaced cache used by the class controllers:
a pluggable Redis or in-memory backend, the class cache facade with its
invalidation protocol, and the read-through class service built on top of it.
"""

from .__version__ import __version__

from .core.exceptions import (
    SchoolCommonsError,
    CacheError,
    CacheConnectionError,
    CacheKeyError,
    CacheSerializationError,
    CacheTimeoutError,
)

from .features.cache import (
    CacheBackend,
    CacheSettings,
    CacheService,
    MemoryAdapter,
    RedisAdapter,
    configure_cache,
)

from .features.classes import (
    ClassCacheService,
    ClassCacheView,
    ClassDimension,
    ClassService,
    canonicalize_params,
)

__all__ = [
    "__version__",

    # Exceptions
    "SchoolCommonsError",
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
    "CacheTimeoutError",

    # Cache
    "CacheBackend",
    "CacheSettings",
    "CacheService",
    "MemoryAdapter",
    "RedisAdapter",
    "configure_cache",

    # Classes
    "ClassCacheService",
    "ClassCacheView",
    "ClassDimension",
    "ClassService",
    "canonicalize_params",
]
