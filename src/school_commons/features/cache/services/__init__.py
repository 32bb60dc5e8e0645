"""Cache services."""

from .cache_service import (
    CacheService,
    configure_cache,
    create_cache_adapter,
    create_cache_service,
)

__all__ = [
    "CacheService",
    "configure_cache",
    "create_cache_adapter",
    "create_cache_service",
]
