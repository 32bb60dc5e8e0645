"""Cache entities - configuration and protocols."""

from .protocols import CacheBackend, CacheBackendAdapter
from .config import CacheSettings

__all__ = [
    "CacheBackend",
    "CacheBackendAdapter",
    "CacheSettings",
]
