"""Infrastructure-specific exceptions for school-commons.

This module defines exceptions raised by cache backends. They never cross
the CacheService boundary; the service logs them and degrades to a cache miss.
"""

from .base import SchoolCommonsError


class CacheError(SchoolCommonsError):
    """Base class for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """Raised when cache connection fails."""
    pass


class CacheKeyError(CacheError):
    """Raised when cache key is invalid."""
    pass


class CacheSerializationError(CacheError):
    """Raised when cache value serialization/deserialization fails."""
    pass


class CacheTimeoutError(CacheError):
    """Raised when cache operation times out."""
    pass
