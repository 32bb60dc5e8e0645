"""Exceptions module for school-commons."""

from .base import (
    SchoolCommonsError,
    create_error_response,
)

from .infrastructure import (
    CacheError,
    CacheConnectionError,
    CacheKeyError,
    CacheSerializationError,
    CacheTimeoutError,
)

__all__ = [
    "SchoolCommonsError",
    "create_error_response",
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
    "CacheTimeoutError",
]
