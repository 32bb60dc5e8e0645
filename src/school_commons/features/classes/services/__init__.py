"""Class services."""

from .class_cache_service import ClassCacheService
from .class_service import ClassService

__all__ = [
    "ClassCacheService",
    "ClassService",
]
