"""Class routers."""

from .cache_router import class_cache_router

__all__ = [
    "class_cache_router",
]
