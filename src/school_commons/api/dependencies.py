"""FastAPI dependencies.

Services are built once in the application lifespan and stored on
`app.state`; these dependencies only resolve them for a request.
"""

from fastapi import Request

from ..core.exceptions import CacheError
from ..features.cache.services.cache_service import CacheService
from ..features.classes.services.class_cache_service import ClassCacheService


def _from_state(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise CacheError(
            "Cache service not configured. Create the app with create_app().",
            error_code="CACHE_NOT_CONFIGURED",
            details={"service": name},
        )
    return service


def get_cache_service(request: Request) -> CacheService:
    """Get the process cache service from app state."""
    return _from_state(request, "cache_service")


def get_class_cache_service(request: Request) -> ClassCacheService:
    """Get the class cache facade built at startup."""
    return _from_state(request, "class_cache_service")
