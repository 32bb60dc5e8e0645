"""Classes feature for school-commons.

- entities/: Cache views, key canonicalization, pagination and the repository protocol
- services/: Class cache facade with its invalidation protocol, read-through class service
- routers/: Cache administration endpoints
"""

from .entities.views import ClassCacheView, ClassDimension
from .entities.keys import canonicalize_params
from .entities.protocols import ClassRepository
from .services.class_cache_service import ClassCacheService
from .services.class_service import ClassService

__all__ = [
    "ClassCacheView",
    "ClassDimension",
    "canonicalize_params",
    "ClassRepository",
    "ClassCacheService",
    "ClassService",
]
