"""Class entities - cache views, key construction and protocols."""

from .views import (
    ClassCacheView,
    ClassDimension,
    DEFAULT_VIEW_TTLS,
    dimension_value,
    entity_id,
)
from .keys import canonicalize_params, build_key, build_scoped_key
from .pagination import PageInfo, PageRequest
from .protocols import ClassRepository

__all__ = [
    "ClassCacheView",
    "ClassDimension",
    "DEFAULT_VIEW_TTLS",
    "dimension_value",
    "entity_id",
    "canonicalize_params",
    "build_key",
    "build_scoped_key",
    "PageInfo",
    "PageRequest",
    "ClassRepository",
]
