"""Class cache views and dimensions."""

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class ClassCacheView(str, Enum):
    """Cached views of the class entity, one key prefix each."""
    DATA = "data"
    LIST = "list"
    SEARCH = "search"
    COUNTS = "counts"
    STATS = "stats"
    ANALYTICS = "analytics"
    PERFORMANCE = "performance"
    EXPORT = "export"
    SCHOOL = "school"
    LEVEL = "level"
    TEACHER = "teacher"

    @property
    def default_ttl(self) -> int:
        """Default TTL in seconds."""
        return DEFAULT_VIEW_TTLS[self]

    def prefix(self, namespace: str) -> str:
        """Key prefix of this view, e.g. `class:list:`."""
        return f"{namespace}:{self.value}:"


DEFAULT_VIEW_TTLS: Dict[ClassCacheView, int] = {
    ClassCacheView.DATA: 300,          # 5 minutes
    ClassCacheView.LIST: 60,           # 1 minute
    ClassCacheView.SEARCH: 120,        # 2 minutes
    ClassCacheView.COUNTS: 300,        # 5 minutes
    ClassCacheView.STATS: 600,         # 10 minutes
    ClassCacheView.ANALYTICS: 1800,    # 30 minutes
    ClassCacheView.PERFORMANCE: 3600,  # 1 hour
    ClassCacheView.EXPORT: 300,        # 5 minutes
    ClassCacheView.SCHOOL: 60,
    ClassCacheView.LEVEL: 60,
    ClassCacheView.TEACHER: 60,
}

# Collection views any new or changed class can make stale
COLLECTION_VIEWS: Tuple[ClassCacheView, ...] = (
    ClassCacheView.LIST,
    ClassCacheView.SEARCH,
    ClassCacheView.COUNTS,
    ClassCacheView.EXPORT,
)

# Aggregates recomputed from existing classes
AGGREGATE_VIEWS: Tuple[ClassCacheView, ...] = (
    ClassCacheView.ANALYTICS,
    ClassCacheView.PERFORMANCE,
)


class ClassDimension(str, Enum):
    """Entity fields that partition cached class listings."""
    SCHOOL = "school"
    LEVEL = "level"
    TEACHER = "teacher"

    @property
    def view(self) -> ClassCacheView:
        return ClassCacheView(self.value)

    @property
    def fields(self) -> Tuple[str, ...]:
        """Accepted entity field names, in lookup order."""
        return DIMENSION_FIELDS[self]


DIMENSION_FIELDS: Dict[ClassDimension, Tuple[str, ...]] = {
    ClassDimension.SCHOOL: ("school_id", "schoolId"),
    ClassDimension.LEVEL: ("level",),
    ClassDimension.TEACHER: ("class_teacher_id", "classTeacherId", "teacher_id", "teacherId"),
}


def _read_field(entity: Any, name: str) -> Any:
    if isinstance(entity, Mapping):
        return entity.get(name)
    return getattr(entity, name, None)


def _is_present(value: Any) -> bool:
    # 0 is a real id or level; only None and "" mean "not set"
    return value is not None and value != ""


def entity_id(entity: Any) -> Optional[Any]:
    """Id of an entity snapshot, None when absent."""
    if entity is None:
        return None
    value = _read_field(entity, "id")
    return value if _is_present(value) else None


def dimension_value(entity: Any, dimension: ClassDimension) -> Optional[Any]:
    """First present value among the dimension's field names."""
    if entity is None:
        return None
    for name in dimension.fields:
        value = _read_field(entity, name)
        if _is_present(value):
            return value
    return None
