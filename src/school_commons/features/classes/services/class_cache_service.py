"""Class-specific cache service: per-view accessors and invalidation."""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ....features.cache.services.cache_service import CacheService
from ..entities.keys import (
    build_key,
    build_scope_pattern,
    build_scoped_key,
    build_view_pattern,
    canonicalize_params,
)
from ..entities.views import (
    AGGREGATE_VIEWS,
    COLLECTION_VIEWS,
    DEFAULT_VIEW_TTLS,
    ClassCacheView,
    ClassDimension,
    dimension_value,
    entity_id,
)

logger = logging.getLogger(__name__)


class TargetKind(str, Enum):
    """How an invalidation target is deleted."""
    KEY = "key"
    PATTERN = "pattern"


Target = Tuple[TargetKind, str]


class ClassCacheService:
    """Service for caching class views.

    This is pure caching: callers check the cache, query the repository on
    a miss and write the result back. After a mutation commits they call the
    matching `on_*` method to retire every view the change made stale.
    """

    def __init__(self,
                 cache_service: CacheService,
                 ttls: Optional[Mapping[ClassCacheView, int]] = None,
                 namespace: Optional[str] = None):
        """Initialize class cache service.

        Args:
            cache_service: The underlying cache service to use
            ttls: Optional per-view TTL overrides in seconds
            namespace: Key namespace, defaults to the cache settings namespace
        """
        self.cache_service = cache_service
        self.namespace = namespace or cache_service.settings.namespace
        self._ttls: Dict[ClassCacheView, int] = dict(DEFAULT_VIEW_TTLS)
        if ttls:
            self._ttls.update({ClassCacheView(view): ttl for view, ttl in ttls.items()})

    def configure_ttl(self,
                      data_ttl: Optional[int] = None,
                      list_ttl: Optional[int] = None,
                      search_ttl: Optional[int] = None,
                      counts_ttl: Optional[int] = None,
                      stats_ttl: Optional[int] = None,
                      analytics_ttl: Optional[int] = None,
                      performance_ttl: Optional[int] = None,
                      export_ttl: Optional[int] = None,
                      dimension_ttl: Optional[int] = None) -> None:
        """Configure TTL values for the class views.

        Args:
            data_ttl: TTL for single classes
            list_ttl: TTL for list pages
            search_ttl: TTL for advanced search pages
            counts_ttl: TTL for count aggregates
            stats_ttl: TTL for per-class statistics
            analytics_ttl: TTL for analytics reports
            performance_ttl: TTL for performance reports
            export_ttl: TTL for export payloads
            dimension_ttl: TTL for by-school, by-level and by-teacher pages
        """
        overrides = {
            ClassCacheView.DATA: data_ttl,
            ClassCacheView.LIST: list_ttl,
            ClassCacheView.SEARCH: search_ttl,
            ClassCacheView.COUNTS: counts_ttl,
            ClassCacheView.STATS: stats_ttl,
            ClassCacheView.ANALYTICS: analytics_ttl,
            ClassCacheView.PERFORMANCE: performance_ttl,
            ClassCacheView.EXPORT: export_ttl,
        }
        if dimension_ttl is not None:
            for dimension in ClassDimension:
                overrides[dimension.view] = dimension_ttl

        for view, ttl in overrides.items():
            if ttl is not None:
                self._ttls[view] = ttl

    def get_ttl(self, view: ClassCacheView) -> int:
        return self._ttls[view]

    # ========== Class Data Cache ==========

    async def get_data(self, class_id: Any) -> Optional[Dict[str, Any]]:
        """Get cached class by id."""
        return await self._get(ClassCacheView.DATA, class_id)

    async def set_data(self, class_id: Any, class_data: Any) -> bool:
        """Cache a class under its id."""
        return await self._set(ClassCacheView.DATA, class_id, class_data)

    async def delete_data(self, class_id: Any) -> bool:
        return await self._delete(ClassCacheView.DATA, class_id)

    async def delete_data_pattern(self) -> bool:
        return await self._delete_view(ClassCacheView.DATA)

    # ========== List / Search / Export Cache ==========

    async def get_list(self, params: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Get a cached list page for the given query parameters."""
        return await self._get(ClassCacheView.LIST, canonicalize_params(params))

    async def set_list(self, params: Optional[Mapping[str, Any]], data: Any) -> bool:
        """Cache a list page for the given query parameters."""
        return await self._set(ClassCacheView.LIST, canonicalize_params(params), data)

    async def delete_list(self, params: Optional[Mapping[str, Any]] = None) -> bool:
        return await self._delete(ClassCacheView.LIST, canonicalize_params(params))

    async def delete_list_pattern(self) -> bool:
        """Remove every cached list page."""
        return await self._delete_view(ClassCacheView.LIST)

    async def get_search(self, params: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Get a cached advanced-search page."""
        return await self._get(ClassCacheView.SEARCH, canonicalize_params(params))

    async def set_search(self, params: Optional[Mapping[str, Any]], data: Any) -> bool:
        """Cache an advanced-search page."""
        return await self._set(ClassCacheView.SEARCH, canonicalize_params(params), data)

    async def delete_search(self, params: Optional[Mapping[str, Any]] = None) -> bool:
        return await self._delete(ClassCacheView.SEARCH, canonicalize_params(params))

    async def delete_search_pattern(self) -> bool:
        return await self._delete_view(ClassCacheView.SEARCH)

    async def get_export(self, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        return await self._get(ClassCacheView.EXPORT, canonicalize_params(params))

    async def set_export(self, params: Optional[Mapping[str, Any]], data: Any) -> bool:
        return await self._set(ClassCacheView.EXPORT, canonicalize_params(params), data)

    async def delete_export(self, params: Optional[Mapping[str, Any]] = None) -> bool:
        return await self._delete(ClassCacheView.EXPORT, canonicalize_params(params))

    async def delete_export_pattern(self) -> bool:
        return await self._delete_view(ClassCacheView.EXPORT)

    # ========== Aggregates Cache ==========

    async def get_counts(self, kind: str, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        """Get cached counts of a kind (e.g. `stats`) for the given filters."""
        return await self._get_scoped(ClassCacheView.COUNTS, kind, params)

    async def set_counts(self, kind: str, params: Optional[Mapping[str, Any]], counts: Any) -> bool:
        return await self._set_scoped(ClassCacheView.COUNTS, kind, params, counts)

    async def delete_counts(self, kind: str, params: Optional[Mapping[str, Any]] = None) -> bool:
        return await self._delete_scoped(ClassCacheView.COUNTS, kind, params)

    async def delete_counts_pattern(self) -> bool:
        return await self._delete_view(ClassCacheView.COUNTS)

    async def get_stats(self, class_id: Any) -> Optional[Any]:
        """Get cached statistics of one class."""
        return await self._get(ClassCacheView.STATS, class_id)

    async def set_stats(self, class_id: Any, stats: Any) -> bool:
        return await self._set(ClassCacheView.STATS, class_id, stats)

    async def delete_stats(self, class_id: Any) -> bool:
        return await self._delete(ClassCacheView.STATS, class_id)

    async def delete_stats_pattern(self) -> bool:
        return await self._delete_view(ClassCacheView.STATS)

    async def get_analytics(self, scope: Any, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        """Get a cached analytics report.

        Args:
            scope: Class id or report name
            params: Report parameters
        """
        return await self._get_scoped(ClassCacheView.ANALYTICS, scope, params)

    async def set_analytics(self, scope: Any, params: Optional[Mapping[str, Any]], analytics: Any) -> bool:
        return await self._set_scoped(ClassCacheView.ANALYTICS, scope, params, analytics)

    async def delete_analytics(self, scope: Any, params: Optional[Mapping[str, Any]] = None) -> bool:
        return await self._delete_scoped(ClassCacheView.ANALYTICS, scope, params)

    async def delete_analytics_pattern(self) -> bool:
        return await self._delete_view(ClassCacheView.ANALYTICS)

    async def get_performance(self, scope: Any, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        return await self._get_scoped(ClassCacheView.PERFORMANCE, scope, params)

    async def set_performance(self, scope: Any, params: Optional[Mapping[str, Any]], performance: Any) -> bool:
        return await self._set_scoped(ClassCacheView.PERFORMANCE, scope, params, performance)

    async def delete_performance(self, scope: Any, params: Optional[Mapping[str, Any]] = None) -> bool:
        return await self._delete_scoped(ClassCacheView.PERFORMANCE, scope, params)

    async def delete_performance_pattern(self) -> bool:
        return await self._delete_view(ClassCacheView.PERFORMANCE)

    # ========== Dimension Cache ==========

    async def get_by_school(self, school_id: Any, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        """Get a cached page of classes of one school."""
        return await self._get_scoped(ClassCacheView.SCHOOL, school_id, params)

    async def set_by_school(self, school_id: Any, params: Optional[Mapping[str, Any]], data: Any) -> bool:
        return await self._set_scoped(ClassCacheView.SCHOOL, school_id, params, data)

    async def delete_by_school(self, school_id: Any) -> bool:
        """Remove every cached page of one school."""
        return await self._delete_dimension(ClassDimension.SCHOOL, school_id)

    async def delete_school_pattern(self) -> bool:
        return await self._delete_view(ClassCacheView.SCHOOL)

    async def get_by_level(self, level: Any, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        return await self._get_scoped(ClassCacheView.LEVEL, level, params)

    async def set_by_level(self, level: Any, params: Optional[Mapping[str, Any]], data: Any) -> bool:
        return await self._set_scoped(ClassCacheView.LEVEL, level, params, data)

    async def delete_by_level(self, level: Any) -> bool:
        return await self._delete_dimension(ClassDimension.LEVEL, level)

    async def delete_level_pattern(self) -> bool:
        return await self._delete_view(ClassCacheView.LEVEL)

    async def get_by_teacher(self, teacher_id: Any, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        return await self._get_scoped(ClassCacheView.TEACHER, teacher_id, params)

    async def set_by_teacher(self, teacher_id: Any, params: Optional[Mapping[str, Any]], data: Any) -> bool:
        return await self._set_scoped(ClassCacheView.TEACHER, teacher_id, params, data)

    async def delete_by_teacher(self, teacher_id: Any) -> bool:
        return await self._delete_dimension(ClassDimension.TEACHER, teacher_id)

    async def delete_teacher_pattern(self) -> bool:
        return await self._delete_view(ClassCacheView.TEACHER)

    # ========== Cache Invalidation ==========

    async def on_create(self, class_data: Any) -> bool:
        """Invalidate views a newly created class may belong to.

        Args:
            class_data: Snapshot of the created class

        Returns:
            True if every delete succeeded
        """
        targets = self._collection_targets() + self._dimension_targets(class_data)
        return await self._invalidate("create", entity_id(class_data), targets)

    async def on_update(self, class_data: Any, old_data: Any = None) -> bool:
        """Invalidate views of an updated class.

        When `old_data` is given, listings under the previous school, level
        or teacher are retired too, since the class has moved out of them.

        Args:
            class_data: Snapshot after the update
            old_data: Snapshot before the update

        Returns:
            True if every delete succeeded
        """
        class_id = entity_id(class_data)
        if class_id is None:
            class_id = entity_id(old_data)

        targets = (
            self._entity_targets(class_id)
            + self._collection_targets()
            + self._aggregate_targets()
            + self._dimension_targets(class_data)
            + self._moved_dimension_targets(class_data, old_data)
        )
        return await self._invalidate("update", class_id, targets)

    async def on_delete(self, class_data: Any) -> bool:
        """Invalidate views of a deleted class.

        Args:
            class_data: Snapshot of the class as it was before deletion

        Returns:
            True if every delete succeeded
        """
        class_id = entity_id(class_data)
        targets = (
            self._entity_targets(class_id)
            + self._collection_targets()
            + self._aggregate_targets()
            + self._dimension_targets(class_data)
        )
        return await self._invalidate("delete", class_id, targets)

    async def on_bulk_operation(self, affected_ids: Iterable[Any], operation: Optional[str] = None) -> bool:
        """Flush the whole class namespace after a bulk mutation.

        Args:
            affected_ids: Ids of the classes touched by the operation
            operation: Operation name, for logging only

        Returns:
            True if every delete succeeded
        """
        targets: List[Target] = [(TargetKind.PATTERN, f"{self.namespace}:*")]
        for class_id in affected_ids:
            targets.append((TargetKind.KEY, build_key(self.namespace, ClassCacheView.DATA, class_id)))
            targets.append((TargetKind.KEY, build_key(self.namespace, ClassCacheView.COUNTS, class_id)))
            targets.append((TargetKind.KEY, build_key(self.namespace, ClassCacheView.STATS, class_id)))

        return await self._invalidate(f"bulk {operation or 'operation'}", None, targets)

    # ========== Administration ==========

    async def clear(self) -> bool:
        """Delete every key in the class namespace."""
        cleared = await self.cache_service.clear(self.namespace)
        logger.info(f"Cleared {self.namespace} cache: {cleared}")
        return cleared

    async def health_check(self) -> Dict[str, Any]:
        return await self.cache_service.health_check()

    async def get_cache_stats(self) -> Dict[str, Any]:
        """Get class cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        stats = await self.cache_service.stats(self.namespace)

        stats["class_cache"] = {
            "ttls": {view.value: ttl for view, ttl in self._ttls.items()},
            "patterns": {view.value: build_view_pattern(self.namespace, view) for view in ClassCacheView},
        }
        return stats

    # ========== Helper Methods ==========

    async def _get(self, view: ClassCacheView, discriminator: Any) -> Optional[Any]:
        return await self.cache_service.get(build_key(self.namespace, view, discriminator))

    async def _set(self, view: ClassCacheView, discriminator: Any, value: Any) -> bool:
        key = build_key(self.namespace, view, discriminator)
        return await self.cache_service.set(key, value, self._ttls[view])

    async def _delete(self, view: ClassCacheView, discriminator: Any) -> bool:
        return await self.cache_service.delete(build_key(self.namespace, view, discriminator))

    async def _get_scoped(self, view: ClassCacheView, scope: Any,
                          params: Optional[Mapping[str, Any]]) -> Optional[Any]:
        return await self.cache_service.get(build_scoped_key(self.namespace, view, scope, params))

    async def _set_scoped(self, view: ClassCacheView, scope: Any,
                          params: Optional[Mapping[str, Any]], value: Any) -> bool:
        key = build_scoped_key(self.namespace, view, scope, params)
        return await self.cache_service.set(key, value, self._ttls[view])

    async def _delete_scoped(self, view: ClassCacheView, scope: Any,
                             params: Optional[Mapping[str, Any]]) -> bool:
        return await self.cache_service.delete(build_scoped_key(self.namespace, view, scope, params))

    async def _delete_dimension(self, dimension: ClassDimension, value: Any) -> bool:
        return await self.cache_service.delete_pattern(
            build_scope_pattern(self.namespace, dimension.view, value)
        )

    async def _delete_view(self, view: ClassCacheView) -> bool:
        return await self.cache_service.delete_pattern(build_view_pattern(self.namespace, view))

    def _entity_targets(self, class_id: Any) -> List[Target]:
        if class_id is None:
            return []
        return [
            (TargetKind.KEY, build_key(self.namespace, ClassCacheView.DATA, class_id)),
            (TargetKind.KEY, build_key(self.namespace, ClassCacheView.STATS, class_id)),
        ]

    def _collection_targets(self) -> List[Target]:
        return [(TargetKind.PATTERN, build_view_pattern(self.namespace, view)) for view in COLLECTION_VIEWS]

    def _aggregate_targets(self) -> List[Target]:
        return [(TargetKind.PATTERN, build_view_pattern(self.namespace, view)) for view in AGGREGATE_VIEWS]

    def _dimension_targets(self, class_data: Any) -> List[Target]:
        targets = []
        for dimension in ClassDimension:
            value = dimension_value(class_data, dimension)
            if value is not None:
                targets.append((TargetKind.PATTERN, build_scope_pattern(self.namespace, dimension.view, value)))
        return targets

    def _moved_dimension_targets(self, class_data: Any, old_data: Any) -> List[Target]:
        if old_data is None:
            return []

        targets = []
        for dimension in ClassDimension:
            old_value = dimension_value(old_data, dimension)
            if old_value is not None and old_value != dimension_value(class_data, dimension):
                targets.append((TargetKind.PATTERN, build_scope_pattern(self.namespace, dimension.view, old_value)))
        return targets

    async def _invalidate(self, event: str, class_id: Any, targets: List[Target]) -> bool:
        """Run every delete concurrently; one failure never cancels the rest."""
        targets = list(dict.fromkeys(targets))

        results = await asyncio.gather(
            *(self._delete_target(kind, target) for kind, target in targets),
            return_exceptions=True,
        )

        failed = [target for (_, target), result in zip(targets, results) if result is not True]
        if failed:
            logger.warning(
                f"Class cache invalidation on {event} (class {class_id}) failed for "
                f"{len(failed)}/{len(targets)} targets: {', '.join(failed)}"
            )
            return False

        logger.debug(f"Class cache invalidated on {event} (class {class_id}): {len(targets)} targets")
        return True

    async def _delete_target(self, kind: TargetKind, target: str) -> bool:
        if kind is TargetKind.PATTERN:
            return await self.cache_service.delete_pattern(target)
        return await self.cache_service.delete(target)
