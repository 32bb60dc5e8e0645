"""Class service - read-through caching around a class repository."""

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from ..entities.pagination import PageInfo, PageRequest
from ..entities.protocols import ClassRepository
from ..entities.views import entity_id
from .class_cache_service import ClassCacheService

logger = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_DATABASE = "database"

COUNTS_KIND = "stats"

CacheReader = Callable[[Mapping[str, Any]], Awaitable[Optional[Dict[str, Any]]]]
CacheWriter = Callable[[Mapping[str, Any], Dict[str, Any]], Awaitable[bool]]


def _with_source(result: Dict[str, Any], source: str) -> Dict[str, Any]:
    return {**result, "meta": {**result.get("meta", {}), "source": source}}


class ClassService:
    """Class reads through the cache and writes that invalidate it.

    Reads return an envelope `{data, pagination, meta}` where `meta.source`
    tells whether the page came from the cache or the repository. Writes
    hit the repository first; cache invalidation failures are logged and
    never undo or fail a committed write.
    """

    def __init__(self, repository: ClassRepository, class_cache: ClassCacheService):
        self.repository = repository
        self.class_cache = class_cache

    # ========== Reads ==========

    async def list_classes(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """List classes with filters, sorting and pagination."""
        return await self._read_page(self.class_cache.get_list, self.class_cache.set_list, params)

    async def search_classes(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Advanced search.

        Count-range filters (`student_count_min`, `subject_count_max`, ...)
        are evaluated by the repository, so `pagination.total` is the size
        of the fully filtered set.
        """
        return await self._read_page(self.class_cache.get_search, self.class_cache.set_search, params)

    async def list_by_school(self, school_id: Any, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return await self._read_page(
            lambda key_params: self.class_cache.get_by_school(school_id, key_params),
            lambda key_params, result: self.class_cache.set_by_school(school_id, key_params, result),
            params,
            scope={"school_id": school_id},
        )

    async def list_by_level(self, level: Any, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return await self._read_page(
            lambda key_params: self.class_cache.get_by_level(level, key_params),
            lambda key_params, result: self.class_cache.set_by_level(level, key_params, result),
            params,
            scope={"level": level},
        )

    async def list_by_teacher(self, teacher_id: Any, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return await self._read_page(
            lambda key_params: self.class_cache.get_by_teacher(teacher_id, key_params),
            lambda key_params, result: self.class_cache.set_by_teacher(teacher_id, key_params, result),
            params,
            scope={"class_teacher_id": teacher_id},
        )

    async def get_class(self, class_id: Any) -> Optional[Dict[str, Any]]:
        """Get one class, None when it does not exist."""
        cached = await self.class_cache.get_data(class_id)
        if cached is not None:
            return {"data": cached, "meta": {"source": SOURCE_CACHE}}

        class_data = await self.repository.get_by_id(class_id)
        if class_data is None:
            return None

        await self.class_cache.set_data(class_id, class_data)
        return {"data": class_data, "meta": {"source": SOURCE_DATABASE}}

    async def get_counts(self, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Count classes matching filters."""
        filters = {name: value for name, value in (params or {}).items() if value is not None}

        cached = await self.class_cache.get_counts(COUNTS_KIND, filters)
        if cached is not None:
            return _with_source(cached, SOURCE_CACHE)

        total = await self.repository.count(filters)
        result = {"data": {"total": total}, "meta": {"filters": filters}}
        await self.class_cache.set_counts(COUNTS_KIND, filters, result)
        return _with_source(result, SOURCE_DATABASE)

    # ========== Writes ==========

    async def create_class(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a class and retire the listings it now belongs to."""
        created = await self.repository.create(data)
        await self.class_cache.on_create(created)
        return created

    async def update_class(self, class_id: Any, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Update a class, None if it does not exist."""
        existing = await self.repository.get_by_id(class_id)
        if existing is None:
            return None

        updated = await self.repository.update(class_id, data)
        if updated is None:
            return None

        await self.class_cache.on_update(updated, existing)
        return updated

    async def delete_class(self, class_id: Any) -> bool:
        """Delete a class and return whether it existed."""
        existing = await self.repository.get_by_id(class_id)
        if existing is None:
            return False

        deleted = await self.repository.delete(class_id)
        if deleted:
            await self.class_cache.on_delete(existing)
        return deleted

    async def bulk_create(self, items: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
        """Create several classes; per-item failures are reported, not raised."""
        created: List[Dict[str, Any]] = []
        failed: List[Dict[str, Any]] = []

        for index, data in enumerate(items):
            try:
                created.append(await self.repository.create(data))
            except Exception as e:
                logger.error(f"Bulk create failed for item {index}: {e}")
                failed.append({"index": index, "error": str(e)})

        if created:
            await self.class_cache.on_bulk_operation([entity_id(item) for item in created], "create")

        return {"created": created, "failed": failed}

    async def bulk_update(self, updates: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
        """Update several classes, each given as `{"id": ..., "data": {...}}`."""
        updated: List[Dict[str, Any]] = []
        failed: List[Dict[str, Any]] = []

        for update in updates:
            class_id = update.get("id")
            try:
                result = await self.repository.update(class_id, update.get("data") or {})
            except Exception as e:
                logger.error(f"Bulk update failed for class {class_id}: {e}")
                failed.append({"id": class_id, "error": str(e)})
                continue

            if result is None:
                failed.append({"id": class_id, "error": "not found"})
            else:
                updated.append(result)

        if updated:
            await self.class_cache.on_bulk_operation([entity_id(item) for item in updated], "update")

        return {"updated": updated, "failed": failed}

    async def bulk_delete(self, class_ids: Iterable[Any]) -> Dict[str, Any]:
        """Delete several classes by id."""
        deleted: List[Any] = []
        failed: List[Dict[str, Any]] = []

        for class_id in class_ids:
            try:
                existed = await self.repository.delete(class_id)
            except Exception as e:
                logger.error(f"Bulk delete failed for class {class_id}: {e}")
                failed.append({"id": class_id, "error": str(e)})
                continue

            if existed:
                deleted.append(class_id)
            else:
                failed.append({"id": class_id, "error": "not found"})

        if deleted:
            await self.class_cache.on_bulk_operation(deleted, "delete")

        return {"deleted": deleted, "failed": failed}

    # ========== Helper Methods ==========

    async def _read_page(self,
                         read_cache: CacheReader,
                         write_cache: CacheWriter,
                         params: Optional[Mapping[str, Any]],
                         scope: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Serve one page from the cache, or from the repository and cache it."""
        page_request, filters = PageRequest.from_params(params)
        key_params = {**filters, **page_request.to_params()}

        cached = await read_cache(key_params)
        if cached is not None:
            return _with_source(cached, SOURCE_CACHE)

        query_filters = {**filters, **(scope or {})}
        items, total = await self.repository.find_many(
            query_filters,
            offset=page_request.offset,
            limit=page_request.limit,
            sort_by=page_request.sort_by,
            sort_order=page_request.sort_order,
        )

        result = {
            "data": items,
            "pagination": PageInfo(page=page_request.page, limit=page_request.limit, total=total).to_dict(),
            "meta": {
                "filters": filters,
                "sort_by": page_request.sort_by,
                "sort_order": page_request.sort_order,
            },
        }
        await write_cache(key_params, result)
        return _with_source(result, SOURCE_DATABASE)
