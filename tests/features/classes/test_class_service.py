"""Tests for ClassService read-through caching."""

from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest

from school_commons.features.classes.entities.protocols import ClassRepository
from school_commons.features.classes.services.class_service import ClassService

RANGE_FILTERS = {
    "student_count_min": ("student_count", lambda value, bound: value >= bound),
    "student_count_max": ("student_count", lambda value, bound: value <= bound),
}


class InMemoryClassRepository:
    """Dict-backed repository that records how often it is queried."""

    def __init__(self, classes: Optional[List[Dict[str, Any]]] = None):
        self.classes: Dict[int, Dict[str, Any]] = {item["id"]: dict(item) for item in classes or []}
        self.find_calls = 0
        self.get_calls = 0
        self._next_id = max(self.classes, default=0) + 1

    def _matches(self, item: Dict[str, Any], filters: Mapping[str, Any]) -> bool:
        for name, expected in filters.items():
            if name in RANGE_FILTERS:
                field, check = RANGE_FILTERS[name]
                if not check(item.get(field, 0), expected):
                    return False
            elif item.get(name) != expected:
                return False
        return True

    async def find_many(self, filters, *, offset, limit, sort_by, sort_order) -> Tuple[List[Dict[str, Any]], int]:
        self.find_calls += 1
        matched = [item for item in self.classes.values() if self._matches(item, filters)]
        matched.sort(key=lambda item: item.get(sort_by) or 0, reverse=sort_order == "desc")
        return matched[offset:offset + limit], len(matched)

    async def get_by_id(self, class_id):
        self.get_calls += 1
        item = self.classes.get(class_id)
        return dict(item) if item else None

    async def create(self, data):
        if not data.get("name"):
            raise ValueError("name is required")
        item = {"id": self._next_id, **data}
        self.classes[item["id"]] = item
        self._next_id += 1
        return dict(item)

    async def update(self, class_id, data):
        if class_id not in self.classes:
            return None
        self.classes[class_id].update(data)
        return dict(self.classes[class_id])

    async def delete(self, class_id):
        return self.classes.pop(class_id, None) is not None

    async def count(self, filters):
        return sum(1 for item in self.classes.values() if self._matches(item, filters))


@pytest.fixture
def repository():
    return InMemoryClassRepository([
        {"id": 1, "name": "JSS1 A", "school_id": 10, "level": "JSS1", "class_teacher_id": 5, "student_count": 30},
        {"id": 2, "name": "JSS1 B", "school_id": 10, "level": "JSS1", "class_teacher_id": 6, "student_count": 12},
        {"id": 3, "name": "SS2 A", "school_id": 11, "level": "SS2", "class_teacher_id": 5, "student_count": 25},
    ])


@pytest.fixture
def class_service(repository, class_cache):
    return ClassService(repository, class_cache)


class TestClassServiceReads:
    """Tests for cached reads."""

    def test_repository_satisfies_protocol(self, repository):
        assert isinstance(repository, ClassRepository)

    @pytest.mark.asyncio
    async def test_second_identical_list_is_served_from_cache(self, class_service, repository):
        first = await class_service.list_classes({"level": "JSS1", "page": 1, "limit": 10})
        second = await class_service.list_classes({"limit": 10, "page": 1, "level": "JSS1"})

        assert first["meta"]["source"] == "database"
        assert second["meta"]["source"] == "cache"
        assert repository.find_calls == 1
        assert second["data"] == first["data"]
        assert second["pagination"] == {
            "page": 1,
            "limit": 10,
            "total": 2,
            "total_pages": 1,
            "has_next": False,
            "has_prev": False,
        }

    @pytest.mark.asyncio
    async def test_create_between_lists_forces_database_read(self, class_service, repository):
        await class_service.list_classes({"page": 1})

        await class_service.create_class({"name": "JSS1 C", "school_id": 10, "level": "JSS1"})
        result = await class_service.list_classes({"page": 1})

        assert result["meta"]["source"] == "database"
        assert repository.find_calls == 2
        assert result["pagination"]["total"] == 4

    @pytest.mark.asyncio
    async def test_pagination_is_normalized(self, class_service):
        result = await class_service.list_classes({"page": "2", "limit": 2, "sort_by": "id", "sort_order": "ASC"})

        assert [item["id"] for item in result["data"]] == [3]
        assert result["pagination"]["total_pages"] == 2
        assert result["pagination"]["has_prev"] is True
        assert result["pagination"]["has_next"] is False
        assert result["meta"]["sort_order"] == "asc"

    @pytest.mark.asyncio
    async def test_search_total_counts_range_filtered_set(self, class_service):
        result = await class_service.search_classes({"student_count_min": 20, "limit": 1, "sort_by": "id"})

        assert len(result["data"]) == 1
        assert result["pagination"]["total"] == 2
        assert result["pagination"]["has_next"] is True

        cached = await class_service.search_classes({"sort_by": "id", "limit": 1, "student_count_min": 20})
        assert cached["meta"]["source"] == "cache"

    @pytest.mark.asyncio
    async def test_get_class(self, class_service, repository):
        first = await class_service.get_class(1)
        second = await class_service.get_class(1)

        assert first["data"]["name"] == "JSS1 A"
        assert first["meta"]["source"] == "database"
        assert second["meta"]["source"] == "cache"
        assert repository.get_calls == 1

    @pytest.mark.asyncio
    async def test_get_missing_class(self, class_service):
        assert await class_service.get_class(404) is None

    @pytest.mark.asyncio
    async def test_dimension_listings(self, class_service, repository):
        by_school = await class_service.list_by_school(10)
        by_teacher = await class_service.list_by_teacher(5)
        by_level = await class_service.list_by_level("SS2")

        assert {item["id"] for item in by_school["data"]} == {1, 2}
        assert {item["id"] for item in by_teacher["data"]} == {1, 3}
        assert [item["id"] for item in by_level["data"]] == [3]

        again = await class_service.list_by_school(10)
        assert again["meta"]["source"] == "cache"
        assert repository.find_calls == 3

    @pytest.mark.asyncio
    async def test_get_counts(self, class_service):
        first = await class_service.get_counts({"school_id": 10})
        second = await class_service.get_counts({"school_id": 10})

        assert first["data"] == {"total": 2}
        assert first["meta"]["source"] == "database"
        assert second["meta"]["source"] == "cache"


class TestClassServiceWrites:
    """Tests for writes and the invalidation they trigger."""

    @pytest.mark.asyncio
    async def test_update_retires_old_and_new_teacher_listings(self, class_service, repository):
        await class_service.list_by_teacher(5)
        await class_service.list_by_teacher(7)
        await class_service.get_class(1)

        updated = await class_service.update_class(1, {"class_teacher_id": 7})

        assert updated["class_teacher_id"] == 7
        old_teacher = await class_service.list_by_teacher(5)
        new_teacher = await class_service.list_by_teacher(7)
        refreshed = await class_service.get_class(1)

        assert old_teacher["meta"]["source"] == "database"
        assert [item["id"] for item in old_teacher["data"]] == [3]
        assert new_teacher["meta"]["source"] == "database"
        assert [item["id"] for item in new_teacher["data"]] == [1]
        assert refreshed["meta"]["source"] == "database"
        assert refreshed["data"]["class_teacher_id"] == 7

    @pytest.mark.asyncio
    async def test_update_missing_class(self, class_service):
        assert await class_service.update_class(404, {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_delete_class(self, class_service):
        await class_service.get_class(2)
        await class_service.list_by_school(10)

        assert await class_service.delete_class(2) is True

        assert await class_service.get_class(2) is None
        listing = await class_service.list_by_school(10)
        assert [item["id"] for item in listing["data"]] == [1]
        assert await class_service.delete_class(2) is False

    @pytest.mark.asyncio
    async def test_bulk_create_reports_failures_and_flushes(self, class_service, cache_service):
        await class_service.list_classes()
        await class_service.get_class(1)

        result = await class_service.bulk_create([
            {"name": "SS3 A", "school_id": 11},
            {"school_id": 11},
        ])

        assert [item["name"] for item in result["created"]] == ["SS3 A"]
        assert result["failed"][0]["index"] == 1
        assert (await cache_service.stats("class"))["key_count"] == 0

    @pytest.mark.asyncio
    async def test_bulk_update(self, class_service):
        result = await class_service.bulk_update([
            {"id": 1, "data": {"level": "JSS2"}},
            {"id": 404, "data": {"level": "JSS2"}},
        ])

        assert [item["id"] for item in result["updated"]] == [1]
        assert result["failed"] == [{"id": 404, "error": "not found"}]

    @pytest.mark.asyncio
    async def test_bulk_delete(self, class_service, repository):
        await class_service.list_classes()

        result = await class_service.bulk_delete([1, 3, 404])

        assert result["deleted"] == [1, 3]
        assert result["failed"] == [{"id": 404, "error": "not found"}]
        listing = await class_service.list_classes()
        assert listing["meta"]["source"] == "database"
        assert [item["id"] for item in listing["data"]] == [2]
