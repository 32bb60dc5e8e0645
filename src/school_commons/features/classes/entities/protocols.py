"""Data-access protocol for classes.

The cache layer never talks to the database itself; services receive an
implementation of this protocol and sequence cache reads around it.
"""

from abc import abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class ClassRepository(Protocol):
    """Protocol for class persistence.

    Entities are plain mappings carrying at least `id` and the dimension
    fields (`school_id`, `level`, `class_teacher_id`).
    """

    @abstractmethod
    async def find_many(
        self,
        filters: Mapping[str, Any],
        *,
        offset: int,
        limit: int,
        sort_by: str,
        sort_order: str,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Return one page of classes and the total count of the filtered set."""
        ...

    @abstractmethod
    async def get_by_id(self, class_id: Any) -> Optional[Dict[str, Any]]:
        """Get class by id."""
        ...

    @abstractmethod
    async def create(self, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert a class and return the stored entity."""
        ...

    @abstractmethod
    async def update(self, class_id: Any, data: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Update a class and return the stored entity, None if missing."""
        ...

    @abstractmethod
    async def delete(self, class_id: Any) -> bool:
        """Delete a class and return whether it existed."""
        ...

    @abstractmethod
    async def count(self, filters: Mapping[str, Any]) -> int:
        """Count classes matching filters."""
        ...
