"""Page requests and pagination metadata for class listings."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_SORT_BY = "created_at"

PAGINATION_PARAMS = frozenset({"page", "limit", "sort_by", "sort_order"})


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class PageRequest:
    """Normalized offset pagination request."""

    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = "desc"

    @classmethod
    def from_params(cls, params: Optional[Mapping[str, Any]] = None) -> Tuple["PageRequest", Dict[str, Any]]:
        """Split raw query params into a page request and the remaining filters."""
        params = params or {}

        page = max(_to_int(params.get("page"), 1), 1)
        limit = min(max(_to_int(params.get("limit"), DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
        sort_by = params.get("sort_by") or DEFAULT_SORT_BY
        sort_order = "asc" if str(params.get("sort_order", "desc")).lower() == "asc" else "desc"

        filters = {
            name: value for name, value in params.items()
            if name not in PAGINATION_PARAMS and value is not None
        }
        return cls(page=page, limit=limit, sort_by=sort_by, sort_order=sort_order), filters

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_params(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "sort_by": self.sort_by,
            "sort_order": self.sort_order,
        }


@dataclass(frozen=True)
class PageInfo:
    """Pagination block of a listing envelope."""

    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.limit == 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }
