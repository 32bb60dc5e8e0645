"""Class cache administration router.

Operational endpoints only: statistics, health and a full flush of the
class namespace.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from ....api.dependencies import get_class_cache_service
from ..services.class_cache_service import ClassCacheService


class ClearCacheResponse(BaseModel):
    """Result of a namespace flush."""
    cleared: bool = Field(..., description="True if every matching key was deleted")


class_cache_router = APIRouter(
    prefix="/classes/cache",
    tags=["Class Cache"],
)


@class_cache_router.get(
    "/stats",
    summary="Class cache statistics",
    description="Backend, key count and per-view TTLs of the class cache",
)
async def get_class_cache_stats(
    class_cache: ClassCacheService = Depends(get_class_cache_service),
) -> Dict[str, Any]:
    return await class_cache.get_cache_stats()


@class_cache_router.get(
    "/health",
    summary="Class cache health",
    description="Write, read and delete a sentinel key; 503 when any step fails",
    responses={503: {"description": "Cache backend unhealthy"}},
)
async def check_class_cache_health(
    response: Response,
    class_cache: ClassCacheService = Depends(get_class_cache_service),
) -> Dict[str, Any]:
    report = await class_cache.health_check()
    if not report.get("healthy"):
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return report


@class_cache_router.delete(
    "",
    response_model=ClearCacheResponse,
    summary="Clear class cache",
    description="Delete every key in the class namespace",
)
async def clear_class_cache(
    class_cache: ClassCacheService = Depends(get_class_cache_service),
) -> ClearCacheResponse:
    return ClearCacheResponse(cleared=await class_cache.clear())
