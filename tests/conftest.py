"""Pytest configuration and fixtures for school-commons tests."""

import pytest
import pytest_asyncio

from school_commons.features.cache.adapters.memory_adapter import MemoryAdapter
from school_commons.features.cache.entities.config import CacheSettings
from school_commons.features.cache.services.cache_service import CacheService
from school_commons.features.classes.services.class_cache_service import ClassCacheService


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Clock shared by the memory adapter under test."""
    return FakeClock()


@pytest.fixture
def cache_settings():
    """Memory backend settings with the sweeper disabled."""
    return CacheSettings(backend="memory", memory_cleanup_interval=0)


@pytest.fixture
def memory_adapter(clock):
    """Memory adapter driven by the fake clock."""
    return MemoryAdapter(cleanup_interval=0, clock=clock)


@pytest_asyncio.fixture
async def cache_service(memory_adapter, cache_settings):
    """Initialized cache service over the memory adapter."""
    service = CacheService(memory_adapter, cache_settings)
    await service.initialize()
    yield service
    await service.shutdown()


@pytest.fixture
def class_cache(cache_service):
    """Class cache facade over the memory-backed cache service."""
    return ClassCacheService(cache_service)
