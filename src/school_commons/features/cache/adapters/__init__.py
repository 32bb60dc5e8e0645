"""Cache adapters - Redis and in-memory implementations."""

from .redis_adapter import RedisAdapter
from .memory_adapter import MemoryAdapter

__all__ = [
    "RedisAdapter",
    "MemoryAdapter",
]
