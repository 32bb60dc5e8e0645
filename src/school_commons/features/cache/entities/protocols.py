"""Cache protocols for school-commons.

This module defines the backend adapter contract every cache store implements.
Adapters deal in already-serialized string values; serialization and error
isolation live in CacheService.
"""

from abc import abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


class CacheBackend(str, Enum):
    """Supported cache backend types."""
    MEMORY = "memory"
    REDIS = "redis"


@runtime_checkable
class CacheBackendAdapter(Protocol):
    """Protocol for cache backend adapters.

    Adapters raise CacheError subclasses on backend failure. Only one adapter
    is active per process; it is chosen once at startup.
    """

    @property
    @abstractmethod
    def backend_type(self) -> CacheBackend:
        """Backend type served by this adapter."""
        ...

    @abstractmethod
    async def connect(self) -> None:
        """Open connections or start background tasks."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Release connections and stop background tasks."""
        ...

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get value by key, None if missing or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Set key-value pair; a ttl of None or <= 0 never expires."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key and return whether it existed."""
        ...

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching a glob pattern and return the number deleted."""
        ...

    @abstractmethod
    async def keys(self, pattern: str = "*") -> List[str]:
        """Get keys matching a glob pattern."""
        ...

    @abstractmethod
    async def count(self, pattern: str = "*") -> int:
        """Count keys matching a glob pattern."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check backend responsiveness."""
        ...

    @abstractmethod
    async def info(self) -> Dict[str, Any]:
        """Get backend information."""
        ...
