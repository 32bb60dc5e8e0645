"""Memory cache backend adapter for school-commons."""

import asyncio
import bisect
import fnmatch
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..entities.protocols import CacheBackend

logger = logging.getLogger(__name__)

GLOB_CHARS = "*?["


@dataclass
class MemoryCacheEntry:
    """Memory cache entry with metadata."""
    value: str
    created_at: float
    expires_at: Optional[float] = None
    size_bytes: int = field(init=False)

    def __post_init__(self):
        self.size_bytes = len(self.value.encode("utf-8")) if self.value else 0

    def is_expired(self, now: float) -> bool:
        """Check if entry is expired at the given time."""
        if self.expires_at is None:
            return False
        return now >= self.expires_at


def _glob_tokens(pattern: str) -> Iterator[Tuple[str, bool]]:
    """Yield (char, is_literal) pairs, resolving backslash escapes."""
    chars = iter(pattern)
    for char in chars:
        if char == "\\":
            yield next(chars, "\\"), True
        else:
            yield char, char not in GLOB_CHARS


def split_glob(pattern: str) -> tuple:
    """Classify a glob pattern as ("exact", key), ("prefix", prefix) or ("glob", pattern).

    Backslash-escaped characters are literal. Exact keys and prefixes are
    returned unescaped; glob patterns are rewritten for `fnmatch`, which
    has no escape character and needs `[*]` style brackets instead.
    """
    tokens = list(_glob_tokens(pattern))
    if all(literal for _, literal in tokens):
        return "exact", "".join(char for char, _ in tokens)

    head = tokens[:-1]
    if tokens[-1] == ("*", False) and all(literal for _, literal in head):
        return "prefix", "".join(char for char, _ in head)

    return "glob", "".join(
        f"[{char}]" if literal and char in GLOB_CHARS else char
        for char, literal in tokens
    )


class MemoryAdapter:
    """In-process cache backend adapter with TTL support.

    Keys are kept in a sorted index next to the entry map so that
    `prefix*` patterns resolve with a range scan instead of a full scan.
    Expired entries are purged on read and by a periodic sweep while
    the adapter is connected.

    Nothing here awaits, so no operation suspends the calling task.
    """

    def __init__(
        self,
        cleanup_interval: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self._store: Dict[str, MemoryCacheEntry] = {}
        self._index: List[str] = []
        self._clock = clock
        self._cleanup_interval = cleanup_interval
        self._cleanup_task: Optional[asyncio.Task] = None
        self._total_size_bytes = 0
        self._expired_cleanups = 0

    @property
    def backend_type(self) -> CacheBackend:
        return CacheBackend.MEMORY

    async def connect(self) -> None:
        """Start the background sweeper."""
        if self._cleanup_interval > 0 and self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._background_cleanup())

        logger.info(f"Memory cache initialized with cleanup_interval={self._cleanup_interval}s")

    async def disconnect(self) -> None:
        """Stop the background sweeper and drop all entries."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

        self._store.clear()
        self._index.clear()
        self._total_size_bytes = 0

    async def get(self, key: str) -> Optional[str]:
        """Get value by key."""
        entry = self._store.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            self._remove_entry(key)
            self._expired_cleanups += 1
            return None

        return entry.value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Set key-value pair with optional TTL."""
        now = self._clock()
        expires_at = now + ttl if ttl and ttl > 0 else None

        if key in self._store:
            self._remove_entry(key)

        entry = MemoryCacheEntry(value=value, created_at=now, expires_at=expires_at)
        self._store[key] = entry
        bisect.insort(self._index, key)
        self._total_size_bytes += entry.size_bytes

    async def delete(self, key: str) -> bool:
        """Delete key and return whether it existed."""
        if key in self._store:
            self._remove_entry(key)
            return True
        return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete keys matching pattern."""
        matching_keys = list(self._match(pattern))
        for key in matching_keys:
            self._remove_entry(key)

        logger.debug(f"Deleted {len(matching_keys)} keys matching {pattern}")
        return len(matching_keys)

    async def keys(self, pattern: str = "*") -> List[str]:
        """Get non-expired keys matching pattern."""
        self._cleanup_expired()
        return list(self._match(pattern))

    async def count(self, pattern: str = "*") -> int:
        """Count non-expired keys matching pattern."""
        self._cleanup_expired()
        return sum(1 for _ in self._match(pattern))

    async def clear(self) -> None:
        """Clear all cache entries."""
        self._store.clear()
        self._index.clear()
        self._total_size_bytes = 0

    async def health_check(self) -> bool:
        """Check memory cache health."""
        return True

    async def info(self) -> Dict[str, Any]:
        """Get cache backend information."""
        self._cleanup_expired()

        return {
            "backend_type": self.backend_type.value,
            "total_entries": len(self._store),
            "total_size_bytes": self._total_size_bytes,
            "expired_cleanups": self._expired_cleanups,
            "cleanup_interval_seconds": self._cleanup_interval,
            "sweeper_running": self._cleanup_task is not None and not self._cleanup_task.done(),
        }

    def _match(self, pattern: str) -> Iterator[str]:
        """Yield stored keys matching pattern, in sorted order."""
        kind, value = split_glob(pattern)

        if kind == "exact":
            if value in self._store:
                yield value
            return

        if kind == "prefix":
            position = bisect.bisect_left(self._index, value)
            while position < len(self._index) and self._index[position].startswith(value):
                yield self._index[position]
                position += 1
            return

        for key in self._index:
            if fnmatch.fnmatchcase(key, value):
                yield key

    def _remove_entry(self, key: str) -> None:
        """Remove entry from store and index."""
        entry = self._store.pop(key, None)
        if entry is None:
            return

        self._total_size_bytes -= entry.size_bytes
        position = bisect.bisect_left(self._index, key)
        if position < len(self._index) and self._index[position] == key:
            del self._index[position]

    def _cleanup_expired(self) -> int:
        """Remove all expired entries."""
        now = self._clock()
        expired_keys = [key for key, entry in self._store.items() if entry.is_expired(now)]

        for key in expired_keys:
            self._remove_entry(key)

        self._expired_cleanups += len(expired_keys)
        return len(expired_keys)

    async def _background_cleanup(self) -> None:
        """Background task to clean up expired entries."""
        while True:
            try:
                await asyncio.sleep(self._cleanup_interval)
                removed = self._cleanup_expired()
                if removed:
                    logger.debug(f"Swept {removed} expired cache entries")
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in background cleanup: {e}")
