"""Tests for MemoryAdapter."""

import pytest

from school_commons.features.cache.adapters.memory_adapter import MemoryAdapter, split_glob
from school_commons.features.cache.entities.protocols import CacheBackend, CacheBackendAdapter


class TestSplitGlob:
    """Tests for glob pattern classification."""

    def test_plain_key_is_exact(self):
        assert split_glob("class:data:1") == ("exact", "class:data:1")

    def test_trailing_star_is_prefix(self):
        assert split_glob("class:list:*") == ("prefix", "class:list:")

    def test_lone_star_matches_everything(self):
        assert split_glob("*") == ("prefix", "")

    def test_inner_wildcard_falls_back_to_glob(self):
        assert split_glob("class:*:1") == ("glob", "class:*:1")
        assert split_glob("class:l?st:*") == ("glob", "class:l?st:*")

    def test_escaped_characters_are_literal(self):
        assert split_glob(r"class:level:JSS\[1\]:*") == ("prefix", "class:level:JSS[1]:")
        assert split_glob(r"class:level:JSS\[1\]") == ("exact", "class:level:JSS[1]")

    def test_escaped_characters_in_glob_are_bracketed(self):
        assert split_glob(r"class:*:JSS\[1\]") == ("glob", "class:*:JSS[[]1]")


class TestMemoryAdapter:
    """Tests for the in-memory backend."""

    def test_satisfies_adapter_protocol(self, memory_adapter):
        assert isinstance(memory_adapter, CacheBackendAdapter)
        assert memory_adapter.backend_type == CacheBackend.MEMORY

    @pytest.mark.asyncio
    async def test_set_and_get(self, memory_adapter):
        await memory_adapter.set("class:data:1", '{"id": 1}', ttl=60)

        assert await memory_adapter.get("class:data:1") == '{"id": 1}'
        assert await memory_adapter.get("class:data:2") is None

    @pytest.mark.asyncio
    async def test_set_overwrites(self, memory_adapter):
        await memory_adapter.set("k", "first", ttl=60)
        await memory_adapter.set("k", "second", ttl=60)

        assert await memory_adapter.get("k") == "second"
        assert await memory_adapter.keys() == ["k"]

    @pytest.mark.asyncio
    async def test_expired_entry_is_absent_and_purged_on_read(self, memory_adapter, clock):
        await memory_adapter.set("class:data:1", "value", ttl=10)

        clock.advance(9)
        assert await memory_adapter.get("class:data:1") == "value"

        clock.advance(1)
        assert await memory_adapter.get("class:data:1") is None
        assert "class:data:1" not in memory_adapter._store
        assert memory_adapter._index == []

    @pytest.mark.asyncio
    async def test_zero_or_missing_ttl_never_expires(self, memory_adapter, clock):
        await memory_adapter.set("forever", "a", ttl=0)
        await memory_adapter.set("also-forever", "b")

        clock.advance(10 ** 6)

        assert await memory_adapter.get("forever") == "a"
        assert await memory_adapter.get("also-forever") == "b"

    @pytest.mark.asyncio
    async def test_delete_reports_existence(self, memory_adapter):
        await memory_adapter.set("k", "v", ttl=60)

        assert await memory_adapter.delete("k") is True
        assert await memory_adapter.delete("k") is False

    @pytest.mark.asyncio
    async def test_delete_pattern_is_scoped_to_prefix(self, memory_adapter):
        for key in ("class:list:a", "class:list:b", "class:lists:x", "class:data:1"):
            await memory_adapter.set(key, "v", ttl=60)

        deleted = await memory_adapter.delete_pattern("class:list:*")

        assert deleted == 2
        assert await memory_adapter.keys() == ["class:data:1", "class:lists:x"]

    @pytest.mark.asyncio
    async def test_delete_pattern_with_inner_wildcard(self, memory_adapter):
        for key in ("class:data:1", "class:stats:1", "class:data:12", "class:stats:2"):
            await memory_adapter.set(key, "v", ttl=60)

        deleted = await memory_adapter.delete_pattern("class:*:1")

        assert deleted == 2
        assert await memory_adapter.keys() == ["class:data:12", "class:stats:2"]

    @pytest.mark.asyncio
    async def test_delete_pattern_with_escaped_brackets(self, memory_adapter):
        for key in ("class:level:JSS[1]:page:1", "class:level:JSS[1]:page:2", "class:level:JSS1:page:1"):
            await memory_adapter.set(key, "v", ttl=60)

        deleted = await memory_adapter.delete_pattern(r"class:level:JSS\[1\]:*")

        assert deleted == 2
        assert await memory_adapter.keys() == ["class:level:JSS1:page:1"]

    @pytest.mark.asyncio
    async def test_delete_pattern_without_wildcard_deletes_exact_key(self, memory_adapter):
        await memory_adapter.set("class:data:1", "v", ttl=60)
        await memory_adapter.set("class:data:10", "v", ttl=60)

        assert await memory_adapter.delete_pattern("class:data:1") == 1
        assert await memory_adapter.keys() == ["class:data:10"]

    @pytest.mark.asyncio
    async def test_keys_and_count_skip_expired_entries(self, memory_adapter, clock):
        await memory_adapter.set("class:list:short", "v", ttl=5)
        await memory_adapter.set("class:list:long", "v", ttl=500)

        clock.advance(6)

        assert await memory_adapter.keys("class:*") == ["class:list:long"]
        assert await memory_adapter.count("class:list:*") == 1

    @pytest.mark.asyncio
    async def test_info_reports_entries(self, memory_adapter):
        await memory_adapter.set("a", "12345", ttl=60)

        info = await memory_adapter.info()

        assert info["backend_type"] == "memory"
        assert info["total_entries"] == 1
        assert info["total_size_bytes"] == 5
        assert info["sweeper_running"] is False

    @pytest.mark.asyncio
    async def test_sweeper_runs_while_connected(self):
        adapter = MemoryAdapter(cleanup_interval=60)

        await adapter.connect()
        info = await adapter.info()
        assert info["sweeper_running"] is True

        await adapter.disconnect()
        assert adapter._cleanup_task is None

    @pytest.mark.asyncio
    async def test_zero_interval_disables_sweeper(self, memory_adapter):
        await memory_adapter.connect()

        assert memory_adapter._cleanup_task is None

        await memory_adapter.disconnect()

    @pytest.mark.asyncio
    async def test_health_check(self, memory_adapter):
        assert await memory_adapter.health_check() is True
