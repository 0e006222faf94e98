# tests/integration/cache/test_int_cache_stores.py — v4
"""End-to-end cache scenarios: eviction order and size accounting on disk.

No external services required.
Coverage targets: json_file_store.py, index.py, codec.py, file_store.py
"""

from __future__ import annotations

from pathlib import Path

import pytest

from fscache.cache import json_file_store
from fscache.cache.codec import encode_value
from fscache.cache.errors import EntryNotFound, EntryTooLarge
from fscache.cache.file_store import FileCacheStore
from fscache.cache.index import load_index
from fscache.cache.models import StoreConfig


def _disk_size(root: Path) -> int:
    """Bytes of every document and segment under root, excluding the index."""
    return sum(
        p.stat().st_size for p in root.rglob("*")
        if p.is_file() and p != root / "meta.json"
    )


def _assert_accounting(root: Path) -> None:
    index = load_index(root)
    assert index.size == index.entries_size()
    assert index.size == _disk_size(root)


class TestEvictionScenario:

    @pytest.mark.asyncio
    async def test_newer_entry_evicts_older(self, cache_root):
        config = StoreConfig(cache_root=cache_root, max_size=2048)
        a = str(cache_root / "a")
        b = str(cache_root / "b")
        value_a = {"blob": bytes(1440)}
        value_b = {"blob": bytes(1024)}
        size_a = encode_value(value_a).total_size
        size_b = encode_value(value_b).total_size
        assert size_a + size_b > 2048

        await json_file_store.write(a, value_a, config)
        await json_file_store.write(b, value_b, config)

        index = load_index(cache_root)
        assert list(index.entries) == [b]
        assert index.size == size_b
        assert not Path(f"{a}.json").exists()
        assert not Path(f"{a}-0.bin").exists()
        assert await json_file_store.read(b) == value_b
        _assert_accounting(cache_root)

    @pytest.mark.asyncio
    async def test_evicts_oldest_until_enough_freed(self, cache_root):
        values = {name: {"blob": bytes(1100), "name": name} for name in "abcd"}
        size = encode_value(values["a"]).total_size
        config = StoreConfig(cache_root=cache_root, max_size=3 * size + size // 2)
        paths = {name: str(cache_root / name) for name in values}

        for name in "abc":
            await json_file_store.write(paths[name], values[name], config)
        await json_file_store.write(paths["d"], values["d"], config)

        index = load_index(cache_root)
        assert list(index.entries) == [paths["b"], paths["c"], paths["d"]]
        with pytest.raises(EntryNotFound):
            await json_file_store.read(paths["a"])
        for name in "bcd":
            assert await json_file_store.read(paths[name]) == values[name]
        _assert_accounting(cache_root)

    @pytest.mark.asyncio
    async def test_evicts_multiple_entries(self, cache_root):
        small = {"n": bytes(1024)}
        small_size = encode_value(small).total_size
        config = StoreConfig(cache_root=cache_root, max_size=4 * small_size)
        for i in range(4):
            await json_file_store.write(str(cache_root / f"s{i}"), small, config)

        big = {"n": bytes(2 * small_size)}
        await json_file_store.write(str(cache_root / "big"), big, config)

        remaining = [Path(p).name for p in load_index(cache_root).entries]
        assert remaining[-1] == "big"
        assert "s0" not in remaining
        assert "s3" in remaining
        assert load_index(cache_root).size <= config.max_size
        _assert_accounting(cache_root)

    @pytest.mark.asyncio
    async def test_oversize_rejected_without_eviction(self, cache_root):
        config = StoreConfig(cache_root=cache_root, max_size=3000)
        kept = str(cache_root / "kept")
        await json_file_store.write(kept, {"v": bytes(1024)}, config)
        before = load_index(cache_root)

        with pytest.raises(EntryTooLarge):
            await json_file_store.write(str(cache_root / "huge"), bytes(5000), config)

        assert load_index(cache_root) == before
        assert not (cache_root / "huge.json").exists()
        assert await json_file_store.read(kept) == {"v": bytes(1024)}


class TestSizeAccounting:

    @pytest.mark.asyncio
    async def test_mixed_writes_and_deletes(self, cache_root, sample_value):
        config = StoreConfig(cache_root=cache_root, max_size=1024 * 1024)
        paths = [str(cache_root / f"e{i}") for i in range(5)]
        for i, path in enumerate(paths):
            await json_file_store.write(path, {"i": i, "data": bytes(500 * i)}, config)
            _assert_accounting(cache_root)

        await json_file_store.delete(paths[1], cache_root)
        _assert_accounting(cache_root)
        await json_file_store.write(paths[3], sample_value, config)
        _assert_accounting(cache_root)
        await json_file_store.delete(paths[4], cache_root)
        _assert_accounting(cache_root)

        index = load_index(cache_root)
        assert sorted(index.entries) == sorted([paths[0], paths[2], paths[3]])

    @pytest.mark.asyncio
    async def test_store_churn_stays_within_budget(self, tmp_path):
        store = FileCacheStore(tmp_path, max_size=20_000)
        for i in range(30):
            await store.put(f"k{i}", {"i": i, "payload": bytes(1000 + 97 * i)})
            stats = await store.stats()
            assert stats.total_size <= 20_000
            assert stats.is_consistent
        assert await store.get("k29") == {"i": 29, "payload": bytes(1000 + 97 * 29)}
        assert await store.get("k0") is None
        _assert_accounting(tmp_path)
