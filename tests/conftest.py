# tests/conftest.py — v2
"""Shared test fixtures for unit and integration tests.

Every fixture works inside pytest's tmp_path; nothing touches the real
cache root.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from fscache.cache.models import IndexEntry, MetadataIndex, StoreConfig
from fscache.logging.context import clear_context


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """Empty cache root directory."""
    root = tmp_path / "cache"
    root.mkdir()
    return root


@pytest.fixture
def store_config(cache_root: Path) -> StoreConfig:
    """Store config with a 1 MiB budget."""
    return StoreConfig(cache_root=cache_root, max_size=1024 * 1024)


@pytest.fixture
def sample_value() -> dict:
    """Nested value with inline and external buffers."""
    return {
        "key": "task:build",
        "exit_code": 0,
        "ratio": 0.75,
        "cached": True,
        "missing": None,
        "outputs": [
            {"name": "small.bin", "content": b"\x00\x01\x02hello"},
            {"name": "large.bin", "content": bytes(range(256)) * 8},
        ],
        "log": b"x" * 1023,
    }


@pytest.fixture
def three_entry_index() -> MetadataIndex:
    """Index with entries a (oldest), b, c (newest)."""
    entries = {
        "a": IndexEntry(path="a", size=100, created=1000),
        "b": IndexEntry(path="b", size=200, created=2000),
        "c": IndexEntry(path="c", size=300, created=3000),
    }
    return MetadataIndex(size=600, entries=entries)


@pytest.fixture(autouse=True)
def _reset_fscache_logger():
    yield
    root = logging.getLogger("fscache")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
