# src/cache/base_cache_store.py — v2
"""Abstract cache store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from fscache.cache.models import CacheStats, IndexEntry


class BaseCacheStore(ABC):
    """Key-based interface over a size-bounded cache."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Retrieve the value stored under key, or None if absent."""

    @abstractmethod
    async def put(self, key: str, value: Any) -> IndexEntry:
        """Store a value, evicting older entries if the budget requires it."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a cache entry."""

    @abstractmethod
    async def list_entries(self) -> list[IndexEntry]:
        """List all indexed entries, oldest first."""

    @abstractmethod
    async def stats(self) -> CacheStats:
        """Summarize the cache contents."""
