# src/cache/file_store.py — v2
"""File-backed cache store bound to one cache root and size budget.

Keys are mapped to entry paths under <cache_root>/entries, apart from the
metadata index at <cache_root>/meta.json. The module-level operations in
json_file_store do the actual work.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from fscache.cache import json_file_store
from fscache.cache.base_cache_store import BaseCacheStore
from fscache.cache.codec import INLINE_THRESHOLD
from fscache.cache.errors import EntryNotFound
from fscache.cache.index import compute_stats, load_index
from fscache.cache.layout import (
    DOCUMENT_SUFFIX,
    ENTRIES_DIRNAME,
    document_path,
    entry_path_from_document,
)
from fscache.cache.models import CacheStats, IndexEntry, OrphanReport, StoreConfig

logger = logging.getLogger(__name__)


class FileCacheStore(BaseCacheStore):
    """Cache store writing JSON documents and segment files under one root."""

    def __init__(
        self,
        cache_root: Path | str,
        max_size: int,
        inline_threshold: int = INLINE_THRESHOLD,
    ) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)
        self._entries_dir = self._root / ENTRIES_DIRNAME
        self._entries_dir.mkdir(exist_ok=True)
        self._config = StoreConfig(cache_root=self._root, max_size=max_size)
        self._inline_threshold = inline_threshold

    @property
    def config(self) -> StoreConfig:
        return self._config

    async def get(self, key: str) -> Any | None:
        """Retrieve the value for key, or None if there is no entry."""
        try:
            return await json_file_store.read(self.entry_path(key))
        except EntryNotFound:
            return None

    async def put(self, key: str, value: Any) -> IndexEntry:
        """Store a value under key."""
        return await json_file_store.write(
            self.entry_path(key), value, self._config, self._inline_threshold
        )

    async def delete(self, key: str) -> None:
        """Remove the entry for key and its index record.

        Raises:
            EntryNotFound: If no entry exists for key.
        """
        await json_file_store.delete(self.entry_path(key), self._root)

    async def contains(self, key: str) -> bool:
        """Check whether a primary document exists for key."""
        return await asyncio.to_thread(document_path(self.entry_path(key)).exists)

    async def list_entries(self) -> list[IndexEntry]:
        """List all indexed entries, oldest first."""
        index = await asyncio.to_thread(load_index, self._root)
        return sorted(index.entries.values(), key=lambda entry: entry.created)

    async def stats(self) -> CacheStats:
        """Summarize the metadata index."""
        index = await asyncio.to_thread(load_index, self._root)
        return compute_stats(index)

    async def find_orphans(self) -> OrphanReport:
        """Report index records without documents and documents without records.

        Nothing is repaired. Only documents directly under <root>/entries are
        scanned for missing index records.
        """
        index = await asyncio.to_thread(load_index, self._root)
        return await asyncio.to_thread(_scan_orphans, self._entries_dir, set(index.entries))

    def entry_path(self, key: str) -> str:
        """Return the entry path (without suffix) for a cache key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return str(self._entries_dir / safe_key)


def _scan_orphans(entries_dir: Path, indexed: set[str]) -> OrphanReport:
    report = OrphanReport()
    for path in sorted(indexed):
        if not document_path(path).exists():
            report.missing_documents.append(path)

    for doc in sorted(entries_dir.glob(f"*{DOCUMENT_SUFFIX}")):
        path = entry_path_from_document(doc)
        if path not in indexed:
            report.unindexed_documents.append(path)

    if not report.is_clean:
        logger.warning(
            "Cache entries in %s have %d missing documents and %d unindexed documents",
            entries_dir, len(report.missing_documents), len(report.unindexed_documents),
        )
    return report
