# src/cache/index.py — v2
"""Metadata index persistence and oldest-first eviction planning.

The index file is the only source of truth between operations: callers
load it fresh, derive an updated MetadataIndex, and persist it wholesale.
persist_index() is not transactional.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

from pydantic import ValidationError

from fscache.cache.errors import CorruptIndex, EvictionInsufficientSpace
from fscache.cache.layout import index_path
from fscache.cache.models import CacheStats, EvictionPlan, MetadataIndex

logger = logging.getLogger(__name__)

_last_created_ms = 0


def load_index(cache_root: Path | str) -> MetadataIndex:
    """Load the metadata index of a cache root.

    Returns:
        The parsed index, or an empty index when the file does not exist.

    Raises:
        CorruptIndex: If the file exists but is not a valid index.
        OSError: Any other read failure, unchanged.
    """
    path = index_path(cache_root)
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return MetadataIndex()
    except UnicodeDecodeError as e:
        raise CorruptIndex(str(path), f"not valid utf-8 ({e})") from e

    try:
        index = MetadataIndex.model_validate(json.loads(raw))
    except json.JSONDecodeError as e:
        raise CorruptIndex(str(path), f"not valid json ({e})") from e
    except ValidationError as e:
        raise CorruptIndex(str(path), f"unexpected structure ({e.error_count()} errors)") from e

    for key, entry in index.entries.items():
        if key != entry.path:
            raise CorruptIndex(str(path), f"entry key {key!r} does not match path {entry.path!r}")

    entries_size = index.entries_size()
    if entries_size != index.size:
        logger.warning(
            "Cache index size %d differs from sum of entries %d in %s",
            index.size, entries_size, path,
        )
    return index


def persist_index(cache_root: Path | str, index: MetadataIndex) -> None:
    """Overwrite the metadata index file with `index`."""
    path = index_path(cache_root)
    path.write_text(index.model_dump_json(), encoding="utf-8")


def plan_eviction(index: MetadataIndex, bytes_to_reduce: int) -> EvictionPlan:
    """Choose the oldest entries whose sizes add up to `bytes_to_reduce`.

    Pure: the input index is not modified and no file is touched. Ties on
    `created` keep the index's insertion order.

    Raises:
        EvictionInsufficientSpace: If every entry together frees less than
            `bytes_to_reduce`.
    """
    if bytes_to_reduce <= 0:
        return EvictionPlan(index=index.model_copy(deep=True))

    available = index.entries_size()
    if available < bytes_to_reduce:
        raise EvictionInsufficientSpace(bytes_to_reduce, available)

    by_age = sorted(index.entries.values(), key=lambda entry: entry.created)
    updated = index
    evicted = []
    freed = 0
    for entry in by_age:
        if freed >= bytes_to_reduce:
            break
        evicted.append(entry)
        freed += entry.size
        updated = updated.without(entry.path)

    return EvictionPlan(index=updated, evicted=evicted)


def compute_stats(index: MetadataIndex) -> CacheStats:
    """Summarize an index for reporting."""
    if not index.entries:
        return CacheStats(total_size=index.size)
    by_age = sorted(index.entries.values(), key=lambda entry: entry.created)
    return CacheStats(
        entry_count=len(by_age),
        total_size=index.size,
        entries_size=index.entries_size(),
        oldest=by_age[0],
        newest=by_age[-1],
    )


def now_ms() -> int:
    """Current time in milliseconds, never lower than a previous call."""
    global _last_created_ms
    current = time.time_ns() // 1_000_000
    _last_created_ms = max(current, _last_created_ms)
    return _last_created_ms
