# src/cache/json_file_store.py — v2
"""Store operations over JSON primary documents and binary segment files.

write() order is: document, index, segments, then removal of segments left
over from an overwritten entry. A crash between those steps can leave an
indexed entry with incomplete segments, stale segment files, or files
without an index entry (see file_store.find_orphans()). Old files of an
overwritten entry are never removed before the new index is persisted.

One logical writer per cache root is assumed: every mutating call loads,
updates and rewrites the index without locking, so concurrent writers on
the same root can lose each other's size updates.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from fscache.cache.codec import (
    INLINE_THRESHOLD,
    encode_value,
    materialize,
    parse_document,
    read_segment_count,
)
from fscache.cache.errors import CorruptEntry, EntryNotFound, EntryTooLarge
from fscache.cache.index import load_index, now_ms, persist_index, plan_eviction
from fscache.cache.layout import document_path, index_path, segment_path
from fscache.cache.models import IndexEntry, StoreConfig
from fscache.logging.context import operation_context

logger = logging.getLogger(__name__)


async def write(
    path: str,
    value: Any,
    config: StoreConfig,
    inline_threshold: int = INLINE_THRESHOLD,
) -> IndexEntry:
    """Encode and store `value` under `path`, evicting old entries if needed.

    Args:
        path: Entry path; files are `<path>.json` and `<path>-<i>.bin`.
        value: Structured value (see codec.encode_value).
        config: Cache root holding the index, and the size budget.
        inline_threshold: Buffers at least this long go to segment files.

    Returns:
        The index record created for the entry.

    Raises:
        EntryTooLarge: Encoded value alone exceeds the budget. No I/O done.
        EvictionInsufficientSpace: Index entries cannot free enough space.
        CorruptIndex: The index file cannot be parsed.
        ValueError: The entry document would overwrite the index file.
    """
    with operation_context("write", path, config.cache_root):
        encoded = encode_value(value, inline_threshold)
        total_size = encoded.total_size
        if total_size > config.max_size:
            raise EntryTooLarge(path, total_size, config.max_size)
        if _is_index_file(path, config.cache_root):
            raise ValueError(f"entry path {path!r} collides with the cache index file")

        index = await asyncio.to_thread(load_index, config.cache_root)

        replaced = index.entries.get(path)
        if replaced is not None:
            index = index.without(path)

        evicted: list[IndexEntry] = []
        projected = index.size + total_size
        if projected > config.max_size:
            plan = plan_eviction(index, projected - config.max_size)
            index = plan.index
            evicted = plan.evicted
            logger.info(
                "Evicting %d entries (%d bytes) to fit %d bytes under max size %d",
                len(evicted), plan.bytes_freed, total_size, config.max_size,
            )

        await asyncio.gather(
            *(_remove_entry_files(entry.path, missing_ok=True) for entry in evicted)
        )

        old_exists, old_count = await _read_header(path)

        await asyncio.to_thread(
            document_path(path).write_text, encoded.document, encoding="utf-8"
        )

        entry = IndexEntry(path=path, size=total_size, created=now_ms())
        index = index.with_entry(entry)
        await asyncio.to_thread(persist_index, config.cache_root, index)

        await asyncio.gather(
            *(
                asyncio.to_thread(segment_path(path, i).write_bytes, segment)
                for i, segment in enumerate(encoded.segments)
            )
        )
        if old_exists:
            await _remove_stale_segments(path, len(encoded.segments), old_count)
        logger.debug(
            "Wrote cache entry %s (%d bytes, %d segments)",
            path, total_size, len(encoded.segments),
        )
        return entry


async def read(path: str) -> Any:
    """Load the value stored under `path`. Does not consult the index.

    Raises:
        EntryNotFound: No primary document exists.
        CorruptEntry: Document or segments are unreadable or inconsistent.
    """
    with operation_context("read", path):
        try:
            document = await asyncio.to_thread(
                document_path(path).read_text, encoding="utf-8"
            )
        except FileNotFoundError as e:
            raise EntryNotFound(path) from e
        except UnicodeDecodeError as e:
            raise CorruptEntry(path, f"document is not valid UTF-8: {e}") from e

        parsed = parse_document(path, document)
        indices = sorted({ref.index for ref in parsed.pending})
        payloads = await asyncio.gather(*(_read_segment(path, i) for i in indices))
        value = materialize(path, parsed, dict(zip(indices, payloads)))
        logger.debug("Read cache entry %s (%d segments)", path, len(indices))
        return value


async def delete(path: str, cache_root: Path | str | None = None) -> None:
    """Remove the entry's document and segments, then its index record.

    When `cache_root` is None the index is left to the caller (eviction
    updates its own copy and persists once).

    Raises:
        EntryNotFound: No primary document exists; the index is not touched.
    """
    with operation_context("delete", path, cache_root):
        await _remove_entry_files(path, missing_ok=False)

        if cache_root is None:
            return

        index = await asyncio.to_thread(load_index, cache_root)
        if path not in index.entries:
            logger.warning("Deleted cache entry %s had no index record", path)
            return
        await asyncio.to_thread(persist_index, cache_root, index.without(path))
        logger.debug("Deleted cache entry %s", path)


async def _read_segment(path: str, index: int) -> bytes:
    try:
        return await asyncio.to_thread(segment_path(path, index).read_bytes)
    except FileNotFoundError as e:
        raise CorruptEntry(path, f"segment {index} is missing") from e


async def _read_header(path: str) -> tuple[bool, int | None]:
    """Return whether the document exists and its recorded segment count.

    The count is None when the document exists but its header is unreadable.
    """
    try:
        document = await asyncio.to_thread(
            document_path(path).read_text, encoding="utf-8"
        )
    except FileNotFoundError:
        return False, None
    except UnicodeDecodeError:
        return True, None
    return True, read_segment_count(document)


async def _remove_entry_files(path: str, missing_ok: bool) -> None:
    """Unlink the primary document and its segment files.

    The segment count comes from the document header. If the header is
    unreadable, segments are probed from 0 until the first missing one.
    """
    exists, count = await _read_header(path)
    if not exists:
        if missing_ok:
            return
        raise EntryNotFound(path)

    try:
        await asyncio.to_thread(document_path(path).unlink)
    except FileNotFoundError as e:
        if missing_ok:
            return
        raise EntryNotFound(path) from e
    await _remove_stale_segments(path, 0, count)


async def _remove_stale_segments(path: str, start: int, count: int | None) -> None:
    """Unlink segments `start..count-1`, probing from `start` if count is unknown."""
    if count is None:
        logger.warning("Cache entry %s has no readable header, probing segments", path)
        await asyncio.to_thread(_probe_remove_segments, path, start)
        return

    for i in range(start, count):
        try:
            await asyncio.to_thread(segment_path(path, i).unlink)
        except FileNotFoundError:
            logger.warning("Segment %d of cache entry %s was already missing", i, path)


def _probe_remove_segments(path: str, start: int = 0) -> None:
    i = start
    while True:
        try:
            segment_path(path, i).unlink()
        except FileNotFoundError:
            return
        i += 1


def _is_index_file(path: str, cache_root: Path | str) -> bool:
    return document_path(path).resolve() == index_path(cache_root).resolve()
