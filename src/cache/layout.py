# src/cache/layout.py — v2
"""On-disk naming for cache files.

    <path>.json            primary document
    <path>-<index>.bin     external binary segment, index 0..N-1
    <cache_root>/meta.json metadata index
    <cache_root>/entries/  default home of entry files (FileCacheStore)
"""

from __future__ import annotations

from pathlib import Path

INDEX_FILENAME = "meta.json"
ENTRIES_DIRNAME = "entries"
DOCUMENT_SUFFIX = ".json"
SEGMENT_SUFFIX = ".bin"


def document_path(path: str) -> Path:
    """Primary document file for an entry path."""
    return Path(f"{path}{DOCUMENT_SUFFIX}")


def segment_path(path: str, index: int) -> Path:
    """Segment file for the `index`-th extracted buffer of an entry."""
    return Path(f"{path}-{index}{SEGMENT_SUFFIX}")


def index_path(cache_root: Path | str) -> Path:
    """Metadata index file for a cache root."""
    return Path(cache_root) / INDEX_FILENAME


def entry_path_from_document(document: Path) -> str:
    """Inverse of document_path()."""
    name = str(document)
    return name[: -len(DOCUMENT_SUFFIX)] if name.endswith(DOCUMENT_SUFFIX) else name
