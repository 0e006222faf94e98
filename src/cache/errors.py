# src/cache/errors.py — v1
"""Exception taxonomy for the file-backed cache store.

Every failure surfaces to the caller as one of these (or an unchanged
OSError for generic I/O problems). Nothing is retried internally.
"""

from __future__ import annotations


class CacheError(Exception):
    """Base class for all cache store errors."""


class EntryTooLarge(CacheError):
    """A single value's encoded size exceeds the cache max size."""

    def __init__(self, path: str, size: int, max_size: int) -> None:
        super().__init__(
            f"not setting cache value {path!r}: encoded size {size} "
            f"exceeds max size {max_size}"
        )
        self.path = path
        self.size = size
        self.max_size = max_size


class CorruptIndex(CacheError):
    """The metadata index exists but is not a valid index document."""

    def __init__(self, index_file: str, reason: str) -> None:
        super().__init__(f"cache meta file {index_file} is not valid: {reason}")
        self.index_file = index_file
        self.reason = reason


class CorruptEntry(CacheError):
    """A primary document is unreadable or references bad segments."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cache entry {path!r} is corrupt: {reason}")
        self.path = path
        self.reason = reason


class EntryNotFound(CacheError, FileNotFoundError):
    """No primary document exists for the requested path.

    Also a FileNotFoundError, so callers matching on the OS not-found
    condition keep working.
    """

    def __init__(self, path: str) -> None:
        super().__init__(f"cache entry {path!r} not found")
        self.path = path


class EvictionInsufficientSpace(CacheError):
    """Evicting every indexed entry still cannot free the requested bytes."""

    def __init__(self, bytes_to_reduce: int, bytes_available: int) -> None:
        super().__init__(
            f"cache cannot accommodate entry: need to free {bytes_to_reduce} "
            f"bytes but only {bytes_available} bytes are evictable"
        )
        self.bytes_to_reduce = bytes_to_reduce
        self.bytes_available = bytes_available
