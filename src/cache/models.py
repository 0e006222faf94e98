# src/cache/models.py — v2
"""Cache domain models: index entries, metadata index, encoded entries.

The metadata index is treated as a value: operations receive it, return
an updated copy, and only persist_index() makes a change visible.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class IndexEntry(BaseModel):
    """Size and creation time of one cached entry."""

    model_config = ConfigDict(frozen=True)

    path: str
    size: int = Field(ge=0)
    created: int = Field(ge=0, description="Milliseconds since epoch")


class MetadataIndex(BaseModel):
    """Registry of all live entries plus their aggregate size."""

    size: int = 0
    entries: dict[str, IndexEntry] = Field(default_factory=dict)

    def entries_size(self) -> int:
        """Sum of all entry sizes (must equal `size`)."""
        return sum(entry.size for entry in self.entries.values())

    def with_entry(self, entry: IndexEntry) -> MetadataIndex:
        """Return a copy with `entry` added (replacing any same-path entry)."""
        entries = dict(self.entries)
        previous = entries.get(entry.path)
        entries[entry.path] = entry
        size = self.size + entry.size - (previous.size if previous else 0)
        return MetadataIndex(size=size, entries=entries)

    def without(self, path: str) -> MetadataIndex:
        """Return a copy with `path` removed (no-op if absent)."""
        if path not in self.entries:
            return self.model_copy(deep=True)
        entries = dict(self.entries)
        removed = entries.pop(path)
        return MetadataIndex(size=self.size - removed.size, entries=entries)


class ExternalBufferRef(BaseModel):
    """Placeholder left in a primary document for an extracted buffer."""

    type: Literal["ExternalBuffer"] = "ExternalBuffer"
    index: int = Field(ge=0)
    size: int = Field(ge=0)


class EncodedEntry(BaseModel):
    """Output of encoding one value: document text plus binary segments."""

    document: str
    segments: list[bytes] = Field(default_factory=list)

    @property
    def document_size(self) -> int:
        return len(self.document.encode("utf-8"))

    @property
    def total_size(self) -> int:
        """Document bytes plus all segment bytes."""
        return self.document_size + sum(len(s) for s in self.segments)


class StoreConfig(BaseModel):
    """Per-call store configuration: where the index lives and the budget."""

    cache_root: Path
    max_size: int = Field(gt=0)


class EvictionPlan(BaseModel):
    """Result of planning an eviction over a loaded index."""

    index: MetadataIndex
    evicted: list[IndexEntry] = Field(default_factory=list)

    @property
    def bytes_freed(self) -> int:
        return sum(entry.size for entry in self.evicted)


class CacheStats(BaseModel):
    """Summary of a cache root's metadata index."""

    entry_count: int = 0
    total_size: int = 0
    entries_size: int = 0
    oldest: IndexEntry | None = None
    newest: IndexEntry | None = None

    @property
    def is_consistent(self) -> bool:
        return self.total_size == self.entries_size


class OrphanReport(BaseModel):
    """Entries whose index record and files disagree."""

    missing_documents: list[str] = Field(default_factory=list)
    unindexed_documents: list[str] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.missing_documents and not self.unindexed_documents
