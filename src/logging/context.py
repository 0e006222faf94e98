# src/logging/context.py — v3
"""Contextual logging support — attach cache root, entry path and operation to log records."""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

# Context variables for structured logging — set per store operation.
_cache_root: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "cache_root", default=None
)
_entry_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "entry_path", default=None
)
_operation: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "operation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    cache_root: str | None = None
    entry_path: str | None = None
    operation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        cache_root=_cache_root.get(),
        entry_path=_entry_path.get(),
        operation=_operation.get(),
    )


@contextmanager
def operation_context(
    operation: str,
    entry_path: str | None = None,
    cache_root: Path | str | None = None,
) -> Iterator[LogContext]:
    """Scope operation/entry (and optionally cache root) to a block."""
    tokens = [
        (_operation, _operation.set(operation)),
        (_entry_path, _entry_path.set(entry_path)),
    ]
    if cache_root is not None:
        tokens.append((_cache_root, _cache_root.set(str(cache_root))))
    try:
        yield get_context()
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _cache_root.set(None)
    _entry_path.set(None)
    _operation.set(None)
