# src/main.py — v2
"""CLI entry point — stats, show, delete, verify commands.

Usage:
    fscache stats [cache_root]
    fscache show <entry_path>
    fscache delete <entry_path> [--cache-root DIR]
    fscache verify [cache_root]

cache_root defaults to FSCACHE_CACHE_ROOT (see config.settings).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fscache.cache.errors import CacheError
from fscache.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except (CacheError, OSError) as exc:
        logger.error("%s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="fscache",
        description=f"fscache v{__version__} — file-backed key-value cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- stats ---
    p_stats = subparsers.add_parser("stats", help="Show cache size and entries")
    p_stats.add_argument(
        "cache_root", type=Path, nargs="?", default=None,
        help="Cache root (default: FSCACHE_CACHE_ROOT)",
    )
    p_stats.set_defaults(func=_cmd_stats)

    # --- show ---
    p_show = subparsers.add_parser("show", help="Print a cached value as JSON")
    p_show.add_argument("entry_path", help="Entry path without the .json suffix")
    p_show.set_defaults(func=_cmd_show)

    # --- delete ---
    p_delete = subparsers.add_parser("delete", help="Delete one cache entry")
    p_delete.add_argument("entry_path", help="Entry path without the .json suffix")
    p_delete.add_argument(
        "--cache-root", type=Path, default=None,
        help="Cache root whose index to update (default: FSCACHE_CACHE_ROOT)",
    )
    p_delete.set_defaults(func=_cmd_delete)

    # --- verify ---
    p_verify = subparsers.add_parser(
        "verify", help="Report index records and documents that disagree",
    )
    p_verify.add_argument(
        "cache_root", type=Path, nargs="?", default=None,
        help="Cache root (default: FSCACHE_CACHE_ROOT)",
    )
    p_verify.set_defaults(func=_cmd_verify)

    return parser


async def _cmd_stats(args: argparse.Namespace) -> int:
    """Display index statistics for a cache root."""
    from fscache.cache.index import compute_stats, load_index

    cache_root = _resolve_root(args.cache_root)
    stats = compute_stats(await asyncio.to_thread(load_index, cache_root))

    print(f"Cache root: {cache_root}")
    print(f"  Entries:     {stats.entry_count}")
    print(f"  Total size:  {stats.total_size} bytes")
    if stats.oldest is not None and stats.newest is not None:
        print(f"  Oldest:      {stats.oldest.path} ({_format_ms(stats.oldest.created)})")
        print(f"  Newest:      {stats.newest.path} ({_format_ms(stats.newest.created)})")
    if not stats.is_consistent:
        print(f"  WARNING: index size differs from sum of entries ({stats.entries_size})")
        return 1
    return 0


async def _cmd_show(args: argparse.Namespace) -> int:
    """Print a cached value."""
    from fscache.cache.json_file_store import read

    value = await read(args.entry_path)
    print(json.dumps(_printable(value), indent=2))
    return 0


async def _cmd_delete(args: argparse.Namespace) -> int:
    """Delete one entry and update the index."""
    from fscache.cache.json_file_store import delete

    cache_root = _resolve_root(args.cache_root)
    await delete(args.entry_path, cache_root)
    print(f"Deleted {args.entry_path}")
    return 0


async def _cmd_verify(args: argparse.Namespace) -> int:
    """Report orphaned entries without repairing them."""
    from fscache.cache.file_store import FileCacheStore
    from fscache.config.settings import Settings

    cache_root = _resolve_root(args.cache_root)
    store = FileCacheStore(cache_root, max_size=Settings().cache_max_size)
    report = await store.find_orphans()

    for path in report.missing_documents:
        print(f"missing document: {path}")
    for path in report.unindexed_documents:
        print(f"not indexed:      {path}")
    if report.is_clean:
        print("Cache index and documents agree")
        return 0
    return 1


def _resolve_root(cache_root: Path | None) -> Path:
    if cache_root is not None:
        return cache_root
    from fscache.config.settings import Settings

    return Settings().cache_root


def _printable(value: Any) -> Any:
    """Replace bytes with a size marker so the value can be dumped as JSON."""
    if isinstance(value, bytes):
        return f"<{len(value)} bytes>"
    if isinstance(value, dict):
        return {k: _printable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_printable(v) for v in value]
    return value


def _format_ms(created: int) -> str:
    return datetime.fromtimestamp(created / 1000, tz=timezone.utc).isoformat()


def _setup_logging(verbose: bool) -> None:
    """Configure logging from settings, forcing DEBUG when verbose."""
    from fscache.config.settings import Settings
    from fscache.logging.logger import setup_logging

    settings = Settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
