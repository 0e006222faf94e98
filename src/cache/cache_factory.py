# src/cache/cache_factory.py — v3
"""Factory for cache store instantiation from settings."""

from __future__ import annotations

from fscache.cache.base_cache_store import BaseCacheStore
from fscache.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the file-backed cache store for the configured root.

    Args:
        settings: Application settings. Defaults to Settings() from env/.env.

    Returns:
        Configured BaseCacheStore implementation.
    """
    from fscache.cache.file_store import FileCacheStore

    settings = settings if settings is not None else Settings()
    return FileCacheStore(
        cache_root=settings.cache_root,
        max_size=settings.cache_max_size,
        inline_threshold=settings.inline_threshold,
    )
