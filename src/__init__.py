# src/__init__.py — v1
"""fscache — persistent file-backed key-value cache."""

from fscache.version import __version__

__all__ = ["__version__"]
