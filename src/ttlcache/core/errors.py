from __future__ import annotations


class TTLCacheError(Exception):
    """Base error for the cache package."""


class ValidationError(TTLCacheError, TypeError):
    """Raised when an option or per-call argument is invalid."""
