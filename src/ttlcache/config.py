"""Cache defaults taken from TTLCACHE_* environment variables.

options_from_env() turns the process environment (or any mapping) into
CacheOptions for TTLCache.from_options(). setup_logging() is an opt-in
handler setup for scripts; the library itself only emits DEBUG records.
"""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from ttlcache.core.models import NEVER, CacheOptions

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _env_bool(name: str, default: bool, env: Optional[Mapping[str, str]] = None) -> bool:
    raw = (os.environ if env is None else env).get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int, env: Optional[Mapping[str, str]] = None) -> int:
    raw = (os.environ if env is None else env).get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def options_from_env(env: Optional[Mapping[str, str]] = None) -> CacheOptions:
    """Build CacheOptions from TTLCACHE_* variables.

    TTLCACHE_MAX and TTLCACHE_TTL treat 0 (or unset) as "not configured":
    unbounded max and no default ttl respectively. Negative values are
    passed through so the cache rejects them.
    """
    max_entries = _env_int("TTLCACHE_MAX", 0, env)
    ttl = _env_int("TTLCACHE_TTL", 0, env)
    return CacheOptions(
        max=NEVER if max_entries == 0 else max_entries,
        ttl=None if ttl == 0 else ttl,
        update_age_on_get=_env_bool("TTLCACHE_UPDATE_AGE_ON_GET", False, env),
        check_age_on_get=_env_bool("TTLCACHE_CHECK_AGE_ON_GET", False, env),
        no_update_ttl=_env_bool("TTLCACHE_NO_UPDATE_TTL", False, env),
        no_dispose_on_set=_env_bool("TTLCACHE_NO_DISPOSE_ON_SET", False, env),
    )


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure root logging for scripts and return the package logger."""
    name = (level or os.environ.get("TTLCACHE_LOG_LEVEL", "WARNING")).strip().upper()
    logging.basicConfig(level=getattr(logging, name, logging.WARNING), format=LOG_FORMAT)
    return logging.getLogger("ttlcache")
