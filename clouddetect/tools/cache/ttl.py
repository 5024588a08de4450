"""캐시 TTL(Time To Live) 관리.

Category TTLs and file-mtime freshness checks. Both the snapshot and the
lease marker carry their timestamp only as the file's modification time, so
freshness is always ``mtime + ttl`` compared against the wall clock.

Attributes:
    CACHE_TTL: Per-category TTL table.
    DEFAULT_TTL: TTL for categories missing from the table (12 hours).

Example:
    ::

        from clouddetect.tools.cache.ttl import file_mtime, is_within_ttl

        mtime = file_mtime(path)
        if mtime is not None and is_within_ttl(mtime, get_ttl("ip_ranges")):
            ...
"""

from __future__ import annotations

import os
import time
from datetime import timedelta

CACHE_TTL: dict[str, timedelta] = {
    "ip_ranges": timedelta(hours=24),
    "lease_wait": timedelta(minutes=2),
}

DEFAULT_TTL = timedelta(hours=12)


def get_ttl(category: str) -> timedelta:
    """Return the TTL for a category (DEFAULT_TTL when not configured)"""
    return CACHE_TTL.get(category, DEFAULT_TTL)


def is_within_ttl(mtime: float, ttl: timedelta, now: float | None = None) -> bool:
    """True while ``mtime + ttl`` is still in the future

    Args:
        mtime: Epoch seconds (typically ``os.stat().st_mtime``)
        ttl: Lifetime
        now: Reference time, defaults to ``time.time()``
    """
    if now is None:
        now = time.time()
    return mtime + ttl.total_seconds() > now


def file_mtime(filepath: str) -> float | None:
    """Modification time of ``filepath`` or None if it does not exist

    Other OSErrors propagate so callers can tell "absent" from "unreadable".
    """
    try:
        return os.stat(filepath).st_mtime
    except FileNotFoundError:
        return None
