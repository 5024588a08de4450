"""
clouddetect/ip_ranges/lease.py - Cross-process refresh lease

A lease is an empty marker file next to the snapshot. Its existence means
"some process is (or recently was) refreshing"; its mtime is the claim time.
Nothing identifies the holder: a marker older than the TTL is treated as
abandoned and may be removed by anyone. This is a best-effort hint, not a
mutual-exclusion guarantee.
"""

from __future__ import annotations

import logging
import os
import time
from datetime import timedelta

from clouddetect.tools.cache.ttl import file_mtime, is_within_ttl

logger = logging.getLogger(__name__)


class LeaseMarker:
    """Marker file at ``path`` whose age is judged against ``ttl``"""

    def __init__(self, path: str, ttl: timedelta):
        self.path = path
        self.ttl = ttl
        self._owned = False

    def mtime(self) -> float | None:
        """Marker mtime, or None if there is no marker

        Raises:
            OSError: stat failed for a reason other than absence
        """
        return file_mtime(self.path)

    def is_abandoned(self, mtime: float, now: float | None = None) -> bool:
        return not is_within_ttl(mtime, self.ttl, now)

    def try_acquire(self) -> bool:
        """Create the marker exclusively

        Returns:
            True if created, False if a marker already exists

        Raises:
            OSError: Marker could not be created
        """
        try:
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            return False
        os.close(fd)
        self._owned = True
        logger.debug("Acquired refresh lease %s", self.path)
        return True

    def release(self) -> None:
        """Remove the marker if this instance created it"""
        if not self._owned:
            return
        self._owned = False
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove refresh lease %s: %s", self.path, e)

    def break_abandoned(self) -> None:
        """Remove a stale marker left behind by another process"""
        logger.debug("Removing abandoned refresh lease %s", self.path)
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass

    def age(self, now: float | None = None) -> float | None:
        mtime = self.mtime()
        if mtime is None:
            return None
        return (time.time() if now is None else now) - mtime

    def __enter__(self) -> LeaseMarker:
        return self

    def __exit__(self, *exc) -> bool:
        self.release()
        return False
