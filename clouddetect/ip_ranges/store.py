"""
clouddetect/ip_ranges/store.py - In-memory subnet cache

Holds the current record list behind a reader/writer lock. Readers copy what
they need and release before doing any scanning or I/O; writers (refresh
bookkeeping and commits) take the lock exclusively.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from clouddetect.exceptions import RefreshInProgressError

from .types import CacheSource, SubnetRecord


class ReadWriteLock:
    """Writer-preferring reader/writer lock

    Any number of readers may hold the lock together; a writer waits for
    active readers to drain and blocks new readers while it is queued.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    def read_locked(self) -> _Guard:
        return _Guard(self.acquire_read, self.release_read)

    def write_locked(self) -> _Guard:
        return _Guard(self.acquire_write, self.release_write)


class _Guard:
    def __init__(self, acquire, release):
        self._acquire = acquire
        self._release = release

    def __enter__(self):
        self._acquire()
        return self

    def __exit__(self, *exc):
        self._release()
        return False


@dataclass
class CacheState:
    """Mutable cache state, only touched under the store's write lock"""

    records: list[SubnetRecord] = field(default_factory=list)
    write_time: float = 0.0
    # timestamp of the records themselves; bump_write_time leaves it alone
    data_time: float = 0.0
    source: CacheSource = CacheSource.NONE
    refresh_in_progress: bool = False


@dataclass(frozen=True)
class CacheSnapshot:
    """Point-in-time copy handed to readers"""

    records: tuple[SubnetRecord, ...]
    write_time: float
    data_time: float
    source: CacheSource
    refresh_in_progress: bool

    def is_empty(self) -> bool:
        return not self.records

    def is_stale(self, ttl_seconds: float, now: float | None = None) -> bool:
        if now is None:
            now = time.time()
        return self.write_time + ttl_seconds < now


class CacheStore:
    """Thread-safe holder of one client's ``CacheState``

    Example:
        store = CacheStore()
        store.begin_refresh()
        try:
            records = fetch()
        except Exception:
            store.abort_refresh()
            raise
        store.commit(records, CacheSource.WEB)
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._state = CacheState()
        # set while no refresh is running
        self._idle = threading.Event()
        self._idle.set()

    def snapshot(self) -> CacheSnapshot:
        """Copy of the current state (read lock released before returning)"""
        with self._lock.read_locked():
            state = self._state
            return CacheSnapshot(
                records=tuple(state.records),
                write_time=state.write_time,
                data_time=state.data_time,
                source=state.source,
                refresh_in_progress=state.refresh_in_progress,
            )

    def begin_refresh(self) -> None:
        """Claim the single refresh slot

        Raises:
            RefreshInProgressError: Another refresh holds the slot
        """
        with self._lock.write_locked():
            if self._state.refresh_in_progress:
                raise RefreshInProgressError()
            self._state.refresh_in_progress = True
            self._idle.clear()

    def commit(
        self,
        records: Sequence[SubnetRecord],
        source: CacheSource,
        write_time: float | None = None,
    ) -> None:
        """Replace all records and release the refresh slot

        Args:
            records: Complete record set from one successful refresh
            source: Where the records came from
            write_time: Data timestamp (e.g. snapshot mtime); defaults to now.
                        When given it replaces ``write_time`` outright, even if
                        a ``bump_write_time`` hold-off had moved it later, so
                        loaded data expires one TTL after it was fetched.
        """
        with self._lock.write_locked():
            if write_time is None:
                data_time = time.time()
                write_time = max(self._state.write_time, data_time)
            else:
                data_time = write_time
            self._state.records = list(records)
            self._state.write_time = write_time
            self._state.data_time = data_time
            self._state.source = source
            self._state.refresh_in_progress = False
            self._idle.set()

    def abort_refresh(self) -> None:
        """Release the refresh slot without touching the records"""
        with self._lock.write_locked():
            self._state.refresh_in_progress = False
            self._idle.set()

    def bump_write_time(self, now: float | None = None, ttl_seconds: float | None = None) -> bool:
        """Move ``write_time`` to ``now`` without new data

        Used before a background refresh so concurrent lookups don't all
        trigger one. With ``ttl_seconds`` the bump only happens while the
        data is still expired, making check-and-bump atomic.

        Returns:
            True if the write time was bumped
        """
        if now is None:
            now = time.time()
        with self._lock.write_locked():
            if ttl_seconds is not None and self._state.write_time + ttl_seconds >= now:
                return False
            self._state.write_time = max(self._state.write_time, now)
            return True

    def reset_write_time(self) -> None:
        """Mark the data expired so the next lookup refreshes it"""
        with self._lock.write_locked():
            self._state.write_time = 0.0

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no refresh is running; False on timeout"""
        return self._idle.wait(timeout)

    def count(self) -> int:
        """Record count without locking (diagnostics only)"""
        return len(self._state.records)
