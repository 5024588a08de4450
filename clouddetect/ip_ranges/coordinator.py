"""
clouddetect/ip_ranges/coordinator.py - Cache refresh coordinator

One ``refresh()`` call walks this state machine:

    Start      claim the store's refresh slot (RefreshInProgressError if taken)
    DiskCheck  snapshot newer than our data and within TTL -> commit (source=disk)
    LeaseCheck no lease       -> create it, WebFetch
               abandoned      -> remove it, back to DiskCheck (once)
               fresh lease    -> Wait
    Wait       poll until the lease disappears (load snapshot, source=disk),
               a stat error or the timeout (-> WebFetch without a lease)
    WebFetch   all fetchers in order; first error aborts, nothing is committed
    Persist    write snapshot (failures logged only)
    Commit     replace records (source=web)
    Cleanup    remove our lease

Without a snapshot path only WebFetch and Commit run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

from filelock import Timeout as FileLockTimeout

from clouddetect.config import ClientConfig
from clouddetect.exceptions import CloudDetectError, DiskCacheExpiredError
from clouddetect.tools.cache.ttl import is_within_ttl

from .lease import LeaseMarker
from .snapshot import load_snapshot, save_snapshot
from .store import CacheStore
from .types import CacheSource, SubnetRecord

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Sequence[SubnetRecord]]

# abandoned leases cleared per refresh() call
MAX_LEASE_RESTARTS = 1


class RefreshCoordinator:
    """Runs refreshes for one ``CacheStore``

    Args:
        store: Cache to fill
        fetchers: Range fetchers, called in order
        config: TTL, snapshot path and lease settings
        clock: Epoch-seconds clock
        sleep: Sleep used between lease polls
    """

    def __init__(
        self,
        store: CacheStore,
        fetchers: Sequence[Fetcher],
        config: ClientConfig,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._store = store
        self._fetchers = list(fetchers)
        self._config = config
        self._clock = clock
        self._sleep = sleep

    def refresh(self) -> CacheSource:
        """Refresh the store once

        Returns:
            Where the committed records came from

        Raises:
            RefreshInProgressError: A refresh is already running on this store
            ProviderFetchError (or any fetcher error): Web fetch failed, nothing committed
        """
        self._store.begin_refresh()
        committed = False
        try:
            source = self._refresh()
            committed = True
            return source
        finally:
            if not committed:
                self._store.abort_refresh()

    # -------------------------------------------------------------------------
    # states
    # -------------------------------------------------------------------------

    def _refresh(self) -> CacheSource:
        if not self._config.persistence_enabled:
            return self._fetch_and_commit(lease=None)

        lease = LeaseMarker(self._config.lease_path, self._config.ttl)
        restarts = 0

        while True:
            loaded = self._load_fresh_snapshot()
            if loaded is not None:
                records, mtime = loaded
                self._store.commit(records, CacheSource.DISK, write_time=mtime)
                logger.debug("Loaded %d records from disk cache %s", len(records), self._config.cache_file_path)
                return CacheSource.DISK

            try:
                lease_mtime = lease.mtime()
            except OSError as e:
                logger.warning("Cannot stat refresh lease %s: %s", lease.path, e)
                return self._fetch_and_commit(lease=None)

            if lease_mtime is None:
                try:
                    acquired = lease.try_acquire()
                except OSError as e:
                    logger.warning("Cannot create refresh lease %s: %s", lease.path, e)
                    return self._fetch_and_commit(lease=None)
                if acquired:
                    return self._fetch_and_commit(lease=lease)
                # lost the creation race: someone else holds a brand new lease
                return self._wait_for_lease(lease)

            if lease.is_abandoned(lease_mtime, self._clock()):
                if restarts >= MAX_LEASE_RESTARTS:
                    logger.warning("Refresh lease %s abandoned again, fetching without it", lease.path)
                    return self._fetch_and_commit(lease=None)
                try:
                    lease.break_abandoned()
                except OSError as e:
                    logger.warning("Cannot remove abandoned lease %s: %s", lease.path, e)
                    return self._fetch_and_commit(lease=None)
                restarts += 1
                continue

            return self._wait_for_lease(lease)

    def _load_fresh_snapshot(self) -> tuple[list[SubnetRecord], float] | None:
        """Snapshot newer than our data and within TTL, else None"""
        path = self._config.cache_file_path
        data_time = self._store.snapshot().data_time
        try:
            records, mtime = load_snapshot(path, min_mod_time=data_time)
        except FileNotFoundError:
            logger.debug("No disk cache at %s", path)
            return None
        except DiskCacheExpiredError:
            logger.debug("Disk cache %s is older than in-memory data", path)
            return None
        except (OSError, CloudDetectError) as e:
            logger.debug("Disk cache %s unusable: %s", path, e)
            return None

        if not records:
            return None
        if not is_within_ttl(mtime, self._config.ttl, self._clock()):
            logger.debug("Disk cache %s expired", path)
            return None
        return records, mtime

    def _wait_for_lease(self, lease: LeaseMarker) -> CacheSource:
        """Wait for another process's lease, then use what it wrote"""
        poll = self._config.lease_poll_interval
        deadline = self._clock() + self._config.refresh_timeout.total_seconds()
        logger.debug("Waiting for refresh lease %s held by another process", lease.path)

        while True:
            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.warning(
                    "Timed out after %.0fs waiting for refresh lease %s, fetching anyway",
                    self._config.refresh_timeout.total_seconds(),
                    lease.path,
                )
                break

            self._sleep(min(poll, remaining))

            try:
                lease_mtime = lease.mtime()
            except OSError as e:
                logger.warning("Cannot stat refresh lease %s while waiting: %s", lease.path, e)
                break
            if lease_mtime is not None:
                continue

            # lease released: the holder has just written the snapshot
            try:
                records, mtime = load_snapshot(self._config.cache_file_path)
            except (OSError, CloudDetectError) as e:
                logger.warning("Lease released but disk cache unusable (%s), fetching", e)
                break
            if not records:
                logger.warning("Lease released but disk cache is empty, fetching")
                break

            self._store.commit(records, CacheSource.DISK, write_time=mtime)
            logger.debug("Loaded %d records written by lease holder", len(records))
            return CacheSource.DISK

        return self._fetch_and_commit(lease=None)

    def _fetch_and_commit(self, lease: LeaseMarker | None) -> CacheSource:
        """WebFetch -> Persist -> Commit, releasing ``lease`` on every path"""
        try:
            records = self._fetch_from_web()
            if self._config.persistence_enabled:
                self._persist(records)
            self._store.commit(records, CacheSource.WEB)
            return CacheSource.WEB
        finally:
            if lease is not None:
                lease.release()

    def _fetch_from_web(self) -> list[SubnetRecord]:
        records: list[SubnetRecord] = []
        for fetcher in self._fetchers:
            fetched = fetcher()
            logger.debug("%s: fetched %d records", fetcher, len(fetched))
            records.extend(fetched)
        logger.info("Fetched %d subnet records from %d providers", len(records), len(self._fetchers))
        return records

    def _persist(self, records: list[SubnetRecord]) -> None:
        path = self._config.cache_file_path
        try:
            save_snapshot(path, records)
        except (OSError, FileLockTimeout) as e:
            logger.warning("Failed to write disk cache %s: %s", path, e)
