"""
clouddetect/ip_ranges/client.py - Cloud IP resolver

Usage:
    from clouddetect import Client, ClientConfig, NotCloudIPError

    client = Client(ClientConfig(cache_file_path="/tmp/clouddetect.json"))
    try:
        record = client.resolve("52.94.76.1")
        print(record.provider_name, record.region, record.subnet)
    except NotCloudIPError:
        print("not a cloud IP")

A client owns one cache. Share the client between call sites (and threads)
to share its cache; share ``cache_file_path`` between processes to share
fetched data across them.
"""

from __future__ import annotations

import ipaddress
import logging
import threading
import time
from collections.abc import Sequence
from typing import Any

from clouddetect.config import ClientConfig
from clouddetect.exceptions import CloudDetectError, NotCloudIPError, RefreshInProgressError
from clouddetect.tools.cache.ttl import is_within_ttl

from .coordinator import Fetcher, RefreshCoordinator
from .lease import LeaseMarker
from .providers import build_default_fetchers
from .snapshot import load_snapshot
from .store import CacheStore
from .types import CacheSource, IPAddress, SubnetRecord

logger = logging.getLogger(__name__)


class Client:
    """Resolves IPs against the cached provider ranges

    Args:
        config: Client settings (defaults to ``ClientConfig()``)
        fetchers: Range fetchers in match order (defaults to Amazon, Google, Microsoft)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        fetchers: Sequence[Fetcher] | None = None,
    ):
        self.config = config or ClientConfig()
        if fetchers is None:
            fetchers = build_default_fetchers(self.config.http_timeout)
        self._store = CacheStore()
        self._coordinator = RefreshCoordinator(self._store, fetchers, self.config)
        self._background_lock = threading.Lock()
        self._background: threading.Thread | None = None

    # =========================================================================
    # Public operations
    # =========================================================================

    def resolve(self, ip: str | IPAddress) -> SubnetRecord:
        """Find the published range containing ``ip``

        An empty cache is filled synchronously. An expired cache is refreshed
        in the background while this lookup uses the data already held.
        Ranges are scanned in fetch order, so Amazon wins over Google over
        Microsoft if ranges ever overlap.

        Raises:
            ValueError: ``ip`` is not a valid address
            NotCloudIPError: No range contains ``ip``
            ProviderFetchError: The synchronous first fill failed
        """
        address = ipaddress.ip_address(ip) if isinstance(ip, str) else ip

        state = self._store.snapshot()
        ttl_seconds = self.config.ttl.total_seconds()
        if state.is_empty():
            self._refresh_blocking()
        elif state.is_stale(ttl_seconds):
            if self._store.bump_write_time(time.time(), ttl_seconds=ttl_seconds):
                self._refresh_in_background()

        for record in self._store.snapshot().records:
            if record.contains(address):
                return record

        raise NotCloudIPError(str(address))

    def refresh_cache(self) -> CacheSource:
        """Refresh now (disk snapshot or web, per the lease protocol)

        Raises:
            RefreshInProgressError: Another refresh is running on this client
        """
        return self._coordinator.refresh()

    def count(self) -> int:
        """Number of cached records (unsynchronised, for diagnostics)"""
        return self._store.count()

    def invalidate(self) -> None:
        """Expire the cache; the next lookup triggers a refresh"""
        self._store.reset_write_time()

    def wait_for_refresh(self, timeout: float | None = None) -> bool:
        """Block until no refresh is running on this client"""
        return self._store.wait_idle(timeout)

    @property
    def source(self) -> CacheSource:
        return self._store.snapshot().source

    @property
    def cache_file_path(self) -> str:
        return self.config.cache_file_path

    def status(self) -> dict[str, Any]:
        """Cache diagnostics"""
        state = self._store.snapshot()
        info: dict[str, Any] = {
            "count": len(state.records),
            "source": state.source.value,
            "write_time": state.write_time,
            "stale": state.is_empty() or state.is_stale(self.config.ttl.total_seconds()),
            "refresh_in_progress": state.refresh_in_progress,
            "cache_file_path": self.config.cache_file_path,
            "lease_age": None,
            "disk": None,
        }
        if not self.config.persistence_enabled:
            return info

        try:
            info["lease_age"] = LeaseMarker(self.config.lease_path, self.config.ttl).age()
        except OSError as e:
            logger.debug("Cannot stat lease %s: %s", self.config.lease_path, e)

        try:
            records, mtime = load_snapshot(self.config.cache_file_path)
        except FileNotFoundError:
            info["disk"] = {"exists": False}
        except (OSError, CloudDetectError) as e:
            info["disk"] = {"exists": True, "error": str(e)}
        else:
            info["disk"] = {
                "exists": True,
                "count": len(records),
                "mtime": mtime,
                "valid": is_within_ttl(mtime, self.config.ttl),
            }
        return info

    # =========================================================================
    # Refresh triggers
    # =========================================================================

    def _refresh_blocking(self) -> None:
        try:
            self._coordinator.refresh()
        except RefreshInProgressError:
            # another thread is filling the empty cache; use its result
            logger.debug("Waiting for in-flight refresh to fill the cache")
            self._store.wait_idle()

    def _refresh_in_background(self) -> None:
        thread = threading.Thread(target=self._background_refresh, name="clouddetect-refresh", daemon=True)
        with self._background_lock:
            self._background = thread
        thread.start()

    def _background_refresh(self) -> None:
        try:
            source = self._coordinator.refresh()
            logger.debug("Background refresh finished (source=%s)", source.value)
        except RefreshInProgressError:
            logger.debug("Background refresh skipped, another refresh is running")
        except Exception as e:
            logger.warning("Background cache refresh failed: %s", e)
