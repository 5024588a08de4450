"""클라이언트 설정 모듈

Runtime configuration for a clouddetect ``Client``.

Usage:
    from clouddetect.config import ClientConfig

    config = ClientConfig(
        ttl=timedelta(hours=12),
        cache_file_path="/var/cache/clouddetect.json",
    )

    # or from CLOUDDETECT_* environment variables
    config = ClientConfig.from_env()

An empty ``cache_file_path`` keeps the cache purely in memory: no snapshot is
read or written and the cross-process lease is never consulted.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta

from clouddetect.exceptions import ConfigError
from clouddetect.tools.cache.ttl import get_ttl

LEASE_SUFFIX = ".lock"
DEFAULT_LEASE_POLL_INTERVAL = 5.0
DEFAULT_HTTP_TIMEOUT = 15.0

ENV_PREFIX = "CLOUDDETECT_"


@dataclass
class ClientConfig:
    """Client settings

    Attributes:
        ttl: Cache lifetime; data older than this is refreshed
        cache_file_path: Shared snapshot path ("" disables persistence and the lease)
        refresh_timeout: How long to wait on another process's lease before fetching anyway
        lease_poll_interval: Seconds between lease checks while waiting
        http_timeout: Per-request timeout for the HTTP range fetchers
    """

    ttl: timedelta = field(default_factory=lambda: get_ttl("ip_ranges"))
    cache_file_path: str = ""
    refresh_timeout: timedelta = field(default_factory=lambda: get_ttl("lease_wait"))
    lease_poll_interval: float = DEFAULT_LEASE_POLL_INTERVAL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def __post_init__(self):
        if self.ttl.total_seconds() <= 0:
            raise ConfigError("ttl", "must be positive")
        if self.refresh_timeout.total_seconds() <= 0:
            raise ConfigError("refresh_timeout", "must be positive")
        if self.lease_poll_interval <= 0:
            raise ConfigError("lease_poll_interval", "must be positive")
        if self.http_timeout <= 0:
            raise ConfigError("http_timeout", "must be positive")

    @property
    def persistence_enabled(self) -> bool:
        return bool(self.cache_file_path)

    @property
    def lease_path(self) -> str:
        """Lease marker path derived from the snapshot path"""
        if not self.cache_file_path:
            return ""
        return self.cache_file_path + LEASE_SUFFIX

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> ClientConfig:
        """Build a config from environment variables

        Recognised variables (all optional):
            {prefix}TTL_HOURS, {prefix}CACHE_FILE,
            {prefix}REFRESH_TIMEOUT (seconds), {prefix}HTTP_TIMEOUT (seconds)

        Raises:
            ConfigError: A numeric variable could not be parsed
        """
        kwargs: dict = {}

        ttl_hours = _env_float(prefix + "TTL_HOURS")
        if ttl_hours is not None:
            kwargs["ttl"] = timedelta(hours=ttl_hours)

        cache_file = os.environ.get(prefix + "CACHE_FILE")
        if cache_file:
            kwargs["cache_file_path"] = cache_file

        refresh_timeout = _env_float(prefix + "REFRESH_TIMEOUT")
        if refresh_timeout is not None:
            kwargs["refresh_timeout"] = timedelta(seconds=refresh_timeout)

        http_timeout = _env_float(prefix + "HTTP_TIMEOUT")
        if http_timeout is not None:
            kwargs["http_timeout"] = http_timeout

        return cls(**kwargs)


def _env_float(key: str) -> float | None:
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(key, f"expected a number, got {raw!r}", cause=e) from e


def get_version() -> str:
    """Installed distribution version, falling back to the package constant"""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("clouddetect")
    except PackageNotFoundError:
        from clouddetect import __version__

        return __version__
