"""
clouddetect/ip_ranges - Cloud Provider Public IP Ranges

Fetching, caching and lookup of the ranges published by Amazon, Google and
Microsoft.

Usage:
    from clouddetect.ip_ranges import Client, ClientConfig

    client = Client(ClientConfig(cache_file_path="/tmp/clouddetect.json"))
    record = client.resolve("52.94.76.1")
"""

from clouddetect.config import ClientConfig

from .client import Client
from .coordinator import RefreshCoordinator
from .lease import LeaseMarker
from .providers import (
    RangeFetcher,
    build_default_fetchers,
    fetch_amazon,
    fetch_google,
    fetch_microsoft,
)
from .snapshot import load_snapshot, save_snapshot
from .store import CacheSnapshot, CacheState, CacheStore
from .types import CacheSource, Provider, SubnetRecord, make_record

__all__ = [
    # Client
    "Client",
    "ClientConfig",
    # Data types
    "CacheSource",
    "Provider",
    "SubnetRecord",
    "make_record",
    # Cache internals
    "CacheSnapshot",
    "CacheState",
    "CacheStore",
    "LeaseMarker",
    "RefreshCoordinator",
    "load_snapshot",
    "save_snapshot",
    # Fetchers
    "RangeFetcher",
    "build_default_fetchers",
    "fetch_amazon",
    "fetch_google",
    "fetch_microsoft",
]
