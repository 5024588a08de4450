"""
clouddetect - Does an IP belong to a public cloud?

Looks up addresses in the ranges published by Amazon Web Services, Google
Cloud and Microsoft Azure, caching them in memory and optionally in a
snapshot file shared between processes.

Usage:
    from clouddetect import Client, NotCloudIPError

    client = Client()
    try:
        print(client.resolve("54.199.144.109").provider_name)
    except NotCloudIPError:
        print("not a cloud IP")
"""

__version__ = "0.3.0"

from .config import ClientConfig  # noqa: E402
from .exceptions import (  # noqa: E402
    CloudDetectError,
    ConfigError,
    DiskCacheExpiredError,
    NotCloudIPError,
    ProviderFetchError,
    RefreshInProgressError,
    SnapshotError,
)
from .ip_ranges import CacheSource, Client, Provider, SubnetRecord  # noqa: E402

__all__ = [
    "__version__",
    "CacheSource",
    "Client",
    "ClientConfig",
    "CloudDetectError",
    "ConfigError",
    "DiskCacheExpiredError",
    "NotCloudIPError",
    "Provider",
    "ProviderFetchError",
    "RefreshInProgressError",
    "SnapshotError",
    "SubnetRecord",
]
