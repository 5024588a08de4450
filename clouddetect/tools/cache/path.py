"""캐시 경로 유틸리티.

Snapshot files default to a per-user cache directory so every process run by
the same user shares one snapshot and one lease, wherever the package itself
is installed.

Cache root lookup order:
    1. ``CLOUDDETECT_CACHE_DIR``
    2. ``XDG_CACHE_HOME/clouddetect`` (``LOCALAPPDATA/clouddetect`` on Windows)
    3. ``~/.cache/clouddetect``

Attributes:
    CACHE_DIR_ENV: Environment variable overriding the cache root.
    DEFAULT_SNAPSHOT_NAME: File name of the subnet snapshot.
"""

import os
from pathlib import Path

CACHE_DIR_ENV = "CLOUDDETECT_CACHE_DIR"
APP_DIR_NAME = "clouddetect"
DEFAULT_CATEGORY = "ip_ranges"
DEFAULT_SNAPSHOT_NAME = "clouddetect.json"


def get_cache_root() -> str:
    """Return the absolute cache root (not created)"""
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return os.path.abspath(os.path.expanduser(override))

    base = os.environ.get("XDG_CACHE_HOME")
    if not base and os.name == "nt":
        base = os.environ.get("LOCALAPPDATA")
    if not base:
        base = str(Path.home() / ".cache")
    return os.path.join(os.path.abspath(base), APP_DIR_NAME)


def get_cache_dir(category: str = "") -> str:
    """Return (and create) a cache directory

    Args:
        category: Sub directory name, e.g. ``"ip_ranges"``.
                  Empty string returns the cache root itself.

    Returns:
        Absolute directory path

    Raises:
        OSError: Directory could not be created
    """
    root = get_cache_root()
    cache_dir = os.path.join(root, category) if category else root
    os.makedirs(cache_dir, exist_ok=True)
    return cache_dir


def get_cache_path(category: str, filename: str) -> str:
    """Return the absolute path of a cache file, creating its directory

    Example:
        >>> get_cache_path("ip_ranges", "clouddetect.json")
        '/home/user/.cache/clouddetect/ip_ranges/clouddetect.json'
    """
    return os.path.join(get_cache_dir(category), filename)


def get_snapshot_path() -> str:
    """Default subnet snapshot location used by the CLI"""
    return get_cache_path(DEFAULT_CATEGORY, DEFAULT_SNAPSHOT_NAME)
