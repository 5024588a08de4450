"""
clouddetect/tools/cache - 공통 캐시 경로 / TTL 관리

All cache files live under the per-user cache root (see ``path.get_cache_root``).

Layout:
    ~/.cache/clouddetect/
    └── ip_ranges/
        ├── clouddetect.json              ← subnet snapshot
        ├── clouddetect.json.lock         ← refresh lease marker
        └── clouddetect.json.write.lock   ← snapshot writer lock

Usage:
    from clouddetect.tools.cache import get_snapshot_path, is_within_ttl

    path = get_snapshot_path()
    if is_within_ttl(os.path.getmtime(path), timedelta(hours=24)):
        ...
"""

__all__ = [
    "get_cache_root",
    "DEFAULT_SNAPSHOT_NAME",
    "get_cache_dir",
    "get_cache_path",
    "get_snapshot_path",
    "get_ttl",
    "is_within_ttl",
]


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name in ("get_cache_root", "DEFAULT_SNAPSHOT_NAME", "get_cache_dir", "get_cache_path", "get_snapshot_path"):
        from . import path

        return getattr(path, name)
    if name in ("get_ttl", "is_within_ttl"):
        from . import ttl

        return getattr(ttl, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
