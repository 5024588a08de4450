"""
clouddetect/tools - 공통 유틸리티

Modules:
    - cache: cache directory layout and mtime-based TTL helpers
"""
