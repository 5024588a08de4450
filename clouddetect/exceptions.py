"""
clouddetect/exceptions.py - 통합 예외 계층 구조

Exception classes shared by the lookup, refresh and persistence layers.

Hierarchy:
    CloudDetectError (base)
    ├── NotCloudIPError          (lookup miss, expected)
    ├── RefreshInProgressError   (single-flight contention, retry later)
    ├── DiskCacheExpiredError    (snapshot older than the caller's data)
    ├── SnapshotError            (snapshot body unreadable)
    ├── ProviderFetchError       (range fetcher network/parse failure)
    └── ConfigError              (invalid configuration)

Usage:
    from clouddetect.exceptions import NotCloudIPError

    try:
        record = client.resolve("127.0.0.1")
    except NotCloudIPError:
        ...
"""

from typing import Any, Dict, Optional

# =============================================================================
# 베이스 예외
# =============================================================================


class CloudDetectError(Exception):
    """Base class for every clouddetect error

    Attributes:
        message: Error message
        cause: Underlying exception (for chaining)
        details: Extra structured detail
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Return the error as a dictionary"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "cause": str(self.cause) if self.cause else None,
            "details": self.details,
        }


# =============================================================================
# 조회 / 캐시 관련 예외
# =============================================================================


class NotCloudIPError(CloudDetectError):
    """IP did not match any published cloud range"""

    def __init__(self, ip: str = ""):
        super().__init__("not resolved to any known cloud IP range")
        self.ip = ip
        if ip:
            self.details["ip"] = ip


class RefreshInProgressError(CloudDetectError):
    """A refresh is already running on this cache store"""

    def __init__(self) -> None:
        super().__init__("cache refresh already in progress")


class DiskCacheExpiredError(CloudDetectError):
    """Snapshot on disk is older than the data the caller already holds"""

    def __init__(self, path: str, mtime: float, min_mod_time: float):
        super().__init__(f"disk cache {path} is older than requested minimum")
        self.path = path
        self.mtime = mtime
        self.min_mod_time = min_mod_time
        self.details.update({"path": path, "mtime": mtime, "min_mod_time": min_mod_time})


class SnapshotError(CloudDetectError):
    """Snapshot file exists but its body could not be decoded"""

    def __init__(self, path: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(f"invalid disk cache [{path}]: {reason}", cause)
        self.path = path
        self.details["path"] = path


# =============================================================================
# 프로바이더 관련 예외
# =============================================================================


class ProviderFetchError(CloudDetectError):
    """Fetching or parsing a provider's published ranges failed

    Wraps requests/dns/parse errors so callers see which provider broke.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(f"{provider}: {message}", cause)
        self.provider = provider
        self.details["provider"] = provider


# =============================================================================
# 설정 관련 예외
# =============================================================================


class ConfigError(CloudDetectError):
    """Invalid configuration value"""

    def __init__(
        self,
        key: str,
        message: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(f"config error [{key}]: {message}", cause)
        self.config_key = key
        self.details["config_key"] = key


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================


def format_error_for_user(error: Exception) -> str:
    """Render an error for terminal output

    Args:
        error: Exception to render

    Returns:
        Short human-readable message
    """
    if isinstance(error, NotCloudIPError):
        return f"{error.ip or 'IP'} is not in any known cloud range"

    if isinstance(error, RefreshInProgressError):
        return "Another refresh is running, try again shortly."

    if isinstance(error, CloudDetectError):
        return str(error)

    return f"{error.__class__.__name__}: {error}"
