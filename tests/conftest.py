"""
tests/conftest.py - pytest 공통 픽스처

Fake range fetchers and temporary snapshot paths. No test touches the
network: every client and coordinator gets injected fetchers.

Usage:
    def test_something(fetchers, snapshot_path):
        client = Client(ClientConfig(cache_file_path=snapshot_path), fetchers=fetchers)
"""

import sys
import threading
import time
from datetime import timedelta
from pathlib import Path

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from clouddetect.config import ClientConfig  # noqa: E402
from clouddetect.ip_ranges.types import Provider, make_record  # noqa: E402

# =============================================================================
# 샘플 데이터
# =============================================================================

AMAZON_RECORDS = [
    make_record(Provider.AMAZON, "54.199.144.0/20", "ap-northeast-1"),
    make_record(Provider.AMAZON, "2600:1f18::/33", "us-east-1"),
]
GOOGLE_RECORDS = [
    make_record(Provider.GOOGLE, "146.148.0.0/17"),
]
MICROSOFT_RECORDS = [
    make_record(Provider.MICROSOFT, "168.61.64.0/20", "eastus"),
    make_record(Provider.MICROSOFT, "13.70.64.0/18", "australiaeast"),
]

ALL_RECORDS = AMAZON_RECORDS + GOOGLE_RECORDS + MICROSOFT_RECORDS


class FakeFetcher:
    """Range fetcher double

    Args:
        provider: Provider it pretends to be
        records: Records returned on every call
        error: Raised instead of returning when set
        delay: Seconds to sleep before returning
        gate: Event the call waits on before returning
    """

    def __init__(self, provider, records, error=None, delay=0.0, gate=None):
        self.provider = provider
        self.records = list(records)
        self.error = error
        self.delay = delay
        self.gate = gate
        self.calls = 0
        self.started = threading.Event()
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.calls += 1
        self.started.set()
        if self.gate is not None:
            self.gate.wait(5)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.records)

    def __str__(self):
        return self.provider.value


def make_fetchers(**kwargs):
    """Amazon, Google, Microsoft fakes; kwargs apply to the Amazon one"""
    return [
        FakeFetcher(Provider.AMAZON, AMAZON_RECORDS, **kwargs),
        FakeFetcher(Provider.GOOGLE, GOOGLE_RECORDS),
        FakeFetcher(Provider.MICROSOFT, MICROSOFT_RECORDS),
    ]


def total_calls(fetchers):
    return sum(f.calls for f in fetchers)


# =============================================================================
# 픽스처
# =============================================================================


@pytest.fixture
def fetchers():
    """Three fake fetchers with the sample records"""
    return make_fetchers()


@pytest.fixture
def snapshot_path(tmp_path):
    """Snapshot path inside a temp directory (file not created)"""
    return str(tmp_path / "clouddetect.json")


@pytest.fixture
def memory_config():
    """Config without persistence"""
    return ClientConfig(ttl=timedelta(hours=12))


@pytest.fixture
def disk_config(snapshot_path):
    """Config with a snapshot path and a short lease poll"""
    return ClientConfig(
        ttl=timedelta(hours=12),
        cache_file_path=snapshot_path,
        refresh_timeout=timedelta(seconds=5),
        lease_poll_interval=0.05,
    )
