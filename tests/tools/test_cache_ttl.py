# tests/tools/test_cache_ttl.py
"""
clouddetect/tools/cache/ttl.py 단위 테스트
"""

import os
from datetime import timedelta

import pytest

from clouddetect.tools.cache.ttl import DEFAULT_TTL, file_mtime, get_ttl, is_within_ttl


class TestGetTTL:
    """get_ttl 함수 테스트"""

    def test_known_categories(self):
        """설정된 카테고리"""
        assert get_ttl("ip_ranges") == timedelta(hours=24)
        assert get_ttl("lease_wait") == timedelta(minutes=2)

    def test_unknown_category(self):
        """미설정 카테고리는 기본값"""
        assert get_ttl("unknown") == DEFAULT_TTL


class TestIsWithinTTL:
    """is_within_ttl 함수 테스트"""

    @pytest.mark.parametrize(
        "mtime,now,expected",
        [
            (1000.0, 1050.0, True),
            (1000.0, 1099.9, True),
            (1000.0, 1100.0, False),
            (1000.0, 5000.0, False),
        ],
    )
    def test_boundary(self, mtime, now, expected):
        """mtime + ttl > now"""
        assert is_within_ttl(mtime, timedelta(seconds=100), now) is expected


class TestFileMtime:
    """file_mtime 함수 테스트"""

    def test_existing_file(self, tmp_path):
        """존재하는 파일"""
        path = tmp_path / "x"
        path.write_text("x")
        assert file_mtime(str(path)) == os.path.getmtime(path)

    def test_missing_file(self, tmp_path):
        """없는 파일은 None"""
        assert file_mtime(str(tmp_path / "missing")) is None
