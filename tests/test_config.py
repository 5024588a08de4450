# tests/test_config.py
"""
clouddetect/config.py 단위 테스트
"""

from datetime import timedelta

import pytest

from clouddetect.config import ClientConfig, get_version
from clouddetect.exceptions import ConfigError


class TestClientConfig:
    """ClientConfig 테스트"""

    def test_defaults(self):
        """기본값"""
        config = ClientConfig()
        assert config.ttl == timedelta(hours=24)
        assert config.refresh_timeout == timedelta(minutes=2)
        assert config.lease_poll_interval == 5.0
        assert config.cache_file_path == ""
        assert not config.persistence_enabled
        assert config.lease_path == ""

    def test_lease_path_derived(self):
        """lease 경로 = 스냅샷 경로 + .lock"""
        config = ClientConfig(cache_file_path="/var/cache/cd.json")
        assert config.persistence_enabled
        assert config.lease_path == "/var/cache/cd.json.lock"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"ttl": timedelta(0)},
            {"ttl": timedelta(hours=-1)},
            {"refresh_timeout": timedelta(0)},
            {"lease_poll_interval": 0},
            {"http_timeout": -1},
        ],
    )
    def test_rejects_non_positive(self, kwargs):
        """0 이하 값 거부"""
        with pytest.raises(ConfigError):
            ClientConfig(**kwargs)


class TestFromEnv:
    """환경 변수 설정"""

    def test_reads_variables(self, monkeypatch):
        """CLOUDDETECT_* 변수"""
        monkeypatch.setenv("CLOUDDETECT_TTL_HOURS", "6")
        monkeypatch.setenv("CLOUDDETECT_CACHE_FILE", "/tmp/cd.json")
        monkeypatch.setenv("CLOUDDETECT_REFRESH_TIMEOUT", "30")
        monkeypatch.setenv("CLOUDDETECT_HTTP_TIMEOUT", "2.5")

        config = ClientConfig.from_env()

        assert config.ttl == timedelta(hours=6)
        assert config.cache_file_path == "/tmp/cd.json"
        assert config.refresh_timeout == timedelta(seconds=30)
        assert config.http_timeout == 2.5

    def test_unset_uses_defaults(self, monkeypatch):
        """미설정 시 기본값"""
        for key in ("TTL_HOURS", "CACHE_FILE", "REFRESH_TIMEOUT", "HTTP_TIMEOUT"):
            monkeypatch.delenv("CLOUDDETECT_" + key, raising=False)
        assert ClientConfig.from_env() == ClientConfig()

    def test_blank_value_ignored(self, monkeypatch):
        """빈 문자열 무시"""
        monkeypatch.setenv("CLOUDDETECT_TTL_HOURS", " ")
        assert ClientConfig.from_env().ttl == timedelta(hours=24)

    def test_invalid_number(self, monkeypatch):
        """숫자 아님"""
        monkeypatch.setenv("CLOUDDETECT_TTL_HOURS", "one day")
        with pytest.raises(ConfigError) as exc_info:
            ClientConfig.from_env()
        assert exc_info.value.config_key == "CLOUDDETECT_TTL_HOURS"

    def test_custom_prefix(self, monkeypatch):
        """접두사 변경"""
        monkeypatch.setenv("MYAPP_CACHE_FILE", "/tmp/other.json")
        assert ClientConfig.from_env(prefix="MYAPP_").cache_file_path == "/tmp/other.json"


def test_get_version():
    """버전 문자열"""
    version = get_version()
    assert isinstance(version, str)
    assert len(version.split(".")) >= 2
