# tests/tools/test_cache_path.py
"""
clouddetect/tools/cache/path.py 단위 테스트

캐시 경로 유틸리티 함수 테스트.
"""

import os

import pytest

import clouddetect
from clouddetect.tools.cache.path import (
    CACHE_DIR_ENV,
    DEFAULT_SNAPSHOT_NAME,
    get_cache_dir,
    get_cache_path,
    get_cache_root,
    get_snapshot_path,
)


@pytest.fixture
def home(tmp_path, monkeypatch):
    """HOME을 임시 디렉토리로, 캐시 관련 환경 변수 제거"""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.delenv(CACHE_DIR_ENV, raising=False)
    monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
    monkeypatch.delenv("LOCALAPPDATA", raising=False)
    return str(home_dir)


# =============================================================================
# get_cache_root 테스트
# =============================================================================


class TestGetCacheRoot:
    """get_cache_root 함수 테스트"""

    def test_default_under_home(self, home):
        """기본값: ~/.cache/clouddetect"""
        assert get_cache_root() == os.path.join(home, ".cache", "clouddetect")

    def test_xdg_cache_home(self, home, tmp_path, monkeypatch):
        """XDG_CACHE_HOME 사용"""
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg"))
        assert get_cache_root() == os.path.join(str(tmp_path / "xdg"), "clouddetect")

    def test_env_override(self, home, tmp_path, monkeypatch):
        """CLOUDDETECT_CACHE_DIR 우선"""
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg"))
        monkeypatch.setenv(CACHE_DIR_ENV, str(tmp_path / "custom"))
        assert get_cache_root() == str(tmp_path / "custom")

    def test_is_absolute_path(self, home):
        """절대 경로"""
        assert os.path.isabs(get_cache_root())


# =============================================================================
# get_cache_dir / get_cache_path 테스트
# =============================================================================


class TestGetCacheDir:
    """get_cache_dir 함수 테스트"""

    def test_creates_directory(self, home):
        """디렉토리 자동 생성"""
        result = get_cache_dir("ip_ranges")
        assert os.path.isdir(result)
        assert result == os.path.join(get_cache_root(), "ip_ranges")

    def test_default_category(self, home):
        """기본값 (빈 문자열)"""
        assert get_cache_dir() == get_cache_root()

    def test_unwritable_root(self, tmp_path, monkeypatch):
        """생성 불가 경로는 OSError"""
        blocker = tmp_path / "file.txt"
        blocker.write_text("x")
        monkeypatch.setenv(CACHE_DIR_ENV, str(blocker))
        with pytest.raises(OSError):
            get_cache_dir("ip_ranges")


class TestGetCachePath:
    """get_cache_path 함수 테스트"""

    def test_includes_category_and_filename(self, home):
        """카테고리와 파일명 포함"""
        result = get_cache_path("ip_ranges", "snap.json")
        assert result == os.path.join(get_cache_root(), "ip_ranges", "snap.json")
        assert os.path.isdir(os.path.dirname(result))

    def test_different_categories(self, home):
        """다른 카테고리에 대해 다른 경로"""
        assert get_cache_path("a", "x.json") != get_cache_path("b", "x.json")


# =============================================================================
# get_snapshot_path 테스트
# =============================================================================


class TestGetSnapshotPath:
    """CLI 기본 스냅샷 경로"""

    def test_file_name(self, home):
        """ip_ranges/clouddetect.json"""
        path = get_snapshot_path()
        assert path.endswith(os.path.join("ip_ranges", DEFAULT_SNAPSHOT_NAME))
        assert path.startswith(home)

    def test_not_inside_install_directory(self, home):
        """패키지 설치 디렉토리(site-packages 등) 밖에 위치"""
        install_dir = os.path.dirname(os.path.dirname(os.path.abspath(clouddetect.__file__)))
        path = get_snapshot_path()
        assert os.path.commonpath([install_dir, path]) != install_dir
