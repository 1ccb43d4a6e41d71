"""
Unit tests for path resolution.
"""

from pathlib import Path

import pytest

from acp_session.storage import paths


@pytest.mark.unit
class TestPaths:
    """Test path resolution functions."""

    def test_get_home_dir_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test get_home_dir returns .acp-session when env var not set."""
        monkeypatch.delenv("ACP_SESSION_HOME", raising=False)

        assert paths.get_home_dir() == Path(".acp-session").resolve()

    def test_get_home_dir_custom(self, mock_storage_env: Path) -> None:
        """Test get_home_dir respects ACP_SESSION_HOME."""
        assert paths.get_home_dir() == mock_storage_env

    def test_get_config_dir_creates_directory(self, mock_storage_env: Path) -> None:
        """Test get_config_dir creates directory if it doesn't exist."""
        config_dir = paths.get_config_dir()

        assert config_dir.is_dir()
        assert config_dir == mock_storage_env / "config"

    def test_directory_overrides(self, mock_storage_env: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the config directory environment override."""
        monkeypatch.setenv("ACP_SESSION_CONFIG_DIR", str(tmp_path / "elsewhere" / "cfg"))

        assert paths.get_config_dir() == (tmp_path / "elsewhere" / "cfg").resolve()
