"""
Unit tests for configuration loading.

Tests config file creation, loading from YAML, and environment variable overrides.
"""

from pathlib import Path

import pytest

from acp_session.config import loader
from acp_session.config.settings import ClientSettings


@pytest.mark.unit
class TestConfigLoader:
    """Test configuration loading functions."""

    def test_get_config_path_returns_session_yaml(self, mock_storage_env: Path) -> None:
        """Test get_config_path returns session.yaml in config dir."""
        config_path = loader.get_config_path()

        assert config_path.name == "session.yaml"
        assert config_path.parent == mock_storage_env / "config"

    def test_create_default_config_writes_yaml(self, mock_storage_env: Path) -> None:
        """Test create_default_config writes the documented keys."""
        loader.create_default_config()

        content = loader.get_config_path().read_text()
        assert "api_url:" in content
        assert "apply_snapshots:" in content
        assert "tool_meta_key:" in content

    def test_create_default_config_is_idempotent(self, mock_storage_env: Path) -> None:
        """Test create_default_config doesn't overwrite existing config."""
        config_path = loader.get_config_path()
        config_path.write_text("# Custom config\napi_url: https://custom\n")

        loader.create_default_config()

        assert config_path.read_text() == "# Custom config\napi_url: https://custom\n"

    def test_load_config_creates_default_if_missing(self, mock_storage_env: Path) -> None:
        """Test load_config creates default config if file doesn't exist."""
        settings = loader.load_config()

        assert loader.get_config_path().exists()
        assert isinstance(settings, ClientSettings)
        assert settings.apply_snapshots is True

    def test_load_config_parses_yaml_settings(self, mock_storage_env: Path) -> None:
        """Test load_config parses settings from YAML file."""
        loader.get_config_path().write_text(
            'api_url: "https://api.example.com/"\nlog_level: "debug"\napply_snapshots: false\ntool_meta_key: "codex"\n'
        )

        settings = loader.load_config()

        assert settings.api_url == "https://api.example.com"
        assert settings.log_level == "debug"
        assert settings.apply_snapshots is False
        assert settings.tool_meta_key == "codex"

    def test_load_config_env_overrides_yaml(self, mock_storage_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test environment variables override YAML settings."""
        loader.get_config_path().write_text('log_level: "debug"\n')
        monkeypatch.setenv("ACP_SESSION_LOG_LEVEL", "warning")

        settings = loader.load_config()

        assert settings.log_level == "warning"

    def test_load_config_explicit_path(self, tmp_path: Path, mock_storage_env: Path) -> None:
        """Test an explicit config path is used as given."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("request_timeout: 5\n")

        settings = loader.load_config(config_file)

        assert settings.request_timeout == 5.0
        assert not loader.get_config_path().exists()

    def test_load_config_invalid_yaml_falls_back(self, mock_storage_env: Path) -> None:
        """Test unreadable YAML falls back to defaults."""
        loader.get_config_path().write_text("api_url: [unclosed\n")

        settings = loader.load_config()

        assert settings.api_url == ClientSettings().api_url


@pytest.mark.unit
class TestClientSettings:
    """Test settings defaults and environment handling."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test default values."""
        monkeypatch.delenv("ACP_SESSION_SCRATCH_DIR", raising=False)

        settings = ClientSettings()

        assert settings.scratch_dir == ".acp-session/tmp"
        assert settings.tool_meta_key == "claudeCode"

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test ACP_SESSION_ variables are read."""
        monkeypatch.setenv("ACP_SESSION_APPLY_SNAPSHOTS", "false")

        assert ClientSettings().apply_snapshots is False
