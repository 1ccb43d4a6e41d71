"""Configuration loading for acp-session.

Settings are read from a YAML file in the config directory and from
environment variables.

Contract:
- Inputs: Config file paths, environment variables
- Outputs: ClientSettings objects
- Side Effects: Creates default config file if missing
"""

import logging
import os
from pathlib import Path

import yaml

from ..storage.paths import get_config_dir
from .settings import ClientSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = """# acp-session configuration

# Task run API
api_url: "http://127.0.0.1:8000"
# api_token: ""
request_timeout: 30
log_level: "info"

# Resume behavior
apply_snapshots: true
# Downloaded snapshot archives land here, relative to the repository
scratch_dir: ".acp-session/tmp"

# Key under _meta holding the agent's tool call metadata
tool_meta_key: "claudeCode"
"""


def get_config_path() -> Path:
    """Get path to config file.

    Returns:
        Path to session.yaml in config directory

    Example:
        >>> config_path = get_config_path()
        >>> assert config_path.name == "session.yaml"
    """
    return get_config_dir() / "session.yaml"


def create_default_config() -> None:
    """Create default config file if it doesn't exist."""
    config_path = get_config_path()

    if config_path.exists():
        logger.debug(f"Config file already exists: {config_path}")
        return

    config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    logger.info(f"Created default config: {config_path}")


def load_config(config_path: Path | None = None) -> ClientSettings:
    """Load configuration from YAML and environment.

    Environment variables take precedence over YAML settings.
    Variables are prefixed with ACP_SESSION_ (e.g., ACP_SESSION_API_URL).

    Args:
        config_path: Optional config file path (default: session.yaml in config dir)

    Returns:
        Validated client settings
    """
    if config_path is None:
        config_path = get_config_path()
        if not config_path.exists():
            create_default_config()

    yaml_settings = {}
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_settings = yaml.safe_load(f) or {}
            logger.debug(f"Loaded config from {config_path}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")
            logger.info("Using default settings and environment variables")

    if not isinstance(yaml_settings, dict):
        logger.warning(f"Ignoring config file {config_path}: top level is not a mapping")
        yaml_settings = {}

    # Precedence: defaults < YAML < env vars
    filtered_yaml = {
        key: value
        for key, value in yaml_settings.items()
        if f"ACP_SESSION_{str(key).upper()}" not in os.environ
    }

    settings = ClientSettings(**filtered_yaml)

    logger.info(f"Configuration loaded: api_url={settings.api_url}, log_level={settings.log_level}")

    return settings
