"""Path resolution for acp-session storage locations.

Paths resolve under the ACP_SESSION_HOME environment variable, with a
per-directory override for each location.

Contract:
- Inputs: Environment variables (ACP_SESSION_HOME, ACP_SESSION_*_DIR)
- Outputs: Resolved Path objects
- Side Effects: Creates directories if they don't exist
"""

import os
from pathlib import Path


def get_home_dir() -> Path:
    """Get ACP_SESSION_HOME from environment.

    Returns:
        Path to root directory (default: .acp-session)
    """
    root = os.environ.get("ACP_SESSION_HOME", ".acp-session")
    return Path(root).expanduser().resolve()


def get_config_dir() -> Path:
    """Get configuration directory.

    Returns:
        Path to config directory ($ACP_SESSION_HOME/config)

    Environment Variables:
        ACP_SESSION_CONFIG_DIR: Override config directory location
    """
    config_dir: Path = get_home_dir() / "config"

    env_override: str | None = os.environ.get("ACP_SESSION_CONFIG_DIR")
    if env_override is not None:
        config_dir = Path(env_override).resolve()

    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir
