"""Storage locations for acp-session.

Public Interface:
    - get_home_dir: Get ACP_SESSION_HOME
    - get_config_dir: Get config directory
"""

from .paths import get_config_dir
from .paths import get_home_dir

__all__ = [
    "get_home_dir",
    "get_config_dir",
]
