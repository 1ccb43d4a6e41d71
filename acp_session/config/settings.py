"""Settings model for acp-session.

Contract:
- Inputs: Environment variables, YAML files
- Outputs: Validated settings objects
- Side Effects: None (read-only)
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class ClientSettings(BaseSettings):
    """Configuration for the session client.

    Attributes:
        api_url: Base URL of the task run API
        api_token: Bearer token sent with API requests (optional)
        request_timeout: HTTP timeout in seconds (default: 30)
        log_level: Logging level (default: info)
        scratch_dir: Scratch directory for downloaded archives, relative to the repository
        apply_snapshots: Whether resume restores the working tree (default: True)
        tool_meta_key: Key under `_meta` carrying tool implementation metadata

    Example:
        >>> settings = ClientSettings()
        >>> assert settings.apply_snapshots is True
        >>> assert settings.tool_meta_key == "claudeCode"
    """

    model_config = SettingsConfigDict(
        env_prefix="ACP_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_url: str = "http://127.0.0.1:8000"
    api_token: str | None = None
    request_timeout: float = 30.0
    log_level: str = "info"

    scratch_dir: str = ".acp-session/tmp"
    apply_snapshots: bool = True
    tool_meta_key: str = "claudeCode"

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so paths can be joined with a leading slash."""
        return v.rstrip("/")
