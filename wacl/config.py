"""Engine configuration via pydantic-settings."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AclSettings(BaseSettings):
    """Settings loaded from ``WACL_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WACL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Origin enforcement
    strict_origin: bool = Field(
        default=False,
        description="Only allow cross-origin requests from origins listed in the policy",
    )
    server_host: str | None = Field(
        default=None,
        description="Origin of this server; requests from it are same-origin",
    )

    # Policy documents
    acl_suffix: str = ".acl"
    default_content_type: str = "application/json"

    # HTTP transport
    http_timeout: float = 10.0
    connect_timeout: float = 5.0


_settings: AclSettings | None = None


def get_settings() -> AclSettings:
    """Get the settings singleton."""
    global _settings
    if _settings is None:
        _settings = AclSettings()
    return _settings
