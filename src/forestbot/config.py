"""
ForestBot Configuration Management

Centralized configuration using pydantic-settings with environment variable support.
Every setting can be provided as ``FORESTBOT_<NAME>`` or through a ``.env`` file.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FORESTBOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ══════════════════════════════════════════════════════════════
    # Hub
    # ══════════════════════════════════════════════════════════════
    api_url: str = "http://localhost:5000/api/v1"
    websocket_url: str = "ws://localhost:5000/api/v1"
    api_key: str = ""

    # Logical server this client relays for
    mc_server: str = ""

    # True for a Minecraft-server bridge, False for a Discord bridge
    is_bot_client: bool = True

    # ══════════════════════════════════════════════════════════════
    # Realtime
    # ══════════════════════════════════════════════════════════════
    use_websocket: bool = False
    ping_interval: float = Field(default=5.0, gt=0)

    # ══════════════════════════════════════════════════════════════
    # HTTP
    # ══════════════════════════════════════════════════════════════
    http_timeout: float = Field(default=10.0, gt=0)
    log_errors: bool = True

    # ══════════════════════════════════════════════════════════════
    # Logging
    # ══════════════════════════════════════════════════════════════
    log_level: str = "INFO"

    @field_validator("api_url", "websocket_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def client_type(self) -> str:
        return "minecraft" if self.is_bot_client else "discord"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
