"""
Configuration management for the Bison client
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bison_client.websocket.backoff import (
    MAX_RECONNECT_ATTEMPTS,
    RECONNECT_BACKOFF_INITIAL,
    RECONNECT_BACKOFF_MAX,
    ReconnectPolicy,
)
from bison_client.websocket.heartbeat import HEARTBEAT_INTERVAL


class BisonSettings(BaseSettings):
    """Client settings loaded from BISON_* environment variables or .env"""

    # API
    base_url: str = "http://localhost:8787"
    request_timeout: float = Field(default=10.0, gt=0)

    # Streaming
    heartbeat_interval: float = Field(default=HEARTBEAT_INTERVAL, gt=0)
    max_reconnect_attempts: int = Field(default=MAX_RECONNECT_ATTEMPTS, ge=0)
    reconnect_base_delay: float = Field(default=RECONNECT_BACKOFF_INITIAL, gt=0)
    reconnect_max_delay: float = Field(default=RECONNECT_BACKOFF_MAX, gt=0)

    # Orders
    order_authorization_ttl: int = Field(default=600, gt=0, description="Seconds an order signature stays valid")

    log_level: str = "INFO"

    @field_validator("base_url")
    @classmethod
    def _require_http_scheme(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return value.rstrip("/")

    def reconnect_policy(self) -> ReconnectPolicy:
        return ReconnectPolicy(
            max_attempts=self.max_reconnect_attempts,
            base_delay=self.reconnect_base_delay,
            max_delay=self.reconnect_max_delay,
        )

    model_config = SettingsConfigDict(
        env_prefix="BISON_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def load_settings(base_url: Optional[str] = None, **overrides) -> BisonSettings:
    """Read settings from the environment, letting explicit values win."""
    if base_url is not None:
        overrides["base_url"] = base_url
    return BisonSettings(**overrides)
