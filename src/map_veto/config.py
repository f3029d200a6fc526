"""Client configuration via pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Match server endpoints
    api_base_url: str = "http://localhost:8080/api"
    ws_base_url: str = "ws://localhost:8080/ws"

    # HTTP timeout / retry policy (retries apply to state reads only)
    request_timeout_seconds: float = 10.0
    max_retries: int = 2
    retry_backoff_seconds: float = 0.5

    # Fallback polling runs only while the push channel is down
    poll_interval_seconds: float = 2.0
    push_heartbeat_seconds: float = 15.0
    push_reconnect_delay_seconds: float = 3.0

    # Persisted captain credentials
    credential_store_path: Path = Path.home() / ".map_veto" / "credentials.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
