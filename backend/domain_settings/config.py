"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - The directory access token comes from the environment (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - Paths default under ./data so a bare checkout runs without extra setup
    - settings_description_path empty means the description bundled with the package
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings from environment variables (DOMAIN_SETTINGS_ prefix)."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="DOMAIN_SETTINGS_", case_sensitive=False,
    )

    # Documents
    settings_description_path: Path | None = None
    user_config_path: Path = Path("data/config.json")
    master_config_path: Path | None = None
    settings_version_path: Path = Path("data/settings-version.json")

    # Group directory
    directory_api_url: str = "https://directory.example.invalid"
    directory_access_token: str | None = None
    directory_timeout_seconds: float = 10.0
    directory_max_retries: int = 2
    directory_base_delay_ms: int = 500
    directory_max_delay_ms: int = 10_000
    group_refresh_stale_seconds: float = 600
    group_refresh_interval_seconds: float = 60

    @field_validator("directory_api_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoint paths are absolute; a trailing slash would double up."""
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    # Restart
    restart_delay_seconds: float = 1.0

    # API
    cors_origins: list[str] = ["http://localhost:40100"]
    host: str = "0.0.0.0"
    port: int = 40100

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
