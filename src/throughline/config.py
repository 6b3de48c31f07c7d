"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=8080, description="Server port")
    log_level: str = Field(default="info", description="Logging level")

    # Upstream settings
    anthropic_api_key: SecretStr | None = Field(
        default=None,
        description="Upstream API credential, never returned to clients",
    )
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com",
        description="Upstream API base URL",
    )
    anthropic_version: str = Field(
        default="2023-06-01",
        description="Value of the anthropic-version header",
    )
    default_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Model used when the request omits one",
    )
    default_max_tokens: int = Field(
        default=1024,
        description="max_tokens used when the request omits it",
    )
    request_timeout: float | None = Field(
        default=None,
        description="Upstream timeout in seconds, unset waits indefinitely",
    )

    # Client settings
    relay_url: str = Field(
        default="http://localhost:8080/ai",
        description="Relay endpoint used by the streaming client",
    )

    # Workspace store
    store_path: str = Field(
        default="./.throughline/state.json",
        description="File holding the persisted workspace blob",
    )

    @property
    def api_key_configured(self) -> bool:
        """Whether a non-empty upstream credential is set."""
        return bool(self.anthropic_api_key and self.anthropic_api_key.get_secret_value())

    @property
    def store_full_path(self) -> Path:
        """Get full path to the workspace store."""
        return Path(self.store_path).resolve()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
