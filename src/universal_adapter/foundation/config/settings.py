"""Environment-based configuration using pydantic-settings.

Provides type-safe, validated configuration from environment variables
with sensible defaults. Supports .env files and nested configuration.

Example:
    >>> from universal_adapter.foundation.config import get_settings
    >>> settings = get_settings()
    >>> settings.server.port
    9000
    >>> settings.dispatch.timeout
    30.0

    # Or with environment variables:
    # PORT=8080
    # PINECONE_API_KEY=pc-...
    # UNI_ADAPTER_WEB_URL=https://adapter.example.com
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, PositiveFloat, PositiveInt, SecretStr, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """HTTP server and streaming channel configuration."""

    model_config = SettingsConfigDict(env_prefix="MCP_SERVER_", extra="ignore", populate_by_name=True)

    host: str = "0.0.0.0"
    port: PositiveInt = Field(default=9000, validation_alias=AliasChoices("PORT", "MCP_SERVER_PORT"))
    name: str = "universal-adapter-mcp"
    version: str = "1.0.0"
    queue_size: PositiveInt = Field(default=256, description="Buffered events per streaming connection")
    keepalive_seconds: PositiveFloat = Field(default=15.0, description="SSE keep-alive comment interval")


class DispatchSettings(BaseSettings):
    """Invocation dispatch configuration."""

    model_config = SettingsConfigDict(env_prefix="UNI_ADAPTER_DISPATCH_", extra="ignore")

    timeout: PositiveFloat = Field(default=30.0, description="Backend call timeout in seconds")


class PineconeSettings(BaseSettings):
    """Pinecone credentials and defaults."""

    model_config = SettingsConfigDict(env_prefix="PINECONE_", extra="ignore")

    api_key: SecretStr | None = None
    environment: str | None = Field(default=None, description="Legacy project environment, informational only")
    index_name: str | None = Field(default=None, description="Default index when a call names none")
    controller_url: str = "https://api.pinecone.io"
    api_version: str = "2024-07"

    @field_validator("controller_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


class NotionSettings(BaseSettings):
    """Notion credentials."""

    model_config = SettingsConfigDict(env_prefix="NOTION_", extra="ignore")

    api_key: SecretStr | None = None
    base_url: str = "https://api.notion.com/v1"
    version: str = "2022-06-28"

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="UNI_ADAPTER_LOG_", extra="ignore")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "none"] = "console"

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


class AdapterSettings(BaseSettings):
    """Root settings for the universal adapter.

    Nested groups read their own prefixes (MCP_SERVER_, PINECONE_, NOTION_,
    UNI_ADAPTER_LOG_, UNI_ADAPTER_DISPATCH_). ``web_url`` switches the
    backend into remote mode, forwarding every capability to an existing
    universal-adapter REST deployment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
    )

    web_url: str | None = Field(default=None, validation_alias=AliasChoices("UNI_ADAPTER_WEB_URL", "web_url"))

    server: ServerSettings = Field(default_factory=ServerSettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    pinecone: PineconeSettings = Field(default_factory=PineconeSettings)
    notion: NotionSettings = Field(default_factory=NotionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("web_url")
    @classmethod
    def _normalize_url(cls, v: str | None) -> str | None:
        return (v.rstrip("/") or None) if v else None

    @computed_field
    @property
    def backend_mode(self) -> Literal["direct", "remote"]:
        """Which backend implementation the service should use."""
        return "remote" if self.web_url else "direct"


@lru_cache(maxsize=1)
def get_settings() -> AdapterSettings:
    """Get the global settings instance (cached)."""
    return AdapterSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing).

    After calling this, the next get_settings() call will
    reload configuration from environment.
    """
    get_settings.cache_clear()
