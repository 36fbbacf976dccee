"""
Configuration management using Pydantic Settings.

All configuration values are loaded from environment variables
with sensible defaults where appropriate.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root is two levels above this file: <root>/endpoint_proxy/core/config.py
ROOT_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = ROOT_DIR / ".env"

load_dotenv(ENV_FILE)


class AppSettings(BaseSettings):
    """Application-level configuration."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_name: str = "endpoint-proxy"
    app_version: str = "0.1.0"
    app_debug: bool = False

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 20128
    api_workers: int = 1

    # CORS
    cors_origins: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class LogSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix="LOG_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    level: str = "INFO"
    format: Literal["json", "text"] = "json"
    requests: bool = True


class GatewaySettings(BaseSettings):
    """Upstream dispatch configuration."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix="GATEWAY_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    upstream_timeout_seconds: float = Field(default=120.0, gt=0)
    refresh_max_attempts: int = Field(default=3, ge=1, le=10)
    max_output_tokens_cursor: int = 32000

    compatible_default_base_url: str = "https://api.openai.com/v1"
    cursor_base_url: str = "https://api2.cursor.sh/v1"

    # OpenRouter attribution headers
    openrouter_referer: str = "https://endpoint-proxy.local"
    openrouter_title: str = "Endpoint Proxy"

    @field_validator("compatible_default_base_url", "cursor_base_url")
    @classmethod
    def validate_https(cls, v: str) -> str:
        """Upstream base URLs must be absolute HTTP(S) URLs."""
        if not v.startswith(("https://", "http://")):
            raise ValueError("Upstream base URL must start with http:// or https://")
        return v.rstrip("/")


class ProviderKeySettings(BaseSettings):
    """Static provider credentials used to seed the in-memory credential store."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_prefix="PROVIDER_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    openai_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    cursor_access_token: Optional[str] = None
    cursor_refresh_token: Optional[str] = None
    cursor_token_url: Optional[str] = None

    # One self-hosted OpenAI-compatible server, exposed as "openai-compatible-<name>"
    compatible_name: Optional[str] = None
    compatible_api_key: Optional[str] = None
    compatible_base_url: Optional[str] = None


class Settings(BaseSettings):
    """Main settings class that aggregates all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    gateway: GatewaySettings = Field(default_factory=GatewaySettings)
    providers: ProviderKeySettings = Field(default_factory=ProviderKeySettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
