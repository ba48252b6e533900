"""Configuration management for the Lokalise MCP platform.

Supports YAML configuration files, a .env file and environment variable
overrides. Configuration is loaded once and cached.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.models import DomainSource


DEFAULT_API_HOSTNAME = "https://api.lokalise.com/api2/"


class LokaliseSettings(BaseSettings):
    """Lokalise API client configuration."""
    api_key: Optional[str] = Field(default=None, description="Lokalise API token")
    api_hostname: str = Field(default=DEFAULT_API_HOSTNAME, description="API base URL")
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="LOKALISE_",
        env_file=".env",
        extra="ignore"
    )


class ServerSettings(BaseSettings):
    """Protocol server configuration."""
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000)

    model_config = SettingsConfigDict(
        env_prefix="MCP_SERVER_",
        env_file=".env",
        extra="ignore"
    )


class DomainSettings(BaseSettings):
    """Domain selection and composition configuration."""
    enabled: Optional[list[str]] = Field(
        default=None,
        description="Domains to load; None loads every known domain"
    )
    disabled: list[str] = Field(default_factory=list)
    extra: list[DomainSource] = Field(
        default_factory=list,
        description="Additional domains as name/module pairs"
    )
    registration_timeout_seconds: Optional[float] = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="DOMAINS_",
        env_file=".env",
        extra="ignore"
    )

    def select(self, sources: list[DomainSource]) -> list[DomainSource]:
        """Apply the enabled/disabled filters to a list of sources."""
        selected = [*sources, *self.extra]
        if self.enabled is not None:
            selected = [s for s in selected if s.name in self.enabled]
        return [s for s in selected if s.name not in self.disabled]


class Settings(BaseSettings):
    """Main application settings."""
    environment: str = Field(default="development")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Component settings
    lokalise: LokaliseSettings = Field(default_factory=LokaliseSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    domains: DomainSettings = Field(default_factory=DomainSettings)

    model_config = SettingsConfigDict(
        env_prefix="LOKALISE_MCP_",
        env_file=".env",
        extra="ignore"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        return cls(**load_yaml_config(path))


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    config_path = os.environ.get("LOKALISE_MCP_CONFIG_PATH", "config/settings.yaml")
    return Settings.from_yaml(config_path)
