from __future__ import annotations

from functools import lru_cache
from typing import Any

from loguru import logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console

console = Console()
log = logger.bind(module="config")

DEFAULT_CATALOG_MAX_ENTRIES = 1024


class Settings(BaseSettings):
    """Centralised application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    app_name: str = Field(default="regcat", alias="APP_NAME")
    environment: str = Field(default="development", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    logs_base_dir: str | None = Field(default=None, alias="LOGS_BASE_DIR")

    # Registry identity reported to the catalog collector.
    http_host: str = Field(default="", alias="REGISTRY_HTTP_HOST")
    http_secret: str = Field(default="", alias="REGISTRY_HTTP_SECRET")

    catalog_callback: str | None = Field(default=None, alias="REGISTRY_CATALOG_CALLBACK")
    catalog_callback_override: bool = Field(default=True, alias="REGISTRY_CATALOG_CALLBACK_OVERRIDE")
    catalog_max_entries: int = Field(
        default=DEFAULT_CATALOG_MAX_ENTRIES,
        gt=0,
        alias="REGISTRY_CATALOG_MAX_ENTRIES",
    )
    catalog_notify_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        alias="REGISTRY_CATALOG_NOTIFY_TIMEOUT_SECONDS",
    )
    catalog_repositories: list[str] = Field(default_factory=list, alias="REGISTRY_CATALOG_REPOSITORIES")

    def export_safe(self) -> dict[str, Any]:
        """Return non-sensitive settings for debugging/logging."""
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http_host": self.http_host,
            "catalog_callback": self.catalog_callback,
            "catalog_callback_override": self.catalog_callback_override,
            "catalog_max_entries": self.catalog_max_entries,
            "catalog_notify_timeout_seconds": self.catalog_notify_timeout_seconds,
            "catalog_repositories": len(self.catalog_repositories),
        }


@lru_cache
def get_settings() -> Settings:
    """Load and cache application settings."""
    settings = Settings()
    console.log(
        f"[bold green]Loaded settings[/] env={settings.environment!r} "
        f"registry={settings.http_host!r}",
    )
    log.info("Settings initialised: {}", settings.export_safe())
    return settings
