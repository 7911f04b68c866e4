"""Poller settings powered by Pydantic BaseSettings."""

import logging
import sys
from pathlib import Path
from typing import TextIO

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.features.fetch.config import FetchConfig
from src.features.fetch.constants import DEFAULT_TIMEOUT_SECONDS
from src.features.observability.logging import bind_app_context, configure_logging
from src.features.repository.repository import Repository
from src.features.storage.base import ToggleStorage
from src.features.storage.file import FileBackedStorage
from src.features.storage.memory import InMemoryStorage


class PollerSettings(BaseSettings):
    """Environment configuration for a toggle repository."""

    model_config = SettingsConfigDict(
        env_prefix="TOGGLE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = Field(description="Toggle server base URL or feature endpoint")
    app_name: str = "default"
    instance_id: str = Field(default="", description="Authorization token")
    poll_interval_ms: int = Field(default=15_000, ge=0)
    request_timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0.0)
    backup_dir: Path | None = None
    log_level: str = "INFO"
    log_json: bool = True

    @property
    def log_level_value(self) -> int:
        """Get the numeric logging level, falling back to INFO."""
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO

    def build_storage(self) -> ToggleStorage:
        """Create file-backed storage when a backup dir is set, else in-memory."""
        if self.backup_dir is not None:
            return FileBackedStorage(self.backup_dir, self.app_name)
        return InMemoryStorage(self.app_name)

    def configure_logging(self, output: TextIO = sys.stderr) -> None:
        """Apply the log level and format and bind the app name to log context."""
        configure_logging(
            level=self.log_level_value,
            output=output,
            json_format=self.log_json,
        )
        bind_app_context(self.app_name)


def get_settings() -> PollerSettings:
    """Get a settings instance."""
    return PollerSettings()  # type: ignore[call-arg]


def build_repository(settings: PollerSettings | None = None) -> Repository:
    """Wire a repository from environment settings. The caller starts it.

    Args:
        settings: Settings to use; read from the environment when omitted.

    Returns:
        An unstarted repository.
    """
    settings = settings or get_settings()
    return Repository(
        app_name=settings.app_name,
        url=settings.url,
        instance_id=settings.instance_id,
        poll_interval_ms=settings.poll_interval_ms,
        storage=settings.build_storage(),
        fetch_config=FetchConfig(timeout_seconds=settings.request_timeout_seconds),
    )
