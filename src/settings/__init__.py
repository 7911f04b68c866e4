"""Application settings loading."""

from .app import PollerSettings, build_repository, get_settings


__all__ = ["PollerSettings", "build_repository", "get_settings"]
