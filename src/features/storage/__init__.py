"""Toggle storage backends."""

from src.features.storage.base import StorageFactory, ToggleStorage
from src.features.storage.file import (
    BACKUP_FILE_TEMPLATE,
    FileBackedStorage,
    backup_path_for,
)
from src.features.storage.memory import InMemoryStorage


__all__ = [
    "BACKUP_FILE_TEMPLATE",
    "FileBackedStorage",
    "InMemoryStorage",
    "StorageFactory",
    "ToggleStorage",
    "backup_path_for",
]
