"""Toggle storage persisted to a JSON backup file.

The backup lets an application start with the last known toggles while the
toggle server is unreachable. Loading happens on a background thread; the
storage reports ready once the backup has been read (or found missing).
"""

import json
import os
import re
import tempfile
import threading
from collections.abc import Mapping
from pathlib import Path

import structlog
from pydantic import ValidationError

from src.features.toggles.models import ToggleDefinition


logger = structlog.get_logger()

BACKUP_FILE_TEMPLATE = "unleash-repo-schema-v1-{app_name}.json"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def backup_path_for(backup_dir: Path, app_name: str) -> Path:
    """Get the backup file location for an application.

    Args:
        backup_dir: Directory holding backup files.
        app_name: Application name; unsafe characters are replaced.

    Returns:
        Path of the backup file.
    """
    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", app_name)
    return backup_dir / BACKUP_FILE_TEMPLATE.format(app_name=safe_name)


class FileBackedStorage:
    """Toggle storage mirrored to a JSON file on every reset."""

    def __init__(
        self,
        backup_dir: Path | str,
        app_name: str,
        load_in_background: bool = True,
    ) -> None:
        """Initialize the storage and start loading the backup.

        Args:
            backup_dir: Directory for the backup file (created on first write).
            app_name: Application name, part of the backup file name.
            load_in_background: Load on a daemon thread; when False the
                backup is read before the constructor returns.
        """
        self._path = backup_path_for(Path(backup_dir), app_name)
        self._lock = threading.Lock()
        self._toggles: dict[str, ToggleDefinition] = {}
        self._reset_called = False
        self._ready = threading.Event()
        self._log = logger.bind(component="storage", app_name=app_name)

        if load_in_background:
            threading.Thread(
                target=self._load,
                name=f"toggle-backup-{app_name}",
                daemon=True,
            ).start()
        else:
            self._load()

    @property
    def path(self) -> Path:
        """Get the backup file path."""
        return self._path

    def wait_until_ready(self, timeout: float | None = None) -> bool:
        return self._ready.wait(timeout)

    def is_ready(self) -> bool:
        return self._ready.is_set()

    def reset(self, toggles: Mapping[str, ToggleDefinition]) -> None:
        """Replace all toggles and persist them to the backup file.

        A failed write is logged; the in-memory content is still replaced
        and the next reset retries the write.

        Args:
            toggles: Mapping of toggle name to definition.
        """
        snapshot = dict(toggles)
        with self._lock:
            self._toggles = snapshot
            self._reset_called = True
        try:
            self._persist(snapshot)
        except OSError as e:
            self._log.error(
                "storage_backup_write_failed",
                path=str(self._path),
                error=str(e),
            )

    def get(self, name: str) -> ToggleDefinition | None:
        with self._lock:
            return self._toggles.get(name)

    def all(self) -> dict[str, ToggleDefinition]:
        """Return a copy of every stored toggle."""
        with self._lock:
            return dict(self._toggles)

    def _load(self) -> None:
        try:
            toggles = self._read_backup()
            with self._lock:
                # A reset that raced ahead of the load holds fresher data
                if not self._reset_called:
                    self._toggles = toggles
            self._log.info(
                "storage_backup_loaded",
                path=str(self._path),
                toggles=len(toggles),
            )
        finally:
            self._ready.set()

    def _read_backup(self) -> dict[str, ToggleDefinition]:
        """Read the backup file.

        Returns:
            Stored toggles, or an empty mapping if the file is missing or
            unreadable.
        """
        if not self._path.exists():
            return {}

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                msg = "backup root is not an object"
                raise ValueError(msg)
            return {
                name: ToggleDefinition.model_validate(value)
                for name, value in raw.items()
            }
        except (OSError, ValueError, ValidationError) as e:
            self._log.warning(
                "storage_backup_unreadable",
                path=str(self._path),
                error=str(e),
            )
            return {}

    def _persist(self, toggles: dict[str, ToggleDefinition]) -> None:
        """Write toggles atomically via a temp file and rename."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {name: toggle.to_dict() for name, toggle in toggles.items()}

        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=".toggle-backup-", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
