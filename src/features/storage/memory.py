"""In-process toggle storage."""

import threading
from collections.abc import Mapping

from src.features.toggles.models import ToggleDefinition


class InMemoryStorage:
    """Toggle storage held in a dictionary.

    Ready as soon as it is constructed. Reads and resets are guarded by a
    lock so lookups from application threads never observe a half-applied
    update.
    """

    def __init__(self, app_name: str | None = None) -> None:
        """Initialize an empty storage.

        Args:
            app_name: Owning application; accepted so the class can be used
                directly as a storage factory.
        """
        self._app_name = app_name
        self._lock = threading.Lock()
        self._toggles: dict[str, ToggleDefinition] = {}
        self._ready = threading.Event()
        self._ready.set()

    def wait_until_ready(self, timeout: float | None = None) -> bool:
        return self._ready.wait(timeout)

    def reset(self, toggles: Mapping[str, ToggleDefinition]) -> None:
        snapshot = dict(toggles)
        with self._lock:
            self._toggles = snapshot

    def get(self, name: str) -> ToggleDefinition | None:
        with self._lock:
            return self._toggles.get(name)

    def all(self) -> dict[str, ToggleDefinition]:
        """Return a copy of every stored toggle."""
        with self._lock:
            return dict(self._toggles)

    def __len__(self) -> int:
        with self._lock:
            return len(self._toggles)
