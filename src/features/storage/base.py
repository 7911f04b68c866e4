"""Storage protocol consumed by the toggle repository."""

from collections.abc import Callable, Mapping
from typing import Protocol, runtime_checkable

from src.features.toggles.models import ToggleDefinition


@runtime_checkable
class ToggleStorage(Protocol):
    """Protocol for toggle storage backends.

    A storage keeps the latest known toggle definitions keyed by name.
    The repository waits for readiness, then replaces the whole content
    after every successful fetch.
    """

    def wait_until_ready(self, timeout: float | None = None) -> bool:
        """Block until the storage is usable.

        Args:
            timeout: Maximum seconds to wait, or None to wait indefinitely.

        Returns:
            True if the storage is ready, False if the wait timed out.
        """
        ...

    def reset(self, toggles: Mapping[str, ToggleDefinition]) -> None:
        """Replace all stored toggles.

        Args:
            toggles: Mapping of toggle name to definition.
        """
        ...

    def get(self, name: str) -> ToggleDefinition | None:
        """Look up a toggle by name.

        Args:
            name: Toggle name.

        Returns:
            The stored definition, or None if unknown.
        """
        ...


# Builds a storage for the given application name
StorageFactory = Callable[[str], ToggleStorage]
