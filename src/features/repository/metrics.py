"""Metrics collection for the toggle repository."""

from dataclasses import dataclass, field
from typing import ClassVar

from src.features.repository.errors import ErrorKind


@dataclass
class RepositoryMetrics:
    """Metrics for repository fetch cycles.

    Singleton class that tracks cycle counts, storage updates, 304
    responses and failures by kind.
    """

    cycles_total: int = 0
    updates_total: int = 0
    not_modified_total: int = 0
    errors_total: dict[str, int] = field(default_factory=dict)
    discarded_total: int = 0
    toggles_stored: int = 0

    _instance: ClassVar["RepositoryMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "RepositoryMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_cycle(self) -> None:
        self.cycles_total += 1

    def record_update(self, toggle_count: int) -> None:
        """Record a successful storage replacement.

        Args:
            toggle_count: Number of toggles now stored.
        """
        self.updates_total += 1
        self.toggles_stored = toggle_count

    def record_not_modified(self) -> None:
        self.not_modified_total += 1

    def record_error(self, kind: ErrorKind) -> None:
        key = kind.value
        self.errors_total[key] = self.errors_total.get(key, 0) + 1

    def record_discarded(self) -> None:
        """Record a cycle whose result arrived after stop()."""
        self.discarded_total += 1

    def to_dict(self) -> dict[str, int | dict[str, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "cycles_total": self.cycles_total,
            "updates_total": self.updates_total,
            "not_modified_total": self.not_modified_total,
            "errors_total": dict(self.errors_total),
            "discarded_total": self.discarded_total,
            "toggles_stored": self.toggles_stored,
        }
