"""Aggregated view over the process-wide metric singletons."""

from typing import Any

from src.features.fetch.metrics import FetchMetrics
from src.features.repository.metrics import RepositoryMetrics


def snapshot_metrics() -> dict[str, dict[str, Any]]:
    """Collect fetch and repository metrics into one dictionary.

    Returns:
        Mapping of subsystem name to its metric values.
    """
    return {
        "fetch": FetchMetrics.get_instance().to_dict(),
        "repository": RepositoryMetrics.get_instance().to_dict(),
    }


def reset_metrics() -> None:
    """Reset every metric singleton (primarily for testing)."""
    FetchMetrics.reset()
    RepositoryMetrics.reset()
