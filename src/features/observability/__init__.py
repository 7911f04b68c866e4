"""Observability module for logging and metrics."""

from src.features.observability.logging import (
    bind_app_context,
    clear_app_context,
    configure_logging,
    scrub_secrets,
)
from src.features.observability.metrics import reset_metrics, snapshot_metrics


__all__ = [
    "bind_app_context",
    "clear_app_context",
    "configure_logging",
    "reset_metrics",
    "scrub_secrets",
    "snapshot_metrics",
]
