"""Feature toggle data model."""

from src.features.toggles.models import (
    FeaturePayload,
    StrategyDefinition,
    ToggleDefinition,
)


__all__ = [
    "FeaturePayload",
    "StrategyDefinition",
    "ToggleDefinition",
]
