"""Data models for feature toggle definitions."""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class StrategyDefinition(BaseModel):
    """An activation strategy attached to a toggle.

    Strategies are stored verbatim; evaluating them is not this package's
    job, so none of their fields are required or type-checked.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: Any = Field(default=None, description="Strategy name, e.g. 'default'")
    parameters: Any = Field(default=None, description="Strategy parameters")


# Object-shaped entries become StrategyDefinition; anything else is kept as-is
StrategyEntry = Annotated[StrategyDefinition | Any, Field(union_mode="left_to_right")]


class ToggleDefinition(BaseModel):
    """A feature toggle as served by the toggle server.

    ``enabled`` must be a real boolean and ``strategies`` a real array;
    no coercion is applied to either. Strategy entries are not validated.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = Field(description="Unique toggle name")
    enabled: StrictBool = Field(description="Whether the toggle is switched on")
    strategies: list[StrategyEntry] = Field(
        description="Ordered activation strategies"
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary, extra fields included."""
        return self.model_dump(mode="json", exclude_none=True)


class FeaturePayload(BaseModel):
    """Decoded body of the feature endpoint."""

    model_config = ConfigDict(frozen=True, extra="allow")

    features: list[ToggleDefinition] = Field(description="Toggle definitions")
