"""Configuration model for the feature fetch layer."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.features.fetch.constants import (
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
)


class FetchConfig(BaseModel):
    """Configuration for feature endpoint requests.

    Covers the request timeout, response size ceiling and any static
    headers sent with every request.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        "toggle-repository/1.0"
    )
    timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_TIMEOUT_SECONDS
    )
    max_response_size_bytes: Annotated[int, Field(ge=1024, le=100 * 1024 * 1024)] = (
        DEFAULT_MAX_RESPONSE_SIZE_BYTES
    )
    extra_headers: dict[str, str] = Field(
        default_factory=dict, description="Headers added to every request"
    )

    @field_validator("extra_headers")
    @classmethod
    def validate_no_auth_headers(cls, v: dict[str, str]) -> dict[str, str]:
        """Ensure the authorization token is not smuggled in via static headers."""
        for key in v:
            if key.lower() == "authorization":
                msg = (
                    f"Header '{key}' must not be set in extra_headers; "
                    "pass the instance id to the repository instead"
                )
                raise ValueError(msg)
        return v
