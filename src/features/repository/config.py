"""Configuration model for the toggle repository."""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import Url


class RepositoryConfig(BaseModel):
    """Validated construction parameters of a repository.

    The URL must be an absolute http(s) URL and the poll interval a
    non-negative integer; 0 means a single fetch with no recurring timer.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    app_name: Annotated[str, Field(min_length=1, max_length=200)]
    url: Annotated[str, Field(min_length=1)]
    instance_id: str = Field(description="Sent as the Authorization header")
    poll_interval_ms: Annotated[int, Field(ge=0, strict=True)] = 15_000

    @field_validator("url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Validate that url is an absolute http(s) URL."""
        try:
            parsed = Url(v)
        except ValueError as e:
            msg = f"Invalid URL: {v!r}"
            raise ValueError(msg) from e
        if parsed.scheme not in ("http", "https") or not parsed.host:
            msg = f"URL must use http or https: {v!r}"
            raise ValueError(msg)
        return v

    @property
    def poll_interval_seconds(self) -> float:
        """Get the poll interval in seconds."""
        return self.poll_interval_ms / 1000.0
