"""Data models for the feature fetch layer."""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class FetchErrorClass(str, Enum):
    """Classification of transport failures for metrics and logging.

    - NETWORK_TIMEOUT: Request timed out
    - CONNECTION_ERROR: Could not establish connection (DNS, refused, reset)
    - RESPONSE_SIZE_EXCEEDED: Response exceeded max size limit
    - SSL_ERROR: SSL/TLS certificate or handshake error
    - UNKNOWN: Unclassified error
    """

    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    RESPONSE_SIZE_EXCEEDED = "RESPONSE_SIZE_EXCEEDED"
    SSL_ERROR = "SSL_ERROR"
    UNKNOWN = "UNKNOWN"


class NotModified(BaseModel):
    """The server confirmed the held ETag is current (HTTP 304)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["not_modified"] = "not_modified"


class Success(BaseModel):
    """A 200 response with its raw body and optional ETag header."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["success"] = "success"
    body: bytes = Field(default=b"", description="Raw response body")
    etag: str | None = Field(default=None, description="ETag response header")

    @property
    def body_size(self) -> int:
        """Get the size of the response body in bytes."""
        return len(self.body)


class HttpError(BaseModel):
    """A response whose status is neither 200 nor 304."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["http_error"] = "http_error"
    status_code: int = Field(ge=100, le=599, description="HTTP status code")


class TransportError(BaseModel):
    """The exchange failed before a usable response was received."""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    kind: Literal["transport_error"] = "transport_error"
    error_class: FetchErrorClass = Field(description="Classification of the failure")
    message: Annotated[str, Field(min_length=1, description="Human-readable message")]
    cause: BaseException | None = Field(
        default=None, description="Underlying exception, if any"
    )


FetchOutcome = Annotated[
    NotModified | Success | HttpError | TransportError,
    Field(discriminator="kind"),
]


class ResponseSizeExceededError(Exception):
    """Raised when response size exceeds the configured limit."""
