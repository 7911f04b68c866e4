"""Feature endpoint fetch layer.

This module performs the single conditional request behind each poll:
- ETag/If-None-Match conditional requests
- Discriminated outcomes instead of exceptions for HTTP and transport failures
- Maximum response size enforcement
- Header redaction for logging
- Metrics collection for observability
"""

from src.features.fetch.client import FeatureFetcher, resolve_features_url
from src.features.fetch.config import FetchConfig
from src.features.fetch.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_MAX_RESPONSE_SIZE_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    FEATURES_PATH,
    HTTP_STATUS_NOT_MODIFIED,
    HTTP_STATUS_OK,
)
from src.features.fetch.metrics import FetchMetrics
from src.features.fetch.models import (
    FetchErrorClass,
    FetchOutcome,
    HttpError,
    NotModified,
    ResponseSizeExceededError,
    Success,
    TransportError,
)
from src.features.fetch.redact import redact_headers, redact_url_credentials


__all__ = [
    # Client
    "FeatureFetcher",
    "resolve_features_url",
    # Config
    "FetchConfig",
    # Models
    "FetchOutcome",
    "NotModified",
    "Success",
    "HttpError",
    "TransportError",
    "FetchErrorClass",
    "ResponseSizeExceededError",
    # Constants
    "HTTP_STATUS_OK",
    "HTTP_STATUS_NOT_MODIFIED",
    "FEATURES_PATH",
    "DEFAULT_MAX_RESPONSE_SIZE_BYTES",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_TIMEOUT_SECONDS",
    # Metrics
    "FetchMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
