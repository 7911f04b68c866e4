"""HTTP client performing the conditional feature request."""

import ssl
import time
from io import BytesIO
from urllib.parse import urlparse, urlunparse

import httpx
import structlog

from src.features.fetch.config import FetchConfig
from src.features.fetch.constants import (
    DEFAULT_CHUNK_SIZE,
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


logger = structlog.get_logger()


def resolve_features_url(url: str) -> str:
    """Resolve the feature endpoint from a configured URL.

    A base URL gets ``/features`` appended; a URL that already points at
    the endpoint is returned unchanged.

    Args:
        url: Base URL or full endpoint URL.

    Returns:
        The endpoint URL to GET.
    """
    parsed = urlparse(url)
    path = parsed.path.rstrip("/")
    if path.rsplit("/", 1)[-1] == FEATURES_PATH:
        return url
    return urlunparse(parsed._replace(path=f"{path}/{FEATURES_PATH}"))


class FeatureFetcher:
    """Performs one conditional GET against the feature endpoint.

    The result is always a ``FetchOutcome``: non-2xx statuses and
    transport failures are reported, never raised.
    """

    def __init__(
        self,
        config: FetchConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Fetch configuration (defaults apply when omitted).
            client: Pre-built httpx client. When omitted a client is created
                per request and closed afterwards.
        """
        self._config = config or FetchConfig()
        self._client = client
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch")

    @property
    def config(self) -> FetchConfig:
        """Get the fetch configuration."""
        return self._config

    def fetch(
        self,
        url: str,
        auth_token: str,
        etag: str | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> FetchOutcome:
        """Fetch the feature endpoint.

        Args:
            url: Endpoint URL.
            auth_token: Value of the ``Authorization`` header.
            etag: Previously received ETag; sent as ``If-None-Match`` when
                non-empty.
            extra_headers: Additional per-call headers.

        Returns:
            NotModified, Success, HttpError or TransportError.
        """
        start_time_ns = time.perf_counter_ns()
        headers = self._build_headers(auth_token, etag, extra_headers)
        log = self._log.bind(
            url=redact_url_credentials(url),
            domain=urlparse(url).netloc,
        )

        outcome = self._execute(url, headers, log)

        duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
        self._metrics.record_duration(duration_ms)

        log.info(
            "fetch_complete",
            outcome=outcome.kind,
            status_code=getattr(outcome, "status_code", None),
            conditional=bool(etag),
            duration_ms=round(duration_ms, 2),
            error_class=(
                outcome.error_class.value
                if isinstance(outcome, TransportError)
                else None
            ),
        )
        return outcome

    def _build_headers(
        self,
        auth_token: str,
        etag: str | None,
        extra_headers: dict[str, str] | None,
    ) -> dict[str, str]:
        headers: dict[str, str] = {
            "User-Agent": self._config.user_agent,
            "Accept": "application/json",
        }
        headers.update(self._config.extra_headers)
        if extra_headers:
            headers.update(extra_headers)

        headers["Authorization"] = auth_token
        if etag:
            headers["If-None-Match"] = etag
        return headers

    def _execute(
        self,
        url: str,
        headers: dict[str, str],
        log: structlog.stdlib.BoundLogger,
    ) -> FetchOutcome:
        """Execute the request and classify the response.

        Args:
            url: URL to fetch.
            headers: Request headers.
            log: Bound logger.

        Returns:
            Classified outcome.
        """
        log.debug("fetch_request", headers=redact_headers(headers))

        try:
            if self._client is not None:
                return self._exchange(self._client, url, headers)
            with httpx.Client(
                timeout=self._config.timeout_seconds,
                follow_redirects=True,
            ) as client:
                return self._exchange(client, url, headers)

        except ResponseSizeExceededError as e:
            return self._transport_error(FetchErrorClass.RESPONSE_SIZE_EXCEEDED, e)

        except httpx.TimeoutException as e:
            return self._transport_error(
                FetchErrorClass.NETWORK_TIMEOUT, e, prefix="Request timed out"
            )

        except httpx.ConnectError as e:
            if isinstance(e.__cause__, ssl.SSLError):
                return self._transport_error(
                    FetchErrorClass.SSL_ERROR, e, prefix="TLS handshake failed"
                )
            return self._transport_error(
                FetchErrorClass.CONNECTION_ERROR, e, prefix="Connection failed"
            )

        except httpx.HTTPError as e:
            return self._transport_error(
                FetchErrorClass.UNKNOWN, e, prefix="Transport error"
            )

    def _exchange(
        self,
        client: httpx.Client,
        url: str,
        headers: dict[str, str],
    ) -> FetchOutcome:
        with client.stream(
            "GET",
            url,
            headers=headers,
            timeout=self._config.timeout_seconds,
        ) as response:
            status_code = response.status_code

            if status_code == HTTP_STATUS_NOT_MODIFIED:
                self._metrics.record_request(status_code, 0)
                self._metrics.record_not_modified()
                return NotModified()

            if status_code != HTTP_STATUS_OK:
                self._metrics.record_request(status_code, 0)
                return HttpError(status_code=status_code)

            content_length = response.headers.get("content-length")
            if content_length and content_length.isdigit():
                size = int(content_length)
                if size > self._config.max_response_size_bytes:
                    msg = (
                        f"Response size {size} exceeds limit "
                        f"{self._config.max_response_size_bytes}"
                    )
                    raise ResponseSizeExceededError(msg)

            body = self._read_body_with_limit(response)
            self._metrics.record_request(status_code, len(body))
            return Success(body=body, etag=response.headers.get("etag"))

    def _read_body_with_limit(self, response: httpx.Response) -> bytes:
        """Read response body with size limit.

        Args:
            response: Streaming HTTP response.

        Returns:
            Response body bytes.

        Raises:
            ResponseSizeExceededError: If the size limit is exceeded.
        """
        buffer = BytesIO()
        total_read = 0
        max_size = self._config.max_response_size_bytes

        for chunk in response.iter_bytes(chunk_size=DEFAULT_CHUNK_SIZE):
            total_read += len(chunk)
            if total_read > max_size:
                msg = (
                    f"Response size exceeded limit of {max_size} bytes "
                    f"(read {total_read} bytes)"
                )
                raise ResponseSizeExceededError(msg)
            buffer.write(chunk)

        return buffer.getvalue()

    def _transport_error(
        self,
        error_class: FetchErrorClass,
        cause: Exception,
        prefix: str | None = None,
    ) -> TransportError:
        self._metrics.record_failure(error_class)
        detail = str(cause) or type(cause).__name__
        message = f"{prefix}: {detail}" if prefix else detail
        return TransportError(error_class=error_class, message=message, cause=cause)
