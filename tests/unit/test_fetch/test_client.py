"""Unit tests for the conditional feature fetcher."""

import httpx
import pytest

from src.features.fetch.client import FeatureFetcher, resolve_features_url
from src.features.fetch.config import FetchConfig
from src.features.fetch.metrics import FetchMetrics
from src.features.fetch.models import (
    FetchErrorClass,
    HttpError,
    NotModified,
    Success,
    TransportError,
)
from tests.helpers.transport import (
    DEFAULT_FEATURE,
    RecordingTransport,
    feature_document,
    json_response,
)


URL = "http://toggles.test/api/features"


@pytest.fixture(autouse=True)
def reset_metrics() -> None:
    FetchMetrics.reset()


def make_fetcher(
    recorder: RecordingTransport, config: FetchConfig | None = None
) -> FeatureFetcher:
    return FeatureFetcher(config=config, client=recorder.client())


class TestResolveFeaturesUrl:
    """Tests for endpoint resolution."""

    @pytest.mark.unit
    def test_appends_features_to_base_url(self) -> None:
        assert resolve_features_url("http://host.test") == "http://host.test/features"

    @pytest.mark.unit
    def test_appends_to_base_path(self) -> None:
        assert (
            resolve_features_url("https://host.test/api/")
            == "https://host.test/api/features"
        )

    @pytest.mark.unit
    def test_keeps_full_endpoint(self) -> None:
        assert resolve_features_url(URL) == URL

    @pytest.mark.unit
    def test_keeps_query_string(self) -> None:
        assert (
            resolve_features_url("http://host.test/api?env=dev")
            == "http://host.test/api/features?env=dev"
        )


class TestFeatureFetcher:
    """Tests for FeatureFetcher outcomes."""

    @pytest.mark.unit
    def test_success_returns_body_and_etag(self) -> None:
        """Test that a 200 response yields Success with the ETag header."""
        recorder = RecordingTransport(
            json_response(feature_document(DEFAULT_FEATURE), etag="12345")
        )

        outcome = make_fetcher(recorder).fetch(URL, "foo:bar")

        assert isinstance(outcome, Success)
        assert outcome.etag == "12345"
        assert b'"feature"' in outcome.body
        assert outcome.body_size == len(outcome.body)

    @pytest.mark.unit
    def test_success_without_etag(self) -> None:
        recorder = RecordingTransport(json_response(feature_document()))

        outcome = make_fetcher(recorder).fetch(URL, "foo:bar")

        assert isinstance(outcome, Success)
        assert outcome.etag is None

    @pytest.mark.unit
    def test_sends_authorization_header(self) -> None:
        recorder = RecordingTransport(json_response(feature_document()))

        make_fetcher(recorder).fetch(URL, "foo:bar")

        request = recorder.requests[0]
        assert request.method == "GET"
        assert str(request.url) == URL
        assert request.headers["Authorization"] == "foo:bar"
        assert "If-None-Match" not in request.headers

    @pytest.mark.unit
    def test_sends_if_none_match_when_etag_held(self) -> None:
        recorder = RecordingTransport(json_response(feature_document()))

        make_fetcher(recorder).fetch(URL, "foo:bar", etag="12345-1")

        assert recorder.requests[0].headers["If-None-Match"] == "12345-1"

    @pytest.mark.unit
    def test_empty_etag_is_not_sent(self) -> None:
        recorder = RecordingTransport(json_response(feature_document()))

        make_fetcher(recorder).fetch(URL, "foo:bar", etag="")

        assert "If-None-Match" not in recorder.requests[0].headers

    @pytest.mark.unit
    def test_extra_headers_are_sent(self) -> None:
        recorder = RecordingTransport(json_response(feature_document()))
        config = FetchConfig(extra_headers={"X-Env": "staging"})

        make_fetcher(recorder, config).fetch(
            URL, "foo:bar", extra_headers={"UNLEASH-APPNAME": "foo"}
        )

        headers = recorder.requests[0].headers
        assert headers["X-Env"] == "staging"
        assert headers["UNLEASH-APPNAME"] == "foo"
        assert headers["User-Agent"] == config.user_agent

    @pytest.mark.unit
    def test_304_is_not_modified(self) -> None:
        recorder = RecordingTransport(httpx.Response(304))

        outcome = make_fetcher(recorder).fetch(URL, "foo:bar", etag="abc")

        assert isinstance(outcome, NotModified)
        assert FetchMetrics.get_instance().http_not_modified_total == 1

    @pytest.mark.unit
    @pytest.mark.parametrize("status_code", [201, 404, 500, 503])
    def test_other_status_is_http_error(self, status_code: int) -> None:
        """Test that anything but 200/304 is reported, not raised."""
        recorder = RecordingTransport(httpx.Response(status_code, text="asd"))

        outcome = make_fetcher(recorder).fetch(URL, "foo:bar")

        assert isinstance(outcome, HttpError)
        assert outcome.status_code == status_code

    @pytest.mark.unit
    def test_connect_error_is_transport_error(self) -> None:
        recorder = RecordingTransport(httpx.ConnectError("Name or service not known"))

        outcome = make_fetcher(recorder).fetch(URL, "foo:bar")

        assert isinstance(outcome, TransportError)
        assert outcome.error_class == FetchErrorClass.CONNECTION_ERROR
        assert "Name or service not known" in outcome.message
        assert isinstance(outcome.cause, httpx.ConnectError)

    @pytest.mark.unit
    def test_timeout_is_transport_error(self) -> None:
        recorder = RecordingTransport(httpx.ReadTimeout("timed out"))

        outcome = make_fetcher(recorder).fetch(URL, "foo:bar")

        assert isinstance(outcome, TransportError)
        assert outcome.error_class == FetchErrorClass.NETWORK_TIMEOUT

    @pytest.mark.unit
    def test_oversized_body_is_transport_error(self) -> None:
        recorder = RecordingTransport(httpx.Response(200, content=b"x" * 4096))
        config = FetchConfig(max_response_size_bytes=1024)

        outcome = make_fetcher(recorder, config).fetch(URL, "foo:bar")

        assert isinstance(outcome, TransportError)
        assert outcome.error_class == FetchErrorClass.RESPONSE_SIZE_EXCEEDED

    @pytest.mark.unit
    def test_metrics_recorded(self) -> None:
        recorder = RecordingTransport(
            json_response(feature_document(), etag="1"),
            httpx.Response(304),
            httpx.ConnectError("refused"),
        )
        fetcher = make_fetcher(recorder)

        fetcher.fetch(URL, "t")
        fetcher.fetch(URL, "t", etag="1")
        fetcher.fetch(URL, "t", etag="1")

        metrics = FetchMetrics.get_instance().to_dict()
        assert metrics["http_requests_total"] == {200: 1, 304: 1}
        assert metrics["http_not_modified_total"] == 1
        assert metrics["http_failures_total"] == {"CONNECTION_ERROR": 1}
        assert metrics["http_request_count"] == 2
