"""Unit tests for repository events, listeners and errors."""

import httpx
import pytest

from src.features.fetch.models import FetchErrorClass
from src.features.repository.errors import (
    ErrorKind,
    HttpStatusError,
    TransportError,
)
from src.features.repository.events import (
    DataUpdated,
    FetchFailed,
    Listeners,
    RepositoryEvent,
)


class TestListeners:
    """Tests for the Listeners registry."""

    @pytest.mark.unit
    def test_notifies_in_registration_order(self) -> None:
        listeners = Listeners()
        seen: list[str] = []
        listeners.add(lambda event: seen.append("first"))
        listeners.add(lambda event: seen.append("second"))

        listeners.notify(DataUpdated())

        assert seen == ["first", "second"]

    @pytest.mark.unit
    def test_unsubscribe(self) -> None:
        listeners = Listeners()
        seen: list[RepositoryEvent] = []
        unsubscribe = listeners.add(seen.append)

        unsubscribe()
        listeners.notify(DataUpdated())

        assert seen == []
        assert not listeners.has_listeners()

    @pytest.mark.unit
    def test_unsubscribe_twice_is_harmless(self) -> None:
        listeners = Listeners()
        unsubscribe = listeners.add(lambda event: None)

        unsubscribe()
        unsubscribe()

    @pytest.mark.unit
    def test_failing_listener_does_not_block_others(self) -> None:
        listeners = Listeners()
        seen: list[RepositoryEvent] = []

        def broken(event: RepositoryEvent) -> None:
            raise RuntimeError("listener bug")

        listeners.add(broken)
        listeners.add(seen.append)

        event = FetchFailed(error=HttpStatusError(500))
        listeners.notify(event)

        assert seen == [event]


class TestRepositoryErrors:
    """Tests for the error taxonomy."""

    @pytest.mark.unit
    def test_http_status_message(self) -> None:
        error = HttpStatusError(404)

        assert str(error) == "Response was not statusCode 200 but 404"
        assert error.kind == ErrorKind.HTTP_STATUS
        assert error.status_code == 404

    @pytest.mark.unit
    def test_transport_error_chains_cause(self) -> None:
        cause = httpx.ConnectError("refused")

        error = TransportError(
            "Connection failed: refused",
            error_class=FetchErrorClass.CONNECTION_ERROR,
            cause=cause,
        )

        assert error.__cause__ is cause
        assert error.to_dict() == {
            "kind": "TRANSPORT",
            "message": "Connection failed: refused",
            "details": {"error_class": "CONNECTION_ERROR"},
        }
