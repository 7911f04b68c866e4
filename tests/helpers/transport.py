"""Test doubles for the HTTP layer and storage."""

import threading
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from src.features.storage.memory import InMemoryStorage
from src.features.toggles.models import ToggleDefinition


DEFAULT_FEATURE: dict[str, Any] = {
    "name": "feature",
    "enabled": True,
    "strategies": [{"name": "default"}],
}


def feature_document(*toggles: dict[str, Any]) -> dict[str, Any]:
    """Build a feature endpoint body."""
    return {"features": list(toggles)}


class RecordingTransport:
    """httpx mock transport that records every request.

    ``responses`` are served in order; the last one repeats once exhausted.
    Entries may be responses or exceptions to raise.
    """

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.requests: list[httpx.Request] = []
        self._responses = list(responses)
        self._lock = threading.Lock()
        self.transport = httpx.MockTransport(self._handle)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=self.transport)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            index = min(len(self.requests), len(self._responses)) - 1
            response = self._responses[index]
        if isinstance(response, Exception):
            raise response
        return response


def json_response(
    payload: Any,
    status_code: int = 200,
    etag: str | None = None,
) -> httpx.Response:
    headers = {"ETag": etag} if etag else {}
    return httpx.Response(status_code, json=payload, headers=headers)


class ManualReadyStorage(InMemoryStorage):
    """In-memory storage that only becomes ready when told to."""

    def __init__(self, app_name: str | None = None) -> None:
        super().__init__(app_name)
        self._ready.clear()
        self.reset_calls = 0

    def mark_ready(self) -> None:
        self._ready.set()

    def reset(self, toggles: Mapping[str, ToggleDefinition]) -> None:
        self.reset_calls += 1
        super().reset(toggles)


class EventCollector:
    """Listener that records events and lets tests wait for them."""

    def __init__(self) -> None:
        self.events: list[Any] = []
        self._condition = threading.Condition()

    def __call__(self, event: Any) -> None:
        with self._condition:
            self.events.append(event)
            self._condition.notify_all()

    def wait_for(
        self,
        predicate: Callable[[list[Any]], bool],
        timeout: float = 5.0,
    ) -> bool:
        with self._condition:
            return self._condition.wait_for(lambda: predicate(self.events), timeout)
