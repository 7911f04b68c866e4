"""Outcome events published by the repository and their subscriptions."""

import threading
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from src.features.repository.errors import RepositoryError


logger = structlog.get_logger()


@dataclass(frozen=True)
class DataUpdated:
    """Storage was replaced with freshly fetched toggles.

    Carries no payload; read the toggles back through the repository.
    """


@dataclass(frozen=True)
class FetchFailed:
    """A fetch cycle failed; storage and ETag were left untouched."""

    error: RepositoryError


RepositoryEvent = DataUpdated | FetchFailed

Listener = Callable[[RepositoryEvent], None]


class Listeners:
    """Thread-safe registry of event listeners.

    A listener that raises is logged and skipped; delivery to the other
    listeners continues.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []
        self._log = logger.bind(component="repository")

    def add(self, listener: Listener) -> Callable[[], None]:
        """Register a listener.

        Args:
            listener: Callable receiving every published event.

        Returns:
            A function that removes the listener again.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            self.remove(listener)

        return unsubscribe

    def remove(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def has_listeners(self) -> bool:
        with self._lock:
            return bool(self._listeners)

    def notify(self, event: RepositoryEvent) -> None:
        """Deliver an event to every registered listener.

        Args:
            event: Event to publish.
        """
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                self._log.exception(
                    "listener_failed",
                    event=type(event).__name__,
                )
