"""Polling repository keeping local toggle storage in sync with the server."""

import threading
import time
from collections.abc import Callable
from types import TracebackType

import httpx
import structlog

from src.features.fetch import models as fetch_models
from src.features.fetch.client import FeatureFetcher, resolve_features_url
from src.features.fetch.config import FetchConfig
from src.features.fetch.constants import APP_NAME_HEADER, INSTANCE_ID_HEADER
from src.features.repository.config import RepositoryConfig
from src.features.repository.errors import (
    HttpStatusError,
    PayloadParseError,
    RepositoryError,
    ToggleValidationError,
    TransportError,
)
from src.features.repository.events import (
    DataUpdated,
    FetchFailed,
    Listener,
    Listeners,
    RepositoryEvent,
)
from src.features.repository.metrics import RepositoryMetrics
from src.features.repository.payload import index_by_name, parse_features
from src.features.repository.state_machine import (
    RepositoryState,
    RepositoryStateError,
    RepositoryStateMachine,
)
from src.features.storage.base import StorageFactory, ToggleStorage
from src.features.storage.memory import InMemoryStorage
from src.features.toggles.models import ToggleDefinition


logger = structlog.get_logger()

# How often the worker re-checks for stop() while storage is not ready
READY_CHECK_INTERVAL_SECONDS = 0.1


class Repository:
    """Polls the feature endpoint and mirrors the result into storage.

    Construction alone never polls: call ``start()`` or enter the
    repository as a context manager.

    Lifecycle: AWAITING_STORAGE until the storage reports ready, then one
    immediate fetch cycle followed by a fixed-rate cycle every
    ``poll_interval_ms`` (none when the interval is 0), until ``stop()``.

    Every cycle ends in one of three ways:
    - 304: nothing happens
    - 200 with a valid document: storage is replaced, ETag updated,
      ``DataUpdated`` published
    - anything else: ``FetchFailed`` published, storage and ETag untouched

    Cycles run on a single worker thread and never overlap.
    """

    def __init__(
        self,
        app_name: str,
        url: str,
        instance_id: str,
        poll_interval_ms: int = 15_000,
        storage: ToggleStorage | None = None,
        storage_factory: StorageFactory | None = None,
        fetch_config: FetchConfig | None = None,
        client: httpx.Client | None = None,
        fetcher: FeatureFetcher | None = None,
    ) -> None:
        """Initialize the repository. No network activity happens here.

        Args:
            app_name: Application name sent to the server.
            url: Server base URL, or the full feature endpoint URL.
            instance_id: Authorization token for the feature endpoint.
            poll_interval_ms: Milliseconds between fetches; 0 fetches once.
            storage: Storage instance to mirror toggles into.
            storage_factory: Builds the storage from the app name; used when
                ``storage`` is not given. Defaults to ``InMemoryStorage``.
            fetch_config: Request timeout, size limit and static headers.
            client: httpx client to issue requests with.
            fetcher: Fully built fetcher; overrides ``fetch_config``/``client``.

        Raises:
            pydantic.ValidationError: If the URL or interval is invalid.
            ValueError: If both ``storage`` and ``storage_factory`` are given.
        """
        self._config = RepositoryConfig(
            app_name=app_name,
            url=url,
            instance_id=instance_id,
            poll_interval_ms=poll_interval_ms,
        )
        if storage is not None and storage_factory is not None:
            msg = "Pass either storage or storage_factory, not both"
            raise ValueError(msg)

        if storage is None:
            storage = (storage_factory or InMemoryStorage)(app_name)
        self._storage = storage
        self._fetcher = fetcher or FeatureFetcher(config=fetch_config, client=client)
        self._endpoint = resolve_features_url(url)
        self._identity_headers = {
            APP_NAME_HEADER: app_name,
            INSTANCE_ID_HEADER: instance_id,
        }

        self._etag: str | None = None
        self._machine = RepositoryStateMachine(app_name)
        self._listeners = Listeners()
        self._stop_event = threading.Event()
        self._cycle_lock = threading.RLock()
        self._publish_lock = threading.RLock()
        self._thread: threading.Thread | None = None
        self._metrics = RepositoryMetrics.get_instance()
        self._log = logger.bind(component="repository", app_name=app_name)

    @property
    def app_name(self) -> str:
        return self._config.app_name

    @property
    def endpoint_url(self) -> str:
        """Get the resolved feature endpoint URL."""
        return self._endpoint

    @property
    def poll_interval_ms(self) -> int:
        return self._config.poll_interval_ms

    @property
    def storage(self) -> ToggleStorage:
        return self._storage

    @property
    def state(self) -> RepositoryState:
        return self._machine.state

    @property
    def running(self) -> bool:
        """Check if the repository has started polling and not been stopped."""
        return self._machine.is_polling()

    @property
    def etag(self) -> str | None:
        """Get the ETag of the last applied response."""
        return self._etag

    @etag.setter
    def etag(self, value: str | None) -> None:
        """Prime the ETag, e.g. from a previous process."""
        self._etag = value or None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for ``DataUpdated`` and ``FetchFailed`` events.

        Listeners run on the thread that executed the cycle.

        Args:
            listener: Callable receiving every event.

        Returns:
            A function that unsubscribes the listener.
        """
        return self._listeners.add(listener)

    def on_data(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback for successful updates.

        Args:
            callback: Called without arguments after storage was replaced.

        Returns:
            A function that unsubscribes the callback.
        """

        def listener(event: RepositoryEvent) -> None:
            if isinstance(event, DataUpdated):
                callback()

        return self._listeners.add(listener)

    def on_error(
        self, callback: Callable[[RepositoryError], None]
    ) -> Callable[[], None]:
        """Register a callback for failed cycles.

        Args:
            callback: Called with the error describing the failure.

        Returns:
            A function that unsubscribes the callback.
        """

        def listener(event: RepositoryEvent) -> None:
            if isinstance(event, FetchFailed):
                callback(event.error)

        return self._listeners.add(listener)

    def get_toggle(self, name: str) -> ToggleDefinition | None:
        """Look up a toggle in storage. Never triggers a fetch.

        Args:
            name: Toggle name.

        Returns:
            The stored definition, or None if unknown.
        """
        return self._storage.get(name)

    def start(self) -> None:
        """Start the background worker.

        Calling ``start()`` on a running repository is a no-op.

        Raises:
            RepositoryStateError: If the repository was already stopped.
        """
        if self._machine.is_terminal():
            raise RepositoryStateError(
                RepositoryState.STOPPED, RepositoryState.POLLING_ACTIVE
            )
        if self._thread is not None:
            return

        self._thread = threading.Thread(
            target=self._run,
            name=f"toggle-repository-{self._config.app_name}",
            daemon=True,
        )
        self._thread.start()
        self._log.info(
            "repository_started",
            url=self._endpoint,
            poll_interval_ms=self._config.poll_interval_ms,
        )

    def stop(self, wait: bool = False, timeout: float | None = None) -> None:
        """Cancel polling. Safe to call repeatedly or before ``start()``.

        A request in flight is allowed to finish; its result is discarded.
        A cycle already applying its result finishes first, so once
        ``stop()`` returns no storage change, ETag change or event follows.

        Args:
            wait: Join the worker thread before returning.
            timeout: Maximum seconds to wait when ``wait`` is True.
        """
        self._stop_event.set()
        with self._publish_lock:
            stopped_now = self._machine.try_transition(RepositoryState.STOPPED)
        if not stopped_now:
            return

        thread = self._thread
        if wait and thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._log.info("repository_stopped")

    def poll(self) -> RepositoryEvent | None:
        """Run one fetch cycle on the calling thread.

        Uses the same code path as the background worker and publishes the
        resulting event to subscribers. Nothing is requested while the
        storage is not ready yet.

        Returns:
            The published event, or None for 304, a discarded result, a
            storage that is not ready or a stopped repository.
        """
        if self._stop_event.is_set():
            return None
        if not self._storage.wait_until_ready(0):
            self._log.info("poll_skipped_storage_not_ready")
            return None

        with self._cycle_lock:
            self._metrics.record_cycle()
            outcome = self._fetcher.fetch(
                self._endpoint,
                self._config.instance_id,
                etag=self._etag,
                extra_headers=self._identity_headers,
            )
            # stop() takes this lock after setting the event, so either the
            # result is discarded here or stop() waits until it is published
            with self._publish_lock:
                if self._stop_event.is_set():
                    self._metrics.record_discarded()
                    self._log.info("fetch_result_discarded", outcome=outcome.kind)
                    return None
                event = self._apply(outcome)
                if event is not None:
                    self._listeners.notify(event)
        return event

    def _run(self) -> None:
        while not self._storage.wait_until_ready(READY_CHECK_INTERVAL_SECONDS):
            if self._stop_event.is_set():
                return

        if self._stop_event.is_set():
            return
        if not self._machine.try_transition(RepositoryState.POLLING_ACTIVE):
            return

        interval = self._config.poll_interval_seconds
        next_due = time.monotonic()
        while True:
            self._run_cycle_safely()
            if interval <= 0:
                return

            next_due += interval
            delay = next_due - time.monotonic()
            if delay < 0:
                # Overran the interval: run immediately and re-anchor
                next_due = time.monotonic()
                delay = 0.0
            if self._stop_event.wait(delay):
                return

    def _run_cycle_safely(self) -> None:
        try:
            self.poll()
        except Exception:
            # Storage backends are pluggable; a failing one must not end polling
            self._log.exception("fetch_cycle_crashed")

    def _apply(self, outcome: fetch_models.FetchOutcome) -> RepositoryEvent | None:
        """Turn a fetch outcome into storage changes and an event.

        Args:
            outcome: Result of the conditional request.

        Returns:
            Event to publish, or None for 304.
        """
        if isinstance(outcome, fetch_models.NotModified):
            self._metrics.record_not_modified()
            self._log.debug("toggles_not_modified", etag=self._etag)
            return None

        if isinstance(outcome, fetch_models.HttpError):
            return self._fail(HttpStatusError(outcome.status_code))

        if isinstance(outcome, fetch_models.TransportError):
            return self._fail(
                TransportError(
                    outcome.message,
                    error_class=outcome.error_class,
                    cause=outcome.cause,
                )
            )

        try:
            toggles = parse_features(outcome.body)
        except (PayloadParseError, ToggleValidationError) as e:
            return self._fail(e)

        by_name = index_by_name(toggles)
        self._storage.reset(by_name)

        previous_etag = self._etag
        if outcome.etag:
            self._etag = outcome.etag

        self._metrics.record_update(len(by_name))
        self._log.info(
            "toggles_updated",
            toggles=len(by_name),
            etag=self._etag,
            etag_changed=self._etag != previous_etag,
        )
        return DataUpdated()

    def _fail(self, error: RepositoryError) -> FetchFailed:
        self._metrics.record_error(error.kind)
        self._log.warning(
            "fetch_cycle_failed",
            error_kind=error.kind.value,
            error=error.message,
            details=error.details,
        )
        return FetchFailed(error=error)

    def __enter__(self) -> "Repository":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop(wait=True, timeout=self._fetcher.config.timeout_seconds)
