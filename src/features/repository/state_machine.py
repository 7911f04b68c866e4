"""Repository lifecycle state machine implementation."""

import threading
from enum import Enum, auto
from typing import ClassVar

import structlog


logger = structlog.get_logger()


class RepositoryState(Enum):
    """Repository lifecycle states.

    State transitions:
        AWAITING_STORAGE -> POLLING_ACTIVE: Storage signalled readiness
        AWAITING_STORAGE -> STOPPED: Stopped before storage became ready
        POLLING_ACTIVE -> STOPPED: Explicit stop
    """

    AWAITING_STORAGE = auto()
    POLLING_ACTIVE = auto()
    STOPPED = auto()


class RepositoryStateError(Exception):
    """Raised when an invalid repository state transition is attempted."""

    def __init__(self, from_state: RepositoryState, to_state: RepositoryState) -> None:
        """Initialize the error.

        Args:
            from_state: The current state.
            to_state: The attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid repository state transition: {from_state.name} -> {to_state.name}"
        )


class RepositoryStateMachine:
    """State machine for the repository lifecycle.

    Fetch errors never move the machine; only readiness and an explicit
    stop do. Transitions are serialized by a lock because the worker thread
    and the caller of ``stop()`` may race.
    """

    VALID_TRANSITIONS: ClassVar[dict[RepositoryState, set[RepositoryState]]] = {
        RepositoryState.AWAITING_STORAGE: {
            RepositoryState.POLLING_ACTIVE,
            RepositoryState.STOPPED,
        },
        RepositoryState.POLLING_ACTIVE: {
            RepositoryState.STOPPED,
        },
        RepositoryState.STOPPED: set(),  # Terminal state
    }

    def __init__(self, app_name: str) -> None:
        """Initialize the state machine in AWAITING_STORAGE state.

        Args:
            app_name: Application name for logging.
        """
        self._state = RepositoryState.AWAITING_STORAGE
        self._lock = threading.Lock()
        self._log = logger.bind(app_name=app_name, component="repository")

    @property
    def state(self) -> RepositoryState:
        """Get the current state."""
        return self._state

    def can_transition(self, to_state: RepositoryState) -> bool:
        """Check if a transition to the given state is valid.

        Args:
            to_state: The target state.

        Returns:
            True if the transition is valid, False otherwise.
        """
        return to_state in self.VALID_TRANSITIONS.get(self._state, set())

    def transition(self, to_state: RepositoryState) -> None:
        """Transition to a new state.

        Args:
            to_state: The target state.

        Raises:
            RepositoryStateError: If the transition is invalid.
        """
        with self._lock:
            if not self.can_transition(to_state):
                self._log.error(
                    "invariant_violation",
                    error_type="illegal_state_transition",
                    from_state=self._state.name,
                    to_state=to_state.name,
                )
                raise RepositoryStateError(self._state, to_state)

            old_state = self._state
            self._state = to_state
        self._log.info(
            "repository_state_transition",
            from_state=old_state.name,
            to_state=to_state.name,
        )

    def try_transition(self, to_state: RepositoryState) -> bool:
        """Transition if valid, without raising.

        Args:
            to_state: The target state.

        Returns:
            True if the transition happened.
        """
        with self._lock:
            if not self.can_transition(to_state):
                return False
            old_state = self._state
            self._state = to_state
        self._log.info(
            "repository_state_transition",
            from_state=old_state.name,
            to_state=to_state.name,
        )
        return True

    def is_terminal(self) -> bool:
        """Check if the repository has been stopped."""
        return self._state == RepositoryState.STOPPED

    def is_polling(self) -> bool:
        """Check if the repository is actively polling."""
        return self._state == RepositoryState.POLLING_ACTIVE
