"""Unit tests for the repository lifecycle state machine."""

import pytest

from src.features.repository.state_machine import (
    RepositoryState,
    RepositoryStateError,
    RepositoryStateMachine,
)


class TestRepositoryState:
    """Tests for RepositoryState enum."""

    @pytest.mark.unit
    def test_all_states_defined(self) -> None:
        expected_states = {"AWAITING_STORAGE", "POLLING_ACTIVE", "STOPPED"}
        assert {state.name for state in RepositoryState} == expected_states


class TestRepositoryStateMachine:
    """Tests for RepositoryStateMachine."""

    @pytest.mark.unit
    def test_initial_state(self) -> None:
        machine = RepositoryStateMachine("app")
        assert machine.state == RepositoryState.AWAITING_STORAGE
        assert not machine.is_polling()
        assert not machine.is_terminal()

    @pytest.mark.unit
    def test_ready_then_stop(self) -> None:
        machine = RepositoryStateMachine("app")

        machine.transition(RepositoryState.POLLING_ACTIVE)
        assert machine.is_polling()

        machine.transition(RepositoryState.STOPPED)
        assert machine.is_terminal()

    @pytest.mark.unit
    def test_stop_before_ready(self) -> None:
        machine = RepositoryStateMachine("app")

        machine.transition(RepositoryState.STOPPED)

        assert machine.state == RepositoryState.STOPPED

    @pytest.mark.unit
    def test_stopped_is_terminal(self) -> None:
        machine = RepositoryStateMachine("app")
        machine.transition(RepositoryState.STOPPED)

        with pytest.raises(RepositoryStateError) as exc_info:
            machine.transition(RepositoryState.POLLING_ACTIVE)

        assert exc_info.value.from_state == RepositoryState.STOPPED
        assert exc_info.value.to_state == RepositoryState.POLLING_ACTIVE
        assert "STOPPED -> POLLING_ACTIVE" in str(exc_info.value)

    @pytest.mark.unit
    def test_cannot_reenter_awaiting_storage(self) -> None:
        machine = RepositoryStateMachine("app")
        machine.transition(RepositoryState.POLLING_ACTIVE)

        assert not machine.can_transition(RepositoryState.AWAITING_STORAGE)
        with pytest.raises(RepositoryStateError):
            machine.transition(RepositoryState.AWAITING_STORAGE)

    @pytest.mark.unit
    def test_try_transition_does_not_raise(self) -> None:
        machine = RepositoryStateMachine("app")

        assert machine.try_transition(RepositoryState.STOPPED) is True
        assert machine.try_transition(RepositoryState.STOPPED) is False
        assert machine.state == RepositoryState.STOPPED
