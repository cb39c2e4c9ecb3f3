from __future__ import annotations

from enum import StrEnum

from statemachine import State, StateMachine


class SessionPhase(StrEnum):
    disconnected = "disconnected"
    bootstrapping = "bootstrapping"
    ready = "ready"


class SessionLifecycle(StateMachine):
    """Guards bootstrap so that at most one attempt, and one live session, exists.

    - disconnected -> bootstrapping -> ready
    - a failed attempt returns to disconnected
    - a ready session that is dropped returns to disconnected
    """

    disconnected = State(SessionPhase.disconnected.value, value=SessionPhase.disconnected.value, initial=True)
    bootstrapping = State(SessionPhase.bootstrapping.value, value=SessionPhase.bootstrapping.value)
    ready = State(SessionPhase.ready.value, value=SessionPhase.ready.value)

    begin = disconnected.to(bootstrapping)
    established = bootstrapping.to(ready)
    failed = bootstrapping.to(disconnected)
    dropped = ready.to(disconnected)

    @property
    def phase(self) -> SessionPhase:
        return SessionPhase(str(self.current_state.value))
