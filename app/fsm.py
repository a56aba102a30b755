from __future__ import annotations

from statemachine import State, StateMachine

from app.api.models import GamePhase, SessionState


class GameFSM(StateMachine):
    """FSM wrapper around SessionState.phase.

    The FSM only guards which phase changes are legal; tile and guess
    mutations are applied by the engine around the transitions.
    """

    start = State(GamePhase.start.value, value=GamePhase.start.value, initial=True)
    matched = State(GamePhase.matched.value, value=GamePhase.matched.value)
    bombed = State(GamePhase.bombed.value, value=GamePhase.bombed.value)
    over = State(GamePhase.over.value, value=GamePhase.over.value)
    reloading = State(GamePhase.reloading.value, value=GamePhase.reloading.value)

    reload = (
        start.to(reloading)
        | matched.to(reloading)
        | bombed.to(reloading)
        | over.to(reloading)
        | reloading.to.itself()
    )
    restart = reloading.to(start)
    pair_matched = start.to(matched) | matched.to.itself() | bombed.to(matched)
    bomb_revealed = start.to(bombed) | matched.to(bombed)
    finish = matched.to(over) | bombed.to(over)

    def __init__(self, state: SessionState):
        self.session = state
        super().__init__(start_value=state.phase.value)

    def sync_phase_to_model(self) -> None:
        self.session.phase = GamePhase(str(self.current_state.value))
