from __future__ import annotations

from statemachine import State, StateMachine

from escape_room.api.models import GameState


IN_PROGRESS = "in_progress"
ESCAPED = "escaped"


def phase_of(game: GameState) -> str:
    return ESCAPED if game.is_escaped else IN_PROGRESS


class EscapeFSM(StateMachine):
    """FSM wrapper around the terminal flag of a GameState.

    in_progress -> escaped, and nothing leads back. The engine only flips
    `is_escaped` through `escape()` followed by `sync_phase_to_model()`.
    """

    in_progress = State(IN_PROGRESS, value=IN_PROGRESS, initial=True)
    escaped = State(ESCAPED, value=ESCAPED, final=True)

    escape = in_progress.to(escaped)

    def __init__(self, game: GameState):
        self.game = game
        super().__init__(start_value=phase_of(game))

    def sync_phase_to_model(self) -> None:
        self.game.is_escaped = str(self.current_state.value) == ESCAPED
