"""
Nigiri: colour assignment by guessing odd/even.

nigiri_choosing (2s) -> nigiri_guessing (30s, random guess on timeout) -> nigiri_reveal (5s or both confirm) -> playing
"""

import random

from src.baduk import clock
from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.modes import shared
from src.baduk.session import GameSession, NigiriState
from src.core import config
from src.core.exceptions import GameStateError, InvalidRequestError
from src.core.shared_types import ActionType, GameStatus

ODD = 1
EVEN = 2


def initialize(session: GameSession, now: int) -> None:
    holder_id = random.choice(session.player_ids)
    session.negotiation = NigiriState(
        holder_id=holder_id,
        guesser_id=session.opponent_id(holder_id),
        stones=random.randint(1, config.NIGIRI_MAX_STONES),
    )
    session.set_timer(GameStatus.NIGIRI_CHOOSING, now + config.NIGIRI_CHOOSING_MS)


def guess(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.NIGIRI_GUESSING)
    state: NigiriState = session.negotiation_as(NigiriState)
    if action.user_id != state.guesser_id:
        raise GameStateError("Only the guesser can guess.")
    value = action.integer("guess")
    if value not in (ODD, EVEN):
        raise InvalidRequestError("Guess 1 (odd) or 2 (even).")
    _resolve(session, state, value, now)


def confirm_result(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.NIGIRI_REVEAL)
    state: NigiriState = session.negotiation_as(NigiriState)
    if shared.confirm(state.confirmations, action.user_id):
        clock.transition_to_playing(session, now)


def _resolve(session: GameSession, state: NigiriState, value: int, now: int) -> None:
    state.guess = value
    state.correct = (state.stones % 2 == 0) == (value == EVEN)
    black_id = state.guesser_id if state.correct else state.holder_id
    session.assign_colors(black_id, session.opponent_id(black_id))
    state.confirmations = shared.new_confirmations(session)
    session.set_timer(GameStatus.NIGIRI_REVEAL, now + config.NIGIRI_REVEAL_MS)


# --- timers
def _on_choosing_expired(session: GameSession, now: int) -> None:
    session.set_timer(GameStatus.NIGIRI_GUESSING, now + config.NIGIRI_GUESS_MS)


def _on_guessing_expired(session: GameSession, now: int) -> None:
    state: NigiriState = session.negotiation_as(NigiriState)
    _resolve(session, state, random.choice((ODD, EVEN)), now)


def _on_reveal_expired(session: GameSession, now: int) -> None:
    clock.transition_to_playing(session, now)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.NIGIRI_GUESS: guess,
    ActionType.CONFIRM_NIGIRI_RESULT: confirm_result,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    GameStatus.NIGIRI_CHOOSING: _on_choosing_expired,
    GameStatus.NIGIRI_GUESSING: _on_guessing_expired,
    GameStatus.NIGIRI_REVEAL: _on_reveal_expired,
}
