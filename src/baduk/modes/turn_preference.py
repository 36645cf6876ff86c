"""
Turn preference with a rock-paper-scissors tiebreak (playful modes between two humans).

turn_preference_selection (30s): both pick first/second. Different picks are simply granted.
Same pick: rps (30s) -> rps_reveal (4s); a draw repeats, after the last round a random winner gets their pick.

Once decided the session is left in `pending` with colours assigned; the playful dispatcher starts the game.
"""

import random

from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.session import GameSession, TurnPreferenceState
from src.core import config
from src.core.exceptions import GameStateError
from src.core.shared_types import (
    ActionType,
    GameStatus,
    RPSChoice,
    TurnChoice,
)


def initialize(session: GameSession, now: int) -> None:
    session.negotiation = TurnPreferenceState(
        choices={user_id: None for user_id in session.player_ids}
    )
    session.set_timer(
        GameStatus.TURN_PREFERENCE_SELECTION, now + config.TURN_CHOICE_MS
    )


def is_decided(session: GameSession) -> bool:
    return session.status == GameStatus.PENDING and session.black_player_id is not None


def choose(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.TURN_PREFERENCE_SELECTION)
    state: TurnPreferenceState = session.negotiation_as(TurnPreferenceState)
    if state.choices.get(action.user_id) is not None:
        raise GameStateError("You already chose.")
    state.choices[action.user_id] = action.turn_choice()
    if all(choice is not None for choice in state.choices.values()):
        _resolve_choices(session, state, now)


def submit_rps(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.RPS)
    state: TurnPreferenceState = session.negotiation_as(TurnPreferenceState)
    if state.rps_choices.get(action.user_id) is not None:
        raise GameStateError("You already chose.")
    state.rps_choices[action.user_id] = action.rps_choice()
    if all(choice is not None for choice in state.rps_choices.values()):
        session.set_timer(GameStatus.RPS_REVEAL, now + config.RPS_REVEAL_MS)


def _resolve_choices(
    session: GameSession, state: TurnPreferenceState, now: int
) -> None:
    first, second = session.player_ids
    if state.choices[first] != state.choices[second]:
        _grant(session, state, first)
        return
    _start_rps(session, state, now)


def _start_rps(session: GameSession, state: TurnPreferenceState, now: int) -> None:
    state.rps_choices = {user_id: None for user_id in session.player_ids}
    session.set_timer(GameStatus.RPS, now + config.RPS_CHOICE_MS)


def _grant(session: GameSession, state: TurnPreferenceState, user_id: str) -> None:
    """`user_id` gets what they asked for. Black moves first."""
    state.winner_id = user_id
    other_id = session.opponent_id(user_id)
    if state.choices[user_id] == TurnChoice.SECOND:
        session.assign_colors(other_id, user_id)
    else:
        session.assign_colors(user_id, other_id)
    session.status = GameStatus.PENDING
    session.timer = None


# --- timers
def _on_choice_expired(session: GameSession, now: int) -> None:
    state: TurnPreferenceState = session.negotiation_as(TurnPreferenceState)
    for user_id, choice in state.choices.items():
        if choice is None:
            state.choices[user_id] = random.choice(list(TurnChoice))
    _resolve_choices(session, state, now)


def _on_rps_expired(session: GameSession, now: int) -> None:
    state: TurnPreferenceState = session.negotiation_as(TurnPreferenceState)
    for user_id, choice in state.rps_choices.items():
        if choice is None:
            state.rps_choices[user_id] = random.choice(list(RPSChoice))
    session.set_timer(GameStatus.RPS_REVEAL, now + config.RPS_REVEAL_MS)


def _on_rps_reveal_expired(session: GameSession, now: int) -> None:
    state: TurnPreferenceState = session.negotiation_as(TurnPreferenceState)
    first, second = session.player_ids
    first_choice, second_choice = state.rps_choices[first], state.rps_choices[second]
    assert first_choice is not None and second_choice is not None

    if first_choice == second_choice:
        if state.rps_round < config.RPS_MAX_ROUNDS:
            state.rps_round += 1
            _start_rps(session, state, now)
            return
        winner = random.choice(session.player_ids)
    else:
        winner = first if first_choice.beats(second_choice) else second
    _grant(session, state, winner)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.CHOOSE_TURN_PREFERENCE: choose,
    ActionType.SUBMIT_RPS_CHOICE: submit_rps,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    GameStatus.TURN_PREFERENCE_SELECTION: _on_choice_expired,
    GameStatus.RPS: _on_rps_expired,
    GameStatus.RPS_REVEAL: _on_rps_reveal_expired,
}
