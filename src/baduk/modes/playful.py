"""
Playful family (omok, ttamok, dice go, thief & police, curling, alkkagi): initializer and the single entry point for actions
and timers.

Games against the AI start straight away with the challenger's colour. Two humans first go through the turn
preference negotiation; it leaves the session `pending` with colours assigned, and the game is started here.
"""

from typing import Callable, Optional

from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.modes import alkkagi, curling, dice, omok, shared, thief, turn_preference
from src.baduk.session import GameSession
from src.core.shared_types import ActionType, GameCategory, GameMode, GameStatus

Starter = Callable[[GameSession, int], None]

_NEGOTIATION_ACTIONS: dict[ActionType, ActionHandler] = {
    **shared.ACTIONS,
    **turn_preference.ACTIONS,
}

ACTIONS: dict[GameMode, dict[ActionType, ActionHandler]] = {
    GameMode.OMOK: {**_NEGOTIATION_ACTIONS, **omok.ACTIONS},
    GameMode.TTAMOK: {**_NEGOTIATION_ACTIONS, **omok.ACTIONS},
    GameMode.DICE: {**_NEGOTIATION_ACTIONS, **dice.ACTIONS},
    GameMode.THIEF: {**_NEGOTIATION_ACTIONS, **thief.ACTIONS},
    GameMode.CURLING: {**_NEGOTIATION_ACTIONS, **curling.ACTIONS},
    GameMode.ALKKAGI: {**_NEGOTIATION_ACTIONS, **alkkagi.ACTIONS},
}

EXPIRY: dict[GameMode, dict[GameStatus, ExpiryHandler]] = {
    GameMode.OMOK: dict(turn_preference.EXPIRY),
    GameMode.TTAMOK: dict(turn_preference.EXPIRY),
    GameMode.DICE: {**turn_preference.EXPIRY, **dice.EXPIRY},
    GameMode.THIEF: {**turn_preference.EXPIRY, **thief.EXPIRY},
    GameMode.CURLING: {**turn_preference.EXPIRY, **curling.EXPIRY},
    GameMode.ALKKAGI: {**turn_preference.EXPIRY, **alkkagi.EXPIRY},
}

_INITIALIZERS: dict[GameMode, Callable[[GameSession], None]] = {
    GameMode.OMOK: omok.initialize,
    GameMode.TTAMOK: omok.initialize,
    GameMode.DICE: dice.initialize,
    GameMode.THIEF: thief.initialize,
    GameMode.CURLING: curling.initialize,
    GameMode.ALKKAGI: alkkagi.initialize,
}

STARTERS: dict[GameMode, Starter] = {
    GameMode.OMOK: omok.start,
    GameMode.TTAMOK: omok.start,
    GameMode.DICE: dice.start,
    GameMode.THIEF: thief.start,
    GameMode.CURLING: curling.start,
    GameMode.ALKKAGI: alkkagi.start,
}


def initialize(session: GameSession, now: int) -> None:
    _INITIALIZERS[session.mode](session)
    if session.category == GameCategory.NORMAL:
        turn_preference.initialize(session, now)
        return
    shared.assign_direct_colors(session)
    STARTERS[session.mode](session, now)


def _start_if_decided(session: GameSession, now: int) -> None:
    if turn_preference.is_decided(session):
        STARTERS[session.mode](session, now)


def handle_action(
    session: GameSession, action: GameAction, now: int
) -> Optional[dict]:
    result = shared.dispatch(ACTIONS[session.mode], session, action, now)
    _start_if_decided(session, now)
    return result


def update(session: GameSession, now: int) -> None:
    shared.run_due_timer(EXPIRY[session.mode], session, now)
    _start_if_decided(session, now)
    if not session.is_finished and session.mode in (GameMode.OMOK, GameMode.TTAMOK):
        omok.update(session, now)
