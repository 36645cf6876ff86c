"""
Go family (standard, capture, speed, base, hidden, missile, mix): initializer and the single entry point for
actions and timers. Mode modules only register handlers; which of them apply is decided by the mode sub-states
that exist on the session.
"""

from typing import Optional

from src.baduk import clock
from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.modes import (
    base,
    capture,
    hidden,
    missile,
    nigiri,
    shared,
    single_player,
    standard,
)
from src.baduk.session import GameSession
from src.core.shared_types import ActionType, GameCategory, GameMode, GameStatus

ACTIONS: dict[ActionType, ActionHandler] = {
    **shared.ACTIONS,
    **standard.ACTIONS,
    **nigiri.ACTIONS,
    **capture.ACTIONS,
    **base.ACTIONS,
    **hidden.ACTIONS,
    **missile.ACTIONS,
    **single_player.ACTIONS,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    **nigiri.EXPIRY,
    **capture.EXPIRY,
    **base.EXPIRY,
    **hidden.EXPIRY,
    **missile.EXPIRY,
}


def initialize(session: GameSession, now: int) -> None:
    """Create the mode sub-states, then open the phase that assigns colours."""
    settings = session.settings
    if session.has_mode(GameMode.HIDDEN):
        hidden.initialize(session)
    if session.has_mode(GameMode.MISSILE):
        missile.initialize(session)

    has_capture_goal = session.mode == GameMode.CAPTURE or (
        session.is_stage_game and (settings.target_black or settings.target_white)
    )
    if has_capture_goal:
        # opens the colour bidding in human games
        capture.initialize(session, now)

    if session.mode == GameMode.BASE:
        base.initialize(session, now)
    elif session.is_stage_game:
        shared.assign_direct_colors(session)
        single_player.initialize(session, now)
    elif session.category != GameCategory.NORMAL:
        shared.assign_direct_colors(session)
        clock.transition_to_playing(session, now)
    elif session.mode != GameMode.CAPTURE:
        nigiri.initialize(session, now)


def handle_action(
    session: GameSession, action: GameAction, now: int
) -> Optional[dict]:
    return shared.dispatch(ACTIONS, session, action, now)


def update(session: GameSession, now: int) -> None:
    shared.run_due_timer(EXPIRY, session, now)
    if not session.is_finished:
        standard.update(session, now)
