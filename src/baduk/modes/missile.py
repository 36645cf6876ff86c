"""
Missile item: slide one of your stones in a straight line.

playing -> missile_selecting (clock paused, 30s window) -> missile_animating -> playing, same player to move.
A missile does not end the turn, but only one may be fired per turn.
"""

from src.baduk import clock
from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.board import Grid, copy_grid, process_move, set_stone, stone_at
from src.baduk.modes import hidden, standard
from src.baduk.point import Point
from src.baduk.session import BaseState, GameSession, MissileFlight, MissileState
from src.core import config
from src.core.exceptions import GameStateError, IllegalMoveError
from src.core.shared_types import ActionType, Direction, GameMode, GameStatus, Player


def initialize(session: GameSession) -> None:
    session.mode_states[GameMode.MISSILE] = MissileState(
        missiles_left={
            user_id: session.settings.missile_count for user_id in session.player_ids
        }
    )


def _state(session: GameSession) -> MissileState:
    return session.sub_state(GameMode.MISSILE, MissileState)


def slide(board: Grid, origin: Point, direction: Direction) -> Point:
    """Where a stone at `origin` stops: just before the edge or the first occupied point."""
    dx, dy = direction.delta
    size = len(board)
    current = origin
    while True:
        following = current.shifted(dx, dy)
        if not following.is_on_board(size) or stone_at(board, following) != Player.NONE:
            return current
        current = following


def start_selection(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.PLAYING)
    session.assert_your_turn(action.user_id)
    state = _state(session)
    if state.used_this_turn:
        raise GameStateError("You already fired a missile this turn.")
    if state.missiles_left.get(action.user_id, 0) <= 0:
        raise GameStateError("No missiles left.")
    clock.pause_turn_clock(session, now)
    session.set_timer(GameStatus.MISSILE_SELECTING, now + config.ITEM_USE_TIMEOUT_MS)


def cancel_selection(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.MISSILE_SELECTING)
    session.assert_your_turn(action.user_id)
    _back_to_playing(session, now)


def launch(session: GameSession, action: GameAction, now: int) -> dict:
    session.assert_status(GameStatus.MISSILE_SELECTING)
    color = session.assert_your_turn(action.user_id)
    origin = action.point()
    direction = action.direction()
    size = session.settings.board_size
    if not origin.is_on_board(size) or stone_at(session.board, origin) != color:
        raise IllegalMoveError("You can only launch your own stone.")

    landing = slide(session.board, origin, direction)
    if landing == origin:
        raise IllegalMoveError("Cannot move stone.")

    # Re-play the stone at its landing point so captures (and suicide) follow the normal rules
    lifted = copy_grid(session.board)
    set_stone(lifted, origin, Player.NONE)
    result = process_move(lifted, landing, color, None, len(session.move_history))

    was_hidden = hidden.was_hidden(session, origin)
    _move_records(session, origin, landing)
    session.board = result.board
    session.ko_info = None
    session.last_move = landing

    state = _state(session)
    state.missiles_left[action.user_id] -= 1
    state.used_this_turn = True
    state.flight = MissileFlight(
        origin=origin, landing=landing, player=color, was_hidden=was_hidden
    )

    standard.tally_captures(session, result.captured, color)
    if standard.check_goals(session, color):
        return {"landing": {"x": landing.x, "y": landing.y}}

    duration = (
        config.MISSILE_HIDDEN_ANIMATION_MS if was_hidden else config.MISSILE_ANIMATION_MS
    )
    session.set_timer(GameStatus.MISSILE_ANIMATING, now + duration)
    return {"landing": {"x": landing.x, "y": landing.y}}


def _move_records(session: GameSession, origin: Point, landing: Point) -> None:
    """The stone keeps its identity: its history entry and base-stone mark travel with it."""
    index = session.move_index_at(origin)
    if index is not None:
        session.move_history[index].x = landing.x
        session.move_history[index].y = landing.y

    base = session.mode_states.get(GameMode.BASE)
    if isinstance(base, BaseState):
        for stone in base.base_stones:
            if stone.point == origin:
                stone.point = landing


def _back_to_playing(session: GameSession, now: int) -> None:
    session.status = GameStatus.PLAYING
    session.timer = None
    clock.resume_turn_clock(session, now)


# --- timers
def _on_selecting_expired(session: GameSession, now: int) -> None:
    _back_to_playing(session, now)


def _on_animating_expired(session: GameSession, now: int) -> None:
    _state(session).flight = None
    _back_to_playing(session, now)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.START_MISSILE_SELECTION: start_selection,
    ActionType.LAUNCH_MISSILE: launch,
    ActionType.CANCEL_MISSILE_SELECTION: cancel_selection,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    GameStatus.MISSILE_SELECTING: _on_selecting_expired,
    GameStatus.MISSILE_ANIMATING: _on_animating_expired,
}
