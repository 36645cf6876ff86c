"""
Omok (five in a row) and Ttamok (five in a row plus flank captures).

turn_preference (PvP) -> playing -> ended. Runs on the regular game clock, but a deadline passing is an
immediate loss: there are no byoyomi periods in these modes.
"""

import random

from src.baduk import clock
from src.baduk.actions import ActionHandler, GameAction
from src.baduk.board import count_stones, copy_grid, set_stone, stone_at
from src.baduk.omok_logic import check_win, is_double_three, remove_flanked_pairs
from src.baduk.session import GameSession, MoveRecord, OmokState
from src.core import config
from src.core.exceptions import IllegalMoveError
from src.core.shared_types import ActionType, GameMode, GameStatus, Player, WinReason


def initialize(session: GameSession) -> None:
    session.mode_states[session.mode] = OmokState()


def start(session: GameSession, now: int) -> None:
    clock.transition_to_playing(session, now)


def capture_target(session: GameSession) -> int:
    return session.settings.capture_target or config.DEFAULT_TTAMOK_CAPTURE_TARGET


def place_stone(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.PLAYING)
    color = session.assert_your_turn(action.user_id)
    point = action.point()
    settings = session.settings
    if not point.is_on_board(settings.board_size):
        raise IllegalMoveError("Point is off the board.")
    if stone_at(session.board, point) != Player.NONE:
        raise IllegalMoveError("Position occupied.")
    if (
        settings.has_33_forbidden
        and color == Player.BLACK
        and is_double_three(session.board, point, color)
    ):
        raise IllegalMoveError("3-3 is forbidden for Black.")

    board = copy_grid(session.board)
    set_stone(board, point, color)
    session.board = board
    session.last_move = point
    session.move_history.append(MoveRecord(color, point.x, point.y))

    if session.mode == GameMode.TTAMOK:
        captured = remove_flanked_pairs(board, point, color)
        session.captures[color] += len(captured)
        if session.captures[color] >= capture_target(session):
            session.finish(color, WinReason.CAPTURE_LIMIT)
            return

    line = check_win(board, point, settings.has_overline_forbidden)
    if line is not None:
        session.sub_state(session.mode, OmokState).winning_line = line
        session.finish(color, WinReason.OMOK_WIN)
        return

    if count_stones(board, Player.NONE) == 0:
        _finish_full_board(session)
        return

    clock.switch_turn(session, now)


def _finish_full_board(session: GameSession) -> None:
    black, white = session.captures.black, session.captures.white
    if session.mode == GameMode.TTAMOK and black != white:
        winner = Player.BLACK if black > white else Player.WHITE
    else:
        winner = random.choice((Player.BLACK, Player.WHITE))
    session.finish(winner, WinReason.SCORE)


def update(session: GameSession, now: int) -> None:
    if session.status != GameStatus.PLAYING or not clock.turn_deadline_passed(
        session, now
    ):
        return
    loser = session.current_player
    session.last_timeout_player_id = session.player_id(loser)
    session.finish(loser.opponent, WinReason.TIMEOUT)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.OMOK_PLACE_STONE: place_stone,
}
