"""Unit tests for src/baduk/modes/missile.py"""

import pytest

from src.baduk import dispatch
from src.baduk.actions import GameAction
from src.baduk.board import empty_grid, set_stone, stone_at
from src.baduk.modes.missile import slide
from src.baduk.point import Point
from src.baduk.session import MissileState, MoveRecord
from src.core import config
from src.core.exceptions import GameStateError, IllegalMoveError
from src.core.shared_types import ActionType, Direction, GameMode, GameStatus, Player


def missile_session(new_session, **settings):
    settings.setdefault("missile_count", 2)
    session = new_session(mode=GameMode.MISSILE, **settings)
    # Black stone free to fly right along row 2, landing next to a White stone in atari
    set_stone(session.board, Point(2, 2), Player.BLACK)
    set_stone(session.board, Point(7, 1), Player.BLACK)
    set_stone(session.board, Point(8, 0), Player.BLACK)
    set_stone(session.board, Point(8, 1), Player.WHITE)
    return session


def start(session, now: int) -> None:
    dispatch.handle_action(session, GameAction(ActionType.START_MISSILE_SELECTION, "p1"), now)


def launch(session, x: int, y: int, direction: str, now: int):
    return dispatch.handle_action(
        session,
        GameAction(ActionType.LAUNCH_MISSILE, "p1", {"x": x, "y": y, "direction": direction}),
        now,
    )


def test_slide_stops_before_edge_or_stone() -> None:
    board = empty_grid(9)
    set_stone(board, Point(6, 4), Player.WHITE)
    assert slide(board, Point(2, 4), Direction.RIGHT) == Point(5, 4)
    assert slide(board, Point(2, 4), Direction.UP) == Point(2, 0)
    assert slide(board, Point(2, 0), Direction.UP) == Point(2, 0)


def test_selection_pauses_the_clock(new_session, now) -> None:
    session = missile_session(new_session, time_limit=1)
    start(session, now + 5_000)

    assert session.status == GameStatus.MISSILE_SELECTING
    assert session.clock.turn_deadline is None
    assert session.clock.paused_time_left == 55.0


def test_missile_flies_and_captures(new_session, now) -> None:
    session = missile_session(new_session)
    start(session, now)
    data = launch(session, 2, 2, "right", now)

    assert data == {"landing": {"x": 8, "y": 2}}
    assert stone_at(session.board, Point(2, 2)) == Player.NONE
    assert stone_at(session.board, Point(8, 2)) == Player.BLACK
    assert stone_at(session.board, Point(8, 1)) == Player.NONE
    assert session.captures.black == 1
    assert session.status == GameStatus.MISSILE_ANIMATING
    # the missile does not end the turn
    assert session.current_player == Player.BLACK
    assert session.sub_state(GameMode.MISSILE, MissileState).missiles_left["p1"] == 1


def test_after_the_animation_the_same_player_moves(new_session, now) -> None:
    session = missile_session(new_session)
    start(session, now)
    launch(session, 2, 2, "right", now)
    dispatch.update(session, now + config.MISSILE_ANIMATION_MS)

    assert session.status == GameStatus.PLAYING
    assert session.current_player == Player.BLACK
    assert session.sub_state(GameMode.MISSILE, MissileState).flight is None


def test_one_missile_per_turn(new_session, now) -> None:
    session = missile_session(new_session)
    start(session, now)
    launch(session, 2, 2, "right", now)
    dispatch.update(session, now + config.MISSILE_ANIMATION_MS)
    with pytest.raises(GameStateError):
        start(session, now + config.MISSILE_ANIMATION_MS)


def test_history_entry_travels_with_the_stone(new_session, now) -> None:
    session = missile_session(new_session)
    session.move_history.append(MoveRecord(Player.BLACK, 2, 2))
    start(session, now)
    launch(session, 2, 2, "right", now)
    assert session.move_history[0].point == Point(8, 2)


def test_only_own_stones_fly(new_session, now) -> None:
    session = missile_session(new_session)
    start(session, now)
    with pytest.raises(IllegalMoveError):
        launch(session, 8, 1, "down", now)
    with pytest.raises(IllegalMoveError, match="Cannot move"):
        launch(session, 8, 0, "right", now)
    assert session.status == GameStatus.MISSILE_SELECTING


def test_no_missiles_left(new_session, now) -> None:
    session = missile_session(new_session, missile_count=0)
    with pytest.raises(GameStateError):
        start(session, now)


def test_cancel_and_selection_timeout(new_session, now) -> None:
    session = missile_session(new_session)
    start(session, now)
    dispatch.handle_action(session, GameAction(ActionType.CANCEL_MISSILE_SELECTION, "p1"), now)
    assert session.status == GameStatus.PLAYING

    start(session, now)
    dispatch.update(session, now + config.ITEM_USE_TIMEOUT_MS)
    assert session.status == GameStatus.PLAYING
    assert session.current_player == Player.BLACK
