"""Unit tests for src/baduk/modes/standard.py (played through the strategic family entry point)"""

import pytest

from src.baduk import dispatch
from src.baduk.actions import GameAction
from src.baduk.board import set_stone, stone_at
from src.baduk.point import Point
from src.baduk.session import HiddenState, MissileState
from src.core import config
from src.core.exceptions import (
    GameStateError,
    IllegalMoveError,
    InvalidRequestError,
    NotYourTurnError,
)
from src.core.shared_types import ActionType, GameMode, GameStatus, Player, WinReason


def play(session, user_id: str, x: int, y: int, now: int):
    return dispatch.handle_action(
        session, GameAction(ActionType.PLACE_STONE, user_id, {"x": x, "y": y}), now
    )


def pass_turn(session, user_id: str, now: int) -> None:
    dispatch.handle_action(session, GameAction(ActionType.PASS_TURN, user_id), now)


def open_quietly(session, now: int) -> None:
    """Ten moves without contact: Black along the top edge, White along the bottom edge."""
    for i in range(config.NO_CONTEST_MOVE_THRESHOLD):
        user_id, y = ("p1", 0) if i % 2 == 0 else ("p2", 8)
        play(session, user_id, i // 2, y, now)


# --- PLACING STONES ----
def test_stone_is_placed_and_turn_switches(new_session, now) -> None:
    session = new_session()
    play(session, "p1", 4, 4, now)

    assert stone_at(session.board, Point(4, 4)) == Player.BLACK
    assert session.current_player == Player.WHITE
    assert session.last_move == Point(4, 4)
    assert len(session.move_history) == 1


def test_not_your_turn(new_session, now) -> None:
    session = new_session()
    with pytest.raises(NotYourTurnError):
        play(session, "p2", 4, 4, now)


def test_rejected_move_leaves_session_untouched(new_session, now) -> None:
    session = new_session()
    play(session, "p1", 4, 4, now)
    play(session, "p2", 3, 3, now)
    before = session.to_model()

    with pytest.raises(IllegalMoveError):
        play(session, "p1", 3, 3, now)
    with pytest.raises(IllegalMoveError):
        play(session, "p1", 9, 0, now)
    assert session.to_model() == before


def test_unknown_action_for_mode(new_session, now) -> None:
    session = new_session()
    with pytest.raises(InvalidRequestError, match="not available"):
        dispatch.handle_action(
            session, GameAction(ActionType.OMOK_PLACE_STONE, "p1", {"x": 0, "y": 0}), now
        )


def test_capture_is_tallied(new_session, now) -> None:
    session = new_session()
    set_stone(session.board, Point(4, 4), Player.WHITE)
    for x, y in ((4, 3), (3, 4), (5, 4)):
        set_stone(session.board, Point(x, y), Player.BLACK)
    play(session, "p1", 4, 5, now)

    assert session.captures.black == 1
    assert stone_at(session.board, Point(4, 4)) == Player.NONE


# --- PASSING ----
def test_two_passes_start_scoring(new_session, now) -> None:
    session = new_session()
    open_quietly(session, now)
    pass_turn(session, "p1", now)
    assert session.status == GameStatus.PLAYING
    pass_turn(session, "p2", now)

    assert session.status == GameStatus.SCORING
    assert session.current_player == Player.NONE
    assert session.clock.turn_deadline is None


def test_early_passes_end_without_result(new_session, now) -> None:
    session = new_session()
    play(session, "p1", 4, 4, now)
    pass_turn(session, "p2", now)
    pass_turn(session, "p1", now)

    assert session.status == GameStatus.NO_CONTEST
    assert session.winner == Player.NONE
    assert session.current_player == Player.NONE


@pytest.mark.parametrize("mode", [GameMode.MISSILE, GameMode.HIDDEN])
def test_spent_items_make_a_short_game_count(new_session, now, mode: GameMode) -> None:
    session = new_session(mode=mode, missile_count=2, scan_count=2)
    if mode == GameMode.MISSILE:
        session.sub_state(GameMode.MISSILE, MissileState).missiles_left["p1"] = 1
    else:
        session.sub_state(GameMode.HIDDEN, HiddenState).scans_left["p2"] = 1
    pass_turn(session, "p1", now)
    pass_turn(session, "p2", now)

    assert session.status == GameStatus.SCORING


def test_unspent_items_do_not_count(new_session, now) -> None:
    session = new_session(mode=GameMode.MISSILE, missile_count=2)
    pass_turn(session, "p1", now)
    pass_turn(session, "p2", now)
    assert session.status == GameStatus.NO_CONTEST


def test_a_stone_resets_the_pass_count(new_session, now) -> None:
    session = new_session()
    pass_turn(session, "p1", now)
    play(session, "p2", 4, 4, now)
    pass_turn(session, "p1", now)
    assert session.pass_count == 1
    assert session.status == GameStatus.PLAYING


# --- GOALS & ENDINGS ----
def test_capture_target_ends_the_game(new_session, now) -> None:
    session = new_session(mode=GameMode.CAPTURE, capture_target=1)
    set_stone(session.board, Point(4, 4), Player.WHITE)
    for x, y in ((4, 3), (3, 4), (5, 4)):
        set_stone(session.board, Point(x, y), Player.BLACK)
    play(session, "p1", 4, 5, now)

    assert session.winner == Player.BLACK
    assert session.win_reason == WinReason.CAPTURE_LIMIT


def test_resign(new_session, now) -> None:
    session = new_session()
    dispatch.handle_action(session, GameAction(ActionType.RESIGN, "p1"), now)

    assert session.winner == Player.WHITE
    assert session.win_reason == WinReason.RESIGN
    assert session.move_history[-1].point.is_resign


def test_no_action_after_the_end(new_session, now) -> None:
    session = new_session()
    dispatch.handle_action(session, GameAction(ActionType.RESIGN, "p1"), now)
    with pytest.raises(GameStateError, match="already ended"):
        play(session, "p2", 4, 4, now)


def test_timeout_through_update(new_session, now) -> None:
    session = new_session(time_limit=1)
    dispatch.update(session, now + 59_999)
    assert not session.is_finished
    dispatch.update(session, now + 60_000)

    assert session.winner == Player.WHITE
    assert session.win_reason == WinReason.TIMEOUT


# --- PAUSE ----
def test_pause_and_resume_ai_game(new_session, now) -> None:
    session = new_session(time_limit=1)
    dispatch.handle_action(session, GameAction(ActionType.PAUSE_GAME, "p1"), now + 10_000)
    assert session.status == GameStatus.PAUSED
    # a paused clock never times out
    dispatch.update(session, now + 600_000)
    assert not session.is_finished

    dispatch.handle_action(session, GameAction(ActionType.RESUME_GAME, "p1"), now + 600_000)
    assert session.status == GameStatus.PLAYING
    assert session.clock.turn_deadline == now + 600_000 + 50_000
