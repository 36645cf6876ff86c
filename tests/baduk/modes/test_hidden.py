"""Unit tests for src/baduk/modes/hidden.py"""

import pytest

from src.baduk import dispatch
from src.baduk.actions import GameAction
from src.baduk.modes import hidden
from src.baduk.point import PASS
from src.baduk.session import HiddenState, MoveRecord
from src.core import config
from src.core.exceptions import GameStateError
from src.core.shared_types import ActionType, GameMode, GameStatus, Player


def act(session, action_type: ActionType, user_id: str, now: int, **payload):
    return dispatch.handle_action(session, GameAction(action_type, user_id, payload), now)


def with_hidden_stone(new_session, now):
    """p1 (Black) has secretly played 4-4; White to move."""
    session = new_session(mode=GameMode.HIDDEN, hidden_stone_count=1, scan_count=1)
    act(session, ActionType.START_HIDDEN_PLACEMENT, "p1", now)
    act(session, ActionType.PLACE_STONE, "p1", now, x=4, y=4)
    return session


def state(session) -> HiddenState:
    return session.sub_state(GameMode.HIDDEN, HiddenState)


def test_hidden_placement_window(new_session, now) -> None:
    session = new_session(mode=GameMode.HIDDEN, hidden_stone_count=1, time_limit=1)
    act(session, ActionType.START_HIDDEN_PLACEMENT, "p1", now)
    assert session.status == GameStatus.HIDDEN_PLACING
    assert session.clock.turn_deadline is None


def test_hidden_stone_is_played(new_session, now) -> None:
    session = with_hidden_stone(new_session, now)

    assert session.move_history[0].hidden
    assert session.status == GameStatus.PLAYING
    assert session.current_player == Player.WHITE
    assert state(session).stones_used["p1"] == 1
    assert hidden.hidden_stones_left(session, "p1") == 0


def test_opponent_cannot_see_it(new_session, now) -> None:
    session = with_hidden_stone(new_session, now)
    theirs = hidden.masked_snapshot(session, "p2")
    mine = hidden.masked_snapshot(session, "p1")

    assert theirs["board"][4][4] == 0
    assert theirs["move_history"][0]["x"] is None
    assert theirs["last_move"] is None
    assert mine["board"][4][4] == 1
    assert mine["move_history"][0]["x"] == 4
    # spectators see what the opponent sees
    assert hidden.masked_snapshot(session, None)["board"][4][4] == 0


def test_collision_reveals_and_keeps_the_turn(new_session, now) -> None:
    session = with_hidden_stone(new_session, now)
    data = act(session, ActionType.PLACE_STONE, "p2", now, x=4, y=4)

    assert data == {"revealed": {"x": 4, "y": 4}}
    assert state(session).revealed == [0]
    assert session.current_player == Player.WHITE
    assert len(session.move_history) == 1
    assert hidden.masked_snapshot(session, "p2")["board"][4][4] == 1


def test_scan_reveals_privately(new_session, now) -> None:
    session = with_hidden_stone(new_session, now)
    act(session, ActionType.START_SCANNING, "p2", now)
    assert session.status == GameStatus.SCANNING
    data = act(session, ActionType.SCAN_BOARD, "p2", now, x=4, y=4)

    assert data == {"success": True}
    assert state(session).revealed_to["p2"] == [0]
    assert state(session).scans_left["p2"] == 0
    assert session.status == GameStatus.SCANNING_ANIMATING
    assert hidden.masked_snapshot(session, "p2")["board"][4][4] == 1
    assert hidden.concealed_moves(session, None) == [0]

    dispatch.update(session, now + config.SCAN_ANIMATION_MS)
    assert session.status == GameStatus.PLAYING
    assert session.current_player == Player.WHITE


def test_missed_scan(new_session, now) -> None:
    session = with_hidden_stone(new_session, now)
    act(session, ActionType.START_SCANNING, "p2", now)
    assert act(session, ActionType.SCAN_BOARD, "p2", now, x=0, y=0) == {"success": False}
    assert state(session).revealed_to["p2"] == []


def test_no_hidden_stones_left(new_session, now) -> None:
    session = with_hidden_stone(new_session, now)
    act(session, ActionType.PLACE_STONE, "p2", now, x=0, y=0)
    with pytest.raises(GameStateError):
        act(session, ActionType.START_HIDDEN_PLACEMENT, "p1", now)


def test_unused_item_window_times_out(new_session, now) -> None:
    session = new_session(mode=GameMode.HIDDEN, hidden_stone_count=1)
    act(session, ActionType.START_HIDDEN_PLACEMENT, "p1", now)
    dispatch.update(session, now + config.ITEM_USE_TIMEOUT_MS)

    assert session.status == GameStatus.PLAYING
    assert session.current_player == Player.BLACK
    assert hidden.hidden_stones_left(session, "p1") == 1


def test_everything_is_revealed_before_scoring(new_session, now) -> None:
    session = with_hidden_stone(new_session, now)
    # long enough a game to be scored
    session.move_history.extend(
        MoveRecord(Player.WHITE, PASS.x, PASS.y) for _ in range(config.NO_CONTEST_MOVE_THRESHOLD)
    )
    act(session, ActionType.PASS_TURN, "p2", now)
    act(session, ActionType.PASS_TURN, "p1", now)
    assert session.status == GameStatus.HIDDEN_FINAL_REVEAL
    assert state(session).revealed == [0]

    dispatch.update(session, now + config.HIDDEN_FINAL_REVEAL_MS)
    assert session.status == GameStatus.SCORING
