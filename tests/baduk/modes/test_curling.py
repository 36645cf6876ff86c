"""Unit tests for src/baduk/modes/curling.py"""

import pytest

from src.baduk import dispatch
from src.baduk.actions import GameAction
from src.baduk.modes import curling
from src.baduk.session import CurlingState, FlickStone
from src.core import config
from src.core.exceptions import GameStateError, IllegalMoveError
from src.core.shared_types import ActionType, GameMode, GameStatus, Player, WinReason

CENTRE = config.CURLING_SHEET_PX / 2


def curling_session(new_session, **settings):
    settings.setdefault("curling_stone_count", 1)
    settings.setdefault("curling_rounds", 1)
    return new_session(mode=GameMode.CURLING, **settings)


def state(session) -> CurlingState:
    return session.sub_state(GameMode.CURLING, CurlingState)


def throw(session, user_id: str, now: int, x: float, y: float, vx: float = 0, vy: float = 0) -> int:
    """Throw and let the animation run out. Returns the time afterwards."""
    dispatch.handle_action(
        session,
        GameAction(ActionType.CURLING_FLICK_STONE, user_id, {"x": x, "y": y, "vx": vx, "vy": vy}),
        now,
    )
    later = now + config.CURLING_ANIMATION_MS
    dispatch.update(session, later)
    return later


def stone_at_distance(cells: float) -> FlickStone:
    return FlickStone(id=1, player=Player.BLACK, x=CENTRE + cells * curling.CELL_PX, y=CENTRE, radius=1)


def test_house_bands() -> None:
    assert curling.house_points(stone_at_distance(0)) == 5
    assert curling.house_points(stone_at_distance(1)) == 3
    assert curling.house_points(stone_at_distance(3)) == 2
    assert curling.house_points(stone_at_distance(5)) == 1
    assert curling.house_points(stone_at_distance(7)) == 0


def test_black_throws_first_and_white_holds_the_hammer(new_session) -> None:
    session = curling_session(new_session)
    assert session.status == GameStatus.CURLING_PLAYING
    assert session.current_player == Player.BLACK
    assert state(session).hammer_player_id == "p2"


def test_throw_is_simulated_after_the_animation(new_session, now) -> None:
    session = curling_session(new_session)
    dispatch.handle_action(
        session,
        GameAction(ActionType.CURLING_FLICK_STONE, "p1", {"x": CENTRE, "y": 800, "vx": 0, "vy": -5}),
        now,
    )
    assert session.status == GameStatus.CURLING_ANIMATING
    assert state(session).pending_flick is not None
    dispatch.update(session, now + config.CURLING_ANIMATION_MS)

    (stone,) = state(session).stones
    assert stone.y < 800
    assert state(session).pending_flick is None
    assert session.status == GameStatus.CURLING_PLAYING
    assert session.current_player == Player.WHITE


def test_stone_off_the_sheet_scores_for_the_opponent(new_session, now) -> None:
    session = curling_session(new_session)
    throw(session, "p1", now, x=CENTRE, y=10, vy=-25)

    assert state(session).stones == []
    assert state(session).scores.white == 1


def test_house_is_scored_and_the_leader_wins(new_session, now) -> None:
    session = curling_session(new_session)
    later = throw(session, "p1", now, x=CENTRE, y=CENTRE)
    later = throw(session, "p2", later, x=10, y=10)

    assert session.status == GameStatus.CURLING_ROUND_END
    assert state(session).house_scores.black == 5
    assert state(session).house_scores.white == 0
    assert state(session).round_winner == Player.BLACK

    dispatch.handle_action(session, GameAction(ActionType.CONFIRM_ROUND_END, "p1"), later)
    assert session.winner == Player.BLACK
    assert session.win_reason == WinReason.CURLING_WIN


def test_round_winner_throws_first_next_round(new_session, now) -> None:
    session = curling_session(new_session, curling_rounds=2)
    later = throw(session, "p1", now, x=CENTRE, y=CENTRE)
    later = throw(session, "p2", later, x=10, y=10)
    dispatch.update(session, later + config.CURLING_ROUND_END_MS)

    assert state(session).round == 2
    assert state(session).stones == []
    assert state(session).thrown == {"p1": 0, "p2": 0}
    assert session.current_player == Player.BLACK
    assert state(session).hammer_player_id == "p2"


def test_tied_game_gets_an_extra_round(new_session, now) -> None:
    session = curling_session(new_session)
    later = throw(session, "p1", now, x=10, y=10)
    later = throw(session, "p2", later, x=10, y=830)
    dispatch.update(session, later + config.CURLING_ROUND_END_MS)

    assert not session.is_finished
    assert state(session).round == 2


def test_throw_limits(new_session, now) -> None:
    session = curling_session(new_session)
    with pytest.raises(IllegalMoveError):
        throw(session, "p1", now, x=-5, y=CENTRE)
    state(session).thrown["p1"] = 1
    with pytest.raises(GameStateError, match="No stones left"):
        throw(session, "p1", now, x=CENTRE, y=CENTRE)


def test_missed_throw_is_a_foul_and_the_stone_is_lost(new_session, now) -> None:
    session = curling_session(new_session, curling_stone_count=2)
    dispatch.update(session, now + config.PLAYFUL_TURN_TIME_MS)

    assert session.timeout_fouls["p1"] == 1
    assert state(session).thrown["p1"] == 1
    assert session.current_player == Player.WHITE
