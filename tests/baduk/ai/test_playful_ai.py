"""Unit tests for src/baduk/ai/playful_ai.py"""

import pytest

from src.baduk.ai import playful_ai
from src.baduk.board import set_stone
from src.baduk.modes import curling
from src.baduk.modes.alkkagi import placement_zone
from src.baduk.physics import simulate
from src.baduk.point import Point
from src.baduk.session import Flick, FlickStone, ThiefState
from src.core import config
from src.core.shared_types import ActionType, GameMode, GameStatus, Player

RADIUS = config.FLICK_STONE_RADIUS


@pytest.fixture
def steady_hand(monkeypatch):
    """No aiming noise."""
    monkeypatch.setattr(playful_ai.random, "uniform", lambda low, high: 0.0)


def ai_moves_first(new_session, mode: GameMode, **settings):
    """AI (p2) plays Black."""
    return new_session(mode=mode, player1_color=Player.WHITE, **settings)


def test_nothing_to_do_on_the_human_turn(new_session) -> None:
    session = new_session(mode=GameMode.DICE)
    assert session.current_player == Player.BLACK
    assert playful_ai.next_action(session) is None


def test_omok_move(new_session) -> None:
    session = ai_moves_first(new_session, GameMode.OMOK)
    for x in range(4):
        set_stone(session.board, Point(x, 0), Player.BLACK)
    action = playful_ai.next_action(session)

    assert action.type == ActionType.OMOK_PLACE_STONE
    assert action.user_id == "p2"
    assert action.payload == {"x": 4, "y": 0}


def test_dice_rolls_then_places(new_session) -> None:
    session = ai_moves_first(new_session, GameMode.DICE)
    assert playful_ai.next_action(session).type == ActionType.DICE_ROLL

    session.reset_board()
    set_stone(session.board, Point(4, 4), Player.WHITE)
    for x, y in ((4, 3), (3, 4), (5, 4)):
        set_stone(session.board, Point(x, y), Player.BLACK)
    session.set_timer(GameStatus.DICE_PLACING, 0)
    action = playful_ai.next_action(session)
    assert action.type == ActionType.DICE_PLACE_STONE
    assert action.payload == {"x": 4, "y": 5}


def test_dice_target_prefers_the_weakest_group(new_session) -> None:
    session = ai_moves_first(new_session, GameMode.DICE)
    session.reset_board()
    set_stone(session.board, Point(0, 0), Player.WHITE)
    set_stone(session.board, Point(1, 0), Player.BLACK)
    set_stone(session.board, Point(6, 6), Player.WHITE)
    assert playful_ai.dice_target(session) == Point(0, 1)


def test_thief_rolls_then_runs_for_open_space(new_session) -> None:
    session = ai_moves_first(new_session, GameMode.THIEF)
    assert playful_ai.next_action(session).type == ActionType.THIEF_ROLL_DICE

    set_stone(session.board, Point(0, 0), Player.BLACK)
    set_stone(session.board, Point(2, 0), Player.WHITE)
    session.sub_state(GameMode.THIEF, ThiefState).turn_in_round = 3
    session.set_timer(GameStatus.THIEF_PLACING, 0)
    action = playful_ai.next_action(session)

    assert action.type == ActionType.THIEF_PLACE_STONE
    assert action.payload == {"x": 0, "y": 1}


def test_police_goes_for_the_capture(new_session) -> None:
    session = new_session(mode=GameMode.THIEF)
    set_stone(session.board, Point(0, 0), Player.BLACK)
    set_stone(session.board, Point(1, 0), Player.WHITE)
    set_stone(session.board, Point(4, 4), Player.BLACK)
    session.sub_state(GameMode.THIEF, ThiefState).turn_in_round = 2
    session.current_player = Player.WHITE
    session.set_timer(GameStatus.THIEF_PLACING, 0)

    assert playful_ai.thief_target(session, Player.WHITE) == Point(0, 1)
    assert playful_ai.next_action(session).payload == {"x": 0, "y": 1}


def test_curling_throw_comes_to_rest_on_the_button(steady_hand) -> None:
    payload = playful_ai.curling_throw()
    stone = FlickStone(id=1, player=Player.BLACK, x=payload["x"], y=payload["y"], radius=RADIUS)
    result = simulate([], Flick(stone=stone, vx=payload["vx"], vy=payload["vy"]), config.CURLING_ANIMATION_MS)

    assert curling.house_points(result.stones[0]) == 5


def test_curling_action(new_session) -> None:
    session = ai_moves_first(new_session, GameMode.CURLING)
    action = playful_ai.next_action(session)
    assert action.type == ActionType.CURLING_FLICK_STONE
    assert set(action.payload) == {"x", "y", "vx", "vy"}


def test_alkkagi_placement_in_own_half(new_session) -> None:
    session = ai_moves_first(new_session, GameMode.ALKKAGI)
    action = playful_ai.next_action(session)

    assert action.type == ActionType.ALKKAGI_PLACE_STONE
    low, high = placement_zone(Player.BLACK)
    assert low <= action.payload["y"] <= high


def test_alkkagi_flick_aims_at_the_nearest_opponent(steady_hand) -> None:
    stones = [
        FlickStone(id=1, player=Player.BLACK, x=420, y=700, radius=RADIUS),
        FlickStone(id=2, player=Player.BLACK, x=100, y=800, radius=RADIUS),
        FlickStone(id=3, player=Player.WHITE, x=420, y=300, radius=RADIUS),
    ]
    payload = playful_ai.alkkagi_flick(stones, Player.BLACK)

    assert payload["stone_id"] == 1
    assert payload["vx"] == pytest.approx(0.0)
    assert payload["vy"] == pytest.approx(-config.FLICK_MAX_SPEED)


def test_alkkagi_flick_needs_targets() -> None:
    stones = [FlickStone(id=1, player=Player.BLACK, x=420, y=700, radius=RADIUS)]
    assert playful_ai.alkkagi_flick(stones, Player.BLACK) is None
