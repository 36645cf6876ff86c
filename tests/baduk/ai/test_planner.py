"""Unit tests for src/baduk/ai/planner.py"""

from src.baduk import dispatch
from src.baduk.actions import GameAction
from src.baduk.ai import planner
from src.baduk.point import PASS, Point
from src.core import config
from src.core.shared_types import ActionType, GameMode, GameStatus


def after_human_move(session, now: int):
    dispatch.handle_action(
        session, GameAction(ActionType.PLACE_STONE, "p1", {"x": 4, "y": 4}), now
    )
    return session


def test_engine_plays_plain_go_only(new_session) -> None:
    assert planner.uses_engine(new_session())
    assert planner.uses_engine(new_session(mode=GameMode.CAPTURE))
    assert not planner.uses_engine(new_session(mode=GameMode.HIDDEN, hidden_stone_count=1))
    assert not planner.uses_engine(
        new_session(mode=GameMode.MIX, mixed_modes=[GameMode.MISSILE], missile_count=1)
    )
    assert not planner.uses_engine(new_session(mode=GameMode.OMOK))


def test_needs_action_on_the_ai_turn_only(new_session, now) -> None:
    session = new_session()
    assert not planner.needs_action(session)
    after_human_move(session, now)
    assert planner.needs_action(session)

    session.status = GameStatus.PAUSED
    assert not planner.needs_action(session)


def test_move_and_pass_actions(new_session) -> None:
    session = new_session()
    place = planner.move_action(session, Point(2, 3))
    assert place == GameAction(ActionType.PLACE_STONE, "p2", {"x": 2, "y": 3})
    assert planner.move_action(session, PASS) == GameAction(ActionType.PASS_TURN, "p2")


def test_capture_goal(new_session) -> None:
    assert planner.captures_to_goal(new_session()) is None

    session = new_session(mode=GameMode.CAPTURE)
    assert planner.captures_to_goal(session) == config.DEFAULT_CAPTURE_TARGET
    session.captures.white = 5
    assert planner.captures_to_goal(session) == config.DEFAULT_CAPTURE_TARGET - 5


def test_ai_only_passes_back(new_session) -> None:
    session = new_session()
    assert not planner.may_pass(session)
    session.pass_count = 1
    assert planner.may_pass(session)

    chasing = new_session(mode=GameMode.CAPTURE)
    chasing.pass_count = 1
    assert not planner.may_pass(chasing)


def test_heuristic_action_is_a_legal_placement(new_session, now) -> None:
    session = after_human_move(new_session(), now)
    action = planner.heuristic_action(session)

    assert action is not None
    assert action.user_id == "p2"
    assert action.type == ActionType.PLACE_STONE
    assert (action.payload["x"], action.payload["y"]) != (4, 4)
    dispatch.handle_action(session, action, now)


def test_playful_games_use_the_playful_ai(new_session, now) -> None:
    session = new_session(mode=GameMode.OMOK)
    dispatch.handle_action(
        session, GameAction(ActionType.OMOK_PLACE_STONE, "p1", {"x": 4, "y": 4}), now
    )
    action = planner.heuristic_action(session)
    assert action is not None
    assert action.type == ActionType.OMOK_PLACE_STONE
