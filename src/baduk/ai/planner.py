"""
Decides what the AI does on its turn, as a GameAction that goes through the normal handlers.

Strategic games without hidden stones or missiles can be played by the external engine; the loop asks
`uses_engine` first and only falls back to `heuristic_action` when the engine is unavailable.
"""

from typing import Optional

from src.baduk.actions import GameAction
from src.baduk.ai import heuristics, playful_ai
from src.baduk.point import Point
from src.baduk.session import CaptureState, GameSession
from src.core.shared_types import ActionType, GameMode, GameStatus


def uses_engine(session: GameSession) -> bool:
    return not (
        session.is_playful
        or session.has_mode(GameMode.HIDDEN)
        or session.has_mode(GameMode.MISSILE)
    )


def needs_action(session: GameSession) -> bool:
    """True when it's the AI's move and the phase expects one."""
    if session.ai_player_id is None or session.is_finished or not session.is_ai_turn():
        return False
    if session.is_playful:
        return session.status in playful_ai.AI_TURN_STATUSES
    return session.status == GameStatus.PLAYING


def move_action(session: GameSession, point: Point) -> GameAction:
    ai_id = session.ai_player_id
    assert ai_id is not None
    if point.is_pass:
        return GameAction(ActionType.PASS_TURN, ai_id)
    return GameAction(ActionType.PLACE_STONE, ai_id, {"x": point.x, "y": point.y})


def captures_to_goal(session: GameSession) -> Optional[int]:
    capture = session.mode_states.get(GameMode.CAPTURE)
    if not isinstance(capture, CaptureState):
        return None
    color = session.ai_color
    target = capture.targets[color]
    return target - session.captures[color] if target > 0 else None


def may_pass(session: GameSession) -> bool:
    """The AI only passes back: never first, and never while it still has a capture goal to chase."""
    return session.pass_count > 0 and captures_to_goal(session) is None


def heuristic_action(session: GameSession) -> Optional[GameAction]:
    if session.is_playful:
        return playful_ai.next_action(session)
    point = heuristics.select_move(
        session.board,
        session.ai_color,
        session.ko_info,
        len(session.move_history),
        level=session.settings.ai_level,
        captures_to_goal=captures_to_goal(session),
    )
    return move_action(session, point)
