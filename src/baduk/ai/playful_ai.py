"""Simple AI for the playful modes: a greedy line evaluator for omok and aim-and-shoot for the flicking games."""

import math
import random
from typing import Optional

from src.baduk.actions import GameAction
from src.baduk.board import all_groups, liberty_points_of, process_move
from src.baduk.modes import thief
from src.baduk.modes.alkkagi import placement_zone
from src.baduk.omok_logic import best_move
from src.baduk.physics import free_spot
from src.baduk.point import Point
from src.baduk.session import AlkkagiState, FlickStone, GameSession
from src.core import config
from src.core.shared_types import ActionType, GameMode, GameStatus, Player

# Statuses in which the player to move has to act
AI_TURN_STATUSES = frozenset(
    {
        GameStatus.PLAYING,
        GameStatus.DICE_ROLLING,
        GameStatus.DICE_PLACING,
        GameStatus.THIEF_ROLLING,
        GameStatus.THIEF_PLACING,
        GameStatus.CURLING_PLAYING,
        GameStatus.ALKKAGI_PLACEMENT,
        GameStatus.ALKKAGI_PLAYING,
    }
)

AIM_JITTER = 0.08


def next_action(session: GameSession) -> Optional[GameAction]:
    """The AI's action for the current phase, or None when there is nothing it can do."""
    ai_id = session.ai_player_id
    if ai_id is None or session.status not in AI_TURN_STATUSES or not session.is_ai_turn():
        return None
    color = session.ai_color

    if session.status == GameStatus.PLAYING and session.mode in (GameMode.OMOK, GameMode.TTAMOK):
        point = best_move(
            session.board,
            color,
            overline_forbidden=session.settings.has_overline_forbidden,
            forbid_double_three=session.settings.has_33_forbidden,
            with_captures=session.mode == GameMode.TTAMOK,
        )
        if point is None:
            return None
        return GameAction(ActionType.OMOK_PLACE_STONE, ai_id, {"x": point.x, "y": point.y})

    if session.status == GameStatus.DICE_ROLLING:
        return GameAction(ActionType.DICE_ROLL, ai_id)
    if session.status == GameStatus.DICE_PLACING:
        point = dice_target(session)
        if point is None:
            return None
        return GameAction(ActionType.DICE_PLACE_STONE, ai_id, {"x": point.x, "y": point.y})

    if session.status == GameStatus.THIEF_ROLLING:
        return GameAction(ActionType.THIEF_ROLL_DICE, ai_id)
    if session.status == GameStatus.THIEF_PLACING:
        point = thief_target(session, color)
        if point is None:
            return None
        return GameAction(ActionType.THIEF_PLACE_STONE, ai_id, {"x": point.x, "y": point.y})

    if session.status == GameStatus.CURLING_PLAYING:
        return GameAction(ActionType.CURLING_FLICK_STONE, ai_id, curling_throw())

    if session.status == GameStatus.ALKKAGI_PLACEMENT:
        state = session.sub_state(GameMode.ALKKAGI, AlkkagiState)
        spot = free_spot(state.stones, placement_zone(color))
        if spot is None:
            return None
        return GameAction(ActionType.ALKKAGI_PLACE_STONE, ai_id, {"x": spot[0], "y": spot[1]})
    if session.status == GameStatus.ALKKAGI_PLAYING:
        state = session.sub_state(GameMode.ALKKAGI, AlkkagiState)
        payload = alkkagi_flick(state.stones, color)
        if payload is None:
            return None
        return GameAction(ActionType.ALKKAGI_FLICK_STONE, ai_id, payload)
    return None


def dice_target(session: GameSession) -> Optional[Point]:
    """Last liberty of a white group if there is one, otherwise a liberty of the weakest white group."""
    groups = sorted(all_groups(Player.WHITE, session.board), key=lambda g: g.liberties)
    if groups:
        return min(groups[0].liberty_points)
    liberties = sorted(liberty_points_of(Player.WHITE, session.board))
    return random.choice(liberties) if liberties else None


def thief_target(session: GameSession, color: Player) -> Optional[Point]:
    """
    The thief runs for open space (most liberties for the black stones afterwards), the police goes for the
    biggest capture. Ties are broken at random.
    """
    candidates = sorted(thief.allowed_points(session, color))
    if not candidates:
        return None

    def gain(point: Point) -> int:
        result = process_move(session.board, point, color, None, 0, ignore_suicide=True)
        if color == Player.BLACK:
            return len(liberty_points_of(Player.BLACK, result.board))
        return len(result.captured)

    gains = {point: gain(point) for point in candidates}
    best = max(gains.values())
    return random.choice([point for point in candidates if gains[point] == best])


def curling_throw() -> dict:
    """Launch from the bottom centre with just enough speed to come to rest on the button."""
    sheet = config.CURLING_SHEET_PX
    start_x, start_y = sheet / 2, sheet - 2 * config.FLICK_STONE_RADIUS
    distance = start_y - sheet / 2
    speed = distance * (1 - config.CURLING_FRICTION)
    speed *= 1 + random.uniform(-AIM_JITTER, AIM_JITTER)
    angle = random.uniform(-AIM_JITTER, AIM_JITTER) / 4
    return {
        "x": start_x,
        "y": start_y,
        "vx": speed * math.sin(angle),
        "vy": -speed * math.cos(angle),
    }


def alkkagi_flick(stones: list[FlickStone], color: Player) -> Optional[dict]:
    """Shoot the own stone closest to any opponent stone straight at it, at full speed."""
    mine = [s for s in stones if s.on_board and s.player == color]
    theirs = [s for s in stones if s.on_board and s.player == color.opponent]
    if not mine or not theirs:
        return None
    shooter, target = min(
        ((m, t) for m in mine for t in theirs),
        key=lambda pair: math.hypot(pair[0].x - pair[1].x, pair[0].y - pair[1].y),
    )
    dx, dy = target.x - shooter.x, target.y - shooter.y
    distance = math.hypot(dx, dy) or 1.0
    angle = random.uniform(-AIM_JITTER, AIM_JITTER)
    cos_a, sin_a = math.cos(angle), math.sin(angle)
    ux, uy = dx / distance, dy / distance
    speed = config.FLICK_MAX_SPEED
    return {
        "stone_id": shooter.id,
        "vx": speed * (ux * cos_a - uy * sin_a),
        "vy": speed * (ux * sin_a + uy * cos_a),
    }
