"""
Server-side flick simulation for curling and alkkagi.

Fixed 60 Hz steps on a square sheet: every step moves the stones, applies friction, drops stones that left
the sheet, and resolves equal-mass elastic collisions between overlapping stones.
"""

import logging
import math
import random
from dataclasses import dataclass, replace
from typing import Optional

from src.baduk.session import Flick, FlickStone
from src.core import config

logger = logging.getLogger(__name__)

STOP_SPEED = 0.01


@dataclass
class SimulationResult:
    stones: list[FlickStone]
    fallen: list[FlickStone]


def simulate(
    stones: list[FlickStone],
    flick: Flick,
    duration_ms: float,
    sheet: float = config.CURLING_SHEET_PX,
) -> SimulationResult:
    """Run the flick to rest (or until `duration_ms` is used up). The input stones are not mutated."""
    moving = [replace(stone) for stone in stones if stone.id != flick.stone.id]
    moving.append(replace(flick.stone, vx=flick.vx, vy=flick.vy, on_board=True))
    fallen: list[FlickStone] = []

    steps = int(duration_ms // config.CURLING_SIM_STEP_MS)
    for _ in range(steps):
        any_moving = False
        for stone in moving:
            if not stone.on_board:
                continue
            stone.x += stone.vx
            stone.y += stone.vy
            stone.vx *= config.CURLING_FRICTION
            stone.vy *= config.CURLING_FRICTION
            if abs(stone.vx) < STOP_SPEED:
                stone.vx = 0.0
            if abs(stone.vy) < STOP_SPEED:
                stone.vy = 0.0
            if stone.vx or stone.vy:
                any_moving = True
            if not (0 <= stone.x <= sheet and 0 <= stone.y <= sheet):
                stone.on_board = False
                fallen.append(stone)

        _resolve_collisions(moving)
        if not any_moving:
            break

    for stone in moving:
        stone.vx = stone.vy = 0.0
    return SimulationResult(stones=moving, fallen=fallen)


def _resolve_collisions(stones: list[FlickStone]) -> None:
    for i, first in enumerate(stones):
        for second in stones[i + 1 :]:
            if not (first.on_board and second.on_board):
                continue
            dx = second.x - first.x
            dy = second.y - first.y
            distance = math.hypot(dx, dy)
            radii = first.radius + second.radius
            if distance >= radii or distance == 0:
                continue
            nx, ny = dx / distance, dy / distance
            closing = (second.vx - first.vx) * nx + (second.vy - first.vy) * ny
            if closing < 0:
                first.vx += closing * nx
                first.vy += closing * ny
                second.vx -= closing * nx
                second.vy -= closing * ny
            # push the pair apart so they don't stick together
            overlap = (radii - distance) / 2
            first.x -= overlap * nx
            first.y -= overlap * ny
            second.x += overlap * nx
            second.y += overlap * ny


def clamp_velocity(vx: float, vy: float) -> tuple[float, float]:
    speed = math.hypot(vx, vy)
    if speed <= config.FLICK_MAX_SPEED or speed == 0:
        return vx, vy
    scale = config.FLICK_MAX_SPEED / speed
    return vx * scale, vy * scale


def overlaps(stones: list[FlickStone], x: float, y: float, radius: float) -> bool:
    return any(
        stone.on_board and math.hypot(stone.x - x, stone.y - y) < stone.radius + radius
        for stone in stones
    )


def free_spot(
    stones: list[FlickStone],
    y_range: tuple[float, float],
    radius: float = config.FLICK_STONE_RADIUS,
    sheet: float = config.CURLING_SHEET_PX,
    attempts: int = 200,
) -> Optional[tuple[float, float]]:
    """Random position inside the horizontal band `y_range` that touches no stone."""
    low, high = y_range
    for _ in range(attempts):
        x = radius + random.random() * (sheet - 2 * radius)
        y = low + random.random() * (high - low)
        if not overlaps(stones, x, y, radius):
            return x, y
    logger.warning("No free spot found after %d attempts", attempts)
    return None


def next_stone_id(stones: list[FlickStone]) -> int:
    return max((stone.id for stone in stones), default=0) + 1
