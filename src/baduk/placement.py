"""Random stone placement used by setup phases (base stones, stage boards, dice rounds)."""

import logging
import random
from typing import Iterable, Optional

from src.baduk.board import Grid, find_group, points, set_stone, stone_at
from src.baduk.point import Point
from src.core.shared_types import Player

logger = logging.getLogger(__name__)


def empty_points(board: Grid, exclude: Iterable[Point] = ()) -> list[Point]:
    excluded = set(exclude)
    return [
        point
        for point in points(len(board))
        if stone_at(board, point) == Player.NONE and point not in excluded
    ]


def random_points(
    board: Grid, count: int, exclude: Iterable[Point] = ()
) -> list[Point]:
    """Up to `count` distinct empty points, in random order."""
    candidates = empty_points(board, exclude)
    if len(candidates) < count:
        logger.warning(
            "Only %d empty points left, wanted %d", len(candidates), count
        )
    return random.sample(candidates, min(count, len(candidates)))


def scatter_stones(
    board: Grid,
    player: Player,
    count: int,
    allowed: Optional[Iterable[Point]] = None,
) -> list[Point]:
    """
    Drop `count` stones of `player` on random empty points, never leaving a stone without liberties.

    Mutates the board. Returns the points actually used.
    """
    candidates = (
        [p for p in allowed if stone_at(board, p) == Player.NONE]
        if allowed is not None
        else empty_points(board)
    )
    random.shuffle(candidates)
    placed: list[Point] = []
    for point in candidates:
        if len(placed) == count:
            break
        set_stone(board, point, player)
        if _leaves_dead_group(board, point, player):
            set_stone(board, point, Player.NONE)
            continue
        placed.append(point)

    if len(placed) < count:
        logger.warning("Placed %d of %d %s stones", len(placed), count, player.name)
    return placed


def _leaves_dead_group(board: Grid, point: Point, player: Player) -> bool:
    """True if the new stone has no liberties, or takes the last one of any adjacent group."""
    own = find_group(point, player, board)
    if own is None or own.liberties == 0:
        return True
    size = len(board)
    for dx, dy in ((0, -1), (0, 1), (-1, 0), (1, 0)):
        neighbor = point.shifted(dx, dy)
        if not neighbor.is_on_board(size):
            continue
        occupant = stone_at(board, neighbor)
        if occupant in (Player.NONE, player):
            continue
        group = find_group(neighbor, occupant, board)
        if group is not None and group.liberties == 0:
            return True
    return False
