"""
Five-in-a-row rules (Omok) and the flank-capture variant (Ttamok).

Same grid representation as the Go board, but stones never need liberties here.
"""

from dataclasses import dataclass
from typing import Optional

from src.baduk.board import Grid, copy_grid, set_stone, stone_at
from src.baduk.point import Point
from src.core import config
from src.core.shared_types import Player

LINE_DIRECTIONS: tuple[tuple[int, int], ...] = ((1, 0), (0, 1), (1, 1), (1, -1))

# Greedy move evaluation
WIN_SCORE = 100_000
OPEN_FOUR_SCORE = 5_000
CLOSED_FOUR_SCORE = 500
OPEN_THREE_SCORE = 200
CLOSED_THREE_SCORE = 50
OPEN_TWO_SCORE = 10
CAPTURE_SCORE = 100
BLOCKING_WEIGHT = 0.9


@dataclass
class LineStats:
    length: int
    open_ends: int


def line_through(board: Grid, point: Point, dx: int, dy: int) -> list[Point]:
    """The contiguous same-coloured run through `point` along (dx, dy), ordered from the negative end."""
    player = stone_at(board, point)
    if player == Player.NONE:
        return []
    size = len(board)
    line = [point]
    for sign in (1, -1):
        current = point.shifted(sign * dx, sign * dy)
        while current.is_on_board(size) and stone_at(board, current) == player:
            if sign == 1:
                line.append(current)
            else:
                line.insert(0, current)
            current = current.shifted(sign * dx, sign * dy)
    return line


def line_stats(board: Grid, point: Point, dx: int, dy: int) -> LineStats:
    line = line_through(board, point, dx, dy)
    if not line:
        return LineStats(length=0, open_ends=0)
    size = len(board)
    open_ends = 0
    for end in (line[0].shifted(-dx, -dy), line[-1].shifted(dx, dy)):
        if end.is_on_board(size) and stone_at(board, end) == Player.NONE:
            open_ends += 1
    return LineStats(length=len(line), open_ends=open_ends)


def check_win(
    board: Grid, point: Point, overline_forbidden: bool = False
) -> Optional[list[Point]]:
    """Winning five through the stone at `point`, or None. Black overlines don't count when forbidden."""
    player = stone_at(board, point)
    if player == Player.NONE:
        return None
    for dx, dy in LINE_DIRECTIONS:
        line = line_through(board, point, dx, dy)
        if len(line) < config.OMOK_WIN_LENGTH:
            continue
        if (
            overline_forbidden
            and player == Player.BLACK
            and len(line) > config.OMOK_WIN_LENGTH
        ):
            continue
        return line[: config.OMOK_WIN_LENGTH]
    return None


def is_double_three(board: Grid, point: Point, player: Player) -> bool:
    """Would a stone at `point` create two open threes at once?"""
    trial = copy_grid(board)
    set_stone(trial, point, player)
    open_threes = 0
    for dx, dy in LINE_DIRECTIONS:
        stats = line_stats(trial, point, dx, dy)
        if stats.length == 3 and stats.open_ends == 2:
            open_threes += 1
    return open_threes >= 2


def flanked_pairs(board: Grid, point: Point, player: Player) -> list[Point]:
    """Opponent stones bracketed in pairs by a stone of `player` at `point` (Ttamok capture)."""
    opponent = player.opponent
    size = len(board)
    captured: list[Point] = []
    for dx, dy in LINE_DIRECTIONS:
        for sign in (1, -1):
            first = point.shifted(sign * dx, sign * dy)
            second = point.shifted(2 * sign * dx, 2 * sign * dy)
            closing = point.shifted(3 * sign * dx, 3 * sign * dy)
            if not closing.is_on_board(size):
                continue
            if (
                stone_at(board, first) == opponent
                and stone_at(board, second) == opponent
                and stone_at(board, closing) == player
            ):
                captured.extend((first, second))
    return captured


def remove_flanked_pairs(board: Grid, point: Point, player: Player) -> list[Point]:
    """Apply the Ttamok capture for the stone just played at `point`. Mutates the board."""
    captured = flanked_pairs(board, point, player)
    for stone in captured:
        set_stone(board, stone, Player.NONE)
    return captured


def move_score(
    board: Grid,
    point: Point,
    player: Player,
    overline_forbidden: bool = False,
    with_captures: bool = False,
) -> float:
    """Greedy evaluation of `player` playing at `point` (higher is better)."""
    trial = copy_grid(board)
    set_stone(trial, point, player)

    score = 0.0
    for dx, dy in LINE_DIRECTIONS:
        stats = line_stats(trial, point, dx, dy)
        if stats.length >= config.OMOK_WIN_LENGTH:
            if (
                overline_forbidden
                and player == Player.BLACK
                and stats.length > config.OMOK_WIN_LENGTH
            ):
                return 0.0
            return WIN_SCORE
        if stats.length == 4:
            score += OPEN_FOUR_SCORE if stats.open_ends == 2 else CLOSED_FOUR_SCORE * stats.open_ends
        elif stats.length == 3:
            score += OPEN_THREE_SCORE if stats.open_ends == 2 else CLOSED_THREE_SCORE * stats.open_ends
        elif stats.length == 2 and stats.open_ends == 2:
            score += OPEN_TWO_SCORE

    if with_captures:
        score += len(flanked_pairs(trial, point, player)) * CAPTURE_SCORE
    return score


def best_move(
    board: Grid,
    player: Player,
    overline_forbidden: bool = False,
    forbid_double_three: bool = False,
    with_captures: bool = False,
) -> Optional[Point]:
    """Own threat plus (slightly discounted) value of blocking the opponent on the same point."""
    best: Optional[Point] = None
    best_score = -1.0
    size = len(board)
    for y in range(size):
        for x in range(size):
            point = Point(x, y)
            if stone_at(board, point) != Player.NONE:
                continue
            if (
                forbid_double_three
                and player == Player.BLACK
                and is_double_three(board, point, player)
            ):
                continue
            mine = move_score(board, point, player, overline_forbidden, with_captures)
            theirs = move_score(
                board, point, player.opponent, overline_forbidden, with_captures
            )
            total = mine + theirs * BLOCKING_WEIGHT
            if total > best_score:
                best_score = total
                best = point
    return best
