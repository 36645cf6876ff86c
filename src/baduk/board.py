"""
Board / capture logic.

Pure functions over a square grid of Player values: group & liberty computation, capture resolution, ko and suicide.
Nothing in here knows about sessions, clocks or modes.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Iterator, Optional

from src.baduk.point import Point
from src.core.exceptions import IllegalMoveError
from src.core.shared_types import Player

Grid = list[list[Player]]

ORTHOGONAL: tuple[tuple[int, int], ...] = ((0, -1), (0, 1), (-1, 0), (1, 0))


@dataclass(frozen=True)
class KoInfo:
    """The single point the opponent may not play on in move number `turn + 1`."""

    point: Point
    turn: int


@dataclass
class Group:
    stones: list[Point]
    liberty_points: set[Point] = field(default_factory=set)

    @property
    def liberties(self) -> int:
        return len(self.liberty_points)

    def __contains__(self, point: Point) -> bool:
        return point in self.stones


@dataclass
class MoveResult:
    board: Grid
    captured: list[Point]
    ko_info: Optional[KoInfo]


# --- Grid helpers
def empty_grid(size: int) -> Grid:
    return [[Player.NONE for _ in range(size)] for _ in range(size)]


def copy_grid(board: Grid) -> Grid:
    return [list(row) for row in board]


def stone_at(board: Grid, point: Point) -> Player:
    return board[point.y][point.x]


def set_stone(board: Grid, point: Point, player: Player) -> None:
    board[point.y][point.x] = player


def points(size: int) -> Iterator[Point]:
    for y in range(size):
        for x in range(size):
            yield Point(x, y)


def neighbors(point: Point, size: int) -> list[Point]:
    """4-connected neighbours that are on the board."""
    return [
        point.shifted(dx, dy)
        for dx, dy in ORTHOGONAL
        if point.shifted(dx, dy).is_on_board(size)
    ]


def count_stones(board: Grid, player: Player) -> int:
    return sum(row.count(player) for row in board)


# --- Groups
def find_group(point: Point, player: Player, board: Grid) -> Optional[Group]:
    """Flood-fill the same-coloured group containing `point` (None if the point does not hold `player`)."""
    size = len(board)
    if not point.is_on_board(size) or player == Player.NONE:
        return None
    if stone_at(board, point) != player:
        return None

    seen = {point}
    stones: list[Point] = []
    liberties: set[Point] = set()
    queue = deque([point])
    while queue:
        current = queue.popleft()
        stones.append(current)
        for neighbor in neighbors(current, size):
            occupant = stone_at(board, neighbor)
            if occupant == Player.NONE:
                liberties.add(neighbor)
            elif occupant == player and neighbor not in seen:
                seen.add(neighbor)
                queue.append(neighbor)
    return Group(stones=stones, liberty_points=liberties)


def all_groups(player: Player, board: Grid) -> list[Group]:
    seen: set[Point] = set()
    groups: list[Group] = []
    for point in points(len(board)):
        if point in seen or stone_at(board, point) != player:
            continue
        group = find_group(point, player, board)
        if group is not None:
            seen.update(group.stones)
            groups.append(group)
    return groups


def liberty_points_of(player: Player, board: Grid) -> set[Point]:
    """Every empty point adjacent to any stone of `player`."""
    liberties: set[Point] = set()
    for group in all_groups(player, board):
        liberties |= group.liberty_points
    return liberties


def remove_captured_neighbors(board: Grid, point: Point, player: Player) -> list[Point]:
    """
    Remove every opponent group next to `point` that has no liberties left.

    Mutates the board. A group touching the point from two sides is only removed (and counted) once.
    """
    opponent = player.opponent
    captured: list[Point] = []
    removed: set[Point] = set()
    for neighbor in neighbors(point, len(board)):
        if neighbor in removed or stone_at(board, neighbor) != opponent:
            continue
        group = find_group(neighbor, opponent, board)
        if group is not None and group.liberties == 0:
            for stone in group.stones:
                set_stone(board, stone, Player.NONE)
                removed.add(stone)
            captured.extend(group.stones)
    return captured


# --- Move processing
def process_move(
    board: Grid,
    point: Point,
    player: Player,
    ko_info: Optional[KoInfo],
    move_number: int,
    ignore_suicide: bool = False,
) -> MoveResult:
    """
    Attempt to play `player` at `point`.
    ----
    `move_number` is the index the move would get in the move history (so len(history) before appending).

    1. point must be on the board and empty
    2. ko: may not retake at the recorded ko point on the very next ply
    3. place, then remove opponent groups without liberties
    4. only if nothing was captured: own group must keep a liberty (suicide)
    5. a single-stone capture by a single stone in atari sets up a new ko

    Returns a new board; the input board is left untouched. Raises IllegalMoveError with the reason.
    """
    size = len(board)
    if point.is_pass:
        return MoveResult(board=copy_grid(board), captured=[], ko_info=None)
    if not point.is_on_board(size) or stone_at(board, point) != Player.NONE:
        raise IllegalMoveError("Point is not empty")
    if ko_info is not None and ko_info.point == point and ko_info.turn == move_number - 1:
        raise IllegalMoveError("Ko: cannot retake immediately")

    new_board = copy_grid(board)
    set_stone(new_board, point, player)
    captured = remove_captured_neighbors(new_board, point, player)

    own_group = find_group(point, player, new_board)
    assert own_group is not None
    if not captured and own_group.liberties == 0 and not ignore_suicide:
        raise IllegalMoveError("Suicide is not allowed")

    new_ko: Optional[KoInfo] = None
    if (
        len(captured) == 1
        and len(own_group.stones) == 1
        and own_group.liberty_points == {captured[0]}
    ):
        new_ko = KoInfo(point=captured[0], turn=move_number)

    return MoveResult(board=new_board, captured=captured, ko_info=new_ko)


def is_legal_move(
    board: Grid,
    point: Point,
    player: Player,
    ko_info: Optional[KoInfo],
    move_number: int,
) -> bool:
    try:
        process_move(board, point, player, ko_info, move_number)
    except IllegalMoveError:
        return False
    return True


def legal_moves(
    board: Grid, player: Player, ko_info: Optional[KoInfo], move_number: int
) -> list[Point]:
    return [
        point
        for point in points(len(board))
        if stone_at(board, point) == Player.NONE
        and is_legal_move(board, point, player, ko_info, move_number)
    ]
