"""
Score bookkeeping types and the local (engine-free) territory estimate.

The estimate is deliberately simple: a group counts as alive with two real eyes, with many liberties,
or in a two-liberty seki. Everything else is removed before empty regions are flood-filled.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Optional

from src.baduk.board import (
    Grid,
    Group,
    all_groups,
    copy_grid,
    find_group,
    neighbors,
    points,
    set_stone,
    stone_at,
)
from src.baduk.point import Point
from src.core.shared_types import Player

ALIVE_LIBERTY_COUNT = 7


@dataclass
class PlayerScore:
    territory: float = 0
    captures: int = 0
    live_captures: int = 0
    dead_stones: int = 0
    komi: float = 0
    base_stone_bonus: int = 0
    hidden_stone_bonus: int = 0
    time_bonus: int = 0
    item_bonus: int = 0
    total: float = 0

    def recompute_total(self) -> None:
        self.total = (
            self.territory
            + self.captures
            + self.dead_stones
            + self.komi
            + self.base_stone_bonus
            + self.hidden_stone_bonus
            + self.time_bonus
            + self.item_bonus
        )


@dataclass
class ScoreDetails:
    black: PlayerScore = field(default_factory=PlayerScore)
    white: PlayerScore = field(default_factory=PlayerScore)


@dataclass
class CandidateMove:
    point: Point
    win_rate: float
    score_lead: float


@dataclass
class AnalysisResult:
    """Snapshot used by the settlement screen. Win rate is a percentage for Black."""

    win_rate_black: float = 50.0
    score_lead: float = 0.0
    ownership: list[list[float]] = field(default_factory=list)
    dead_stones: list[Point] = field(default_factory=list)
    black_territory: list[Point] = field(default_factory=list)
    white_territory: list[Point] = field(default_factory=list)
    recommended_moves: list[CandidateMove] = field(default_factory=list)
    score_details: Optional[ScoreDetails] = None
    is_fallback: bool = False


def neutral_analysis() -> AnalysisResult:
    """What the engine 'says' when it cannot be asked."""
    return AnalysisResult(is_fallback=True)


# --- Local estimate
@dataclass
class LocalScore:
    black: float
    white: float
    dead_stones: list[Point]
    black_territory: list[Point]
    white_territory: list[Point]
    dead_black: int
    dead_white: int


def _diagonals(point: Point, size: int) -> list[Point]:
    return [
        point.shifted(dx, dy)
        for dx, dy in ((-1, -1), (1, -1), (-1, 1), (1, 1))
        if point.shifted(dx, dy).is_on_board(size)
    ]


def is_eye(point: Point, player: Player, board: Grid) -> bool:
    """Empty point fully surrounded by `player`, with at most one opponent stone on its diagonals."""
    size = len(board)
    if stone_at(board, point) != Player.NONE:
        return False
    if any(stone_at(board, n) != player for n in neighbors(point, size)):
        return False
    opponent_corners = sum(
        1 for corner in _diagonals(point, size) if stone_at(board, corner) == player.opponent
    )
    return opponent_corners <= 1


def is_alive(group: Group, player: Player, board: Grid) -> bool:
    if group.liberties >= 2:
        eyes = sum(1 for liberty in group.liberty_points if is_eye(liberty, player, board))
        if eyes >= 2:
            return True

    if group.liberties >= ALIVE_LIBERTY_COUNT:
        return True

    # Two-liberty seki: an opponent group shares exactly the same two liberties
    if group.liberties == 2:
        first = min(group.liberty_points)
        for neighbor in neighbors(first, len(board)):
            if stone_at(board, neighbor) != player.opponent:
                continue
            other = find_group(neighbor, player.opponent, board)
            if other is not None and other.liberty_points == group.liberty_points:
                return True
    return False


def find_dead_stones(board: Grid) -> list[Point]:
    dead: list[Point] = []
    for player in (Player.BLACK, Player.WHITE):
        for group in all_groups(player, board):
            if not is_alive(group, player, board):
                dead.extend(group.stones)
    return dead


def territory_regions(board: Grid) -> tuple[list[Point], list[Point]]:
    """Empty regions bordered by a single colour. Returns (black territory, white territory)."""
    size = len(board)
    seen: set[Point] = set()
    black: list[Point] = []
    white: list[Point] = []
    for start in points(size):
        if start in seen or stone_at(board, start) != Player.NONE:
            continue
        region: list[Point] = []
        borders: set[Player] = set()
        queue = deque([start])
        seen.add(start)
        while queue:
            current = queue.popleft()
            region.append(current)
            for neighbor in neighbors(current, size):
                occupant = stone_at(board, neighbor)
                if occupant != Player.NONE:
                    borders.add(occupant)
                elif neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(neighbor)
        if borders == {Player.BLACK}:
            black.extend(region)
        elif borders == {Player.WHITE}:
            white.extend(region)
    return black, white


def estimate_score(
    board: Grid, komi: float, black_captures: int, white_captures: int
) -> LocalScore:
    """
    Area-free territory count.
    ----
    black = territory + captures + dead white stones
    white = territory + captures + dead black stones + komi
    """
    dead = find_dead_stones(board)
    cleaned = copy_grid(board)
    dead_black = dead_white = 0
    for stone in dead:
        if stone_at(cleaned, stone) == Player.BLACK:
            dead_black += 1
        else:
            dead_white += 1
        set_stone(cleaned, stone, Player.NONE)

    black_territory, white_territory = territory_regions(cleaned)
    return LocalScore(
        black=len(black_territory) + black_captures + dead_white,
        white=len(white_territory) + white_captures + dead_black + komi,
        dead_stones=dead,
        black_territory=black_territory,
        white_territory=white_territory,
        dead_black=dead_black,
        dead_white=dead_white,
    )
