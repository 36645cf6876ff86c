"""
Heuristic move selection for the Go family when no engine is available.

Each heuristic is a small strategy object that scores one candidate move against a shared BoardContext.
Which heuristics take part in a given turn is rolled per turn from the difficulty level's activation table,
and the final move is picked at random among the three best candidates.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Optional, Protocol

from src.baduk.board import (
    Grid,
    Group,
    KoInfo,
    MoveResult,
    all_groups,
    find_group,
    neighbors,
    points,
    process_move,
    stone_at,
)
from src.baduk.point import PASS, Point
from src.core.exceptions import IllegalMoveError
from src.core.shared_types import Player

# Activation chance (percent) of each heuristic per difficulty level
LEVEL_ACTIVATION: dict[int, dict[str, int]] = {
    1: {"h1": 100, "h2": 20, "h3": 20, "h4": 20, "h5": 50, "h6": 20, "h7": 40, "h8": 50, "h9": 50, "h10": 20, "h11": 20, "h12": 20, "h13": 100, "h14": 50, "h15": 50, "h16": 100, "h17": 20},
    2: {"h1": 100, "h2": 40, "h3": 35, "h4": 35, "h5": 60, "h6": 30, "h7": 60, "h8": 70, "h9": 60, "h10": 30, "h11": 30, "h12": 30, "h13": 100, "h14": 60, "h15": 65, "h16": 100, "h17": 30},
    3: {"h1": 100, "h2": 60, "h3": 50, "h4": 50, "h5": 70, "h6": 40, "h7": 80, "h8": 90, "h9": 70, "h10": 40, "h11": 40, "h12": 40, "h13": 100, "h14": 70, "h15": 80, "h16": 100, "h17": 40},
    4: {"h1": 100, "h2": 80, "h3": 65, "h4": 65, "h5": 80, "h6": 50, "h7": 100, "h8": 100, "h9": 80, "h10": 50, "h11": 50, "h12": 50, "h13": 100, "h14": 80, "h15": 90, "h16": 100, "h17": 50},
    5: {"h1": 100, "h2": 100, "h3": 80, "h4": 80, "h5": 90, "h6": 60, "h7": 100, "h8": 100, "h9": 90, "h10": 60, "h11": 60, "h12": 60, "h13": 100, "h14": 90, "h15": 100, "h16": 100, "h17": 60},
    6: {"h1": 100, "h2": 100, "h3": 100, "h4": 95, "h5": 100, "h6": 70, "h7": 100, "h8": 100, "h9": 100, "h10": 70, "h11": 70, "h12": 70, "h13": 100, "h14": 100, "h15": 100, "h16": 100, "h17": 70},
    7: {"h1": 100, "h2": 100, "h3": 100, "h4": 100, "h5": 100, "h6": 80, "h7": 100, "h8": 100, "h9": 100, "h10": 80, "h11": 80, "h12": 80, "h13": 100, "h14": 100, "h15": 100, "h16": 100, "h17": 80},
    8: {"h1": 100, "h2": 100, "h3": 100, "h4": 100, "h5": 100, "h6": 90, "h7": 100, "h8": 100, "h9": 100, "h10": 90, "h11": 90, "h12": 90, "h13": 100, "h14": 100, "h15": 100, "h16": 100, "h17": 90},
    9: {"h1": 100, "h2": 100, "h3": 100, "h4": 100, "h5": 100, "h6": 100, "h7": 100, "h8": 100, "h9": 100, "h10": 100, "h11": 100, "h12": 100, "h13": 100, "h14": 100, "h15": 100, "h16": 100, "h17": 100},
}

TOP_CANDIDATES = 3


@dataclass
class Candidate:
    point: Point
    result: MoveResult
    score: float = 1.0
    reasons: list[str] = field(default_factory=list)


@dataclass
class BoardContext:
    """Everything the heuristics need, computed once per turn."""

    board: Grid
    player: Player
    level: int
    active: set[str]
    my_groups: list[Group]
    opponent_groups: list[Group]
    weakest_mine: Optional[Group]
    weakest_opponent: Optional[Group]
    defensive: bool
    captures_to_goal: Optional[int] = None  # stones still needed to reach a capture target

    @property
    def opponent(self) -> Player:
        return self.player.opponent

    @property
    def size(self) -> int:
        return len(self.board)

    def line(self, point: Point) -> int:
        """1 for the edge, 2 for the second line, ..."""
        return min(point.x, point.y, self.size - 1 - point.x, self.size - 1 - point.y) + 1

    def neighbors_of(self, point: Point, owner: Player) -> list[Point]:
        return [n for n in neighbors(point, self.size) if stone_at(self.board, n) == owner]

    def group_at(self, point: Point, groups: list[Group]) -> Optional[Group]:
        return next((group for group in groups if point in group), None)

    def distinct_groups(self, stones: list[Point], groups: list[Group]) -> list[Group]:
        found: list[Group] = []
        for stone in stones:
            group = self.group_at(stone, groups)
            if group is not None and all(group is not other for other in found):
                found.append(group)
        return found


class Heuristic(Protocol):
    key: str

    def score(self, candidate: Candidate, ctx: BoardContext) -> float:
        ...


# --- Penalties
class SelfAtari:
    key = "h14"

    def score(self, candidate, ctx):
        if candidate.result.captured:
            return 0
        own = find_group(candidate.point, ctx.player, candidate.result.board)
        return -500 if own is not None and own.liberties == 1 else 0


class BadConnection:
    """Connecting groups next to a weak opponent group usually throws stones away."""

    key = "h13"

    def score(self, candidate, ctx):
        friendly = ctx.distinct_groups(ctx.neighbors_of(candidate.point, ctx.player), ctx.my_groups)
        if len(friendly) < 2:
            return 0
        for stone in ctx.neighbors_of(candidate.point, ctx.opponent):
            group = find_group(stone, ctx.opponent, candidate.result.board)
            if group is not None and group.liberties <= 2:
                return -10_000
        return 0


class LowLine:
    key = "h16"

    def score(self, candidate, ctx):
        if candidate.result.captured:
            return 0
        return {1: -200, 2: -100}.get(ctx.line(candidate.point), 0)


# --- Tactics
class Capture:
    key = "h7"

    def score(self, candidate, ctx):
        captured = len(candidate.result.captured)
        if not captured:
            return 0
        value = 1000 * captured
        if ctx.captures_to_goal is not None and captured >= ctx.captures_to_goal:
            value *= 100
        return value


class DefendWeakest:
    """h4 sets the defensive stance for the turn; h3 pushes for contact moves while defending."""

    key = "h4"

    def score(self, candidate, ctx):
        weakest = ctx.weakest_mine
        if not ctx.defensive or weakest is None or candidate.point not in weakest.liberty_points:
            return 0
        value = 500 / weakest.liberties
        if "h3" in ctx.active and ctx.neighbors_of(candidate.point, ctx.opponent):
            value *= 1.5
        return value


class AttackWeakest:
    """h2 prefers attacking from the centre side."""

    key = "h1"

    def score(self, candidate, ctx):
        weakest = ctx.weakest_opponent
        if ctx.defensive or weakest is None or candidate.point not in weakest.liberty_points:
            return 0
        value = 1000 / weakest.liberties
        if "h2" in ctx.active:
            value += (5 - ctx.line(candidate.point)) * 50
        return value


# --- Shape and territory
class Connect:
    """h5 joins groups (h11: much more when one of them is short of liberties); h10 extends a single group."""

    key = "h5"

    def score(self, candidate, ctx):
        friendly = ctx.distinct_groups(ctx.neighbors_of(candidate.point, ctx.player), ctx.my_groups)
        if len(friendly) > 1:
            value = 300
            if "h11" in ctx.active and any(group.liberties < 4 for group in friendly):
                value *= 3
            return value
        if friendly and "h10" in ctx.active:
            return 25
        return 0


class Territory:
    key = "h6"

    def score(self, candidate, ctx):
        point = candidate.point
        line = ctx.line(point)
        corner_distance = min(point.x, ctx.size - 1 - point.x) + min(point.y, ctx.size - 1 - point.y)
        value = {4: 50, 3: 40}.get(line, 0)
        if corner_distance < 5:
            value += 30
        elif line <= 4:
            value += 20
        if 2 <= ctx.level <= 8:
            for stone in ctx.neighbors_of(point, ctx.opponent):
                group = ctx.group_at(stone, ctx.opponent_groups)
                if group is not None and group.liberties > 3:
                    # no point building next to a settled opponent group
                    value *= 0.5
                    break
        return value


class ThirdFourthLine:
    key = "h9"

    def score(self, candidate, ctx):
        return 50 if ctx.line(candidate.point) in (3, 4) else 0


class Wall:
    """Third/fourth-line move backed by an own stone towards the edge."""

    key = "h12"

    def score(self, candidate, ctx):
        point = candidate.point
        line = ctx.line(point)
        last = ctx.size - 1
        if line not in (3, 4) or not (0 < point.x < last and 0 < point.y < last):
            return 0
        backing = (
            (point.y < line, Point(point.x, point.y - 1)),
            (point.y > last - line, Point(point.x, point.y + 1)),
            (point.x < line, Point(point.x - 1, point.y)),
            (point.x > last - line, Point(point.x + 1, point.y)),
        )
        for applies, behind in backing:
            if applies and stone_at(ctx.board, behind) == ctx.player:
                return 60
        return 0


class StrongContact:
    key = "h15"

    def score(self, candidate, ctx):
        if not ctx.neighbors_of(candidate.point, ctx.opponent):
            return 0
        friendly = ctx.distinct_groups(ctx.neighbors_of(candidate.point, ctx.player), ctx.my_groups)
        most = max((group.liberties for group in friendly), default=0)
        return most * 10 if most > 2 else 0


class SurroundSmallGroup:
    """Small opponent group already mostly surrounded by us: keep it that way."""

    key = "h17"

    def score(self, candidate, ctx):
        for stone in ctx.neighbors_of(candidate.point, ctx.opponent):
            group = ctx.group_at(stone, ctx.opponent_groups)
            if group is None or len(group.stones) > 3:
                continue
            around = {n for s in group.stones for n in neighbors(s, ctx.size)}
            ours = sum(1 for n in around if stone_at(ctx.board, n) == ctx.player)
            if ours > len(around) / 2:
                return 150
        return 0


HEURISTICS: list[Heuristic] = [
    SelfAtari(),
    BadConnection(),
    LowLine(),
    Capture(),
    DefendWeakest(),
    AttackWeakest(),
    Connect(),
    Territory(),
    ThirdFourthLine(),
    Wall(),
    StrongContact(),
    SurroundSmallGroup(),
]


def roll_active(level: int) -> set[str]:
    table = LEVEL_ACTIVATION[max(1, min(level, 9))]
    return {key for key, chance in table.items() if random.random() * 100 < chance}


def _weakest(groups: list[Group]) -> Optional[Group]:
    return min(groups, key=lambda group: group.liberties, default=None)


def build_context(
    board: Grid,
    player: Player,
    level: int,
    active: set[str],
    captures_to_goal: Optional[int] = None,
) -> BoardContext:
    my_groups = all_groups(player, board)
    opponent_groups = all_groups(player.opponent, board)
    weakest_mine = _weakest(my_groups)
    weakest_opponent = _weakest(opponent_groups)

    defensive = (
        "h4" in active
        and weakest_mine is not None
        and weakest_opponent is not None
        and weakest_mine.liberties <= weakest_opponent.liberties
        and weakest_mine.liberties < 3
    )
    if defensive and weakest_mine is not None and weakest_mine.liberties == 1 and "h8" in active:
        # h8: don't try to save a group that is already in atari
        defensive = False

    return BoardContext(
        board=board,
        player=player,
        level=level,
        active=active,
        my_groups=my_groups,
        opponent_groups=opponent_groups,
        weakest_mine=weakest_mine,
        weakest_opponent=weakest_opponent,
        defensive=defensive,
        captures_to_goal=captures_to_goal,
    )


def candidates(
    board: Grid, player: Player, ko_info: Optional[KoInfo], move_number: int
) -> list[Candidate]:
    found: list[Candidate] = []
    for point in points(len(board)):
        if stone_at(board, point) != Player.NONE:
            continue
        try:
            result = process_move(board, point, player, ko_info, move_number)
        except IllegalMoveError:
            continue
        found.append(Candidate(point=point, result=result))
    return found


def select_move(
    board: Grid,
    player: Player,
    ko_info: Optional[KoInfo],
    move_number: int,
    level: int = 1,
    captures_to_goal: Optional[int] = None,
) -> Point:
    """Pick a move for `player`, or PASS if nothing is legal."""
    scored = candidates(board, player, ko_info, move_number)
    if not scored:
        return PASS

    ctx = build_context(board, player, level, roll_active(level), captures_to_goal)
    for heuristic in HEURISTICS:
        if heuristic.key not in ctx.active:
            continue
        for candidate in scored:
            delta = heuristic.score(candidate, ctx)
            if delta:
                candidate.score += delta
                candidate.reasons.append(heuristic.key)

    scored.sort(key=lambda candidate: candidate.score, reverse=True)
    return random.choice(scored[:TOP_CANDIDATES]).point
