"""
A point on the board

(placed in its own module as almost every other module needs to import it)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Point:
    """Zero-based coordinates: x is the column, y is the row (row 0 at the top)."""

    x: int
    y: int

    def is_on_board(self, board_size: int) -> bool:
        return 0 <= self.x < board_size and 0 <= self.y < board_size

    @property
    def is_pass(self) -> bool:
        return self == PASS

    @property
    def is_resign(self) -> bool:
        return self == RESIGN

    def shifted(self, dx: int, dy: int) -> Point:
        return Point(self.x + dx, self.y + dy)


# Sentinels recorded in the move history
PASS = Point(-1, -1)
RESIGN = Point(-2, -2)
