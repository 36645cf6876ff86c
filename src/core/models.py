"""
Boundary layer data model(s).

These objects are what the Service sends to / receives from the persistence collaborator.
The domain converts its GameSession to a SessionModel (and back), so the DB layer never needs to know about
boards, clocks or mode sub-states: it just stores a JSON document next to a few indexed columns.
"""

from dataclasses import dataclass, field
from typing import Any

# Type aliases to make the models easier to read
SessionId = str
UserId = str


@dataclass
class SessionModel:
    """Transport-safe representation of a live game session."""

    id: SessionId
    mode: str
    status: str
    state: dict[str, Any] = field(default_factory=dict)


@dataclass
class UserModel:
    """The part of a user record the game engine needs (identity, display name, wallet)."""

    id: UserId
    nickname: str
    gold: int = 0
    is_ai: bool = False
