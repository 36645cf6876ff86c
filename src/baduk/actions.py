"""
Inbound actions as the domain sees them.

The API layer validates the payload shape; handlers still read it through these accessors so a
hand-built action (AI, tests, tick) gets the same error messages.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from src.baduk.point import Point
from src.baduk.session import GameSession
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import (
    ActionType,
    Direction,
    Player,
    RPSChoice,
    ThiefRole,
    TurnChoice,
)


@dataclass
class GameAction:
    type: ActionType
    user_id: str
    payload: dict[str, Any] = field(default_factory=dict)

    def point(self, x_key: str = "x", y_key: str = "y") -> Point:
        try:
            return Point(int(self.payload[x_key]), int(self.payload[y_key]))
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidRequestError(
                f"{self.type.value} needs integer {x_key!r} and {y_key!r}."
            ) from exc

    def number(self, key: str) -> float:
        try:
            return float(self.payload[key])
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidRequestError(f"{self.type.value} needs a number {key!r}.") from exc

    def integer(self, key: str) -> int:
        value = self.number(key)
        if value != int(value):
            raise InvalidRequestError(f"{key!r} must be a whole number.")
        return int(value)

    def direction(self) -> Direction:
        return _enum_field(self, "direction", Direction)

    def rps_choice(self) -> RPSChoice:
        return _enum_field(self, "choice", RPSChoice)

    def turn_choice(self) -> TurnChoice:
        return _enum_field(self, "choice", TurnChoice)

    def thief_role(self) -> ThiefRole:
        return _enum_field(self, "choice", ThiefRole)

    def color(self, key: str = "color") -> Player:
        """Black or White, given either as a name or as its number."""
        raw = self.payload.get(key)
        if isinstance(raw, str) and raw.upper() in ("BLACK", "WHITE"):
            return Player[raw.upper()]
        if isinstance(raw, int) and raw in (Player.BLACK, Player.WHITE):
            return Player(raw)
        raise InvalidRequestError(f"{raw!r} is not a stone colour. Use black or white.")


def _enum_field(action: GameAction, key: str, enum_type):
    raw = action.payload.get(key)
    try:
        return enum_type(raw)
    except ValueError as exc:
        raise InvalidRequestError(
            f"{raw!r} is not a valid {key}. Pick one from {', '.join(e.value for e in enum_type)}."
        ) from exc


# Handler signature shared by every mode module: mutate the session or raise a GameError.
# The optional return value is passed to the client unchanged.
ActionHandler = Callable[[GameSession, GameAction, int], Optional[dict[str, Any]]]
ExpiryHandler = Callable[[GameSession, int], None]
