"""
One entry point per mode family.

The service and the game loop never look at individual mode modules; they route through here.
"""

from types import ModuleType
from typing import Optional

from src.baduk.actions import GameAction
from src.baduk.modes import playful, strategic
from src.baduk.session import GameSession
from src.core.shared_types import PLAYFUL_MODES, GameMode


def family_of(mode: GameMode) -> ModuleType:
    return playful if mode in PLAYFUL_MODES else strategic


def initialize(session: GameSession, now: int) -> None:
    family_of(session.mode).initialize(session, now)


def handle_action(session: GameSession, action: GameAction, now: int) -> Optional[dict]:
    """Apply a player's action. Raises a GameError (and leaves the session untouched) if it is rejected."""
    return family_of(session.mode).handle_action(session, action, now)


def update(session: GameSession, now: int) -> None:
    """Resolve whatever timer of the session is due at `now`."""
    family_of(session.mode).update(session, now)
