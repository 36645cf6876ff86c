"""
Custom exceptions shared by all layers.

Everything the domain raises for a rejected action derives from GameError, so the service layer
can turn any of them into a caller-visible error string with a single except clause.
"""


class GameError(Exception):
    """Top-level exception for anything going wrong while running a game session."""


class RepositoryError(GameError):
    """Requested record does not exist (or could not be stored)."""


class InvalidRequestError(GameError):
    """Incoming request could not be interpreted."""


class GameStateError(GameError):
    """Action is not allowed in the current phase of the game."""


class IllegalMoveError(GameError):
    """Board rules forbid the requested move."""


class NotYourTurnError(GameError):
    """Player tried to act while it is the opponent's turn."""


# --- External engine
# NOTE these never reach the player. The engine pool / analysis client catch them and fall back.
class EngineError(GameError):
    """Something went wrong talking to an external Go engine."""


class EngineUnavailableError(EngineError):
    """Executable missing or process not running."""


class EngineTimeoutError(EngineError):
    """No reply within the command timeout."""


class EngineCommandError(EngineError):
    """Engine answered with a failure marker, or with something we could not parse."""
