"""Actions every mode accepts, plus small helpers the mode modules share."""

import logging
from typing import Optional

from src.baduk import clock
from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.point import RESIGN
from src.baduk.session import GameSession, MoveRecord
from src.core import config
from src.core.exceptions import GameStateError, InvalidRequestError
from src.core.shared_types import ActionType, GameStatus, Player, WinReason

logger = logging.getLogger(__name__)


def resign(session: GameSession, action: GameAction, now: int) -> None:
    color = session.player_color(action.user_id)
    if color == Player.NONE:
        # Still negotiating colours: nobody has won anything yet
        session.declare_no_contest()
        return
    session.move_history.append(MoveRecord(color, RESIGN.x, RESIGN.y))
    session.finish(color.opponent, WinReason.RESIGN)


def pause(session: GameSession, action: GameAction, now: int) -> None:
    if not session.is_pausable:
        raise GameStateError("Only games against the AI can be paused.")
    session.assert_status(GameStatus.PLAYING)
    clock.pause_game(session, now)


def resume(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.PAUSED)
    clock.resume_game(session, now)


def request_no_contest(session: GameSession, action: GameAction, now: int) -> None:
    if not clock.can_request_no_contest(session, action.user_id):
        raise GameStateError("A no-contest can't be requested now.")
    session.declare_no_contest()


# --- helpers
def new_confirmations(session: GameSession) -> dict[str, bool]:
    """Fresh confirmation map; the AI (if any) has already confirmed."""
    return {
        player.id: player.is_ai for player in (session.player1, session.player2)
    }


def confirm(confirmations: dict[str, bool], user_id: str) -> bool:
    """Record the confirmation. True once everybody has confirmed."""
    confirmations[user_id] = True
    return all(confirmations.values())


def add_timeout_foul(session: GameSession, user_id: Optional[str]) -> bool:
    """
    Playful modes punish a missed turn with a foul instead of a loss.

    Returns True when the foul limit ended the game.
    """
    if user_id is None:
        return False
    session.timeout_fouls[user_id] = session.timeout_fouls.get(user_id, 0) + 1
    session.last_timeout_player_id = user_id
    if session.timeout_fouls[user_id] < config.PLAYFUL_MODE_FOUL_LIMIT:
        return False
    loser = session.player_color(user_id)
    session.finish(loser.opponent, WinReason.FOUL_LIMIT)
    return True


def winner_by_score(session: GameSession, scores: dict[str, int]) -> Optional[str]:
    """Id of the player with the higher score, None on a tie."""
    first, second = session.player_ids
    if scores.get(first, 0) == scores.get(second, 0):
        return None
    return first if scores.get(first, 0) > scores.get(second, 0) else second


def assign_direct_colors(session: GameSession) -> None:
    """Games against the AI skip negotiation: the challenger (player1) gets the colour they asked for."""
    challenger, other = session.player1.id, session.player2.id
    if session.settings.player1_color == Player.WHITE:
        session.assign_colors(other, challenger)
    else:
        session.assign_colors(challenger, other)


def dispatch(
    actions: dict[ActionType, ActionHandler],
    session: GameSession,
    action: GameAction,
    now: int,
) -> Optional[dict]:
    if session.is_finished:
        raise GameStateError("Game has already ended.")
    session.assert_participant(action.user_id)
    handler = actions.get(action.type)
    if handler is None:
        raise InvalidRequestError(
            f"{action.type.value} is not available in {session.mode.value} games."
        )
    return handler(session, action, now)


def run_due_timer(expiry: dict[GameStatus, ExpiryHandler], session: GameSession, now: int) -> None:
    """Fire the expiry handler of the pending timer, if it is due."""
    if session.is_finished or not session.timer_due(now):
        return
    assert session.timer is not None
    handler = expiry.get(session.timer.phase)
    if handler is None:
        logger.warning(
            "Game %s: no expiry handler for %s", session.id, session.timer.phase.value
        )
        session.timer = None
        return
    handler(session, now)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.RESIGN: resign,
    ActionType.PAUSE_GAME: pause,
    ActionType.RESUME_GAME: resume,
    ActionType.REQUEST_NO_CONTEST: request_no_contest,
}
