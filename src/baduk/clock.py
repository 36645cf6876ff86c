"""
Turn / clock engine shared by every mode.

Time left is stored in seconds, deadlines in epoch milliseconds. Every function takes `now` from the caller,
so fields updated together (time left, deadline, turn start) are always computed from the same instant.

Byoyomi
----
* main time running: deadline = turn start + time left
* main time runs out: time left is clamped to 0 and, if periods remain, a period starts (not consumed yet)
* a period runs out: one period is consumed; if any remain a fresh period starts, otherwise timeout loss
* a player inside a period does not draw from the stored time left when moving

Fischer (speed games)
----
no periods; the increment is added to the mover's time after each move, a deadline passing is a loss.
"""

import logging

from src.baduk.session import GameSession, MissileState
from src.core import config
from src.core.shared_types import GameMode, GameStatus, Player, WinReason

logger = logging.getLogger(__name__)


def has_clock(session: GameSession) -> bool:
    settings = session.settings
    return settings.time_limit > 0 or (
        settings.byoyomi_count > 0 and settings.byoyomi_time > 0
    )


def is_fischer(session: GameSession) -> bool:
    return session.has_mode(GameMode.SPEED)


def in_byoyomi(session: GameSession, player: Player) -> bool:
    clock = session.clock
    return (
        not is_fischer(session)
        and clock.time_left[player] <= 0
        and clock.byoyomi_periods[player] > 0
    )


def start_turn_clock(session: GameSession, now: int) -> None:
    """Start the clock of `session.current_player` from scratch."""
    clock = session.clock
    clock.turn_start = now
    clock.paused_time_left = None
    if not has_clock(session) or session.current_player == Player.NONE:
        clock.turn_deadline = None
        return
    player = session.current_player
    if in_byoyomi(session, player):
        clock.turn_deadline = now + session.settings.byoyomi_time * 1000
    else:
        clock.turn_deadline = now + int(clock.time_left[player] * 1000)


def transition_to_playing(
    session: GameSession, now: int, first: Player = Player.BLACK
) -> None:
    session.status = GameStatus.PLAYING
    session.timer = None
    session.current_player = first
    start_turn_clock(session, now)


def remaining_turn_time(session: GameSession, now: int) -> float:
    """Seconds left before the running deadline (0 when no clock runs)."""
    deadline = session.clock.turn_deadline
    if deadline is None:
        return 0.0
    return max(0.0, (deadline - now) / 1000)


def switch_turn(session: GameSession, now: int) -> None:
    """
    Hand the move to the opponent.
    ----
    1. charge the mover for the time used (not while inside a byoyomi period)
    2. fischer: add the increment
    3. start the opponent's clock
    """
    clock = session.clock
    mover = session.current_player
    if has_clock(session) and mover != Player.NONE:
        was_in_byoyomi = (
            clock.time_left[mover] <= 0 and session.settings.byoyomi_count > 0
        )
        if not was_in_byoyomi and clock.turn_deadline is not None:
            clock.time_left[mover] = remaining_turn_time(session, now)
        if is_fischer(session):
            clock.time_left[mover] += session.settings.time_increment

    missile = session.mode_states.get(GameMode.MISSILE)
    if isinstance(missile, MissileState):
        missile.used_this_turn = False

    session.current_player = mover.opponent
    start_turn_clock(session, now)


def pause_turn_clock(session: GameSession, now: int) -> None:
    """Freeze the running turn. The remainder is kept in `paused_time_left`."""
    clock = session.clock
    if clock.turn_deadline is not None:
        clock.paused_time_left = remaining_turn_time(session, now)
    clock.turn_deadline = None
    clock.turn_start = None


def resume_turn_clock(session: GameSession, now: int) -> None:
    """Continue the turn of the same player where `pause_turn_clock` left it."""
    clock = session.clock
    paused = clock.paused_time_left
    if paused is None or not has_clock(session):
        start_turn_clock(session, now)
        return
    player = session.current_player
    if not in_byoyomi(session, player):
        clock.time_left[player] = paused
    clock.turn_deadline = now + int(paused * 1000)
    clock.turn_start = now
    clock.paused_time_left = None


def turn_deadline_passed(session: GameSession, now: int) -> bool:
    deadline = session.clock.turn_deadline
    return deadline is not None and now >= deadline


def resolve_turn_timeout(session: GameSession, now: int) -> bool:
    """
    The running deadline passed. Either start a (fresh) byoyomi period or end the game.

    Returns True when the game is over.
    """
    clock = session.clock
    player = session.current_player
    if player == Player.NONE:
        return False

    if not is_fischer(session):
        if clock.time_left[player] > 0:
            clock.time_left[player] = 0
            if clock.byoyomi_periods[player] > 0:
                _start_period(session, now)
                return False
        elif clock.byoyomi_periods[player] > 0:
            clock.byoyomi_periods[player] -= 1
            if clock.byoyomi_periods[player] > 0:
                _start_period(session, now)
                return False
    else:
        clock.time_left[player] = 0

    session.last_timeout_player_id = session.player_id(player)
    session.finish(player.opponent, WinReason.TIMEOUT)
    return True


def _start_period(session: GameSession, now: int) -> None:
    session.clock.turn_start = now
    session.clock.turn_deadline = now + session.settings.byoyomi_time * 1000


# --- Pause (games against the AI only)
def pause_game(session: GameSession, now: int) -> None:
    session.status = GameStatus.PAUSED
    pause_turn_clock(session, now)


def resume_game(session: GameSession, now: int) -> None:
    session.status = GameStatus.PLAYING
    resume_turn_clock(session, now)


# --- Disconnection
def register_disconnect(session: GameSession, user_id: str, now: int) -> None:
    """
    Count the drop. The third one is an immediate loss; otherwise a grace period starts.
    Games against the AI just pause instead.
    """
    state = session.disconnection
    state.counts[user_id] = state.counts.get(user_id, 0) + 1

    if state.counts[user_id] >= config.MAX_DISCONNECTIONS:
        _forfeit_by_disconnect(session, user_id)
        return

    state.player_id = user_id
    state.since = now
    if session.is_pausable and session.status == GameStatus.PLAYING:
        pause_game(session, now)


def register_reconnect(session: GameSession, user_id: str) -> None:
    state = session.disconnection
    if state.player_id == user_id:
        state.player_id = None
        state.since = None


def check_disconnection(session: GameSession, now: int) -> bool:
    """Resolve an expired grace period. Returns True when the game ended."""
    state = session.disconnection
    if state.player_id is None or state.since is None or session.is_pausable:
        return False
    if now - state.since < config.DISCONNECT_GRACE_MS:
        return False
    _forfeit_by_disconnect(session, state.player_id)
    return True


def can_request_no_contest(session: GameSession, user_id: str) -> bool:
    state = session.disconnection
    return (
        state.player_id is not None
        and state.player_id != user_id
        and len(session.move_history) < config.NO_CONTEST_MOVE_THRESHOLD
    )


def _forfeit_by_disconnect(session: GameSession, user_id: str) -> None:
    state = session.disconnection
    state.player_id = None
    state.since = None
    loser = session.player_color(user_id)
    if loser == Player.NONE:
        # Colours not assigned yet: nobody can be declared the winner
        session.declare_no_contest()
        return
    session.finish(loser.opponent, WinReason.DISCONNECT)
