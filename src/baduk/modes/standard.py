"""
Stone placement and passing for the Go family.

Every strategic mode plays its stones through `play_stone`, so captures are tallied and mode goals
(capture target, stage stone limit) are checked in one place.
"""

from typing import Optional

from src.baduk import clock
from src.baduk.actions import ActionHandler, GameAction
from src.baduk.board import process_move
from src.baduk.modes import hidden
from src.baduk.point import PASS, Point
from src.baduk.session import (
    BaseState,
    CaptureState,
    GameSession,
    HiddenState,
    MissileState,
    MoveRecord,
)
from src.core import config
from src.core.exceptions import IllegalMoveError
from src.core.shared_types import ActionType, GameMode, GameStatus, Player, WinReason


def place_stone(session: GameSession, action: GameAction, now: int) -> Optional[dict]:
    session.assert_status(GameStatus.PLAYING, GameStatus.HIDDEN_PLACING)
    color = session.assert_your_turn(action.user_id)
    point = action.point()
    if not point.is_on_board(session.settings.board_size):
        raise IllegalMoveError("Point is off the board.")

    hidden_move = session.status == GameStatus.HIDDEN_PLACING
    if session.has_mode(GameMode.HIDDEN) and hidden.reveal_on_collision(
        session, point, color
    ):
        # The opponent's hidden stone is exposed; the mover keeps the turn
        if hidden_move:
            hidden.cancel_item(session, now)
        return {"revealed": {"x": point.x, "y": point.y}}

    play_stone(session, point, color, now, is_hidden=hidden_move)
    return None


def pass_turn(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.PLAYING)
    color = session.assert_your_turn(action.user_id)
    record_pass(session, color, now)


def play_stone(
    session: GameSession, point: Point, color: Player, now: int, is_hidden: bool = False
) -> None:
    """Apply a move that passed the turn/status checks. Raises IllegalMoveError before touching the session."""
    result = process_move(
        session.board, point, color, session.ko_info, len(session.move_history)
    )

    if is_hidden:
        _spend_hidden_stone(session, color, now)
    session.board = result.board
    session.ko_info = result.ko_info
    session.last_move = point
    session.move_history.append(MoveRecord(color, point.x, point.y, hidden=is_hidden))
    session.pass_count = 0
    if session.stage is not None and color == Player.BLACK:
        session.stage.black_stones_placed += 1

    tally_captures(session, result.captured, color)
    if check_goals(session, color):
        return

    if result.captured and session.has_mode(GameMode.HIDDEN):
        if hidden.reveal_contributors(session, result.captured, color):
            clock.pause_turn_clock(session, now)
            session.set_timer(
                GameStatus.HIDDEN_REVEAL_ANIMATING,
                now + config.HIDDEN_REVEAL_ANIMATION_MS,
            )
            return

    clock.switch_turn(session, now)


def _spend_hidden_stone(session: GameSession, color: Player, now: int) -> None:
    """Spend one hidden stone and close the item window (the clock picks up where it stopped)."""
    user_id = session.player_id(color)
    assert user_id is not None
    hidden.consume_hidden_stone(session, user_id)
    session.status = GameStatus.PLAYING
    session.timer = None
    clock.resume_turn_clock(session, now)


def record_pass(session: GameSession, color: Player, now: int) -> None:
    session.move_history.append(MoveRecord(color, PASS.x, PASS.y))
    session.last_move = None
    session.ko_info = None
    session.pass_count += 1
    if session.pass_count >= 2:
        begin_scoring(session, now)
        return
    clock.switch_turn(session, now)


def begin_scoring(session: GameSession, now: int) -> None:
    """Two passes: stop the clocks and hand the board to the scoring service."""
    if is_too_short_to_score(session):
        session.declare_no_contest()
        return
    session.current_player = Player.NONE
    session.clock.turn_deadline = None
    session.clock.turn_start = None
    session.timer = None
    if session.has_mode(GameMode.HIDDEN) and hidden.reveal_all(session):
        session.set_timer(
            GameStatus.HIDDEN_FINAL_REVEAL, now + config.HIDDEN_FINAL_REVEAL_MS
        )
        return
    session.status = GameStatus.SCORING


def is_too_short_to_score(session: GameSession) -> bool:
    """
    Both players passed before the game really started: no result is recorded.
    ----
    Passes count as moves. A missile launched or a scan used makes the game count whatever its length,
    and stage games are always scored.
    """
    if session.is_stage_game or len(session.move_history) >= config.NO_CONTEST_MOVE_THRESHOLD:
        return False
    return not _items_spent(session)


def _items_spent(session: GameSession) -> bool:
    settings = session.settings
    missile = session.mode_states.get(GameMode.MISSILE)
    if isinstance(missile, MissileState) and any(
        left < settings.missile_count for left in missile.missiles_left.values()
    ):
        return True
    hidden_state = session.mode_states.get(GameMode.HIDDEN)
    return isinstance(hidden_state, HiddenState) and any(
        left < settings.scan_count for left in hidden_state.scans_left.values()
    )


def tally_captures(session: GameSession, captured: list[Point], color: Player) -> None:
    """
    Count captured stones for `color`.
    ----
    `captures` holds every captured stone; base and hidden stones are additionally counted in their own
    sub-totals, which earn bonus points at the end.
    """
    if not captured:
        return
    session.captures[color] += len(captured)

    base = session.mode_states.get(GameMode.BASE)
    for stone in captured:
        if isinstance(base, BaseState) and base.is_base_stone(stone):
            session.base_stone_captures[color] += 1
            base.base_stones = [b for b in base.base_stones if b.point != stone]
        elif hidden.was_hidden(session, stone):
            session.hidden_stone_captures[color] += 1


def check_goals(session: GameSession, color: Player) -> bool:
    """End the game if `color`'s last move reached a goal. True when the game ended."""
    capture = session.mode_states.get(GameMode.CAPTURE)
    if isinstance(capture, CaptureState):
        target = capture.targets[color]
        if target > 0 and session.captures[color] >= target:
            session.finish(color, WinReason.CAPTURE_LIMIT)
            return True

    stage = session.stage
    if (
        stage is not None
        and color == Player.BLACK
        and stage.black_stone_limit is not None
        and stage.black_stones_placed >= stage.black_stone_limit
    ):
        session.finish(Player.WHITE, WinReason.STONE_LIMIT_EXCEEDED)
        return True
    return False


def update(session: GameSession, now: int) -> None:
    """Resolve a running turn deadline (byoyomi period or timeout loss)."""
    if session.status == GameStatus.PLAYING and clock.turn_deadline_passed(
        session, now
    ):
        clock.resolve_turn_timeout(session, now)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.PLACE_STONE: place_stone,
    ActionType.PASS_TURN: pass_turn,
}
