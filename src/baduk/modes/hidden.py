"""
Hidden stones and scans.

A hidden stone is an ordinary stone on the board whose move-history entry is flagged `hidden`. It is
concealed from the opponent until revealed: publicly (collision, capture contribution, end of game) by
adding its move index to `HiddenState.revealed`, or privately by a scan (`revealed_to[scanner]`).
"""

from typing import Optional

from src.baduk import clock
from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.board import Grid, copy_grid, neighbors, set_stone, stone_at
from src.baduk.point import Point
from src.baduk.session import GameSession, HiddenState
from src.core import config
from src.core.exceptions import GameStateError, IllegalMoveError
from src.core.shared_types import ActionType, GameMode, GameStatus, Player


def initialize(session: GameSession) -> None:
    settings = session.settings
    session.mode_states[GameMode.HIDDEN] = HiddenState(
        stones_used={user_id: 0 for user_id in session.player_ids},
        scans_left={user_id: settings.scan_count for user_id in session.player_ids},
        revealed_to={user_id: [] for user_id in session.player_ids},
    )


def _state(session: GameSession) -> HiddenState:
    return session.sub_state(GameMode.HIDDEN, HiddenState)


def hidden_stones_left(session: GameSession, user_id: str) -> int:
    used = _state(session).stones_used.get(user_id, 0)
    return session.settings.hidden_stone_count - used


# --- queries
def _hidden_index_at(session: GameSession, point: Point) -> Optional[int]:
    """Move index of the hidden stone currently standing on `point`, revealed or not."""
    index = session.move_index_at(point)
    if index is None:
        return None
    move = session.move_history[index]
    if not move.hidden or stone_at(session.board, point) != move.player:
        return None
    return index


def was_hidden(session: GameSession, point: Point) -> bool:
    """Was the stone last played on `point` placed as a hidden stone?"""
    index = session.move_index_at(point)
    return index is not None and session.move_history[index].hidden


def _unrevealed(session: GameSession, state: HiddenState) -> list[int]:
    size = session.settings.board_size
    result = []
    for index, move in enumerate(session.move_history):
        point = move.point
        if not move.hidden or index in state.revealed or not point.is_on_board(size):
            continue
        if session.move_index_at(point) == index and stone_at(session.board, point) == move.player:
            result.append(index)
    return result


def concealed_moves(session: GameSession, viewer_id: Optional[str]) -> list[int]:
    """Move indices of the hidden stones `viewer_id` must not see (opponent's, unrevealed, unscanned)."""
    state = session.mode_states.get(GameMode.HIDDEN)
    if not isinstance(state, HiddenState) or session.is_finished:
        return []
    viewer_color = session.player_color(viewer_id) if viewer_id else Player.NONE
    known = set(state.revealed_to.get(viewer_id, [])) if viewer_id else set()
    return [
        index
        for index in _unrevealed(session, state)
        if session.move_history[index].player != viewer_color and index not in known
    ]


def masked_board(session: GameSession, viewer_id: Optional[str]) -> Grid:
    """The board as `viewer_id` may see it: opponents' unrevealed hidden stones are blanked out."""
    concealed = concealed_moves(session, viewer_id)
    if not concealed:
        return session.board
    board = copy_grid(session.board)
    for index in concealed:
        set_stone(board, session.move_history[index].point, Player.NONE)
    return board


def masked_snapshot(session: GameSession, viewer_id: Optional[str]) -> dict:
    """Client-visible session for `viewer_id`. Concealed stones are off the board and their coordinates out of the record."""
    snapshot = session.snapshot()
    concealed = concealed_moves(session, viewer_id)
    if not concealed:
        return snapshot
    snapshot["board"] = [[int(cell) for cell in row] for row in masked_board(session, viewer_id)]
    for index in concealed:
        snapshot["move_history"][index]["x"] = None
        snapshot["move_history"][index]["y"] = None
        if session.last_move == session.move_history[index].point:
            snapshot["last_move"] = None
    return snapshot


# --- reveals
def reveal_on_collision(session: GameSession, point: Point, color: Player) -> bool:
    """A move onto an unrevealed opponent hidden stone exposes it. True if that happened."""
    state = _state(session)
    index = _hidden_index_at(session, point)
    if index is None or index in state.revealed:
        return False
    if session.move_history[index].player == color:
        return False
    state.revealed.append(index)
    return True


def reveal_contributors(
    session: GameSession, captured: list[Point], color: Player
) -> list[Point]:
    """Publicly reveal `color`'s hidden stones that took part in surrounding the captured stones."""
    state = _state(session)
    size = session.settings.board_size
    revealed: list[Point] = []
    for stone in captured:
        for neighbor in neighbors(stone, size):
            index = _hidden_index_at(session, neighbor)
            if (
                index is None
                or index in state.revealed
                or session.move_history[index].player != color
            ):
                continue
            state.revealed.append(index)
            revealed.append(neighbor)
    return revealed


def reveal_all(session: GameSession) -> bool:
    """Expose every hidden stone left on the board. True if there was anything to expose."""
    state = _state(session)
    remaining = _unrevealed(session, state)
    state.revealed.extend(remaining)
    return bool(remaining)


def consume_hidden_stone(session: GameSession, user_id: str) -> None:
    state = _state(session)
    state.stones_used[user_id] = state.stones_used.get(user_id, 0) + 1


def cancel_item(session: GameSession, now: int) -> None:
    """Close an item window: same player, clock continues from where it stopped."""
    session.status = GameStatus.PLAYING
    session.timer = None
    clock.resume_turn_clock(session, now)


# --- actions
def start_hidden_placement(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.PLAYING)
    session.assert_your_turn(action.user_id)
    if hidden_stones_left(session, action.user_id) <= 0:
        raise GameStateError("No hidden stones left.")
    clock.pause_turn_clock(session, now)
    session.set_timer(GameStatus.HIDDEN_PLACING, now + config.ITEM_USE_TIMEOUT_MS)


def start_scanning(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.PLAYING)
    session.assert_your_turn(action.user_id)
    if _state(session).scans_left.get(action.user_id, 0) <= 0:
        raise GameStateError("No scans left.")
    clock.pause_turn_clock(session, now)
    session.set_timer(GameStatus.SCANNING, now + config.ITEM_USE_TIMEOUT_MS)


def scan_board(session: GameSession, action: GameAction, now: int) -> dict:
    session.assert_status(GameStatus.SCANNING)
    color = session.assert_your_turn(action.user_id)
    point = action.point()
    if not point.is_on_board(session.settings.board_size):
        raise IllegalMoveError("Point is off the board.")

    state = _state(session)
    state.scans_left[action.user_id] -= 1
    index = _hidden_index_at(session, point)
    success = (
        index is not None
        and index not in state.revealed
        and session.move_history[index].player == color.opponent
    )
    if success:
        assert index is not None
        state.revealed_to.setdefault(action.user_id, []).append(index)
    state.last_scan = point
    state.last_scan_success = success

    clock.resume_turn_clock(session, now)
    session.set_timer(GameStatus.SCANNING_ANIMATING, now + config.SCAN_ANIMATION_MS)
    return {"success": success}


# --- timers
def _on_item_expired(session: GameSession, now: int) -> None:
    cancel_item(session, now)


def _on_scan_animation_expired(session: GameSession, now: int) -> None:
    session.status = GameStatus.PLAYING
    session.timer = None


def _on_reveal_animation_expired(session: GameSession, now: int) -> None:
    session.status = GameStatus.PLAYING
    session.timer = None
    clock.resume_turn_clock(session, now)
    clock.switch_turn(session, now)


def _on_final_reveal_expired(session: GameSession, now: int) -> None:
    session.status = GameStatus.SCORING
    session.timer = None


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.START_HIDDEN_PLACEMENT: start_hidden_placement,
    ActionType.START_SCANNING: start_scanning,
    ActionType.SCAN_BOARD: scan_board,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    GameStatus.HIDDEN_PLACING: _on_item_expired,
    GameStatus.SCANNING: _on_item_expired,
    GameStatus.SCANNING_ANIMATING: _on_scan_animation_expired,
    GameStatus.HIDDEN_REVEAL_ANIMATING: _on_reveal_animation_expired,
    GameStatus.HIDDEN_FINAL_REVEAL: _on_final_reveal_expired,
}
