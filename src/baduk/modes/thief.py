"""
Thief & Police.

The thief plays Black and the police White. On each turn the player to move rolls (the thief one die, the police
two) and places that many stones. The thief opens anywhere, after that every stone, whoever places it, goes on a
liberty of the black stones. Police captures score for the police, black stones still standing when the round
ends score for the thief. Roles swap every round; still tied after the last round, rounds go on until someone
leads.

(two humans) turn_preference_selection -> thief_role_confirmed (10s) -> round
round: thief_rolling -> thief_rolling_animating (1.5s) -> thief_placing -> ... -> thief_round_end (20s) -> next
"""

import random

from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.board import count_stones, liberty_points_of, points, process_move, stone_at
from src.baduk.modes import shared, turn_preference
from src.baduk.point import Point
from src.baduk.session import GameSession, MoveRecord, ThiefState
from src.core import config
from src.core.exceptions import GameStateError, IllegalMoveError
from src.core.shared_types import (
    ActionType,
    GameCategory,
    GameMode,
    GameStatus,
    Player,
    WinReason,
)

DICE_PER_ROLE = {Player.BLACK: 1, Player.WHITE: 2}


def _state(session: GameSession) -> ThiefState:
    return session.sub_state(GameMode.THIEF, ThiefState)


def initialize(session: GameSession) -> None:
    session.mode_states[GameMode.THIEF] = ThiefState(
        scores={user_id: 0 for user_id in session.player_ids}
    )


def start(session: GameSession, now: int) -> None:
    """Colours are assigned by now: whoever plays Black is the first thief."""
    state = _state(session)
    state.thief_id = session.black_player_id
    if session.category != GameCategory.NORMAL:
        _start_round(session, state, now)
        return
    session.current_player = Player.NONE
    state.confirmations = shared.new_confirmations(session)
    session.set_timer(GameStatus.THIEF_ROLE_CONFIRMED, now + config.THIEF_ROLE_REVEAL_MS)


def police_id(session: GameSession) -> str:
    thief_id = _state(session).thief_id
    assert thief_id is not None
    return session.opponent_id(thief_id)


# --- roles
def choose_role(session: GameSession, action: GameAction, now: int) -> None:
    """Thief asks to move first, police to move second; the turn preference rules settle the rest."""
    role = action.thief_role()
    turn_preference.choose(
        session,
        GameAction(ActionType.CHOOSE_TURN_PREFERENCE, action.user_id, {"choice": role.turn_choice.value}),
        now,
    )


def confirm_role(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.THIEF_ROLE_CONFIRMED)
    state = _state(session)
    if shared.confirm(state.confirmations, action.user_id):
        _start_round(session, state, now)


def _start_round(session: GameSession, state: ThiefState, now: int) -> None:
    assert state.thief_id is not None
    session.assign_colors(state.thief_id, session.opponent_id(state.thief_id))
    session.reset_board()
    session.last_move = None
    session.ko_info = None
    state.turn_in_round = 1
    state.captures_this_round = 0
    state.stones_to_place = 0
    state.last_roll = []
    session.current_player = Player.BLACK
    session.set_timer(GameStatus.THIEF_ROLLING, now + config.PLAYFUL_TURN_TIME_MS)


# --- turn
def allowed_points(session: GameSession, color: Player) -> set[Point]:
    """Where `color` may put its next stone."""
    board = session.board
    opening = color == Player.BLACK and _state(session).turn_in_round == 1
    if opening or count_stones(board, Player.BLACK) == 0:
        return {
            point
            for point in points(session.settings.board_size)
            if stone_at(board, point) == Player.NONE
        }
    return liberty_points_of(Player.BLACK, board)


def roll(session: GameSession, action: GameAction, now: int) -> dict:
    session.assert_status(GameStatus.THIEF_ROLLING)
    session.assert_your_turn(action.user_id)
    return {"roll": _roll(session, now)}


def _roll(session: GameSession, now: int) -> list[int]:
    state = _state(session)
    values = [random.randint(1, 6) for _ in range(DICE_PER_ROLE[session.current_player])]
    state.last_roll = values
    state.stones_to_place = sum(values)
    session.set_timer(
        GameStatus.THIEF_ROLLING_ANIMATING, now + config.DICE_ROLL_ANIMATION_MS
    )
    return values


def place_stone(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.THIEF_PLACING)
    color = session.assert_your_turn(action.user_id)
    if _state(session).stones_to_place <= 0:
        raise GameStateError("No stones left to place.")
    _place(session, color, action.point(), now)


def _place(session: GameSession, color: Player, point: Point, now: int) -> None:
    state = _state(session)
    if point not in allowed_points(session, color):
        raise IllegalMoveError("Stones may only be placed on a liberty of the thief's stones.")

    # Ko never applies: a player places several stones in a row
    result = process_move(
        session.board, point, color, None, len(session.move_history), ignore_suicide=True
    )
    session.board = result.board
    session.last_move = point
    session.move_history.append(MoveRecord(color, point.x, point.y))
    if color == Player.WHITE:
        state.captures_this_round += len(result.captured)
    state.stones_to_place -= 1

    if (
        state.stones_to_place == 0
        or count_stones(session.board, Player.BLACK) == 0
        or not allowed_points(session, color)
    ):
        _finish_turn(session, state, now)


def _finish_turn(session: GameSession, state: ThiefState, now: int) -> None:
    state.stones_to_place = 0
    state.turn_in_round += 1
    if (
        state.turn_in_round > config.THIEF_TURNS_PER_ROUND
        or count_stones(session.board, Player.BLACK) == 0
    ):
        _end_round(session, state, now)
        return
    session.current_player = session.current_player.opponent
    session.last_move = None
    session.set_timer(GameStatus.THIEF_ROLLING, now + config.PLAYFUL_TURN_TIME_MS)


def _end_round(session: GameSession, state: ThiefState, now: int) -> None:
    assert state.thief_id is not None
    thief, police = state.thief_id, police_id(session)
    round_scores = {
        thief: count_stones(session.board, Player.BLACK),
        police: state.captures_this_round,
    }
    for user_id, points_won in round_scores.items():
        state.scores[user_id] = state.scores.get(user_id, 0) + points_won
    state.round_scores.append(round_scores)

    if state.round >= config.THIEF_ROUNDS:
        winner_id = shared.winner_by_score(session, state.scores)
        if winner_id is not None:
            session.finish(session.player_color(winner_id), WinReason.TOTAL_SCORE)
            return
        state.is_deathmatch = True

    session.current_player = Player.NONE
    state.confirmations = shared.new_confirmations(session)
    session.set_timer(GameStatus.THIEF_ROUND_END, now + config.ROUND_END_CONFIRMATION_MS)


def confirm_round_end(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.THIEF_ROUND_END)
    state = _state(session)
    if shared.confirm(state.confirmations, action.user_id):
        _next_round(session, state, now)


def _next_round(session: GameSession, state: ThiefState, now: int) -> None:
    state.round += 1
    state.thief_id = police_id(session)
    _start_round(session, state, now)


# --- timers
def _on_role_reveal_expired(session: GameSession, now: int) -> None:
    _start_round(session, _state(session), now)


def _on_roll_expired(session: GameSession, now: int) -> None:
    if shared.add_timeout_foul(session, session.player_id(session.current_player)):
        return
    _roll(session, now)


def _on_roll_animation_expired(session: GameSession, now: int) -> None:
    session.set_timer(GameStatus.THIEF_PLACING, now + config.PLAYFUL_TURN_TIME_MS)


def _on_placing_expired(session: GameSession, now: int) -> None:
    color = session.current_player
    if shared.add_timeout_foul(session, session.player_id(color)):
        return
    state = _state(session)
    while session.status == GameStatus.THIEF_PLACING and state.stones_to_place > 0:
        candidates = sorted(allowed_points(session, color))
        if not candidates:
            _finish_turn(session, state, now)
            return
        _place(session, color, random.choice(candidates), now)


def _on_round_end_expired(session: GameSession, now: int) -> None:
    _next_round(session, _state(session), now)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.THIEF_UPDATE_ROLE_CHOICE: choose_role,
    ActionType.CONFIRM_THIEF_ROLE: confirm_role,
    ActionType.THIEF_ROLL_DICE: roll,
    ActionType.THIEF_PLACE_STONE: place_stone,
    ActionType.CONFIRM_ROUND_END: confirm_round_end,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    GameStatus.THIEF_ROLE_CONFIRMED: _on_role_reveal_expired,
    GameStatus.THIEF_ROLLING: _on_roll_expired,
    GameStatus.THIEF_ROLLING_ANIMATING: _on_roll_animation_expired,
    GameStatus.THIEF_PLACING: _on_placing_expired,
    GameStatus.THIEF_ROUND_END: _on_round_end_expired,
}
