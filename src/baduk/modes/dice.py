"""
Dice Go.

Each round starts with White stones scattered on the board. Both players play the *black* side: the player to
move rolls a die and must place that many black stones, each on a liberty of the White stones. Captured White
stones score for the player who captured them. A roll larger than the number of White liberties forfeits the turn.

dice_rolling -> dice_rolling_animating (1.5s) -> dice_placing -> ... -> dice_round_end (20s) -> next round
"""

import random

from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.board import count_stones, liberty_points_of, process_move
from src.baduk.modes import shared
from src.baduk.placement import scatter_stones
from src.baduk.point import Point
from src.baduk.session import DiceState, GameSession, MoveRecord
from src.core import config
from src.core.exceptions import GameStateError, IllegalMoveError
from src.core.shared_types import ActionType, GameMode, GameStatus, Player, WinReason

OVERSHOT = -1


def _state(session: GameSession) -> DiceState:
    return session.sub_state(GameMode.DICE, DiceState)


def initialize(session: GameSession) -> None:
    session.mode_states[GameMode.DICE] = DiceState(
        scores={user_id: 0 for user_id in session.player_ids},
        bonuses={user_id: 0 for user_id in session.player_ids},
    )


def start(session: GameSession, now: int) -> None:
    _start_round(session, _state(session), now)


def white_stones_for_round(round_number: int) -> int:
    by_round = config.DICE_INITIAL_WHITE_STONES_BY_ROUND
    return by_round[min(round_number, len(by_round)) - 1]


def last_capture_bonus(total_rounds: int) -> int:
    by_total = config.DICE_LAST_CAPTURE_BONUS_BY_TOTAL_ROUNDS
    return by_total[max(1, min(total_rounds, len(by_total))) - 1]


def _start_round(session: GameSession, state: DiceState, now: int) -> None:
    session.reset_board()
    session.last_move = None
    scatter_stones(session.board, Player.WHITE, white_stones_for_round(state.round))
    state.stones_to_place = 0
    state.captures_this_turn = 0
    state.last_roll = None
    session.current_player = Player.BLACK
    session.set_timer(GameStatus.DICE_ROLLING, now + config.PLAYFUL_TURN_TIME_MS)


# --- turn
def roll(session: GameSession, action: GameAction, now: int) -> dict:
    session.assert_status(GameStatus.DICE_ROLLING)
    session.assert_your_turn(action.user_id)
    return {"roll": _roll(session, now)}


def _roll(session: GameSession, now: int) -> int:
    state = _state(session)
    value = random.randint(1, 6)
    liberties = liberty_points_of(Player.WHITE, session.board)
    state.last_roll = value
    state.stones_to_place = OVERSHOT if liberties and value > len(liberties) else value
    session.set_timer(
        GameStatus.DICE_ROLLING_ANIMATING, now + config.DICE_ROLL_ANIMATION_MS
    )
    return value


def place_stone(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.DICE_PLACING)
    session.assert_your_turn(action.user_id)
    if _state(session).stones_to_place <= 0:
        raise GameStateError("No stones left to place.")
    _place(session, action.user_id, action.point(), now)


def _place(session: GameSession, user_id: str, point: Point, now: int) -> None:
    state = _state(session)
    liberties = liberty_points_of(Player.WHITE, session.board)
    if liberties and point not in liberties:
        raise IllegalMoveError("Stones may only be placed on a liberty of the white stones.")

    # Every stone in dice go is black, whoever places it. White never moves, so there is no ko.
    result = process_move(
        session.board,
        point,
        Player.BLACK,
        None,
        len(session.move_history),
        ignore_suicide=True,
    )
    session.board = result.board
    session.last_move = point
    session.move_history.append(MoveRecord(Player.BLACK, point.x, point.y))
    state.captures_this_turn += len(result.captured)
    state.stones_to_place -= 1

    if state.stones_to_place == 0 or count_stones(session.board, Player.WHITE) == 0:
        _finish_turn(session, state, user_id, now)


def _finish_turn(session: GameSession, state: DiceState, user_id: str, now: int) -> None:
    captured = state.captures_this_turn
    state.scores[user_id] = state.scores.get(user_id, 0) + captured
    state.stones_to_place = 0
    state.captures_this_turn = 0

    if count_stones(session.board, Player.WHITE) > 0:
        session.current_player = session.current_player.opponent
        session.last_move = None
        session.set_timer(GameStatus.DICE_ROLLING, now + config.PLAYFUL_TURN_TIME_MS)
        return

    if captured > 0:
        bonus = last_capture_bonus(session.settings.dice_rounds)
        state.scores[user_id] += bonus
        state.bonuses[user_id] = state.bonuses.get(user_id, 0) + bonus
    _end_round(session, state, now)


def _end_round(session: GameSession, state: DiceState, now: int) -> None:
    if state.round >= session.settings.dice_rounds:
        winner_id = shared.winner_by_score(session, state.scores)
        if winner_id is not None:
            session.finish(session.player_color(winner_id), WinReason.DICE_WIN)
            return
        # tied after the last round: keep playing rounds until someone leads

    session.current_player = Player.NONE
    state.round_confirmations = shared.new_confirmations(session)
    session.set_timer(GameStatus.DICE_ROUND_END, now + config.ROUND_END_CONFIRMATION_MS)


def confirm_round_end(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.DICE_ROUND_END)
    state = _state(session)
    if shared.confirm(state.round_confirmations, action.user_id):
        _next_round(session, state, now)


def _next_round(session: GameSession, state: DiceState, now: int) -> None:
    state.round += 1
    _start_round(session, state, now)


# --- timers
def _current_user(session: GameSession) -> str:
    user_id = session.player_id(session.current_player)
    assert user_id is not None
    return user_id


def _on_roll_expired(session: GameSession, now: int) -> None:
    if shared.add_timeout_foul(session, _current_user(session)):
        return
    _roll(session, now)


def _on_roll_animation_expired(session: GameSession, now: int) -> None:
    state = _state(session)
    if state.stones_to_place == OVERSHOT:
        _finish_turn(session, state, _current_user(session), now)
        return
    session.set_timer(GameStatus.DICE_PLACING, now + config.PLAYFUL_TURN_TIME_MS)


def _on_placing_expired(session: GameSession, now: int) -> None:
    user_id = _current_user(session)
    if shared.add_timeout_foul(session, user_id):
        return
    state = _state(session)
    while session.status == GameStatus.DICE_PLACING and state.stones_to_place > 0:
        candidates = sorted(liberty_points_of(Player.WHITE, session.board))
        if not candidates:
            _finish_turn(session, state, user_id, now)
            return
        _place(session, user_id, random.choice(candidates), now)


def _on_round_end_expired(session: GameSession, now: int) -> None:
    _next_round(session, _state(session), now)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.DICE_ROLL: roll,
    ActionType.DICE_PLACE_STONE: place_stone,
    ActionType.CONFIRM_ROUND_END: confirm_round_end,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    GameStatus.DICE_ROLLING: _on_roll_expired,
    GameStatus.DICE_ROLLING_ANIMATING: _on_roll_animation_expired,
    GameStatus.DICE_PLACING: _on_placing_expired,
    GameStatus.DICE_ROUND_END: _on_round_end_expired,
}
