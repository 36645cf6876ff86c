"""
Base-stone Go.

base_placement (30s) -> komi_bidding (30s) -> komi_bid_reveal (4s) -> base_game_start_confirmation (30s) -> playing

Both players secretly choose base points before colours exist. Colours and komi are then bid for:
a player asks for a colour and offers komi for it; when both want the same colour the higher offer wins.
"""

import random

from src.baduk import clock
from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.board import empty_grid, find_group, set_stone, stone_at
from src.baduk.modes import shared
from src.baduk.placement import random_points
from src.baduk.point import Point
from src.baduk.session import BaseState, BaseStone, GameSession, KomiBid
from src.core import config
from src.core.exceptions import GameStateError, IllegalMoveError, InvalidRequestError
from src.core.shared_types import ActionType, GameMode, GameStatus, Player

TIMEOUT_BID = KomiBid(color=Player.BLACK, komi=0)


def _target(session: GameSession) -> int:
    return session.settings.base_stones or config.DEFAULT_BASE_STONES


def _state(session: GameSession) -> BaseState:
    return session.sub_state(GameMode.BASE, BaseState)


def initialize(session: GameSession, now: int) -> None:
    state = BaseState(placements={user_id: [] for user_id in session.player_ids})
    session.mode_states[GameMode.BASE] = state
    session.komi = config.BASE_KOMI

    ai_id = session.ai_player_id
    if ai_id is not None:
        _fill_randomly(session, state, ai_id)
    session.set_timer(GameStatus.BASE_PLACEMENT, now + config.BASE_PLACEMENT_MS)


# --- placement
def place_base_stone(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.BASE_PLACEMENT)
    state = _state(session)
    mine = state.placements[action.user_id]
    point = action.point()
    if not point.is_on_board(session.settings.board_size):
        raise IllegalMoveError("Point is off the board.")
    if len(mine) >= _target(session):
        raise GameStateError("Already placed all stones.")
    if point in mine:
        raise IllegalMoveError("Already placed a stone there.")
    mine.append(point)
    _resolve_if_done(session, state, now)


def place_remaining_randomly(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.BASE_PLACEMENT)
    state = _state(session)
    _fill_randomly(session, state, action.user_id)
    _resolve_if_done(session, state, now)


def _fill_randomly(session: GameSession, state: BaseState, user_id: str) -> None:
    mine = state.placements[user_id]
    missing = _target(session) - len(mine)
    if missing <= 0:
        return
    taken = [point for points in state.placements.values() for point in points]
    board = empty_grid(session.settings.board_size)
    mine.extend(random_points(board, missing, exclude=taken))


def _resolve_if_done(session: GameSession, state: BaseState, now: int) -> None:
    if all(len(points) >= _target(session) for points in state.placements.values()):
        _resolve_placements(session, state, now)


def _resolve_placements(session: GameSession, state: BaseState, now: int) -> None:
    """
    Drop points both players picked, then drop any group left without liberties.
    ----
    Colours are not known yet, so player1's stones stand in as Black for the liberty check.
    """
    first, second = session.player_ids
    overlap = set(state.placements[first]) & set(state.placements[second])
    kept = {
        user_id: [p for p in points if p not in overlap]
        for user_id, points in state.placements.items()
    }

    board = empty_grid(session.settings.board_size)
    stand_in = {first: Player.BLACK, second: Player.WHITE}
    for user_id, points in kept.items():
        for point in points:
            set_stone(board, point, stand_in[user_id])

    dead: set[Point] = set()
    for user_id, points in kept.items():
        for point in points:
            group = find_group(point, stand_in[user_id], board)
            if group is not None and group.liberties == 0:
                dead.update(group.stones)

    state.placements = {
        user_id: [p for p in points if p not in dead] for user_id, points in kept.items()
    }
    _open_komi_bidding(session, state, now)


# --- komi bidding
def _open_komi_bidding(session: GameSession, state: BaseState, now: int) -> None:
    state.komi_bids = {user_id: None for user_id in session.player_ids}
    ai_id = session.ai_player_id
    if ai_id is not None:
        # the AI takes whatever colour the human was meant to leave it, for free
        human_color = session.settings.player1_color
        state.komi_bids[ai_id] = KomiBid(color=human_color.opponent, komi=0)
    session.set_timer(GameStatus.KOMI_BIDDING, now + config.KOMI_BID_MS)


def update_komi_bid(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.KOMI_BIDDING)
    state = _state(session)
    if state.komi_bids.get(action.user_id) is not None:
        raise GameStateError("Your bid is already in.")
    komi = action.number("komi")
    if komi < 0:
        raise InvalidRequestError("Komi bid can't be negative.")
    state.komi_bids[action.user_id] = KomiBid(color=action.color(), komi=komi)
    if all(bid is not None for bid in state.komi_bids.values()):
        session.set_timer(GameStatus.KOMI_BID_REVEAL, now + config.KOMI_REVEAL_MS)


def _on_komi_bidding_expired(session: GameSession, now: int) -> None:
    state = _state(session)
    for user_id, bid in state.komi_bids.items():
        if bid is None:
            state.komi_bids[user_id] = KomiBid(TIMEOUT_BID.color, TIMEOUT_BID.komi)
    session.set_timer(GameStatus.KOMI_BID_REVEAL, now + config.KOMI_REVEAL_MS)


def _on_komi_reveal_expired(session: GameSession, now: int) -> None:
    state = _state(session)
    first, second = session.player_ids
    first_bid, second_bid = state.komi_bids[first], state.komi_bids[second]
    assert first_bid is not None and second_bid is not None

    if first_bid.color != second_bid.color:
        black_id = first if first_bid.color == Player.BLACK else second
        final_komi = config.BASE_KOMI
    else:
        if first_bid.komi != second_bid.komi:
            winner = first if first_bid.komi > second_bid.komi else second
        elif state.bid_round == 1:
            state.bid_round += 1
            _open_komi_bidding(session, state, now)
            return
        else:
            winner = random.choice(session.player_ids)
        offer = max(first_bid.komi, second_bid.komi)
        if first_bid.color == Player.BLACK:
            black_id = winner
            final_komi = config.BASE_KOMI + offer
        else:
            black_id = session.opponent_id(winner)
            final_komi = config.BASE_KOMI - offer

    session.assign_colors(black_id, session.opponent_id(black_id))
    state.final_komi = final_komi
    session.komi = final_komi
    _build_board(session, state)
    state.confirmations = shared.new_confirmations(session)
    session.set_timer(
        GameStatus.BASE_GAME_START_CONFIRMATION,
        now + config.BASE_START_CONFIRMATION_MS,
    )


def _build_board(session: GameSession, state: BaseState) -> None:
    session.reset_board()
    state.base_stones = []
    for user_id, points in state.placements.items():
        color = session.player_color(user_id)
        for point in points:
            if stone_at(session.board, point) == Player.NONE:
                set_stone(session.board, point, color)
                state.base_stones.append(BaseStone(point=point, player=color))


# --- start
def confirm_start(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.BASE_GAME_START_CONFIRMATION)
    if shared.confirm(_state(session).confirmations, action.user_id):
        clock.transition_to_playing(session, now)


def _on_placement_expired(session: GameSession, now: int) -> None:
    state = _state(session)
    for user_id in session.player_ids:
        _fill_randomly(session, state, user_id)
    _resolve_placements(session, state, now)


def _on_start_confirmation_expired(session: GameSession, now: int) -> None:
    clock.transition_to_playing(session, now)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.PLACE_BASE_STONE: place_base_stone,
    ActionType.PLACE_REMAINING_BASE_STONES_RANDOMLY: place_remaining_randomly,
    ActionType.UPDATE_KOMI_BID: update_komi_bid,
    ActionType.CONFIRM_BASE_REVEAL: confirm_start,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    GameStatus.BASE_PLACEMENT: _on_placement_expired,
    GameStatus.KOMI_BIDDING: _on_komi_bidding_expired,
    GameStatus.KOMI_BID_REVEAL: _on_komi_reveal_expired,
    GameStatus.BASE_GAME_START_CONFIRMATION: _on_start_confirmation_expired,
}
