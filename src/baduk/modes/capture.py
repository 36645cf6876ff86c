"""
Capture-target Go.

Between two humans colours are bid for: the higher bid plays Black but must capture `target + bid` stones,
White keeps the base target. A first tie is shown and re-bid, a second tie is settled at random.
"""

import random

from src.baduk import clock
from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.modes import shared
from src.baduk.session import CaptureState, GameSession, PlayerCounts
from src.core import config
from src.core.exceptions import GameStateError, InvalidRequestError
from src.core.shared_types import ActionType, GameCategory, GameMode, GameStatus


def base_target(session: GameSession) -> int:
    return session.settings.capture_target or config.DEFAULT_CAPTURE_TARGET


def initialize(session: GameSession, now: int) -> None:
    """Register the targets. Human games then open the bidding; everyone else starts with equal targets."""
    settings = session.settings
    if session.is_stage_game:
        # Stage goals: 0 means that colour has no capture goal
        targets = PlayerCounts(
            black=settings.target_black or 0, white=settings.target_white or 0
        )
    else:
        targets = PlayerCounts(black=base_target(session), white=base_target(session))
    state = CaptureState(targets=targets)
    session.mode_states[GameMode.CAPTURE] = state

    if session.category == GameCategory.NORMAL:
        _open_bidding(session, state, now)


def _open_bidding(session: GameSession, state: CaptureState, now: int) -> None:
    state.bids = {user_id: None for user_id in session.player_ids}
    session.set_timer(GameStatus.CAPTURE_BIDDING, now + config.CAPTURE_BID_MS)


def update_bid(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.CAPTURE_BIDDING)
    state = session.sub_state(GameMode.CAPTURE, CaptureState)
    if state.bids.get(action.user_id) is not None:
        raise GameStateError("Your bid is already in.")
    bid = action.integer("bid")
    if not 1 <= bid <= config.MAX_CAPTURE_BID:
        raise InvalidRequestError(f"Bid between 1 and {config.MAX_CAPTURE_BID}.")
    state.bids[action.user_id] = bid
    if all(value is not None for value in state.bids.values()):
        _resolve_bids(session, state, now)


def confirm_reveal(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.CAPTURE_REVEAL, GameStatus.CAPTURE_TIEBREAKER)
    state = session.sub_state(GameMode.CAPTURE, CaptureState)
    if session.black_player_id is None:
        raise GameStateError("Bids are tied; wait for the next round.")
    if shared.confirm(state.confirmations, action.user_id):
        clock.transition_to_playing(session, now)


def _resolve_bids(session: GameSession, state: CaptureState, now: int) -> None:
    first, second = session.player_ids
    first_bid = state.bids[first] or 1
    second_bid = state.bids[second] or 1

    if first_bid != second_bid:
        winner = first if first_bid > second_bid else second
        _assign(session, state, winner, max(first_bid, second_bid))
        session.set_timer(GameStatus.CAPTURE_REVEAL, now + config.CAPTURE_REVEAL_MS)
        return

    if state.bid_round == 1:
        # show the tie, then bid again
        session.set_timer(GameStatus.CAPTURE_REVEAL, now + config.CAPTURE_TIE_REVEAL_MS)
        return

    _assign(session, state, random.choice(session.player_ids), first_bid)
    session.set_timer(
        GameStatus.CAPTURE_TIEBREAKER, now + config.CAPTURE_TIEBREAKER_MS
    )


def _assign(session: GameSession, state: CaptureState, black_id: str, bid: int) -> None:
    session.assign_colors(black_id, session.opponent_id(black_id))
    state.targets = PlayerCounts(
        black=base_target(session) + bid, white=base_target(session)
    )
    state.confirmations = shared.new_confirmations(session)


# --- timers
def _on_bidding_expired(session: GameSession, now: int) -> None:
    state = session.sub_state(GameMode.CAPTURE, CaptureState)
    for user_id, bid in state.bids.items():
        if bid is None:
            state.bids[user_id] = 1
    _resolve_bids(session, state, now)


def _on_reveal_expired(session: GameSession, now: int) -> None:
    state = session.sub_state(GameMode.CAPTURE, CaptureState)
    if session.black_player_id is None:
        state.bid_round += 1
        _open_bidding(session, state, now)
        return
    clock.transition_to_playing(session, now)


def _on_tiebreaker_expired(session: GameSession, now: int) -> None:
    clock.transition_to_playing(session, now)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.UPDATE_CAPTURE_BID: update_bid,
    ActionType.CONFIRM_CAPTURE_REVEAL: confirm_reveal,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    GameStatus.CAPTURE_BIDDING: _on_bidding_expired,
    GameStatus.CAPTURE_REVEAL: _on_reveal_expired,
    GameStatus.CAPTURE_TIEBREAKER: _on_tiebreaker_expired,
}
