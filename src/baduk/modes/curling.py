"""
Go-stone curling.

Players alternately flick stones onto an 840 px sheet; the flick is simulated on the server when the
animation window ends. A stone knocked off the sheet gives the *other* colour a point. When every stone
of the round is thrown, stones in the house score by distance bands around the centre.

curling_playing (30s per throw) -> curling_animating (8s) -> ... -> curling_round_end (15s) -> next round
"""

import math

from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.modes import shared
from src.baduk.physics import clamp_velocity, next_stone_id, simulate
from src.baduk.session import CurlingState, Flick, FlickStone, GameSession, PlayerCounts
from src.core import config
from src.core.exceptions import GameStateError, IllegalMoveError
from src.core.shared_types import ActionType, GameMode, GameStatus, Player, WinReason

CELL_PX = config.CURLING_SHEET_PX / 19


def _state(session: GameSession) -> CurlingState:
    return session.sub_state(GameMode.CURLING, CurlingState)


def initialize(session: GameSession) -> None:
    session.mode_states[GameMode.CURLING] = CurlingState(
        thrown={user_id: 0 for user_id in session.player_ids}
    )


def start(session: GameSession, now: int) -> None:
    """White holds the hammer (last throw) in the first round, so Black throws first."""
    state = _state(session)
    state.hammer_player_id = session.white_player_id
    _next_throw(session, Player.BLACK, now)


def _next_throw(session: GameSession, player: Player, now: int) -> None:
    session.current_player = player
    session.set_timer(GameStatus.CURLING_PLAYING, now + config.PLAYFUL_TURN_TIME_MS)


def house_points(stone: FlickStone) -> int:
    centre = config.CURLING_SHEET_PX / 2
    distance = math.hypot(stone.x - centre, stone.y - centre)
    for cells, points in config.CURLING_HOUSE_BANDS:
        if distance <= cells * CELL_PX:
            return points
    return 0


# --- throwing
def flick_stone(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.CURLING_PLAYING)
    color = session.assert_your_turn(action.user_id)
    state = _state(session)
    if state.thrown.get(action.user_id, 0) >= session.settings.curling_stone_count:
        raise GameStateError("No stones left this round.")

    x, y = action.number("x"), action.number("y")
    sheet = config.CURLING_SHEET_PX
    if not (0 <= x <= sheet and 0 <= y <= sheet):
        raise IllegalMoveError("Launch position is off the sheet.")
    vx, vy = clamp_velocity(action.number("vx"), action.number("vy"))

    stone = FlickStone(
        id=next_stone_id(state.stones),
        player=color,
        x=x,
        y=y,
        radius=config.FLICK_STONE_RADIUS,
    )
    state.pending_flick = Flick(stone=stone, vx=vx, vy=vy)
    state.thrown[action.user_id] = state.thrown.get(action.user_id, 0) + 1
    session.set_timer(GameStatus.CURLING_ANIMATING, now + config.CURLING_ANIMATION_MS)


def _round_complete(session: GameSession, state: CurlingState) -> bool:
    count = session.settings.curling_stone_count
    return all(state.thrown.get(user_id, 0) >= count for user_id in session.player_ids)


def _after_throw(session: GameSession, state: CurlingState, now: int) -> None:
    if _round_complete(session, state):
        _end_round(session, state, now)
    else:
        _next_throw(session, session.current_player.opponent, now)


# --- rounds
def _end_round(session: GameSession, state: CurlingState, now: int) -> None:
    house = PlayerCounts()
    for stone in state.stones:
        if stone.on_board:
            house[stone.player] += house_points(stone)
    state.house_scores = house
    state.scores.black += house.black
    state.scores.white += house.white
    if house.black != house.white:
        state.round_winner = Player.BLACK if house.black > house.white else Player.WHITE
    else:
        state.round_winner = Player.NONE

    session.current_player = Player.NONE
    state.round_confirmations = shared.new_confirmations(session)
    session.set_timer(GameStatus.CURLING_ROUND_END, now + config.CURLING_ROUND_END_MS)


def confirm_round_end(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.CURLING_ROUND_END)
    state = _state(session)
    if shared.confirm(state.round_confirmations, action.user_id):
        _next_round(session, state, now)


def _next_round(session: GameSession, state: CurlingState, now: int) -> None:
    """
    Finish the game after the last round unless it is tied; a tie adds one more round.
    ----
    The round winner throws first next round (the loser gets the hammer); after a blank round the
    hammer stays where it was.
    """
    if state.round >= session.settings.curling_rounds and state.scores.black != state.scores.white:
        winner = Player.BLACK if state.scores.black > state.scores.white else Player.WHITE
        session.finish(winner, WinReason.CURLING_WIN)
        return

    state.round += 1
    state.stones = []
    state.thrown = {user_id: 0 for user_id in session.player_ids}
    if state.round_winner != Player.NONE:
        first = state.round_winner
        state.hammer_player_id = session.player_id(first.opponent)
    else:
        hammer = session.player_color(state.hammer_player_id or "")
        first = hammer.opponent if hammer != Player.NONE else Player.BLACK
    _next_throw(session, first, now)


# --- timers
def _on_throw_expired(session: GameSession, now: int) -> None:
    """A missed throw is a foul and the stone is lost."""
    user_id = session.player_id(session.current_player)
    if shared.add_timeout_foul(session, user_id):
        return
    state = _state(session)
    assert user_id is not None
    state.thrown[user_id] = state.thrown.get(user_id, 0) + 1
    _after_throw(session, state, now)


def _on_animation_expired(session: GameSession, now: int) -> None:
    state = _state(session)
    flick = state.pending_flick
    if flick is not None:
        result = simulate(state.stones, flick, config.CURLING_ANIMATION_MS)
        state.stones = [stone for stone in result.stones if stone.on_board]
        for fallen in result.fallen:
            state.scores[fallen.player.opponent] += 1
        state.pending_flick = None
    _after_throw(session, state, now)


def _on_round_end_expired(session: GameSession, now: int) -> None:
    _next_round(session, _state(session), now)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.CURLING_FLICK_STONE: flick_stone,
    ActionType.CONFIRM_ROUND_END: confirm_round_end,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    GameStatus.CURLING_PLAYING: _on_throw_expired,
    GameStatus.CURLING_ANIMATING: _on_animation_expired,
    GameStatus.CURLING_ROUND_END: _on_round_end_expired,
}
