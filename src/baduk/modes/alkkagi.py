"""
Alkkagi (flicking game).

alkkagi_placement: players alternately place their stones in their own half of the sheet (Black the lower
half, White the upper). alkkagi_playing: players alternately flick one of their stones at the opponent's.
A side with no stones left on the sheet loses the round; if a flick clears both sides, the flicker wins it.
After the last round the player with more round wins takes the game (the last round decides a tie).
"""

from src.baduk.actions import ActionHandler, ExpiryHandler, GameAction
from src.baduk.modes import shared
from src.baduk.physics import clamp_velocity, free_spot, next_stone_id, overlaps, simulate
from src.baduk.session import AlkkagiState, Flick, FlickStone, GameSession
from src.core import config
from src.core.exceptions import GameStateError, IllegalMoveError
from src.core.shared_types import ActionType, GameMode, GameStatus, Player, WinReason

HALF = config.CURLING_SHEET_PX / 2


def _state(session: GameSession) -> AlkkagiState:
    return session.sub_state(GameMode.ALKKAGI, AlkkagiState)


def initialize(session: GameSession) -> None:
    session.mode_states[GameMode.ALKKAGI] = AlkkagiState(
        placed={user_id: 0 for user_id in session.player_ids},
        round_wins={user_id: 0 for user_id in session.player_ids},
    )


def start(session: GameSession, now: int) -> None:
    _start_placement(session, now)


def placement_zone(player: Player) -> tuple[float, float]:
    """Vertical band a player may place stones in."""
    radius = config.FLICK_STONE_RADIUS
    if player == Player.BLACK:
        return HALF + radius, config.CURLING_SHEET_PX - radius
    return radius, HALF - radius


def stones_left(state: AlkkagiState, player: Player) -> int:
    return sum(1 for stone in state.stones if stone.on_board and stone.player == player)


# --- placement
def _start_placement(session: GameSession, now: int) -> None:
    session.current_player = Player.BLACK
    session.set_timer(GameStatus.ALKKAGI_PLACEMENT, now + config.PLAYFUL_TURN_TIME_MS)


def place_stone(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.ALKKAGI_PLACEMENT)
    color = session.assert_your_turn(action.user_id)
    state = _state(session)
    if state.placed.get(action.user_id, 0) >= session.settings.alkkagi_stone_count:
        raise GameStateError("All your stones are placed.")

    x, y = action.number("x"), action.number("y")
    radius = config.FLICK_STONE_RADIUS
    low, high = placement_zone(color)
    if not (low <= y <= high and radius <= x <= config.CURLING_SHEET_PX - radius):
        raise IllegalMoveError("Place stones in your own half of the sheet.")
    if overlaps(state.stones, x, y, radius):
        raise IllegalMoveError("Stones may not overlap.")

    _add_stone(session, state, action.user_id, color, x, y, now)


def _add_stone(
    session: GameSession,
    state: AlkkagiState,
    user_id: str,
    color: Player,
    x: float,
    y: float,
    now: int,
) -> None:
    state.stones.append(
        FlickStone(
            id=next_stone_id(state.stones),
            player=color,
            x=x,
            y=y,
            radius=config.FLICK_STONE_RADIUS,
        )
    )
    state.placed[user_id] = state.placed.get(user_id, 0) + 1
    _next_placer(session, state, now)


def _next_placer(session: GameSession, state: AlkkagiState, now: int) -> None:
    count = session.settings.alkkagi_stone_count
    remaining = {
        color: count - state.placed.get(session.player_id(color) or "", 0)
        for color in (Player.BLACK, Player.WHITE)
    }
    if remaining[Player.BLACK] <= 0 and remaining[Player.WHITE] <= 0:
        _next_flick(session, Player.BLACK, now)
        return
    following = session.current_player.opponent
    if remaining[following] <= 0:
        following = session.current_player
    session.current_player = following
    session.set_timer(GameStatus.ALKKAGI_PLACEMENT, now + config.PLAYFUL_TURN_TIME_MS)


def place_randomly(session: GameSession, user_id: str, now: int) -> None:
    """Drop one stone for `user_id` at a random free spot of their half (timeouts, AI)."""
    state = _state(session)
    color = session.player_color(user_id)
    spot = free_spot(state.stones, placement_zone(color))
    if spot is None:
        # no room: count the stone as placed so the round can go on
        state.placed[user_id] = state.placed.get(user_id, 0) + 1
        _next_placer(session, state, now)
        return
    _add_stone(session, state, user_id, color, spot[0], spot[1], now)


# --- flicking
def _next_flick(session: GameSession, player: Player, now: int) -> None:
    session.current_player = player
    session.set_timer(GameStatus.ALKKAGI_PLAYING, now + config.PLAYFUL_TURN_TIME_MS)


def flick_stone(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.ALKKAGI_PLAYING)
    color = session.assert_your_turn(action.user_id)
    state = _state(session)
    stone_id = action.integer("stone_id")
    stone = next((s for s in state.stones if s.id == stone_id and s.on_board), None)
    if stone is None or stone.player != color:
        raise IllegalMoveError("You can only flick your own stone.")

    vx, vy = clamp_velocity(action.number("vx"), action.number("vy"))
    state.pending_flick = Flick(stone=stone, vx=vx, vy=vy)
    session.set_timer(GameStatus.ALKKAGI_ANIMATING, now + config.ALKKAGI_ANIMATION_MS)


# --- rounds
def _end_round(session: GameSession, state: AlkkagiState, winner: Player, now: int) -> None:
    winner_id = session.player_id(winner)
    assert winner_id is not None
    state.round_wins[winner_id] = state.round_wins.get(winner_id, 0) + 1
    state.round_winner_id = winner_id

    if state.round >= session.settings.alkkagi_rounds:
        game_winner_id = shared.winner_by_score(session, state.round_wins) or winner_id
        session.finish(session.player_color(game_winner_id), WinReason.ALKKAGI_WIN)
        return

    session.current_player = Player.NONE
    state.round_confirmations = shared.new_confirmations(session)
    session.set_timer(GameStatus.ALKKAGI_ROUND_END, now + config.ALKKAGI_ROUND_END_MS)


def confirm_round_end(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.ALKKAGI_ROUND_END)
    state = _state(session)
    if shared.confirm(state.round_confirmations, action.user_id):
        _next_round(session, state, now)


def _next_round(session: GameSession, state: AlkkagiState, now: int) -> None:
    state.round += 1
    state.stones = []
    state.placed = {user_id: 0 for user_id in session.player_ids}
    state.round_winner_id = None
    _start_placement(session, now)


# --- timers
def _on_placement_expired(session: GameSession, now: int) -> None:
    user_id = session.player_id(session.current_player)
    if shared.add_timeout_foul(session, user_id):
        return
    assert user_id is not None
    place_randomly(session, user_id, now)


def _on_flick_expired(session: GameSession, now: int) -> None:
    if shared.add_timeout_foul(session, session.player_id(session.current_player)):
        return
    _next_flick(session, session.current_player.opponent, now)


def _on_animation_expired(session: GameSession, now: int) -> None:
    state = _state(session)
    flicker = session.current_player
    flick = state.pending_flick
    if flick is not None:
        state.stones = simulate(state.stones, flick, config.ALKKAGI_ANIMATION_MS).stones
        state.pending_flick = None

    black_left = stones_left(state, Player.BLACK)
    white_left = stones_left(state, Player.WHITE)
    if black_left == 0 and white_left == 0:
        _end_round(session, state, flicker, now)
    elif black_left == 0:
        _end_round(session, state, Player.WHITE, now)
    elif white_left == 0:
        _end_round(session, state, Player.BLACK, now)
    else:
        _next_flick(session, flicker.opponent, now)


def _on_round_end_expired(session: GameSession, now: int) -> None:
    _next_round(session, _state(session), now)


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.ALKKAGI_PLACE_STONE: place_stone,
    ActionType.ALKKAGI_FLICK_STONE: flick_stone,
    ActionType.CONFIRM_ROUND_END: confirm_round_end,
}

EXPIRY: dict[GameStatus, ExpiryHandler] = {
    GameStatus.ALKKAGI_PLACEMENT: _on_placement_expired,
    GameStatus.ALKKAGI_PLAYING: _on_flick_expired,
    GameStatus.ALKKAGI_ANIMATING: _on_animation_expired,
    GameStatus.ALKKAGI_ROUND_END: _on_round_end_expired,
}
