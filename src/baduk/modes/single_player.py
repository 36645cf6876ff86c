"""
Single-player and tower stages against the AI.

single_player_intro -> (confirm) -> playing. The human always plays Black.
Before the first move the starting position can be re-rolled or Black's stone allowance raised, for gold;
the handlers return the price as `gold_cost` and the service charges the player.
"""

import random

from src.baduk import clock
from src.baduk.actions import ActionHandler, GameAction
from src.baduk.board import set_stone, stone_at
from src.baduk.placement import scatter_stones
from src.baduk.point import Point
from src.baduk.session import GameSession, StageState
from src.core import config
from src.core.exceptions import GameStateError
from src.core.shared_types import ActionType, GameStatus, Player


def initialize(session: GameSession, now: int) -> None:
    session.stage = StageState(black_stone_limit=session.settings.black_stone_limit)
    place_stage_stones(session)
    session.status = GameStatus.SINGLE_PLAYER_INTRO
    session.current_player = Player.NONE


def place_stage_stones(session: GameSession) -> None:
    """Fresh board with the stage's random starting stones."""
    assert session.stage is not None
    session.reset_board()
    placements = session.settings.placements
    session.stage.pattern_stones = []
    if placements is None:
        return

    board = session.board
    scatter_stones(board, Player.BLACK, placements.black)
    scatter_stones(board, Player.WHITE, placements.white)
    session.stage.pattern_stones.extend(
        scatter_stones(board, Player.BLACK, placements.black_pattern)
    )
    session.stage.pattern_stones.extend(
        scatter_stones(board, Player.WHITE, placements.white_pattern)
    )

    if placements.center_black_chance and random.random() * 100 < placements.center_black_chance:
        center = Point(len(board) // 2, len(board) // 2)
        if stone_at(board, center) == Player.NONE:
            set_stone(board, center, Player.BLACK)


def _assert_before_first_move(session: GameSession, user_id: str) -> StageState:
    if session.stage is None:
        raise GameStateError("Only available in single-player stages.")
    if user_id != session.player1.id:
        raise GameStateError("Only the challenger can do that.")
    if session.move_history:
        raise GameStateError("The game has already started.")
    session.assert_status(GameStatus.SINGLE_PLAYER_INTRO, GameStatus.PLAYING)
    return session.stage


def confirm_intro(session: GameSession, action: GameAction, now: int) -> None:
    session.assert_status(GameStatus.SINGLE_PLAYER_INTRO)
    if action.user_id != session.player1.id:
        raise GameStateError("Only the challenger can start the stage.")
    clock.transition_to_playing(session, now)


def refresh_placement(session: GameSession, action: GameAction, now: int) -> dict:
    stage = _assert_before_first_move(session, action.user_id)
    if stage.refreshes_used >= len(config.SP_REFRESH_COSTS):
        raise GameStateError("No refreshes left.")
    cost = config.SP_REFRESH_COSTS[stage.refreshes_used]
    stage.refreshes_used += 1
    place_stage_stones(session)
    return {"gold_cost": cost}


def add_stones(session: GameSession, action: GameAction, now: int) -> dict:
    stage = _assert_before_first_move(session, action.user_id)
    if stage.black_stone_limit is None:
        raise GameStateError("This stage has no stone limit.")
    stage.black_stone_limit += config.SP_ADD_STONES_COUNT
    return {"gold_cost": config.SP_ADD_STONES_COST}


ACTIONS: dict[ActionType, ActionHandler] = {
    ActionType.CONFIRM_SP_INTRO: confirm_intro,
    ActionType.REFRESH_PLACEMENT: refresh_placement,
    ActionType.ADD_STONES: add_stones,
}
