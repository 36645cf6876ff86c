"""Build a fresh GameSession from the agreed mode and settings, then hand it to the family initializer."""

import logging

from src.baduk import clock, dispatch
from src.baduk.session import (
    Clock,
    GameSession,
    GameSettings,
    PlayerCounts,
    PlayerRef,
    PlayerTimes,
)
from src.core.exceptions import InvalidRequestError
from src.core.shared_types import GameCategory, GameMode, GameStatus, Player

logger = logging.getLogger(__name__)


def create_session(
    game_id: str,
    mode: GameMode,
    settings: GameSettings,
    player1: PlayerRef,
    player2: PlayerRef,
    now: int,
    category: GameCategory = GameCategory.NORMAL,
) -> GameSession:
    if player1.id == player2.id:
        raise InvalidRequestError("A game needs two different players.")
    if category != GameCategory.NORMAL and not (player1.is_ai or player2.is_ai):
        raise InvalidRequestError(f"{category.value} games are played against the AI.")

    main_time = settings.time_limit * 60.0
    session = GameSession(
        id=game_id,
        mode=mode,
        settings=settings,
        player1=player1,
        player2=player2,
        created_at=now,
        category=category,
        komi=settings.komi,
        clock=Clock(
            time_left=PlayerTimes(black=main_time, white=main_time),
            byoyomi_periods=PlayerCounts(
                black=settings.byoyomi_count, white=settings.byoyomi_count
            ),
        ),
    )
    session.reset_board()
    session.disconnection.counts = {player1.id: 0, player2.id: 0}
    session.timeout_fouls = {player1.id: 0, player2.id: 0}

    dispatch.initialize(session, now)

    if session.status == GameStatus.PLAYING and session.current_player == Player.NONE:
        session.current_player = Player.BLACK
        clock.start_turn_clock(session, now)
    logger.info(
        "Game %s created: mode=%s category=%s status=%s",
        game_id,
        mode.value,
        category.value,
        session.status.value,
    )
    return session
