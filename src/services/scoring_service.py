"""
End-of-game scoring: ask the analysis engine (or fall back), then settle the session.

The analysis runs in a background task per game. Whoever holds the game's lock next (an action or a tick of
the game loop) collects the result and settles the session, so nobody waits on the engine.
"""

import asyncio
import copy
import logging
from typing import Optional

from src.baduk import settlement
from src.baduk.scoring import AnalysisResult, neutral_analysis
from src.baduk.session import GameSession
from src.core.exceptions import GameStateError
from src.core.models import SessionId
from src.core.shared_types import GameStatus
from src.engine.analysis import AnalysisClient

logger = logging.getLogger(__name__)


class ScoringService:
    def __init__(self, analysis: AnalysisClient) -> None:
        self.analysis = analysis
        self._pending: dict[SessionId, "asyncio.Task[AnalysisResult]"] = {}

    def __contains__(self, game_id: SessionId) -> bool:
        return game_id in self._pending

    def start(self, session: GameSession) -> None:
        """Launch the analysis of a game waiting for scoring, unless it is already running."""
        if session.status != GameStatus.SCORING:
            raise GameStateError(f"Game {session.id} is not waiting for scoring.")
        if session.id in self._pending:
            return
        # The board is frozen while scoring, a copy is all the engine needs
        task = asyncio.create_task(self.analysis.analyze(copy.deepcopy(session)))
        self._pending[session.id] = task
        logger.info("Game %s: analysis started", session.id)

    def collect(self, session: GameSession) -> Optional[AnalysisResult]:
        """
        Settle the game once its analysis is back. None while it is still running (or was never started).
        ----
        Calling it again on the settled game returns the stored breakdown without asking the engine.
        """
        if session.is_finished and session.analysis and session.analysis.score_details:
            return session.analysis
        if session.status != GameStatus.SCORING:
            raise GameStateError(f"Game {session.id} is not waiting for scoring.")
        task = self._pending.get(session.id)
        if task is None or not task.done():
            return None
        del self._pending[session.id]
        if task.cancelled():
            return None

        error = task.exception()
        if error is not None:
            logger.error("Game %s: analysis crashed, using the local estimate", session.id, exc_info=error)
            result = neutral_analysis()
        else:
            result = task.result()
        if result.is_fallback:
            logger.info("Game %s: scored with the local estimate", session.id)
        return settlement.settle(session, result)

    async def shutdown(self) -> None:
        tasks = list(self._pending.values())
        self._pending.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
