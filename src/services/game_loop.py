"""
Central game loop.

Once per interval every active session is advanced under its own lock, so a tick and a player action never
touch the same game at once. AI moves are computed in background tasks and applied on a later tick,
after a short artificial thinking delay; the loop itself never waits on an engine.
"""

import asyncio
import copy
import logging
import random
from dataclasses import dataclass
from typing import Optional

from src.baduk import clock, dispatch
from src.baduk.actions import GameAction
from src.baduk.ai import planner
from src.baduk.session import GameSession
from src.core import config
from src.core.config import Config
from src.core.exceptions import GameError, IllegalMoveError
from src.core.models import SessionId
from src.core.shared_types import ActionType, GameStatus, Player
from src.services.game_service import GameService

logger = logging.getLogger(__name__)

# (status, player to move, number of moves): an AI answer is only valid for the position it was computed for
TurnKey = tuple[GameStatus, Player, int]


def turn_key(session: GameSession) -> TurnKey:
    return session.status, session.current_player, len(session.move_history)


@dataclass
class PendingAiMove:
    task: "asyncio.Task[Optional[GameAction]]"
    ready_at: int
    key: TurnKey

    def is_ready(self, now: int) -> bool:
        return self.task.done() and now >= self.ready_at


class GameLoop:
    def __init__(self, service: GameService, interval: float = Config.GAME_LOOP_INTERVAL_SEC) -> None:
        self.service = service
        self.interval = interval
        self._pending: dict[SessionId, PendingAiMove] = {}

    async def run_forever(self) -> None:
        logger.info("Game loop started (every %.1fs)", self.interval)
        try:
            while True:
                await self.run_once(self.service.now())
                await asyncio.sleep(self.interval)
        finally:
            for pending in self._pending.values():
                pending.task.cancel()
            self._pending.clear()

    async def run_once(self, now: int) -> None:
        """Advance and store every active session."""
        game_ids = [model.id for model in self.service.repo.list_active_sessions()]
        results = await asyncio.gather(
            *(self._run_stored(game_id, now) for game_id in game_ids), return_exceptions=True
        )
        for game_id, result in zip(game_ids, results):
            if isinstance(result, Exception):
                logger.error("Game %s: tick failed", game_id, exc_info=result)

    async def tick(self, sessions: list[GameSession], now: int) -> list[GameSession]:
        """Advance already loaded sessions in place (the caller owns locking and storage)."""
        await asyncio.gather(*(self.advance(session, now) for session in sessions))
        return sessions

    async def _run_stored(self, game_id: SessionId, now: int) -> None:
        async with self.service.locks(game_id):
            model = self.service.repo.get_session(game_id)
            if model is None:
                return
            session = GameSession.from_model(model)
            await self.advance(session, now)
            updated = session.to_model()
            if updated.state != model.state:
                self.service.repo.save_session(updated)
        if session.is_finished:
            self.service.locks.discard(game_id)

    async def advance(self, session: GameSession, now: int) -> None:
        """
        One tick of one session.
        ----
        1. disconnection grace periods
        2. the AI's turn (apply a ready answer, or start thinking)
        3. due timers and turn clocks of the mode family
        4. engine mirroring and scoring, started in the background and collected on a later tick
        """
        history_before = len(session.move_history)
        if not session.is_finished:
            session.last_timeout_player_id = None
            clock.check_disconnection(session, now)
        if not session.is_finished:
            await self._step_ai(session, now)
        if not session.is_finished:
            dispatch.update(session, now)
        self.service.after_change(session, history_before)
        if session.is_finished:
            self._drop_pending(session.id)

    # -- AI --
    async def _step_ai(self, session: GameSession, now: int) -> None:
        pending = self._pending.get(session.id)
        if pending is not None:
            if pending.key != turn_key(session):
                self._drop_pending(session.id)
            elif not pending.is_ready(now):
                return
            else:
                del self._pending[session.id]
                session.ai_turn_start = None
                await self._apply_ai_action(session, pending.task.result(), now)
                return

        if planner.needs_action(session):
            self._schedule(session, now)

    def _schedule(self, session: GameSession, now: int) -> None:
        think_ms = config.AI_THINK_BASE_MS + random.randint(0, config.AI_THINK_JITTER_MS)
        # The task works on a copy: the live session keeps changing while the AI thinks
        task = asyncio.create_task(self._think(copy.deepcopy(session)))
        self._pending[session.id] = PendingAiMove(task=task, ready_at=now + think_ms, key=turn_key(session))
        session.ai_turn_start = now
        logger.info("Game %s: AI thinking (%s)", session.id, session.status.value)

    async def _think(self, session: GameSession) -> Optional[GameAction]:
        if planner.uses_engine(session):
            point = await self.service.engines.generate_move(
                session, session.ai_color, planner.may_pass(session)
            )
            if point is not None:
                return planner.move_action(session, point)
        return await asyncio.to_thread(planner.heuristic_action, session)

    async def _apply_ai_action(
        self, session: GameSession, action: Optional[GameAction], now: int
    ) -> None:
        if action is None:
            logger.info("Game %s: AI has nothing to play in %s", session.id, session.status.value)
            return
        try:
            dispatch.handle_action(session, action, now)
        except IllegalMoveError as exc:
            logger.error("Game %s: AI move %s is illegal (%s), resigning", session.id, action.payload, exc)
            dispatch.handle_action(session, GameAction(ActionType.RESIGN, action.user_id), now)
        except GameError as exc:
            logger.warning("Game %s: AI action %s rejected: %s", session.id, action.type.value, exc)

    def _drop_pending(self, game_id: SessionId) -> None:
        pending = self._pending.pop(game_id, None)
        if pending is not None:
            pending.task.cancel()
