"""
Per-game engine pool.

Each game that plays against the engine owns exactly one GoEngine, created lazily and destroyed when the game ends.
Moves are mirrored to it in a background task per game, so callers never wait on the engine.
Engine trouble never reaches the players: every failure is logged and turned into a fallback
(resync, recreate, pass, or simply no engine for that game).
"""

import asyncio
import copy
import logging
from typing import Awaitable, Callable, Optional

from src.baduk.board import points, stone_at
from src.baduk.point import Point
from src.baduk.session import GameSession
from src.core.exceptions import EngineError
from src.core.shared_types import GameMode, Player
from src.engine.gtp import GoEngine

logger = logging.getLogger(__name__)

# (board_size, komi, level) -> running engine
Launcher = Callable[[int, float, int], Awaitable[GoEngine]]

Position = list[tuple[Player, Point]]


def engine_position(session: GameSession) -> tuple[Position, Position]:
    """
    (setup stones, move history) that reproduce the session's board on an engine.
    ----
    Base and stage games start from stones that were never "played", so the engine gets the current board
    as setup stones. Any legal position can be rebuilt stone by stone without a capture happening on the way.
    """
    if session.has_mode(GameMode.BASE) or session.is_stage_game:
        setup = [
            (stone_at(session.board, point), point)
            for point in points(len(session.board))
            if stone_at(session.board, point) != Player.NONE
        ]
        return setup, []
    history = [
        (move.player, move.point)
        for move in session.move_history
        if not move.point.is_resign
    ]
    return [], history


class GoEnginePool:
    def __init__(self, launcher: Launcher = GoEngine.launch) -> None:
        self._launcher = launcher
        self._engines: dict[str, GoEngine] = {}
        self._mirroring: dict[str, "asyncio.Task[None]"] = {}
        self._closing: set["asyncio.Task[None]"] = set()

    def __contains__(self, game_id: str) -> bool:
        return game_id in self._engines

    def get(self, game_id: str) -> Optional[GoEngine]:
        return self._engines.get(game_id)

    async def create(self, session: GameSession) -> Optional[GoEngine]:
        """Start a fresh engine for the game, replacing any previous one. None when the engine cannot be started."""
        await self.destroy(session.id)
        try:
            engine = await self._launcher(
                session.settings.board_size, session.komi, session.settings.ai_level
            )
        except EngineError as exc:
            logger.warning("Game %s: engine unavailable: %s", session.id, exc)
            return None
        self._engines[session.id] = engine
        logger.info("Game %s: engine created (level %d)", session.id, engine.level)
        return engine

    async def ensure(self, session: GameSession) -> Optional[GoEngine]:
        """The game's engine, created and synced to the current position on first use."""
        engine = self.get(session.id)
        if engine is not None and engine.healthy:
            return engine
        engine = await self.create(session)
        if engine is None:
            return None
        try:
            setup, history = engine_position(session)
            if setup or history:
                await engine.resync(history, setup)
        except EngineError as exc:
            logger.warning("Game %s: initial engine sync failed: %s", session.id, exc)
            await self.destroy(session.id)
            return None
        return engine

    async def destroy(self, game_id: str) -> None:
        engine = self._engines.pop(game_id, None)
        if engine is None:
            return
        await self._close(game_id, engine)

    async def _close(self, game_id: str, engine: GoEngine) -> None:
        await engine.close()
        logger.info("Game %s: engine destroyed", game_id)

    async def play_move(self, session: GameSession, player: Player, point: Point) -> bool:
        """
        Tell the engine about a move that has already been applied to the session.
        ----
        1. play it
        2. on failure, rebuild the position on the same process
        3. on failure again, replace the process and rebuild on the new one
        4. still failing: log it and carry on without the engine

        True when the move itself was played; False when the engine was rebuilt from the whole session
        (or given up on).
        """
        engine = self.get(session.id)
        if engine is None:
            return False
        try:
            await engine.play(player, point)
            return True
        except EngineError as exc:
            logger.warning("Game %s: engine rejected %s, resyncing: %s", session.id, point, exc)

        setup, history = engine_position(session)
        if engine.healthy:
            try:
                await engine.resync(history, setup)
                return False
            except EngineError as exc:
                logger.warning("Game %s: resync failed, restarting engine: %s", session.id, exc)

        engine = await self.create(session)
        if engine is not None:
            try:
                await engine.resync(history, setup)
                logger.info("Game %s: engine restarted and resynced", session.id)
                return False
            except EngineError as exc:
                logger.error("Game %s: engine restart failed: %s", session.id, exc)
                await self.destroy(session.id)
        logger.error("Game %s: continuing without engine", session.id)
        return False

    def mirror(self, session: GameSession, moves: Position) -> None:
        """
        Queue moves already applied to the session for the game's engine.
        ----
        They are played in a background task, in order and after anything queued before them.
        """
        if not moves or session.id not in self._engines:
            return
        previous = self._mirroring.get(session.id)
        task = asyncio.create_task(self._mirror(copy.deepcopy(session), moves, previous))
        task.add_done_callback(lambda done: self._forget(session.id, done))
        self._mirroring[session.id] = task

    async def _mirror(
        self, session: GameSession, moves: Position, previous: Optional["asyncio.Task[None]"]
    ) -> None:
        if previous is not None:
            await asyncio.wait([previous])
        for player, point in moves:
            # A rebuild already covers the rest of the batch
            if not await self.play_move(session, player, point):
                return

    def _forget(self, game_id: str, task: "asyncio.Task[None]") -> None:
        if self._mirroring.get(game_id) is task:
            del self._mirroring[game_id]
        if not task.cancelled() and task.exception() is not None:
            logger.error("Game %s: engine mirroring crashed", game_id, exc_info=task.exception())

    async def drain(self, game_id: str) -> None:
        """Wait until every queued move of the game has reached its engine."""
        task = self._mirroring.get(game_id)
        if task is not None:
            await asyncio.wait([task])

    def release(self, game_id: str) -> None:
        """Forget the game's engine now: queued moves are dropped and the process is closed in the background."""
        task = self._mirroring.pop(game_id, None)
        if task is not None:
            task.cancel()
        engine = self._engines.pop(game_id, None)
        if engine is None:
            return
        closing = asyncio.create_task(self._close(game_id, engine))
        self._closing.add(closing)
        closing.add_done_callback(self._closing.discard)

    async def generate_move(
        self, session: GameSession, player: Player, allow_pass: bool
    ) -> Optional[Point]:
        """Engine's move for `player`, or None when there is no working engine to ask."""
        await self.drain(session.id)
        engine = await self.ensure(session)
        if engine is None:
            return None
        try:
            return await engine.genmove(player, allow_pass)
        except EngineError as exc:
            logger.warning("Game %s: move generation failed: %s", session.id, exc)
            return None

    async def shutdown(self) -> None:
        for task in list(self._mirroring.values()):
            task.cancel()
        self._mirroring.clear()
        if self._closing:
            await asyncio.wait(self._closing)
        await asyncio.gather(*(self.destroy(game_id) for game_id in list(self._engines)))
