"""
KataGo analysis client (JSON analysis protocol).

One query per line on the process's stdin, one JSON reply per line on stdout, matched by "id".
The analysis config is expected to report win rate, score and ownership from Black's point of view
(`reportAnalysisWinratesAs = BLACK`).

Whatever goes wrong, `analyze` returns the neutral result: the end of a game never depends on the analysis engine.
"""

import asyncio
import contextlib
import logging
import uuid
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from src.baduk.board import Grid, points, stone_at
from src.baduk.scoring import AnalysisResult, CandidateMove, neutral_analysis
from src.baduk.session import GameSession
from src.core import config
from src.core.config import Config
from src.core.exceptions import (
    EngineCommandError,
    EngineError,
    EngineTimeoutError,
    EngineUnavailableError,
)
from src.core.shared_types import GameMode, Player
from src.engine.gtp import Spawn, from_gtp, spawn_process, to_gtp

logger = logging.getLogger(__name__)

TOP_RECOMMENDATIONS = 3


class _KataGoModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisQuery(_KataGoModel):
    id: str
    rules: str = "japanese"
    komi: float
    board_x_size: int
    board_y_size: int
    moves: list[tuple[str, str]] = Field(default_factory=list)
    initial_stones: list[tuple[str, str]] = Field(default_factory=list)
    initial_player: Optional[str] = None
    include_ownership: bool = True
    max_visits: int = config.ANALYSIS_MAX_VISITS


class RootInfo(_KataGoModel):
    winrate: float
    score_lead: float = 0.0


class MoveInfo(_KataGoModel):
    move: str
    winrate: float
    score_lead: float = 0.0
    order: int = 0


class AnalysisReply(_KataGoModel):
    id: str
    is_during_search: bool = False
    root_info: RootInfo
    ownership: list[float] = Field(default_factory=list)
    move_infos: list[MoveInfo] = Field(default_factory=list)


def _color_letter(player: Player) -> str:
    return "B" if player == Player.BLACK else "W"


def uses_initial_stones(session: GameSession) -> bool:
    """Games whose board cannot be rebuilt from the visible move list are sent as a position instead."""
    return (
        session.has_mode(GameMode.HIDDEN)
        or session.has_mode(GameMode.MISSILE)
        or session.has_mode(GameMode.BASE)
        or session.is_stage_game
    )


def build_query(session: GameSession, max_visits: int) -> AnalysisQuery:
    size = session.settings.board_size
    query = AnalysisQuery(
        id=uuid.uuid4().hex,
        komi=session.komi,
        board_x_size=size,
        board_y_size=size,
        max_visits=max_visits,
    )
    if uses_initial_stones(session):
        query.initial_stones = [
            (_color_letter(stone_at(session.board, point)), to_gtp(point, size))
            for point in points(size)
            if stone_at(session.board, point) != Player.NONE
        ]
        last = session.move_history[-1].player if session.move_history else Player.WHITE
        query.initial_player = _color_letter(last.opponent)
    else:
        query.moves = [
            (_color_letter(move.player), to_gtp(move.point, size))
            for move in session.move_history
            if not move.point.is_resign
        ]
    return query


def to_analysis(reply: AnalysisReply, board: Grid) -> AnalysisResult:
    """Turn the raw reply into per-point classification using the ownership thresholds."""
    size = len(board)
    result = AnalysisResult(
        win_rate_black=reply.root_info.winrate * 100,
        score_lead=reply.root_info.score_lead,
    )

    if len(reply.ownership) == size * size:
        result.ownership = [reply.ownership[row * size : (row + 1) * size] for row in range(size)]
        for point in points(size):
            owner = result.ownership[point.y][point.x]
            stone = stone_at(board, point)
            if stone == Player.BLACK and owner <= -config.OWNERSHIP_DEAD_STONE_THRESHOLD:
                result.dead_stones.append(point)
            elif stone == Player.WHITE and owner >= config.OWNERSHIP_DEAD_STONE_THRESHOLD:
                result.dead_stones.append(point)
            if owner >= config.OWNERSHIP_TERRITORY_THRESHOLD and stone != Player.BLACK:
                result.black_territory.append(point)
            elif owner <= -config.OWNERSHIP_TERRITORY_THRESHOLD and stone != Player.WHITE:
                result.white_territory.append(point)

    for info in sorted(reply.move_infos, key=lambda m: m.order)[:TOP_RECOMMENDATIONS]:
        result.recommended_moves.append(
            CandidateMove(
                point=from_gtp(info.move, size),
                win_rate=info.winrate * 100,
                score_lead=info.score_lead,
            )
        )
    return result


class AnalysisClient:
    """Long-lived `katago analysis` process, started on first use and shared by all games (one query at a time)."""

    def __init__(
        self,
        command: Optional[list[str]] = None,
        spawn: Spawn = spawn_process,
        timeout: float = config.ANALYSIS_TIMEOUT_SEC,
    ) -> None:
        self.command = command if command is not None else self.default_command()
        self.timeout = timeout
        self._spawn = spawn
        self._process: Any = None
        self._lock = asyncio.Lock()

    @staticmethod
    def default_command() -> list[str]:
        if not (Config.KATAGO_PATH and Config.KATAGO_MODEL and Config.KATAGO_CONFIG):
            return []
        return [
            Config.KATAGO_PATH,
            "analysis",
            "-model",
            Config.KATAGO_MODEL,
            "-config",
            Config.KATAGO_CONFIG,
        ]

    async def analyze(
        self, session: GameSession, max_visits: int = config.ANALYSIS_MAX_VISITS
    ) -> AnalysisResult:
        if not self.command:
            return neutral_analysis()
        try:
            reply = await self._query(build_query(session, max_visits))
            return to_analysis(reply, session.board)
        except EngineError as exc:
            logger.warning("Game %s: analysis unavailable, using neutral result: %s", session.id, exc)
            return neutral_analysis()

    async def _query(self, query: AnalysisQuery) -> AnalysisReply:
        async with self._lock:
            process = await self._ensure_process()
            try:
                return await asyncio.wait_for(self._exchange(process, query), self.timeout)
            except asyncio.TimeoutError as exc:
                await self._close_process()
                raise EngineTimeoutError(f"No analysis within {self.timeout}s.") from exc
            except (BrokenPipeError, ConnectionResetError) as exc:
                await self._close_process()
                raise EngineUnavailableError("Analysis engine pipe broke.") from exc
            except EngineUnavailableError:
                await self._close_process()
                raise

    async def _ensure_process(self) -> Any:
        if self._process is not None and self._process.returncode is None:
            return self._process
        try:
            self._process = await self._spawn(self.command)
        except OSError as exc:
            raise EngineUnavailableError(f"Cannot start {self.command[0]}: {exc}") from exc
        logger.info("Analysis engine started: %s", self.command[0])
        return self._process

    async def _exchange(self, process: Any, query: AnalysisQuery) -> AnalysisReply:
        process.stdin.write(query.model_dump_json(by_alias=True, exclude_none=True).encode() + b"\n")
        await process.stdin.drain()
        while True:
            raw = await process.stdout.readline()
            if not raw:
                raise EngineUnavailableError("Analysis engine closed its output.")
            line = raw.decode(errors="replace").strip()
            if not line:
                continue
            if '"error"' in line and query.id in line:
                raise EngineCommandError(f"Analysis query rejected: {line}")
            try:
                reply = AnalysisReply.model_validate_json(line)
            except ValidationError as exc:
                if query.id in line:
                    raise EngineCommandError(f"Cannot read analysis reply: {exc}") from exc
                continue  # warnings or replies to abandoned queries
            if reply.id == query.id and not reply.is_during_search:
                return reply

    async def _close_process(self) -> None:
        process, self._process = self._process, None
        if process is None:
            return
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        with contextlib.suppress(ProcessLookupError):
            await process.wait()

    async def close(self) -> None:
        async with self._lock:
            await self._close_process()
