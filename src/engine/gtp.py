"""
Go Text Protocol (GTP) client.

Coordinate codec plus the two layers that talk to an engine subprocess:
    GTPProcess - one child process, one command at a time, every reply bounded by a timeout
    GoEngine   - a GTPProcess set up for one game (board size, komi, strength)

Commands go out as single lines. A reply starts with "=" (success) or "?" (failure) and ends with an empty line.
"""

import asyncio
import contextlib
import logging
import os
import random
import shutil
from typing import Any, Awaitable, Callable, Optional

from src.baduk.point import PASS, RESIGN, Point
from src.core import config
from src.core.config import Config
from src.core.exceptions import (
    EngineCommandError,
    EngineTimeoutError,
    EngineUnavailableError,
)
from src.core.shared_types import Player

logger = logging.getLogger(__name__)

GNUGO_ARGS = ("--mode", "gtp", "--never-resign")
GNUGO_SEARCH_PATHS = ("./gnugo", "../gnugo")
MAX_ENGINE_LEVEL = 10

# A started child process. Anything with the same stdin/stdout/kill/wait surface will do (tests use a fake).
Spawn = Callable[[list[str]], Awaitable[Any]]


# --- Coordinates
def to_gtp(point: Point, board_size: int) -> str:
    """
    (x, y) -> GTP vertex
    ----
    Columns are lettered without "I", rows are counted from the bottom: on 19x19, (0, 0) is "A19".
    """
    if point.is_pass:
        return "pass"
    if point.is_resign:
        return "resign"
    if not point.is_on_board(board_size):
        raise EngineCommandError(f"{point} is not on a {board_size}x{board_size} board.")
    return f"{config.GTP_LETTERS[point.x]}{board_size - point.y}"


def from_gtp(vertex: str, board_size: int) -> Point:
    text = vertex.strip().upper()
    if text == "PASS":
        return PASS
    if text == "RESIGN":
        return RESIGN
    letter, row = text[:1], text[1:]
    x = config.GTP_LETTERS.find(letter) if letter else -1
    try:
        y = board_size - int(row)
    except ValueError as exc:
        raise EngineCommandError(f"Cannot parse vertex {vertex!r}.") from exc
    point = Point(x, y)
    if x < 0 or not point.is_on_board(board_size):
        raise EngineCommandError(f"Vertex {vertex!r} is off a {board_size}x{board_size} board.")
    return point


def gtp_color(player: Player) -> str:
    if player == Player.BLACK:
        return "black"
    if player == Player.WHITE:
        return "white"
    raise EngineCommandError(f"{player!r} cannot move.")


# --- Processes
def find_gnugo() -> Optional[str]:
    """Explicit GNUGO_PATH first, then a binary next to (or above) the working directory, then PATH."""
    if Config.GNUGO_PATH:
        return Config.GNUGO_PATH
    for candidate in GNUGO_SEARCH_PATHS:
        if os.path.isfile(candidate) and os.access(candidate, os.X_OK):
            return candidate
    return shutil.which("gnugo")


async def spawn_process(command: list[str]) -> asyncio.subprocess.Process:
    return await asyncio.create_subprocess_exec(
        *command,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.DEVNULL,
    )


class GTPProcess:
    """One engine child process. Commands are serialized: a reply is always read before the next command is sent."""

    def __init__(self, process: Any, timeout: float = config.ENGINE_COMMAND_TIMEOUT_SEC) -> None:
        self._process = process
        self._lock = asyncio.Lock()
        self.timeout = timeout
        self.healthy = True

    @classmethod
    async def start(cls, command: list[str], spawn: Spawn = spawn_process) -> "GTPProcess":
        try:
            process = await spawn(command)
        except OSError as exc:
            raise EngineUnavailableError(f"Cannot start {command[0]}: {exc}") from exc
        logger.info("Engine process started: %s", " ".join(command))
        return cls(process)

    async def send(self, command: str) -> str:
        """Send one command and return the reply text without its "=" marker."""
        async with self._lock:
            if not self.healthy or self._process.returncode is not None:
                raise EngineUnavailableError("Engine process is not running.")
            try:
                return await asyncio.wait_for(self._exchange(command), self.timeout)
            except asyncio.TimeoutError as exc:
                # A late reply would be read as the answer to the next command
                self.healthy = False
                raise EngineTimeoutError(f"No reply to {command!r} within {self.timeout}s.") from exc
            except (BrokenPipeError, ConnectionResetError) as exc:
                self.healthy = False
                raise EngineUnavailableError(f"Engine pipe broke on {command!r}.") from exc
            except EngineUnavailableError:
                self.healthy = False
                raise
            except UnicodeDecodeError as exc:
                # The rest of the garbled reply is still in the pipe
                self.healthy = False
                raise EngineCommandError(f"Unreadable reply to {command!r}.") from exc

    async def _exchange(self, command: str) -> str:
        self._process.stdin.write(f"{command}\n".encode())
        await self._process.stdin.drain()

        lines: list[str] = []
        while True:
            raw = await self._process.stdout.readline()
            if not raw:
                raise EngineUnavailableError("Engine closed its output.")
            line = raw.decode().strip()
            if line:
                lines.append(line)
            elif lines:
                break

        head, rest = lines[0], lines[1:]
        text = "\n".join([head[1:].strip(), *rest]).strip()
        if head.startswith("?"):
            raise EngineCommandError(f"{command!r} failed: {text}")
        if not head.startswith("="):
            raise EngineCommandError(f"Unexpected reply to {command!r}: {head!r}")
        return text

    async def close(self) -> None:
        self.healthy = False
        with contextlib.suppress(ProcessLookupError):
            self._process.kill()
        with contextlib.suppress(ProcessLookupError):
            await self._process.wait()


class GoEngine:
    """A GTP engine playing one game."""

    def __init__(self, process: GTPProcess, board_size: int, komi: float, level: int) -> None:
        self.process = process
        self.board_size = board_size
        self.komi = komi
        self.level = max(1, min(MAX_ENGINE_LEVEL, level))

    @classmethod
    async def launch(
        cls, board_size: int, komi: float, level: int, spawn: Spawn = spawn_process
    ) -> "GoEngine":
        executable = find_gnugo()
        if executable is None:
            raise EngineUnavailableError("GNU Go executable not found.")
        process = await GTPProcess.start([executable, *GNUGO_ARGS], spawn)
        engine = cls(process, board_size, komi, level)
        try:
            await engine.setup()
        except Exception:
            await process.close()
            raise
        return engine

    @property
    def healthy(self) -> bool:
        return self.process.healthy

    async def setup(self) -> None:
        """Empty board of the right size, komi and strength."""
        await self.process.send(f"boardsize {self.board_size}")
        await self.process.send("clear_board")
        await self.process.send(f"komi {self.komi}")
        await self.process.send(f"level {self.level}")

    async def play(self, player: Player, point: Point) -> None:
        await self.process.send(f"play {gtp_color(player)} {to_gtp(point, self.board_size)}")

    async def resync(
        self,
        history: list[tuple[Player, Point]],
        setup: Optional[list[tuple[Player, Point]]] = None,
    ) -> None:
        """
        Bring the engine back to the game's position from an empty board.
        ----
        `setup` stones are placed first (positions that did not come from an ordinary move sequence),
        then `history` is replayed move by move.
        """
        await self.setup()
        for player, point in setup or []:
            await self.play(player, point)
        for player, point in history:
            await self.play(player, point)
        logger.info(
            "Engine resynced: %d setup stones, %d moves", len(setup or []), len(history)
        )

    async def genmove(self, player: Player, allow_pass: bool) -> Point:
        """
        Ask for a move without playing it on the engine's board.
        ----
        Resign is never accepted. A pass is only accepted when `allow_pass`; otherwise (and for resign)
        a random legal move is picked instead, falling back to pass when there is none.
        """
        color = gtp_color(player)
        suggestion = from_gtp(await self.process.send(f"reg_genmove {color}"), self.board_size)
        if suggestion.is_resign or (suggestion.is_pass and not allow_pass):
            return await self._alternative_move(color)
        return suggestion

    async def _alternative_move(self, color: str) -> Point:
        try:
            reply = await self.process.send(f"all_legal {color}")
            moves = [from_gtp(vertex, self.board_size) for vertex in reply.split()]
        except EngineCommandError as exc:
            logger.warning("No legal-move list from engine, passing: %s", exc)
            return PASS
        moves = [move for move in moves if not move.is_pass]
        if not moves:
            return PASS
        return random.choice(moves)

    async def close(self) -> None:
        await self.process.close()
