"""Unit tests for src/engine/pool.py"""

from typing import Optional

import pytest

from src.baduk.board import set_stone
from src.baduk.point import RESIGN, Point
from src.baduk.session import MoveRecord
from src.core.exceptions import (
    EngineCommandError,
    EngineTimeoutError,
    EngineUnavailableError,
)
from src.core.shared_types import GameMode, Player
from src.engine.pool import GoEnginePool, engine_position


class MockEngine:
    def __init__(
        self,
        move: Point = Point(2, 2),
        fail_play: bool = False,
        fail_resync: bool = False,
        fail_genmove: bool = False,
    ) -> None:
        self.level = 1
        self.healthy = True
        self.move = move
        self.fail_play = fail_play
        self.fail_resync = fail_resync
        self.fail_genmove = fail_genmove
        self.played: list[tuple[Player, Point]] = []
        self.resyncs: list[tuple[list, list]] = []
        self.closed = False

    async def play(self, player: Player, point: Point) -> None:
        if self.fail_play:
            raise EngineCommandError("illegal move")
        self.played.append((player, point))

    async def resync(self, history, setup=None) -> None:
        if self.fail_resync:
            raise EngineTimeoutError("too slow")
        self.resyncs.append((setup or [], history))

    async def genmove(self, player: Player, allow_pass: bool) -> Point:
        if self.fail_genmove:
            raise EngineTimeoutError("too slow")
        return self.move

    async def close(self) -> None:
        self.closed = True
        self.healthy = False


class MockLauncher:
    """Hands out the given engines in order; raises once they run out."""

    def __init__(self, *engines: MockEngine) -> None:
        self.engines = list(engines)
        self.calls: list[tuple[int, float, int]] = []

    async def __call__(self, board_size: int, komi: float, level: int) -> MockEngine:
        self.calls.append((board_size, komi, level))
        if not self.engines:
            raise EngineUnavailableError("no engine")
        return self.engines.pop(0)


def with_moves(session):
    session.move_history = [
        MoveRecord(Player.BLACK, 4, 4),
        MoveRecord(Player.WHITE, 3, 3),
    ]
    return session


# --- POSITION ----
def test_position_is_the_move_list(new_session) -> None:
    session = with_moves(new_session())
    session.move_history.append(MoveRecord(Player.BLACK, RESIGN.x, RESIGN.y))
    setup, history = engine_position(session)

    assert setup == []
    assert history == [(Player.BLACK, Point(4, 4)), (Player.WHITE, Point(3, 3))]


def test_base_games_send_the_board(new_session) -> None:
    session = new_session(mode=GameMode.BASE, base_stones=1)
    session.reset_board()
    set_stone(session.board, Point(1, 1), Player.WHITE)
    set_stone(session.board, Point(7, 7), Player.BLACK)
    setup, history = engine_position(session)

    assert setup == [(Player.WHITE, Point(1, 1)), (Player.BLACK, Point(7, 7))]
    assert history == []


# --- LIFECYCLE ----
@pytest.mark.asyncio
async def test_create_uses_game_settings(new_session) -> None:
    launcher = MockLauncher(MockEngine())
    pool = GoEnginePool(launcher)
    session = new_session(ai_level=4, komi=7.5)
    await pool.create(session)

    assert launcher.calls == [(9, 7.5, 4)]
    assert session.id in pool


@pytest.mark.asyncio
async def test_unavailable_engine_is_not_an_error(new_session) -> None:
    pool = GoEnginePool(MockLauncher())
    session = new_session()
    assert await pool.create(session) is None
    assert session.id not in pool


@pytest.mark.asyncio
async def test_ensure_syncs_a_new_engine_once(new_session) -> None:
    engine = MockEngine()
    launcher = MockLauncher(engine)
    pool = GoEnginePool(launcher)
    session = with_moves(new_session())

    assert await pool.ensure(session) is engine
    assert await pool.ensure(session) is engine
    assert len(launcher.calls) == 1
    assert engine.resyncs == [([], [(Player.BLACK, Point(4, 4)), (Player.WHITE, Point(3, 3))])]


@pytest.mark.asyncio
async def test_ensure_replaces_an_unhealthy_engine(new_session) -> None:
    broken, fresh = MockEngine(), MockEngine()
    pool = GoEnginePool(MockLauncher(broken, fresh))
    session = new_session()
    await pool.ensure(session)
    broken.healthy = False

    assert await pool.ensure(session) is fresh
    assert broken.closed


@pytest.mark.asyncio
async def test_failed_initial_sync_drops_the_engine(new_session) -> None:
    pool = GoEnginePool(MockLauncher(MockEngine(fail_resync=True)))
    session = with_moves(new_session())
    assert await pool.ensure(session) is None
    assert session.id not in pool


@pytest.mark.asyncio
async def test_destroy_and_shutdown(new_session) -> None:
    first, second = MockEngine(), MockEngine()
    pool = GoEnginePool(MockLauncher(first, second))
    one, other = new_session(), new_session()
    other.id = "game-2"
    await pool.create(one)
    await pool.create(other)

    await pool.destroy("unknown")
    await pool.destroy(one.id)
    assert first.closed and one.id not in pool
    await pool.shutdown()
    assert second.closed and other.id not in pool


# --- MOVES ----
@pytest.mark.asyncio
async def test_play_move(new_session) -> None:
    engine = MockEngine()
    pool = GoEnginePool(MockLauncher(engine))
    session = new_session()
    await pool.create(session)
    assert await pool.play_move(session, Player.BLACK, Point(4, 4))
    assert engine.played == [(Player.BLACK, Point(4, 4))]


@pytest.mark.asyncio
async def test_play_move_without_engine_is_ignored(new_session) -> None:
    pool = GoEnginePool(MockLauncher())
    await pool.play_move(new_session(), Player.BLACK, Point(4, 4))


@pytest.mark.asyncio
async def test_rejected_move_resyncs_the_same_engine(new_session) -> None:
    engine = MockEngine(fail_play=True)
    launcher = MockLauncher(engine)
    pool = GoEnginePool(launcher)
    session = with_moves(new_session())
    await pool.create(session)
    assert not await pool.play_move(session, Player.WHITE, Point(3, 3))

    assert len(engine.resyncs) == 1
    assert len(launcher.calls) == 1


@pytest.mark.asyncio
async def test_failed_resync_restarts_the_engine(new_session) -> None:
    broken = MockEngine(fail_play=True, fail_resync=True)
    fresh = MockEngine()
    pool = GoEnginePool(MockLauncher(broken, fresh))
    session = with_moves(new_session())
    await pool.create(session)
    await pool.play_move(session, Player.WHITE, Point(3, 3))

    assert broken.closed
    assert pool.get(session.id) is fresh
    assert len(fresh.resyncs) == 1


@pytest.mark.asyncio
async def test_hopeless_engine_is_dropped(new_session) -> None:
    pool = GoEnginePool(
        MockLauncher(
            MockEngine(fail_play=True, fail_resync=True),
            MockEngine(fail_resync=True),
        )
    )
    session = with_moves(new_session())
    await pool.create(session)
    await pool.play_move(session, Player.WHITE, Point(3, 3))
    assert session.id not in pool


@pytest.mark.asyncio
async def test_generate_move(new_session) -> None:
    pool = GoEnginePool(MockLauncher(MockEngine(move=Point(6, 2))))
    session = new_session()
    assert await pool.generate_move(session, Player.WHITE, allow_pass=False) == Point(6, 2)


@pytest.mark.asyncio
async def test_generate_move_failures_return_none(new_session) -> None:
    session = new_session()
    assert await GoEnginePool(MockLauncher()).generate_move(session, Player.WHITE, True) is None

    pool = GoEnginePool(MockLauncher(MockEngine(fail_genmove=True)))
    assert await pool.generate_move(session, Player.WHITE, True) is None


# --- BACKGROUND MIRRORING ----
@pytest.mark.asyncio
async def test_mirrored_moves_are_played_in_order(new_session) -> None:
    engine = MockEngine()
    pool = GoEnginePool(MockLauncher(engine))
    session = new_session()
    await pool.create(session)

    pool.mirror(session, [(Player.BLACK, Point(4, 4))])
    pool.mirror(session, [(Player.WHITE, Point(3, 3)), (Player.BLACK, Point(5, 5))])
    assert engine.played == []

    await pool.drain(session.id)
    assert engine.played == [
        (Player.BLACK, Point(4, 4)),
        (Player.WHITE, Point(3, 3)),
        (Player.BLACK, Point(5, 5)),
    ]


@pytest.mark.asyncio
async def test_rebuild_covers_the_rest_of_the_batch(new_session) -> None:
    engine = MockEngine(fail_play=True)
    pool = GoEnginePool(MockLauncher(engine))
    session = with_moves(new_session())
    await pool.create(session)

    pool.mirror(session, [(Player.BLACK, Point(4, 4)), (Player.WHITE, Point(3, 3))])
    await pool.drain(session.id)
    assert len(engine.resyncs) == 1


@pytest.mark.asyncio
async def test_games_without_engine_are_not_mirrored(new_session) -> None:
    pool = GoEnginePool(MockLauncher())
    session = new_session()
    pool.mirror(session, [(Player.BLACK, Point(4, 4))])
    await pool.drain(session.id)
    assert session.id not in pool


@pytest.mark.asyncio
async def test_release_closes_in_the_background(new_session) -> None:
    engine = MockEngine()
    pool = GoEnginePool(MockLauncher(engine))
    session = new_session()
    await pool.create(session)

    pool.release(session.id)
    assert session.id not in pool
    assert not engine.closed

    await pool.shutdown()
    assert engine.closed


@pytest.mark.asyncio
async def test_generate_move_waits_for_queued_moves(new_session) -> None:
    engine = MockEngine(move=Point(6, 2))
    pool = GoEnginePool(MockLauncher(engine))
    session = new_session()
    await pool.create(session)

    pool.mirror(session, [(Player.BLACK, Point(4, 4))])
    assert await pool.generate_move(session, Player.WHITE, allow_pass=True) == Point(6, 2)
    assert engine.played == [(Player.BLACK, Point(4, 4))]
