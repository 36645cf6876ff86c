"""Unit tests for src/services/locks.py"""

import pytest

from src.services.locks import SessionLocks


def test_one_lock_per_session() -> None:
    locks = SessionLocks()
    assert locks("game-1") is locks("game-1")
    assert locks("game-1") is not locks("game-2")


@pytest.mark.asyncio
async def test_held_lock_is_not_discarded() -> None:
    locks = SessionLocks()
    lock = locks("game-1")
    async with lock:
        locks.discard("game-1")
        assert locks("game-1") is lock

    locks.discard("game-1")
    assert locks("game-1") is not lock
    locks.discard("unknown")
