"""Per-session sequencing: an action and a tick for the same game never run at the same time."""

import asyncio
from collections import defaultdict


class SessionLocks:
    def __init__(self) -> None:
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __call__(self, session_id: str) -> asyncio.Lock:
        return self._locks[session_id]

    def discard(self, session_id: str) -> None:
        """Forget the lock of a finished game (only when nobody holds it)."""
        lock = self._locks.get(session_id)
        if lock is not None and not lock.locked():
            del self._locks[session_id]
