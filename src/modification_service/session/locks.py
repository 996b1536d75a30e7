"""Per-session single-writer locks."""

import asyncio
from contextlib import asynccontextmanager


class SessionLockRegistry:
    """Hands out one ``asyncio.Lock`` per session id.

    Locks are reference counted and dropped once no request holds or awaits them.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: str):
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[session_id] -= 1
            if self._users[session_id] == 0:
                del self._users[session_id]
                del self._locks[session_id]

    def active_sessions(self) -> int:
        return len(self._locks)
