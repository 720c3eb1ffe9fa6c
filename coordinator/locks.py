"""Per-user locks serializing registry and catalog mutations."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from common.logging_config import get_logger

logger = get_logger(__name__)


class UserLockTable:
    """
    One asyncio.Lock per user identity.

    Session registration, session removal (with its cascade) and catalog
    inserts for the same user all run under that user's lock, so a logout
    cannot interleave with an upload registration for the same owner.
    Operations on different users never wait on each other.

    A lock lives only while someone holds or waits for it, so the table
    stays as small as the set of users with operations in flight.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        elif lock.locked():
            logger.debug(f"Waiting for lock [user_id={user_id}]")
        self._users[user_id] = self._users.get(user_id, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._users[user_id] -= 1
            if not self._users[user_id]:
                del self._users[user_id]
                del self._locks[user_id]
