"""Active session registry: user identity -> endpoint of the node they are logged in from."""

import sqlite3
from datetime import datetime, timedelta

from common.logging_config import get_logger
from common.types import ActiveSession
from coordinator.database import get_db_connection
from coordinator.exceptions import SessionConflictError, SessionNotFoundError
from coordinator.file_catalog import FileCatalog
from coordinator.locks import UserLockTable
from coordinator.repositories.file_repository import FileRepository
from coordinator.repositories.session_repository import SessionRepository
from coordinator.utils import utc_now

logger = get_logger(__name__)


class ActiveSessionRegistry:
    """
    Registry of logged-in users.

    At most one session exists per user. Removing a session removes the
    user's catalog records in the same transaction, since only the owner's
    node holds the bytes.
    """

    def __init__(self, locks: UserLockTable, catalog: FileCatalog, ttl_seconds: int):
        self.locks = locks
        self.catalog = catalog
        self.ttl = timedelta(seconds=ttl_seconds)

    def expiry_cutoff(self) -> datetime:
        """Sessions created before this instant are expired."""
        return utc_now() - self.ttl

    def _is_expired(self, session: ActiveSession) -> bool:
        return session.created_at < self.expiry_cutoff()

    async def register(self, user_id: str, endpoint: str) -> ActiveSession:
        """
        Create the user's session.

        Raises:
            SessionConflictError: If the user already holds a live session
        """
        async with self.locks.hold(user_id):
            with get_db_connection() as conn:
                try:
                    existing = SessionRepository.get(conn, user_id)
                    if existing is not None and self._is_expired(existing):
                        removed = self.catalog.delete_all_owned_by(user_id, conn=conn)
                        SessionRepository.delete(conn, user_id)
                        logger.info(f"Replaced expired session, removed {removed} file(s) [user_id={user_id}]")

                    session = SessionRepository.insert(conn, user_id, endpoint, utc_now())
                    conn.commit()
                except sqlite3.IntegrityError:
                    conn.rollback()
                    logger.warning(f"Duplicate login rejected [user_id={user_id}] endpoint={endpoint}")
                    raise SessionConflictError("User is already logged in from another node")

        logger.info(f"Session registered [user_id={user_id}] endpoint={endpoint}")
        return session

    def lookup(self, user_id: str) -> ActiveSession:
        """
        Raises:
            SessionNotFoundError: If the user has no live session
        """
        with get_db_connection() as conn:
            session = SessionRepository.get(conn, user_id)

        if session is None or self._is_expired(session):
            raise SessionNotFoundError(f"No active session for user {user_id}")
        return session

    async def remove(self, user_id: str) -> int:
        """
        End the user's session and delete every file record they own.

        Returns:
            Number of file records deleted

        Raises:
            SessionNotFoundError: If the user has no session; nothing is changed
        """
        async with self.locks.hold(user_id):
            with get_db_connection() as conn:
                removed = self.catalog.delete_all_owned_by(user_id, conn=conn)
                if not SessionRepository.delete(conn, user_id):
                    conn.rollback()
                    raise SessionNotFoundError(f"No active session for user {user_id}")
                conn.commit()

        logger.info(f"Session removed, {removed} file record(s) deleted [user_id={user_id}]")
        return removed

    async def expire_stale(self) -> int:
        """
        Remove every expired session together with its files.

        Returns:
            Number of sessions expired
        """
        cutoff = self.expiry_cutoff()
        with get_db_connection() as conn:
            candidates = SessionRepository.list_created_before(conn, cutoff)

        expired = 0
        for user_id in candidates:
            async with self.locks.hold(user_id):
                with get_db_connection() as conn:
                    session = SessionRepository.get(conn, user_id)
                    # re-login may have replaced it while we waited
                    if session is None or session.created_at >= cutoff:
                        continue
                    removed = self.catalog.delete_all_owned_by(user_id, conn=conn)
                    SessionRepository.delete(conn, user_id)
                    conn.commit()
            expired += 1
            logger.info(f"Session expired, {removed} file record(s) deleted [user_id={user_id}]")

        return expired

    def reset(self) -> int:
        """
        Drop every session and the records they owned. Run at startup:
        endpoints from a previous run cannot be trusted.

        Returns:
            Number of sessions dropped
        """
        with get_db_connection() as conn:
            dropped = SessionRepository.clear_all(conn)
            orphaned = FileRepository.delete_without_session(conn)
            conn.commit()

        if dropped or orphaned:
            logger.info(f"Cleared {dropped} stale session(s) and {orphaned} file record(s)")
        return dropped

    def count(self) -> int:
        with get_db_connection() as conn:
            return SessionRepository.count(conn)
