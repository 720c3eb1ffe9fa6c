"""Active session repository for database operations.

Every method takes an open connection: session rows are only ever changed
together with the owner's file records, inside one transaction owned by the
caller.
"""

import sqlite3
from datetime import datetime
from typing import List, Optional

from common.types import ActiveSession
from coordinator.utils import format_timestamp, parse_timestamp


def _row_to_session(row) -> ActiveSession:
    return ActiveSession(
        user_id=row["user_id"],
        endpoint=row["endpoint"],
        created_at=parse_timestamp(row["created_at"]),
    )


class SessionRepository:
    @staticmethod
    def insert(conn: sqlite3.Connection, user_id: str, endpoint: str, created_at: datetime) -> ActiveSession:
        """
        Insert a session row. Fails if the user already has one.

        Raises:
            sqlite3.IntegrityError: If a row for user_id already exists
        """
        conn.execute(
            "INSERT INTO active_sessions (user_id, endpoint, created_at) VALUES (?, ?, ?)",
            (user_id, endpoint, format_timestamp(created_at))
        )
        return ActiveSession(user_id=user_id, endpoint=endpoint, created_at=created_at)

    @staticmethod
    def get(conn: sqlite3.Connection, user_id: str) -> Optional[ActiveSession]:
        row = conn.execute(
            "SELECT user_id, endpoint, created_at FROM active_sessions WHERE user_id = ?",
            (user_id,)
        ).fetchone()
        if row is None:
            return None
        return _row_to_session(row)

    @staticmethod
    def delete(conn: sqlite3.Connection, user_id: str) -> bool:
        cursor = conn.execute("DELETE FROM active_sessions WHERE user_id = ?", (user_id,))
        return cursor.rowcount > 0

    @staticmethod
    def list_created_before(conn: sqlite3.Connection, cutoff: datetime) -> List[str]:
        rows = conn.execute(
            "SELECT user_id FROM active_sessions WHERE created_at < ?",
            (format_timestamp(cutoff),)
        ).fetchall()
        return [row["user_id"] for row in rows]

    @staticmethod
    def count(conn: sqlite3.Connection) -> int:
        return conn.execute("SELECT COUNT(*) FROM active_sessions").fetchone()[0]

    @staticmethod
    def clear_all(conn: sqlite3.Connection) -> int:
        cursor = conn.execute("DELETE FROM active_sessions")
        return cursor.rowcount
