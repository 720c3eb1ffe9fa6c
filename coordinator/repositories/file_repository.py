"""File record repository for database operations."""

import sqlite3
from datetime import datetime
from typing import List, Optional, Sequence

from common.logging_config import get_logger
from common.types import FileRecord
from coordinator.database import get_db_connection
from coordinator.utils import format_timestamp, parse_timestamp, utc_now

logger = get_logger(__name__)


def _row_to_record(row) -> FileRecord:
    return FileRecord(
        file_id=row["file_id"],
        filename=row["filename"],
        owner_id=row["owner_id"],
        created_at=parse_timestamp(row["created_at"]),
    )


class FileRepository:
    @staticmethod
    def create_files(
        conn: sqlite3.Connection,
        filenames: Sequence[str],
        owner_id: str,
        created_at: datetime,
    ) -> List[FileRecord]:
        """
        Insert one record per filename on the caller's connection.
        Nothing is committed here.
        """
        records = []
        timestamp = format_timestamp(created_at)
        for filename in filenames:
            cursor = conn.execute(
                "INSERT INTO files (filename, owner_id, created_at) VALUES (?, ?, ?)",
                (filename, owner_id, timestamp)
            )
            records.append(FileRecord(
                file_id=cursor.lastrowid,
                filename=filename,
                owner_id=owner_id,
                created_at=created_at,
            ))
        return records

    @staticmethod
    def get_by_id(file_id: int, conn: Optional[sqlite3.Connection] = None) -> Optional[FileRecord]:
        query = "SELECT file_id, filename, owner_id, created_at FROM files WHERE file_id = ?"
        if conn is not None:
            row = conn.execute(query, (file_id,)).fetchone()
        else:
            with get_db_connection() as conn:
                row = conn.execute(query, (file_id,)).fetchone()

        if row is None:
            return None
        return _row_to_record(row)

    @staticmethod
    def search(keyword: str) -> List[FileRecord]:
        logger.debug(f"Searching files for keyword: {keyword!r}")
        with get_db_connection() as conn:
            rows = conn.execute(
                """
                SELECT file_id, filename, owner_id, created_at FROM files
                WHERE contains_casefold(filename, ?)
                ORDER BY file_id
                """,
                (keyword,)
            ).fetchall()
            return [_row_to_record(row) for row in rows]

    @staticmethod
    def count_by_owner(owner_id: str) -> int:
        with get_db_connection() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM files WHERE owner_id = ?", (owner_id,)
            ).fetchone()[0]

    @staticmethod
    def delete_by_owner(conn: sqlite3.Connection, owner_id: str) -> int:
        """
        Move every record owned by owner_id to the withdrawn tombstones.
        Nothing is committed here.
        """
        conn.execute(
            """
            INSERT OR REPLACE INTO withdrawn_files (file_id, filename, owner_id, withdrawn_at)
            SELECT file_id, filename, owner_id, ? FROM files WHERE owner_id = ?
            """,
            (format_timestamp(utc_now()), owner_id)
        )
        cursor = conn.execute("DELETE FROM files WHERE owner_id = ?", (owner_id,))
        return cursor.rowcount

    @staticmethod
    def delete_without_session(conn: sqlite3.Connection) -> int:
        """
        Withdraw records whose owner holds no session row.
        """
        conn.execute(
            """
            INSERT OR REPLACE INTO withdrawn_files (file_id, filename, owner_id, withdrawn_at)
            SELECT file_id, filename, owner_id, ? FROM files
            WHERE owner_id NOT IN (SELECT user_id FROM active_sessions)
            """,
            (format_timestamp(utc_now()),)
        )
        cursor = conn.execute(
            "DELETE FROM files WHERE owner_id NOT IN (SELECT user_id FROM active_sessions)"
        )
        return cursor.rowcount

    @staticmethod
    def is_withdrawn(file_id: int, conn: Optional[sqlite3.Connection] = None) -> bool:
        query = "SELECT 1 FROM withdrawn_files WHERE file_id = ?"
        if conn is not None:
            return conn.execute(query, (file_id,)).fetchone() is not None

        with get_db_connection() as conn:
            return conn.execute(query, (file_id,)).fetchone() is not None
