"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from coordinator.config import DATABASE_PATH


def _contains_casefold(haystack: Optional[str], needle: Optional[str]) -> int:
    """
    SQL function: case-insensitive substring test using Unicode casefolding.

    SQLite's LIKE only folds ASCII, so filename search goes through this instead.
    """
    if haystack is None or needle is None:
        return 0
    return int(needle.casefold() in haystack.casefold())


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                user_id TEXT PRIMARY KEY,
                username TEXT UNIQUE NOT NULL,
                password_hash TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        # AUTOINCREMENT guarantees file ids are never handed out twice,
        # even after the highest row has been deleted.
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS files (
                file_id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT NOT NULL,
                owner_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY(owner_id) REFERENCES users(user_id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS active_sessions (
                user_id TEXT PRIMARY KEY,
                endpoint TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY(user_id) REFERENCES users(user_id)
            )
        """)

        # rows moved here when their owner's session ends
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS withdrawn_files (
                file_id INTEGER PRIMARY KEY,
                filename TEXT NOT NULL,
                owner_id TEXT NOT NULL,
                withdrawn_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_files_owner ON files(owner_id)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.create_function("contains_casefold", 2, _contains_casefold, deterministic=True)
    try:
        yield conn
    finally:
        conn.close()
