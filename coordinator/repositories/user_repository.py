"""User repository for database operations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from common.logging_config import get_logger
from coordinator.database import get_db_connection
from coordinator.utils import format_timestamp, parse_timestamp

logger = get_logger(__name__)


@dataclass
class User:
    user_id: str
    username: str
    password_hash: str
    created_at: datetime


def _row_to_user(row) -> User:
    return User(
        user_id=row["user_id"],
        username=row["username"],
        password_hash=row["password_hash"],
        created_at=parse_timestamp(row["created_at"]),
    )


class UserRepository:
    @staticmethod
    def create_user(
        user_id: str,
        username: str,
        password_hash: str,
        created_at: datetime,
    ) -> User:
        """
        Insert a new user row.

        Raises:
            sqlite3.IntegrityError: If the username is already taken
        """
        logger.debug(f"Creating user: {username} [user_id={user_id}]")
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO users (user_id, username, password_hash, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, username, password_hash, format_timestamp(created_at))
            )
            conn.commit()
            logger.info(f"User created successfully: {username} [user_id={user_id}]")

        return User(
            user_id=user_id,
            username=username,
            password_hash=password_hash,
            created_at=created_at,
        )

    @staticmethod
    def get_by_username(username: str) -> Optional[User]:
        logger.debug(f"Fetching user by username: {username}")
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT user_id, username, password_hash, created_at FROM users WHERE username = ?",
                (username,)
            )
            row = cursor.fetchone()

            if row is None:
                logger.debug(f"User not found: {username}")
                return None

            return _row_to_user(row)
