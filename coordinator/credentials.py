"""Credential store: user accounts with bcrypt password hashes."""

import sqlite3

import bcrypt

from common.logging_config import get_logger
from coordinator.exceptions import InvalidCredentialsError, UserAlreadyExistsError
from coordinator.repositories.user_repository import UserRepository, User
from coordinator.utils import generate_uuid, utc_now

logger = get_logger(__name__)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Bcrypt hash of the password
    """
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.
    """
    return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))


class CredentialStore:
    def __init__(self, user_repo: UserRepository = None):
        self.user_repo = user_repo or UserRepository()

    def create(self, username: str, password: str) -> User:
        """
        Create a user account.

        Raises:
            UserAlreadyExistsError: If the username is taken
        """
        if self.user_repo.get_by_username(username) is not None:
            logger.warning(f"Registration failed: username '{username}' already exists")
            raise UserAlreadyExistsError(f"Username '{username}' already exists")

        try:
            return self.user_repo.create_user(
                user_id=generate_uuid(),
                username=username,
                password_hash=hash_password(password),
                created_at=utc_now(),
            )
        except sqlite3.IntegrityError:
            logger.warning(f"Registration failed due to integrity error: username '{username}'")
            raise UserAlreadyExistsError(f"Username '{username}' already exists")

    def verify(self, username: str, password: str) -> User:
        """
        Check a username/password pair.

        Raises:
            InvalidCredentialsError: If the user is unknown or the password is wrong
        """
        user = self.user_repo.get_by_username(username)
        if user is None:
            logger.warning(f"Login failed: username '{username}' not found")
            raise InvalidCredentialsError("Invalid username or password")

        if not verify_password(password, user.password_hash):
            logger.warning(f"Login failed: invalid password for username '{username}'")
            raise InvalidCredentialsError("Invalid username or password")

        return user
