"""Repository layer for data access."""

from coordinator.repositories.user_repository import UserRepository
from coordinator.repositories.file_repository import FileRepository
from coordinator.repositories.session_repository import SessionRepository

__all__ = [
    "UserRepository",
    "FileRepository",
    "SessionRepository",
]
