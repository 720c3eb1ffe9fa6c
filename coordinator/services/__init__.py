"""Service layer for business logic."""

from coordinator.services.auth_service import AuthService
from coordinator.services.file_service import FileService

__all__ = [
    "AuthService",
    "FileService",
]
