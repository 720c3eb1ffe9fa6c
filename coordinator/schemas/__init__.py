"""Pydantic schemas for API requests and responses."""

from coordinator.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    LoginResponse
)
from coordinator.schemas.sessions import SessionResponse, LogoutResponse
from coordinator.schemas.files import (
    RegisterFilesRequest,
    FileRecordResponse,
    FileListResponse,
    FileLocationResponse
)
from coordinator.schemas.common import ErrorResponse

__all__ = [
    "RegisterRequest",
    "RegisterResponse",
    "LoginRequest",
    "LoginResponse",
    "SessionResponse",
    "LogoutResponse",
    "RegisterFilesRequest",
    "FileRecordResponse",
    "FileListResponse",
    "FileLocationResponse",
    "ErrorResponse"
]
