"""Pydantic schemas for session endpoints."""

from pydantic import BaseModel


class SessionResponse(BaseModel):
    """Response model for an active session lookup."""
    user_id: str
    endpoint: str
    created_at: str


class LogoutResponse(BaseModel):
    """Response model for ending a session."""
    user_id: str
    files_removed: int
