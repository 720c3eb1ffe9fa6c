"""Pydantic schemas for authentication endpoints."""

from pydantic import BaseModel, Field, field_validator


class RegisterRequest(BaseModel):
    """Request model for user registration."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterResponse(BaseModel):
    """Response model for user registration."""
    user_id: str
    username: str


class LoginRequest(BaseModel):
    """Request model for user login. endpoint is the caller's file-serving host:port."""
    username: str
    password: str
    endpoint: str

    @field_validator("endpoint")
    @classmethod
    def endpoint_has_port(cls, value: str) -> str:
        host, sep, port = value.strip().rpartition(":")
        if not sep or not host or not port.isdigit() or not 0 < int(port) < 65536:
            raise ValueError("endpoint must be host:port")
        return value.strip()


class LoginResponse(BaseModel):
    """Response model for user login."""
    user_id: str
    username: str
    endpoint: str
    created_at: str
