"""Pydantic schemas for file catalog endpoints."""

from typing import List
from pydantic import BaseModel


class RegisterFilesRequest(BaseModel):
    """Request model for recording uploaded files."""
    owner_id: str
    filenames: List[str]


class FileRecordResponse(BaseModel):
    """Response model for one catalog record."""
    file_id: int
    filename: str
    owner_id: str


class FileListResponse(BaseModel):
    """Response model for registration and search results."""
    files: List[FileRecordResponse]


class FileLocationResponse(BaseModel):
    """Response model for a resolved file location."""
    file_id: int
    endpoint: str
    filename: str
    url: str
