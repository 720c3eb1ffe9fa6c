"""Shared data type definitions (ActiveSession, FileRecord, ResolvedLocation)."""

from dataclasses import dataclass
from datetime import datetime
from urllib.parse import quote


@dataclass(frozen=True)
class ActiveSession:
    """
    A logged-in user and the endpoint of the node they are logged in from.
    """
    user_id: str
    endpoint: str
    created_at: datetime


@dataclass(frozen=True)
class FileRecord:
    """
    Catalog entry binding a file identifier to its owner and display name.
    """
    file_id: int
    filename: str
    owner_id: str
    created_at: datetime


@dataclass(frozen=True)
class ResolvedLocation:
    """
    Where a file can be fetched from right now.
    """
    file_id: int
    endpoint: str
    filename: str

    @property
    def url(self) -> str:
        return f"http://{self.endpoint}/files/{quote(self.filename)}"
