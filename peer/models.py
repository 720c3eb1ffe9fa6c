"""Command request data types for the peer shell."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class RegisterCommand:
    """Register a new user account."""

    username: str
    password: str
    command: Literal["register"] = "register"


@dataclass(frozen=True)
class LoginCommand:
    """Login and advertise this node's file endpoint."""

    username: str
    password: str
    command: Literal["login"] = "login"


@dataclass(frozen=True)
class LogoutCommand:
    """End the session, withdrawing this user's files from the catalog."""

    command: Literal["logout"] = "logout"


@dataclass(frozen=True)
class UploadCommand:
    """Upload local files."""

    file_list: tuple[str, ...]
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class SearchCommand:
    """Search the catalog by filename keyword (empty = all)."""

    keyword: str
    command: Literal["search"] = "search"


@dataclass(frozen=True)
class DownloadCommand:
    """Download a file by id from its owner."""

    file_id: int
    command: Literal["download"] = "download"


@dataclass(frozen=True)
class StatusCommand:
    """Show session and local storage state."""

    command: Literal["status"] = "status"


CommandRequest = (
    RegisterCommand
    | LoginCommand
    | LogoutCommand
    | UploadCommand
    | SearchCommand
    | DownloadCommand
    | StatusCommand
)
