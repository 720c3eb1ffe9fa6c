"""Exceptions raised by the peer node."""

from typing import Optional


class PeerError(Exception):
    """Base exception for peer node errors, carrying the Coordinator error code when known."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class UnavailableError(PeerError):
    """The Coordinator could not be reached or kept failing."""
    pass


class UnauthorizedError(PeerError):
    """Bad credentials or no active session."""
    pass


class ConflictError(PeerError):
    """Username taken or user already logged in elsewhere."""
    pass


class NotFoundError(PeerError):
    """Unknown file, user or session."""
    pass


class OwnerOfflineError(PeerError):
    """The file exists but its owner has no active session."""
    pass


class StorageError(PeerError):
    """Local file storage failed."""
    pass


class RequestError(PeerError):
    """The Coordinator rejected the request or answered unexpectedly."""
    pass
