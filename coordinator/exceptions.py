"""Custom exception classes for the Coordinator."""


class CoordinatorError(Exception):
    """
    Base exception class for all Coordinator errors.
    """
    pass


class UserAlreadyExistsError(CoordinatorError):
    """
    Raised when attempting to register a username that already exists.
    """
    pass


class InvalidCredentialsError(CoordinatorError):
    """
    Raised when login credentials are invalid.
    """
    pass


class SessionConflictError(CoordinatorError):
    """
    Raised when a user who already holds an active session tries to log in again.
    """
    pass


class SessionNotFoundError(CoordinatorError):
    """
    Raised when no active session exists for a user.
    """
    pass


class InactiveSessionError(CoordinatorError):
    """
    Raised when an operation requires the caller to hold an active session.
    """
    pass


class FileRecordNotFoundError(CoordinatorError):
    """
    Raised when no catalog record exists for a file identifier.
    """
    pass


class OwnerOfflineError(CoordinatorError):
    """
    Raised when a file's record exists but its owner has no active session.
    """
    pass


class InvalidFilenameError(CoordinatorError):
    """
    Raised when a filename submitted to the catalog is empty or not a plain name.
    """
    pass


class CatalogWriteError(CoordinatorError):
    """
    Raised when a batch insert into the catalog fails and is rolled back.
    """
    pass
