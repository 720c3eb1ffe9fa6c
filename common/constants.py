"""Project-wide constants (default ports, timeouts, error codes)."""

COORDINATOR_PORT: int = 4000
PEER_FILE_PORT: int = 5000  # well-known port every peer serves its files on

SESSION_TTL_SECONDS: int = 30 * 60
SESSION_SWEEP_INTERVAL_SECONDS: int = 60

STREAM_PIECE_SIZE: int = 64 * 1024

DEFAULT_CONNECT_TIMEOUT: float = 5.0
DEFAULT_REQUEST_TIMEOUT: float = 30.0
DEFAULT_IDLE_TIMEOUT: float = 30.0

PARTIAL_SUFFIX: str = ".part"


class ErrorCode:
    """Error codes carried in the ``code`` field of Coordinator error responses."""

    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    SESSION_CONFLICT = "SESSION_CONFLICT"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INACTIVE_SESSION = "INACTIVE_SESSION"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    OWNER_OFFLINE = "OWNER_OFFLINE"
    INVALID_FILENAME = "INVALID_FILENAME"
    CATALOG_WRITE_FAILED = "CATALOG_WRITE_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"
