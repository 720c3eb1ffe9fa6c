"""Utility helper functions for the Coordinator."""

import uuid
from datetime import datetime, timezone

from coordinator.exceptions import InvalidFilenameError


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """
    Get the current time as an aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def validate_filename(filename: str) -> str:
    """
    Check that a catalog filename is a plain, non-empty file name.

    Args:
        filename: Display name submitted by a peer

    Returns:
        The filename, unchanged

    Raises:
        InvalidFilenameError: If the name is empty, a dot entry, padded with
            whitespace or contains a path separator
    """
    if not filename.strip() or filename != filename.strip() or filename in ('.', '..'):
        raise InvalidFilenameError(f"Invalid filename: {filename!r}")
    if any(sep in filename for sep in ('/', '\\', '\x00')):
        raise InvalidFilenameError(f"Invalid filename: {filename!r}")
    return filename


def format_timestamp(value: datetime) -> str:
    """
    Serialize a datetime for storage with fixed precision, so stored values
    compare correctly as strings.
    """
    return value.astimezone(timezone.utc).isoformat(timespec='microseconds')


def parse_timestamp(value: str) -> datetime:
    """
    Parse a stored timestamp back into an aware UTC datetime.
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
