"""Command handler functions for peer shell operations."""

from pathlib import Path
from typing import Optional

from common.constants import ErrorCode
from common.logging_config import get_logger
from peer.config import PeerConfig
from peer.exceptions import PeerError
from peer.models import (
    RegisterCommand,
    LoginCommand,
    LogoutCommand,
    UploadCommand,
    SearchCommand,
    DownloadCommand,
    StatusCommand,
)
from peer.node import PeerNode
from peer.transfer import FailureReason
from peer.utils import DownloadProgress, format_file_size

logger = get_logger(__name__)


_node: Optional[PeerNode] = None

ERROR_MESSAGES = {
    ErrorCode.USER_ALREADY_EXISTS: 'Username already taken. Try logging in or choose a different username.',
    ErrorCode.INVALID_CREDENTIALS: 'Invalid username or password.',
    ErrorCode.SESSION_CONFLICT: 'This user is already logged in on another node. Logout there first.',
    ErrorCode.INACTIVE_SESSION: 'Your session has expired. Please run: login <username> <password>',
    ErrorCode.FILE_NOT_FOUND: 'File not found in the catalog.',
    ErrorCode.OWNER_OFFLINE: 'The owner of this file is offline.',
    ErrorCode.CATALOG_WRITE_FAILED: 'The coordinator could not record the upload. Please try again.',
}

FAILURE_MESSAGES = {
    FailureReason.UNAUTHENTICATED: 'Not logged in',
    FailureReason.NOT_FOUND: 'File not found',
    FailureReason.OWNER_OFFLINE: 'Owner offline',
    FailureReason.IO_ERROR: 'Transfer failed',
    FailureReason.UNAVAILABLE: 'Coordinator unavailable',
    FailureReason.CANCELLED: 'Download cancelled',
}


def get_node() -> PeerNode:
    """
    Get or create global PeerNode instance.

    Returns:
        PeerNode instance
    """
    global _node
    if _node is None:
        logger.debug("Creating new PeerNode instance")
        _node = PeerNode(PeerConfig())
    return _node


def set_node(node: Optional[PeerNode]) -> None:
    global _node
    _node = node


def format_error(error: PeerError) -> str:
    return f"Error: {ERROR_MESSAGES.get(error.code, str(error))}"


def handle_register(cmd: RegisterCommand, node: Optional[PeerNode] = None) -> str:
    """
    Handle 'register' command.

    Args:
        cmd: RegisterCommand with username and password
        node: Optional PeerNode for dependency injection (testing)

    Returns:
        Success or error message
    """
    if node is None:
        node = get_node()
    try:
        user = node.register(cmd.username, cmd.password)
    except PeerError as e:
        return f"Registration failed: {format_error(e)}"
    return f"Registration successful!\nUser ID: {user['user_id']}\nYou can now run: login {cmd.username} <password>"


def handle_login(cmd: LoginCommand, node: Optional[PeerNode] = None) -> str:
    """
    Handle 'login' command.

    Args:
        cmd: LoginCommand with username and password
        node: Optional PeerNode for dependency injection (testing)

    Returns:
        Success or error message
    """
    if node is None:
        node = get_node()
    try:
        session = node.login(cmd.username, cmd.password)
    except PeerError as e:
        return f"Login failed: {format_error(e)}"
    return f"Login successful!\nUser ID: {session.user_id}\nSharing files at {session.endpoint}"


def handle_logout(cmd: LogoutCommand, node: Optional[PeerNode] = None) -> str:
    if node is None:
        node = get_node()
    if not node.is_authenticated:
        return "Not logged in."
    try:
        removed = node.logout()
    except PeerError as e:
        return f"Logout failed: {format_error(e)}"
    if removed is None:
        return "Logged out (session had already ended)."
    return f"Logged out. {removed} file(s) withdrawn from the catalog."


def handle_upload(cmd: UploadCommand, node: Optional[PeerNode] = None) -> str:
    """
    Handle 'upload' command.

    Args:
        cmd: UploadCommand with file_list
        node: Optional PeerNode for dependency injection (testing)

    Returns:
        Success or error message with upload results
    """
    logger.info(f"Executing upload command: {len(cmd.file_list)} file(s)")
    if node is None:
        node = get_node()
    paths = [Path(path).expanduser() for path in cmd.file_list]
    try:
        uploaded = node.upload(paths)
    except PeerError as e:
        return f"Upload failed: {format_error(e)}"

    output = [f"Uploaded {len(uploaded)} file(s):"]
    for item in uploaded:
        output.append(f"  - {item.filename} (ID: {item.file_id}, {format_file_size(item.size)})")
    return '\n'.join(output)


def handle_search(cmd: SearchCommand, node: Optional[PeerNode] = None) -> str:
    """
    Handle 'search' command.

    Returns:
        Formatted list of matching files
    """
    logger.info(f"Executing search command: keyword={cmd.keyword!r}")
    if node is None:
        node = get_node()
    try:
        files = node.search(cmd.keyword)
    except PeerError as e:
        return format_error(e)

    if not files:
        return f"No files found matching: {cmd.keyword}" if cmd.keyword else "No files are shared right now."

    output = [f"Found {len(files)} file(s):\n"]
    for record in files:
        output.append(f"  [{record['file_id']}] {record['filename']}\n      Owner: {record['owner_id']}")
    return '\n'.join(output)


def handle_download(cmd: DownloadCommand, node: Optional[PeerNode] = None) -> str:
    """
    Handle 'download' command.

    Args:
        cmd: DownloadCommand with file_id
        node: Optional PeerNode for dependency injection (testing)

    Returns:
        Success or error message with download results
    """
    logger.info(f"Executing download command: file_id={cmd.file_id}")
    if node is None:
        node = get_node()

    progress = DownloadProgress(f"file {cmd.file_id}")
    result = node.download(cmd.file_id, on_progress=progress)
    progress.finish()

    if result.ok:
        return f"Downloaded {result.filename} ({format_file_size(result.bytes_received)}) to {result.path}"
    return f"{FAILURE_MESSAGES[result.reason]}: {result.message}"


def handle_status(cmd: StatusCommand, node: Optional[PeerNode] = None) -> str:
    if node is None:
        node = get_node()

    lines = []
    if node.session:
        lines.append(f"Logged in as {node.session.username} (User ID: {node.session.user_id})")
        lines.append(f"Sharing at: {node.session.endpoint}")
    else:
        lines.append("Not logged in.")
    lines.append(f"Coordinator: {node.config.get_coordinator_url()}")
    lines.append(f"Storage: {node.store.root}")
    lines.append(f"Shared files held locally: {node.store.index.count()}")
    return '\n'.join(lines)
