"""Command parser for peer shell input."""

import shlex

from peer.models import (
    CommandRequest,
    RegisterCommand,
    LoginCommand,
    LogoutCommand,
    UploadCommand,
    SearchCommand,
    DownloadCommand,
    StatusCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from the shell

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]
    args = tokens[1:]

    if command_name == "register":
        return _parse_register(args)
    elif command_name == "login":
        return _parse_login(args)
    elif command_name == "logout":
        return _parse_no_args(args, "logout", LogoutCommand)
    elif command_name == "upload":
        return _parse_upload(args)
    elif command_name == "search":
        return SearchCommand(keyword=" ".join(args))
    elif command_name == "download":
        return _parse_download(args)
    elif command_name == "status":
        return _parse_no_args(args, "status", StatusCommand)
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_register(args: list[str]) -> RegisterCommand:
    """Parse 'register <username> <password>' command."""
    if len(args) != 2:
        raise ParseError("register requires exactly 2 arguments: <username> <password>")

    username, password = args
    return RegisterCommand(username=username, password=password)


def _parse_login(args: list[str]) -> LoginCommand:
    """Parse 'login <username> <password>' command."""
    if len(args) != 2:
        raise ParseError("login requires exactly 2 arguments: <username> <password>")

    username, password = args
    return LoginCommand(username=username, password=password)


def _parse_no_args(args: list[str], name: str, command_type):
    if args:
        raise ParseError(f"{name} takes no arguments")
    return command_type()


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <path> [path ...]' command."""
    if not args:
        raise ParseError("upload requires at least one file path")

    return UploadCommand(file_list=tuple(args))


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <file_id>' command."""
    if len(args) != 1:
        raise ParseError("download requires exactly 1 argument: <file_id>")

    try:
        file_id = int(args[0])
    except ValueError:
        raise ParseError(f"file_id must be a number, got {args[0]!r}")

    if file_id < 1:
        raise ParseError("file_id must be positive")

    return DownloadCommand(file_id=file_id)
